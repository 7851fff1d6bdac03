"""Push servisinin hata sınıfları. Her sınıf HTTP durum kodunu ve varsayılan mesajı taşır."""

# Push servisinin "endpoint artık yok" anlamına gelen yanıtları
PERMANENT_STATUS_CODES = frozenset({404, 410})


class PushError(Exception):
    status_code = 500
    message = "Beklenmeyen sunucu hatası."

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class ValidationError(PushError):
    status_code = 400
    message = "Geçersiz istek."


class NotFound(PushError):
    status_code = 404
    message = "Kayıt bulunamadı."


class NoRecipients(PushError):
    status_code = 404
    message = "Kayıtlı abone yok."


class AlreadySent(PushError):
    status_code = 409
    message = "Bu kampanya zaten gönderildi."


class MarkerExists(PushError):
    """Aynı (flow, abone) çifti için gönderim işareti zaten var."""

    status_code = 409
    message = "Bu abone bu akışın bildirimini zaten aldı."


class StoreError(PushError):
    status_code = 503
    message = "Veritabanına şu an ulaşılamıyor."


class PushNotConfigured(PushError):
    status_code = 503
    message = "Push bildirimleri yapılandırılmamış (VAPID anahtarları yok)."


class TransportError(Exception):
    """Tek bir aboneye gönderim hatası. Dışarıya taşınmaz; sayılır ve loglanır."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def permanent(self) -> bool:
        return self.status_code in PERMANENT_STATUS_CODES
