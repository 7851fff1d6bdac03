from pydantic import BaseModel, field_validator


class SubscriptionKeys(BaseModel):
    p256dh: str
    auth: str

    @field_validator("p256dh", "auth")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Abonelik anahtarı boş olamaz.")
        return v


class SubscribeRequest(BaseModel):
    """Tarayıcının PushSubscription.toJSON() çıktısı (expirationTime yok sayılır)."""
    endpoint: str
    keys: SubscriptionKeys

    @field_validator("endpoint")
    @classmethod
    def endpoint_is_url(cls, v: str) -> str:
        v = (v or "").strip()
        if not v.startswith("https://"):
            raise ValueError("Geçersiz abonelik endpoint'i.")
        return v


class SubscribeResponse(BaseModel):
    success: bool = True
    subscriber_id: int | None = None


class SubscriberCount(BaseModel):
    count: int
