from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env proje kökünde: app/core/config.py -> app/core -> app -> kök
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"


class Settings(BaseSettings):
    database_url: str = "sqlite:///./pushcast.db"
    # CORS: virgülle ayrılmış origin listesi; production'da https://alandiniz.com
    cors_origins: str = "*"
    # IP başına dakikada max istek (rate limit)
    rate_limit_per_minute: int = 60
    # Anonim abonelik endpoint'i için ayrı limit (testte yüksek tutulabilir)
    rate_limit_subscribe_per_minute: int = 30
    admin_secret: str = ""             # Operatör işlemleri: X-Admin-Secret
    cron_secret: str = ""              # /api/cron için Bearer token (Vercel cron, systemd timer vb.)
    environment: str = "development"
    log_level: str = "INFO"
    # Web Push (VAPID): sabit anahtar çifti, base64url. Boşsa push gönderilmez.
    vapid_public_key: str = ""
    vapid_private_key: str = ""
    vapid_claims_email: str = "mailto:dev@example.com"
    # Bildirim görünümü
    push_icon: str = "/logo.webp"
    push_badge: str = "/logo.webp"
    push_default_url: str = "/"
    push_ttl_seconds: int = 86400      # Push servisi çevrimdışı cihaz için en fazla bu kadar saklar
    push_max_workers: int = 10         # Aynı anda açık push bağlantısı üst sınırı
    # A/B karıştırması için sabit tohum (boş = her gönderimde farklı dağılım)
    ab_shuffle_seed: int | None = None
    history_limit: int = 50            # /api/notifications kaç kayıt döner
    # 0 = uygulama içi zamanlayıcı kapalı, otomasyon sadece dış cron ile tetiklenir
    automation_interval_minutes: int = 0

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("vapid_public_key", "vapid_private_key", "admin_secret", "cron_secret", mode="before")
    @classmethod
    def strip_secrets(cls, v: str | None) -> str:
        """Boşluk/yanlış kopya kaynaklı hataları azaltır."""
        return (v or "").strip()

    @field_validator("ab_shuffle_seed", mode="before")
    @classmethod
    def empty_seed_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_push_configured(self) -> bool:
        """VAPID anahtarlarının ikisi de tanımlı mı?"""
        return bool(self.vapid_public_key and self.vapid_private_key)


settings = Settings()
