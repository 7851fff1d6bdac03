"""Web Push aboneleri: tarayıcı endpoint'i ve şifreleme anahtarları."""
from datetime import datetime

from sqlmodel import Field, SQLModel

from app.core.timeutils import utcnow


class PushSubscriber(SQLModel, table=True):
    __tablename__ = "push_subscribers"
    # Silinen abonenin id'si yeniden verilmesin; otomasyon işaretleri subscriber_id ile tutulur
    __table_args__ = {"sqlite_autoincrement": True}

    id: int | None = Field(default=None, primary_key=True)
    endpoint: str = Field(unique=True, index=True)  # benzersiz; aynı endpoint tekrar kaydedilmez, güncellenir
    p256dh: str = ""  # client public key (base64url)
    auth: str = ""    # auth secret (base64url)
    user_agent: str = Field(default="", max_length=500)
    created_at: datetime = Field(default_factory=utcnow, index=True)  # otomasyon gecikmesi buradan sayılır
    updated_at: datetime = Field(default_factory=utcnow)
