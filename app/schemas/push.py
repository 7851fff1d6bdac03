from datetime import datetime

from pydantic import BaseModel, field_validator


class BroadcastRequest(BaseModel):
    title: str
    body: str
    url: str | None = None

    @field_validator("title", "body")
    @classmethod
    def required_text(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Başlık ve metin zorunlu.")
        return v


class BroadcastResponse(BaseModel):
    success: bool = True
    total_subscribers: int
    total_sent: int
    total_failed: int
    removed_invalid: int


class NotificationItem(BaseModel):
    id: int
    title: str
    body: str
    url: str | None = None
    total_subscribers: int
    total_sent: int
    total_failed: int
    sent_at: datetime


class NotificationList(BaseModel):
    notifications: list[NotificationItem]
