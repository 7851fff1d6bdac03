"""Toplu gönderim geçmişi: her broadcast için bir kayıt, sonradan güncellenmez."""
from datetime import datetime

from sqlmodel import Field, SQLModel

from app.core.timeutils import utcnow


class NotificationRecord(SQLModel, table=True):
    __tablename__ = "push_notifications"
    id: int | None = Field(default=None, primary_key=True)
    title: str
    body: str
    url: str | None = None
    total_subscribers: int = 0  # gönderim anındaki abone sayısı (silinenler dahil)
    total_sent: int = 0
    total_failed: int = 0
    sent_at: datetime = Field(default_factory=utcnow, index=True)
