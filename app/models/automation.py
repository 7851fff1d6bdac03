"""Otomasyon akışları ve gönderim işaretleri (flow, abone) başına en fazla bir bildirim."""
from datetime import datetime
from enum import Enum

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from app.core.timeutils import utcnow


class FlowStatus(str, Enum):
    """active <-> paused serbest; deleted son durum (soft delete, kayıt ve işaretler kalır)."""

    ACTIVE = "active"
    PAUSED = "paused"
    DELETED = "deleted"

    @property
    def is_terminal(self) -> bool:
        return self is FlowStatus.DELETED

    def can_transition_to(self, target: "FlowStatus") -> bool:
        # deleted'dan çıkış yok; diğerleri arasında (aynı duruma dahil) geçiş serbest
        return not self.is_terminal and isinstance(target, FlowStatus)


class AutomationFlow(SQLModel, table=True):
    __tablename__ = "push_automation_flows"
    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=200)
    trigger_delay_hours: int  # abone olduktan kaç saat sonra gönderilir (> 0)
    title: str
    body: str
    url: str | None = None
    status: FlowStatus = Field(default=FlowStatus.ACTIVE, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class AutomationSent(SQLModel, table=True):
    """Kayıt varsa bu abone bu akışın bildirimini almıştır. Tekillik veritabanında zorunlu."""

    __tablename__ = "push_automation_sent"
    __table_args__ = (
        UniqueConstraint("flow_id", "subscriber_id", name="uq_automation_sent_flow_subscriber"),
    )

    id: int | None = Field(default=None, primary_key=True)
    flow_id: int = Field(foreign_key="push_automation_flows.id", index=True)
    # Abone silinse de işaret kalır (otomasyon geçmişi); bu yüzden FK yok
    subscriber_id: int = Field(index=True)
    sent_at: datetime = Field(default_factory=utcnow)
