"""A/B kampanyası: aboneler rastgele ikiye bölünür, her gruba farklı mesaj gider."""
from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel

from app.core.timeutils import utcnow


class CampaignStatus(str, Enum):
    DRAFT = "draft"
    COMPLETED = "completed"


class ABCampaign(SQLModel, table=True):
    __tablename__ = "push_ab_campaigns"
    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=200)
    variant_a_title: str
    variant_a_body: str
    variant_a_url: str | None = None
    variant_a_percentage: int  # 1-99; B = 100 - A
    variant_b_title: str
    variant_b_body: str
    variant_b_url: str | None = None
    variant_b_percentage: int
    # draft -> completed tek sefer; tekrar gönderim yok
    status: CampaignStatus = Field(default=CampaignStatus.DRAFT, index=True)
    variant_a_sent: int = 0
    variant_b_sent: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    sent_at: datetime | None = None
