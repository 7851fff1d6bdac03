from datetime import datetime

from pydantic import BaseModel, Field

from app.models import CampaignStatus


class VariantIn(BaseModel):
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    url: str | None = None


class CampaignCreate(BaseModel):
    """B yüzdesi verilmezse 100 - A kabul edilir; verilirse toplam 100 olmalı."""
    name: str = Field(..., min_length=1, max_length=200)
    variant_a: VariantIn
    variant_b: VariantIn
    variant_a_percentage: int = 50
    variant_b_percentage: int | None = None


class CampaignItem(BaseModel):
    id: int
    name: str
    variant_a_title: str
    variant_a_body: str
    variant_a_url: str | None = None
    variant_a_percentage: int
    variant_b_title: str
    variant_b_body: str
    variant_b_url: str | None = None
    variant_b_percentage: int
    status: CampaignStatus
    variant_a_sent: int
    variant_b_sent: int
    created_at: datetime
    sent_at: datetime | None = None


class CampaignResponse(BaseModel):
    campaign: CampaignItem


class CampaignList(BaseModel):
    campaigns: list[CampaignItem]


class CampaignSendResponse(BaseModel):
    success: bool = True
    variant_a_sent: int
    variant_b_sent: int
    total_subscribers: int
