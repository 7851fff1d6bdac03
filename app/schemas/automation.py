from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.models import FlowStatus


class FlowCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    trigger_delay_hours: int = Field(..., gt=0)
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    url: str | None = None


class FlowUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    trigger_delay_hours: int | None = Field(default=None, gt=0)
    title: str | None = Field(default=None, min_length=1)
    body: str | None = Field(default=None, min_length=1)
    url: str | None = None


class FlowToggle(BaseModel):
    status: Literal["active", "paused"]


class FlowItem(BaseModel):
    id: int
    name: str
    trigger_delay_hours: int
    title: str
    body: str
    url: str | None = None
    status: FlowStatus
    created_at: datetime
    updated_at: datetime


class FlowResponse(BaseModel):
    flow: FlowItem


class FlowList(BaseModel):
    flows: list[FlowItem]


class TickResponse(BaseModel):
    """Sadece toplam sayı; abone bazında detay dönülmez."""
    success: bool = True
    total_sent: int
    processed_at: datetime


class SuccessResponse(BaseModel):
    success: bool = True
