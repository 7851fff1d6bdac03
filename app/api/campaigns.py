"""Operatör: A/B kampanyaları (oluştur, gönder, sil)."""
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.api.deps import require_admin
from app.core.database import get_db
from app.schemas import CampaignCreate, CampaignSendResponse, SuccessResponse
from app.schemas.campaign import CampaignItem, CampaignList, CampaignResponse
from app.services import campaigns as campaign_service
from app.services.push import PushService, get_push_service

router = APIRouter(prefix="/api/ab-campaigns", tags=["ab-campaigns"], dependencies=[Depends(require_admin)])


@router.get("", response_model=CampaignList)
def campaigns_list(db: Session = Depends(get_db)):
    rows = campaign_service.list_campaigns(db)
    return CampaignList(campaigns=[CampaignItem.model_validate(c, from_attributes=True) for c in rows])


@router.post("", response_model=CampaignResponse)
def campaign_create(body: CampaignCreate, db: Session = Depends(get_db)):
    campaign = campaign_service.create_campaign(
        db,
        name=body.name,
        variant_a=campaign_service.Variant(body.variant_a.title, body.variant_a.body, body.variant_a.url),
        variant_b=campaign_service.Variant(body.variant_b.title, body.variant_b.body, body.variant_b.url),
        percentage_a=body.variant_a_percentage,
        percentage_b=body.variant_b_percentage,
    )
    return CampaignResponse(campaign=CampaignItem.model_validate(campaign, from_attributes=True))


@router.post("/{campaign_id}/send", response_model=CampaignSendResponse)
def campaign_send(
    campaign_id: int,
    db: Session = Depends(get_db),
    push: PushService = Depends(get_push_service),
):
    result = campaign_service.send_campaign(db, push, campaign_id)
    return CampaignSendResponse(success=True, **result._asdict())


@router.delete("/{campaign_id}", response_model=SuccessResponse)
def campaign_delete(campaign_id: int, db: Session = Depends(get_db)):
    campaign_service.delete_campaign(db, campaign_id)
    return SuccessResponse()
