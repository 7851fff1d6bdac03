"""
A/B kampanyaları.

Aboneler tekdüze rastgele karıştırılır ve floor(N * A% / 100) noktasından bölünür:
ilk parça A varyantını, kalan B varyantını alır. Kampanya yalnızca bir kez gönderilir;
draft -> completed geçişi koşullu UPDATE ile yapılır, iki eşzamanlı istekten sadece biri kazanır.
Bu akışta abone silinmez (broadcast'ten farklı olarak).
"""
import logging
import random
from typing import NamedTuple, Sequence, TypeVar

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.core.config import settings
from app.core.exceptions import AlreadySent, NoRecipients, NotFound, StoreError, ValidationError
from app.core.timeutils import utcnow
from app.models import ABCampaign, CampaignStatus
from app.services.push import PushService, Recipient, build_payload
from app.services.subscribers import list_subscribers

log = logging.getLogger("pushcast.campaign")

T = TypeVar("T")


class Variant(NamedTuple):
    title: str
    body: str
    url: str | None = None


class CampaignSendResult(NamedTuple):
    variant_a_sent: int
    variant_b_sent: int
    total_subscribers: int


def split_index(count: int, percentage_a: int) -> int:
    return (count * percentage_a) // 100


def partition(items: Sequence[T], percentage_a: int, rng: random.Random | None = None) -> tuple[list[T], list[T]]:
    """
    Rastgele permütasyon + bölme. rng verilirse (sabit tohum) sonuç tekrarlanabilir.
    Her eleman tam olarak bir gruba düşer.
    """
    shuffled = list(items)
    (rng or random.Random()).shuffle(shuffled)
    idx = split_index(len(shuffled), percentage_a)
    return shuffled[:idx], shuffled[idx:]


def _campaign_rng() -> random.Random:
    return random.Random(settings.ab_shuffle_seed)


def create_campaign(
    db: Session,
    name: str,
    variant_a: Variant,
    variant_b: Variant,
    percentage_a: int,
    percentage_b: int | None = None,
) -> ABCampaign:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Kampanya adı boş olamaz.")
    for v in (variant_a, variant_b):
        if not (v.title or "").strip() or not (v.body or "").strip():
            raise ValidationError("Her iki varyant için başlık ve metin zorunlu.")
    if not (0 < percentage_a < 100):
        raise ValidationError("A varyantı yüzdesi 1 ile 99 arasında olmalı.")
    if percentage_b is None:
        percentage_b = 100 - percentage_a
    if percentage_a + percentage_b != 100:
        raise ValidationError("Varyant yüzdelerinin toplamı 100 olmalı.")

    campaign = ABCampaign(
        name=name,
        variant_a_title=variant_a.title,
        variant_a_body=variant_a.body,
        variant_a_url=variant_a.url or None,
        variant_a_percentage=percentage_a,
        variant_b_title=variant_b.title,
        variant_b_body=variant_b.body,
        variant_b_url=variant_b.url or None,
        variant_b_percentage=percentage_b,
        status=CampaignStatus.DRAFT,
    )
    try:
        db.add(campaign)
        db.commit()
        db.refresh(campaign)
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError("Kampanya kaydedilemedi.") from e
    log.info("Campaign created: id=%s name=%s split=%d/%d", campaign.id, name, percentage_a, percentage_b)
    return campaign


def list_campaigns(db: Session) -> list[ABCampaign]:
    try:
        stmt = select(ABCampaign).order_by(ABCampaign.created_at.desc(), ABCampaign.id.desc())
        return list(db.exec(stmt).all())
    except SQLAlchemyError as e:
        raise StoreError("Kampanyalar okunamadı.") from e


def get_campaign(db: Session, campaign_id: int) -> ABCampaign:
    try:
        campaign = db.get(ABCampaign, campaign_id)
    except SQLAlchemyError as e:
        raise StoreError("Kampanya okunamadı.") from e
    if not campaign:
        raise NotFound("Kampanya bulunamadı.")
    return campaign


def delete_campaign(db: Session, campaign_id: int) -> None:
    campaign = get_campaign(db, campaign_id)
    try:
        db.delete(campaign)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError("Kampanya silinemedi.") from e


def _claim_for_sending(db: Session, campaign_id: int) -> bool:
    """draft -> completed; satır zaten completed ise False."""
    try:
        result = db.exec(
            update(ABCampaign)
            .where(ABCampaign.id == campaign_id, ABCampaign.status == CampaignStatus.DRAFT)
            .values(status=CampaignStatus.COMPLETED, sent_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError("Kampanya durumu güncellenemedi.") from e
    return result.rowcount == 1


def send_campaign(
    db: Session,
    push: PushService,
    campaign_id: int,
    rng: random.Random | None = None,
) -> CampaignSendResult:
    campaign = get_campaign(db, campaign_id)
    if campaign.status == CampaignStatus.COMPLETED:
        raise AlreadySent()

    subscribers = list_subscribers(db)
    if not subscribers:
        raise NoRecipients()
    recipients = [Recipient.from_subscriber(s) for s in subscribers]

    if not _claim_for_sending(db, campaign_id):
        raise AlreadySent()
    db.refresh(campaign)

    group_a, group_b = partition(recipients, campaign.variant_a_percentage, rng or _campaign_rng())
    payload_a = build_payload(
        campaign.variant_a_title, campaign.variant_a_body, campaign.variant_a_url,
        campaign_id=campaign.id, variant="A",
    )
    payload_b = build_payload(
        campaign.variant_b_title, campaign.variant_b_body, campaign.variant_b_url,
        campaign_id=campaign.id, variant="B",
    )
    jobs = [(r, payload_a) for r in group_a] + [(r, payload_b) for r in group_b]
    results = push.deliver_many(jobs)

    a_ids = {r.id for r in group_a}
    sent_a = sum(1 for r, outcome in results if outcome.ok and r.id in a_ids)
    sent_b = sum(1 for r, outcome in results if outcome.ok and r.id not in a_ids)

    try:
        campaign.variant_a_sent = sent_a
        campaign.variant_b_sent = sent_b
        db.add(campaign)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.exception("Saving campaign %s counts failed: %s", campaign_id, e)

    log.info(
        "Campaign %s sent: A=%d/%d B=%d/%d",
        campaign_id, sent_a, len(group_a), sent_b, len(group_b),
    )
    return CampaignSendResult(variant_a_sent=sent_a, variant_b_sent=sent_b, total_subscribers=len(recipients))
