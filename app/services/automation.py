"""
Otomasyon akışları: abone olduktan `trigger_delay_hours` saat sonra tek seferlik bildirim.

Her tick'te aktif akışlar gezilir. (flow, abone) çifti için gönderim işareti
push_automation_sent tablosundaki tekil kısıtla korunur:
  1. İşaret gönderimden önce eklenir (rezervasyon). Eklenemezse başka bir tick almıştır, atla.
  2. Gönderim başarısızsa işaret silinir; abone sonraki tick'te tekrar denenir.
Böylece tick'ler farklı süreçlerde eşzamanlı çalışsa da aynı çifte iki bildirim gitmez.
"""
import logging
from datetime import datetime, timedelta
from typing import NamedTuple

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from app.core.exceptions import MarkerExists, NotFound, StoreError, ValidationError
from app.core.timeutils import utcnow
from app.models import AutomationFlow, AutomationSent, FlowStatus
from app.services.push import PushService, Recipient, build_payload
from app.services.subscribers import list_subscribers_older_than

log = logging.getLogger("pushcast.automation")

_EDITABLE_FIELDS = ("name", "trigger_delay_hours", "title", "body", "url")


class TickResult(NamedTuple):
    total_sent: int
    processed_at: datetime


def _validate_flow_fields(name: str, trigger_delay_hours: int, title: str, body: str) -> None:
    if not (name or "").strip():
        raise ValidationError("Akış adı boş olamaz.")
    if not (title or "").strip() or not (body or "").strip():
        raise ValidationError("Başlık ve metin zorunlu.")
    if trigger_delay_hours is None or trigger_delay_hours <= 0:
        raise ValidationError("Gecikme (saat) 0'dan büyük olmalı.")


def _save(db: Session, flow: AutomationFlow, what: str) -> AutomationFlow:
    try:
        db.add(flow)
        db.commit()
        db.refresh(flow)
        return flow
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError(f"Akış {what}.") from e


def create_flow(
    db: Session,
    name: str,
    trigger_delay_hours: int,
    title: str,
    body: str,
    url: str | None = None,
) -> AutomationFlow:
    _validate_flow_fields(name, trigger_delay_hours, title, body)
    flow = AutomationFlow(
        name=name.strip(),
        trigger_delay_hours=trigger_delay_hours,
        title=title,
        body=body,
        url=url or None,
        status=FlowStatus.ACTIVE,
    )
    flow = _save(db, flow, "kaydedilemedi")
    log.info("Automation flow created: id=%s delay=%sh", flow.id, trigger_delay_hours)
    return flow


def list_flows(db: Session) -> list[AutomationFlow]:
    """Silinmiş (soft delete) akışlar listelenmez."""
    try:
        stmt = (
            select(AutomationFlow)
            .where(AutomationFlow.status != FlowStatus.DELETED)
            .order_by(AutomationFlow.created_at.desc(), AutomationFlow.id.desc())
        )
        return list(db.exec(stmt).all())
    except SQLAlchemyError as e:
        raise StoreError("Akışlar okunamadı.") from e


def list_active_flows(db: Session) -> list[AutomationFlow]:
    try:
        stmt = select(AutomationFlow).where(AutomationFlow.status == FlowStatus.ACTIVE).order_by(AutomationFlow.id)
        return list(db.exec(stmt).all())
    except SQLAlchemyError as e:
        raise StoreError("Aktif akışlar okunamadı.") from e


def get_flow(db: Session, flow_id: int) -> AutomationFlow:
    try:
        flow = db.get(AutomationFlow, flow_id)
    except SQLAlchemyError as e:
        raise StoreError("Akış okunamadı.") from e
    if not flow or flow.status == FlowStatus.DELETED:
        raise NotFound("Akış bulunamadı.")
    return flow


def update_flow(db: Session, flow_id: int, **changes) -> AutomationFlow:
    """None gelen alanlar değişmez; url boş gelirse temizlenir. Doğrulama nesneye yazmadan önce yapılır."""
    flow = get_flow(db, flow_id)
    for key in changes:
        if key not in _EDITABLE_FIELDS:
            raise ValidationError(f"Güncellenemez alan: {key}")
    values = {k: v for k, v in changes.items() if v is not None}
    if "url" in changes and not changes["url"]:
        values["url"] = None
    if isinstance(values.get("name"), str):
        values["name"] = values["name"].strip()
    _validate_flow_fields(
        values.get("name", flow.name),
        values.get("trigger_delay_hours", flow.trigger_delay_hours),
        values.get("title", flow.title),
        values.get("body", flow.body),
    )
    for key, value in values.items():
        setattr(flow, key, value)
    flow.updated_at = utcnow()
    return _save(db, flow, "güncellenemedi")


def set_flow_status(db: Session, flow_id: int, status: FlowStatus) -> AutomationFlow:
    flow = get_flow(db, flow_id)
    if not flow.status.can_transition_to(status):
        raise ValidationError("Silinmiş akışın durumu değiştirilemez.")
    flow.status = status
    flow.updated_at = utcnow()
    flow = _save(db, flow, "güncellenemedi")
    log.info("Automation flow %s -> %s", flow_id, status.value)
    return flow


def toggle_flow(db: Session, flow_id: int, status: FlowStatus) -> AutomationFlow:
    """Operatör anahtarı: sadece active <-> paused."""
    if status not in (FlowStatus.ACTIVE, FlowStatus.PAUSED):
        raise ValidationError("Durum 'active' veya 'paused' olmalı.")
    return set_flow_status(db, flow_id, status)


def delete_flow(db: Session, flow_id: int) -> AutomationFlow:
    """Soft delete: satır ve gönderim işaretleri kalır."""
    return set_flow_status(db, flow_id, FlowStatus.DELETED)


def has_marker(db: Session, flow_id: int, subscriber_id: int) -> bool:
    stmt = select(AutomationSent.id).where(
        AutomationSent.flow_id == flow_id,
        AutomationSent.subscriber_id == subscriber_id,
    )
    try:
        return db.exec(stmt).first() is not None
    except SQLAlchemyError as e:
        raise StoreError("Gönderim işareti okunamadı.") from e


def marked_subscriber_ids(db: Session, flow_id: int, subscriber_ids: list[int]) -> set[int]:
    """has_marker'ın toplu hali: verilen abonelerden işareti olanlar."""
    if not subscriber_ids:
        return set()
    stmt = select(AutomationSent.subscriber_id).where(
        AutomationSent.flow_id == flow_id,
        AutomationSent.subscriber_id.in_(subscriber_ids),
    )
    try:
        return set(db.exec(stmt).all())
    except SQLAlchemyError as e:
        raise StoreError("Gönderim işaretleri okunamadı.") from e


def insert_marker(db: Session, flow_id: int, subscriber_id: int) -> AutomationSent:
    """Tekil kısıt ihlalinde MarkerExists; diğer veritabanı hatalarında StoreError."""
    marker = AutomationSent(flow_id=flow_id, subscriber_id=subscriber_id, sent_at=utcnow())
    try:
        db.add(marker)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise MarkerExists() from e
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError("Gönderim işareti yazılamadı.") from e
    return marker


def remove_marker(db: Session, flow_id: int, subscriber_id: int) -> None:
    try:
        db.exec(
            delete(AutomationSent)
            .where(AutomationSent.flow_id == flow_id, AutomationSent.subscriber_id == subscriber_id)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError("Gönderim işareti silinemedi.") from e


def _process_flow(db: Session, push: PushService, flow: AutomationFlow, now: datetime) -> int:
    flow_id = flow.id or 0
    cutoff = now - timedelta(hours=flow.trigger_delay_hours)
    payload = build_payload(flow.title, flow.body, flow.url, flow_id=flow_id)

    eligible = [Recipient.from_subscriber(s) for s in list_subscribers_older_than(db, cutoff)]
    if not eligible:
        return 0
    already = marked_subscriber_ids(db, flow_id, [r.id for r in eligible])

    claimed: list[Recipient] = []
    for r in eligible:
        if r.id in already:
            continue
        try:
            insert_marker(db, flow_id, r.id)
        except MarkerExists:
            continue
        claimed.append(r)
    if not claimed:
        return 0

    sent = 0
    for r, outcome in push.deliver_many([(r, payload) for r in claimed]):
        if outcome.ok:
            sent += 1
            continue
        try:
            remove_marker(db, flow_id, r.id)
        except StoreError as e:
            # İşaret kaldı: bu abone bu akışı almayacak (en fazla bir kez kuralı korunur)
            log.exception("Releasing marker flow=%s subscriber=%s failed: %s", flow_id, r.id, e)
    log.info("Automation flow %s: eligible=%d claimed=%d sent=%d", flow_id, len(eligible), len(claimed), sent)
    return sent


def process_tick(db: Session, push: PushService, now: datetime | None = None) -> TickResult:
    """Tüm aktif akışları bir kez işler. Bir akışın hatası diğerlerini etkilemez."""
    now = now or utcnow()
    flows = list_active_flows(db)
    total_sent = 0
    for flow in flows:
        # Commit'ler nesneyi expire eder; hata logu için id baştan alınır
        flow_id = flow.id
        try:
            total_sent += _process_flow(db, push, flow, now)
        except StoreError as e:
            log.error("Automation flow %s skipped this tick: %s", flow_id, e)
    log.info("Automation tick: flows=%d total_sent=%d", len(flows), total_sent)
    return TickResult(total_sent=total_sent, processed_at=now)
