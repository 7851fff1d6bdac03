"""Abone deposu: endpoint'e göre ekle/güncelle, toplu okuma ve toplu silme."""
import logging
from datetime import datetime

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, func, select

from app.core.exceptions import StoreError
from app.core.timeutils import utcnow
from app.models import PushSubscriber

log = logging.getLogger("pushcast.subscribers")


def _apply_keys(sub: PushSubscriber, p256dh: str, auth: str, user_agent: str) -> None:
    sub.p256dh = p256dh
    sub.auth = auth
    sub.user_agent = (user_agent or "")[:500]
    sub.updated_at = utcnow()


def upsert_subscriber(db: Session, endpoint: str, p256dh: str, auth: str, user_agent: str = "") -> PushSubscriber:
    """
    Aynı endpoint tekrar abone olursa satır yerinde güncellenir (anahtarlar, user-agent, updated_at).
    created_at değişmez; otomasyon gecikmesi ilk abonelikten sayılır.
    """
    try:
        sub = db.exec(select(PushSubscriber).where(PushSubscriber.endpoint == endpoint)).first()
        if sub is None:
            sub = PushSubscriber(endpoint=endpoint)
            _apply_keys(sub, p256dh, auth, user_agent)
            db.add(sub)
            try:
                db.commit()
            except IntegrityError:
                # Aynı endpoint eşzamanlı kaydedildi; mevcut satırı güncelle
                db.rollback()
                sub = db.exec(select(PushSubscriber).where(PushSubscriber.endpoint == endpoint)).one()
                _apply_keys(sub, p256dh, auth, user_agent)
                db.add(sub)
                db.commit()
        else:
            _apply_keys(sub, p256dh, auth, user_agent)
            db.add(sub)
            db.commit()
        db.refresh(sub)
        return sub
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError("Abonelik kaydedilemedi.") from e


def list_subscribers(db: Session) -> list[PushSubscriber]:
    try:
        return list(db.exec(select(PushSubscriber).order_by(PushSubscriber.id)).all())
    except SQLAlchemyError as e:
        raise StoreError("Aboneler okunamadı.") from e


def list_subscribers_older_than(db: Session, cutoff: datetime) -> list[PushSubscriber]:
    """cutoff anında veya öncesinde abone olanlar."""
    try:
        stmt = (
            select(PushSubscriber)
            .where(PushSubscriber.created_at <= cutoff)
            .order_by(PushSubscriber.id)
        )
        return list(db.exec(stmt).all())
    except SQLAlchemyError as e:
        raise StoreError("Aboneler okunamadı.") from e


def count_subscribers(db: Session) -> int:
    try:
        return db.exec(select(func.count()).select_from(PushSubscriber)).one()
    except SQLAlchemyError as e:
        raise StoreError("Abone sayısı okunamadı.") from e


def delete_subscribers_by_endpoints(db: Session, endpoints: list[str]) -> int:
    """Tek sorguda toplu silme. Silinen satır sayısını döner."""
    if not endpoints:
        return 0
    try:
        result = db.exec(
            delete(PushSubscriber)
            .where(PushSubscriber.endpoint.in_(endpoints))
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount or 0
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError("Geçersiz aboneler silinemedi.") from e
