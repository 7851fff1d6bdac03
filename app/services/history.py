"""Bildirim geçmişi: sadece ekleme ve son kayıtları okuma."""
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.core.exceptions import StoreError
from app.models import NotificationRecord


def append_record(db: Session, record: NotificationRecord) -> NotificationRecord:
    try:
        db.add(record)
        db.commit()
        db.refresh(record)
        return record
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError("Bildirim geçmişi yazılamadı.") from e


def list_recent(db: Session, limit: int = 50) -> list[NotificationRecord]:
    try:
        stmt = (
            select(NotificationRecord)
            .order_by(NotificationRecord.sent_at.desc(), NotificationRecord.id.desc())
            .limit(limit)
        )
        return list(db.exec(stmt).all())
    except SQLAlchemyError as e:
        raise StoreError("Bildirim geçmişi okunamadı.") from e
