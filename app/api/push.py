"""Operatör: abone sayısı, toplu gönderim ve gönderim geçmişi."""
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.api.deps import require_admin
from app.core.config import settings
from app.core.database import get_db
from app.schemas import BroadcastRequest, BroadcastResponse, SubscriberCount
from app.schemas.push import NotificationItem, NotificationList
from app.services.broadcast import broadcast
from app.services.history import list_recent
from app.services.push import PushService, get_push_service
from app.services.subscribers import count_subscribers

router = APIRouter(prefix="/api", tags=["push"], dependencies=[Depends(require_admin)])


@router.get("/subscribers", response_model=SubscriberCount)
def subscribers_count(db: Session = Depends(get_db)):
    return SubscriberCount(count=count_subscribers(db))


@router.post("/push", response_model=BroadcastResponse)
def push_broadcast(
    body: BroadcastRequest,
    db: Session = Depends(get_db),
    push: PushService = Depends(get_push_service),
):
    result = broadcast(db, push, body.title, body.body, body.url)
    return BroadcastResponse(success=True, **result._asdict())


@router.get("/notifications", response_model=NotificationList)
def notifications(db: Session = Depends(get_db), limit: int | None = None):
    limit = min(max(1, limit or settings.history_limit), 500)
    rows = list_recent(db, limit)
    return NotificationList(
        notifications=[NotificationItem.model_validate(r, from_attributes=True) for r in rows]
    )
