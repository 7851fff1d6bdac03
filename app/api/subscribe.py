"""Anonim uçlar: tarayıcı aboneliği ve VAPID public key."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.rate_limit import limiter
from app.schemas import SubscribeRequest, SubscribeResponse
from app.services.subscribers import upsert_subscriber

log = logging.getLogger("pushcast")

router = APIRouter(prefix="/api", tags=["subscribe"])


def _subscribe_limit() -> str:
    return f"{settings.rate_limit_subscribe_per_minute}/minute"


@router.post("/subscribe", response_model=SubscribeResponse)
@limiter.limit(_subscribe_limit)
def subscribe(
    request: Request,
    body: SubscribeRequest,
    db: Session = Depends(get_db),
):
    """Aynı endpoint tekrar gelirse anahtarlar güncellenir, yeni satır açılmaz."""
    user_agent = (request.headers.get("user-agent") or "")[:500]
    sub = upsert_subscriber(db, body.endpoint, body.keys.p256dh, body.keys.auth, user_agent)
    log.info("Subscriber saved: id=%s ua=%s", sub.id, user_agent[:50])
    return SubscribeResponse(success=True, subscriber_id=sub.id)


@router.get("/vapid-public-key")
def vapid_public_key():
    """Tarayıcı pushManager.subscribe() için applicationServerKey."""
    if not settings.vapid_public_key:
        raise HTTPException(status_code=503, detail="Push bildirimleri yapılandırılmamış.")
    return {"public_key": settings.vapid_public_key}
