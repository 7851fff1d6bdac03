"""
Toplu gönderim: tüm abonelere aynı bildirim, paralel.
Kalıcı hata (404/410) veren endpoint'ler gönderim bitince tek sorguda silinir.
Geçmiş kaydı yazılamazsa loglanır; gönderim geri alınmaz.
"""
import logging
from typing import NamedTuple

from sqlmodel import Session

from app.core.config import settings
from app.core.exceptions import NoRecipients, StoreError
from app.core.timeutils import epoch_ms, utcnow
from app.models import NotificationRecord
from app.services.history import append_record
from app.services.push import DeliveryOutcome, PushService, Recipient, build_payload
from app.services.subscribers import delete_subscribers_by_endpoints, list_subscribers

log = logging.getLogger("pushcast.broadcast")


class BroadcastResult(NamedTuple):
    total_subscribers: int
    total_sent: int
    total_failed: int
    removed_invalid: int


def broadcast(
    db: Session,
    push: PushService,
    title: str,
    body: str,
    url: str | None = None,
) -> BroadcastResult:
    subscribers = list_subscribers(db)
    if not subscribers:
        raise NoRecipients()
    # Anlık görüntü: gönderim sırasında gelen yeni aboneler bu turda yok
    recipients = [Recipient.from_subscriber(s) for s in subscribers]

    payload = build_payload(
        title,
        body,
        url or settings.push_default_url,
        icon=settings.push_icon,
        badge=settings.push_badge,
        timestamp=epoch_ms(),
    )
    results = push.deliver_many([(r, payload) for r in recipients])

    total_sent = sum(1 for _, outcome in results if outcome.ok)
    total_failed = len(results) - total_sent
    gone = [r.endpoint for r, outcome in results if outcome is DeliveryOutcome.FAILED_PERMANENT]

    removed = 0
    if gone:
        try:
            removed = delete_subscribers_by_endpoints(db, gone)
        except StoreError as e:
            log.exception("Removing %d invalid subscribers failed: %s", len(gone), e)

    try:
        append_record(
            db,
            NotificationRecord(
                title=title,
                body=body,
                url=url or None,
                total_subscribers=len(recipients),
                total_sent=total_sent,
                total_failed=total_failed,
                sent_at=utcnow(),
            ),
        )
    except StoreError as e:
        log.exception("Saving notification history failed: %s", e)

    log.info(
        "Broadcast done: subscribers=%d sent=%d failed=%d removed=%d",
        len(recipients),
        total_sent,
        total_failed,
        removed,
    )
    return BroadcastResult(
        total_subscribers=len(recipients),
        total_sent=total_sent,
        total_failed=total_failed,
        removed_invalid=removed,
    )
