"""
Web Push gönderimi (pywebpush). Tek aboneye gönderir, sonucu sınıflandırır:
sent / failed_transient / failed_permanent. Abone silme kararı çağıranındır.
"""
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any, NamedTuple, Protocol, Sequence

import requests
from pywebpush import WebPushException, webpush

from app.core.config import settings
from app.core.exceptions import PushNotConfigured, TransportError
from app.models import PushSubscriber

log = logging.getLogger("pushcast.push")


class DeliveryOutcome(str, Enum):
    SENT = "sent"
    FAILED_TRANSIENT = "failed_transient"
    FAILED_PERMANENT = "failed_permanent"

    @property
    def ok(self) -> bool:
        return self is DeliveryOutcome.SENT


class Recipient(NamedTuple):
    """Gönderim anındaki abone görüntüsü; thread'lere ORM nesnesi yerine bu gider."""

    id: int
    endpoint: str
    p256dh: str
    auth: str

    @classmethod
    def from_subscriber(cls, sub: PushSubscriber) -> "Recipient":
        return cls(id=sub.id or 0, endpoint=sub.endpoint, p256dh=sub.p256dh, auth=sub.auth)

    def subscription_info(self) -> dict:
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}

    def short(self) -> str:
        return self.endpoint[:60]


class PushTransport(Protocol):
    def send(self, recipient: Recipient, payload: bytes) -> None:
        """Başarılıysa döner; aksi halde TransportError fırlatır."""
        ...


class WebPushTransport:
    """VAPID imzalı gerçek gönderim."""

    def __init__(self, private_key: str, claims_email: str, ttl: int = 86400):
        self._private_key = private_key
        self._claims_email = claims_email
        self._ttl = ttl

    def send(self, recipient: Recipient, payload: bytes) -> None:
        try:
            webpush(
                subscription_info=recipient.subscription_info(),
                data=payload,
                vapid_private_key=self._private_key,
                # webpush claims sözlüğüne aud/exp ekler; thread'ler arası paylaşılmamalı
                vapid_claims={"sub": self._claims_email},
                ttl=self._ttl,
            )
        except WebPushException as e:
            status = e.response.status_code if e.response is not None else None
            raise TransportError(str(e), status_code=status) from e
        except requests.RequestException as e:
            raise TransportError(str(e)) from e


def build_payload(title: str, body: str, url: str | None = None, **extra: Any) -> bytes:
    """Bildirim gövdesi (service worker bunu JSON olarak okur)."""
    data: dict[str, Any] = {"title": title, "body": body, "url": url}
    data.update(extra)
    return json.dumps(data, ensure_ascii=False).encode("utf-8")


class PushService:
    """
    Gönderim motoru.

    Usage:
        push = get_push_service()
        results = push.deliver_many([(recipient, payload), ...])
    """

    def __init__(self, transport: PushTransport, max_workers: int = 10):
        self.transport = transport
        self.max_workers = max(1, max_workers)

    def deliver(self, recipient: Recipient, payload: bytes) -> DeliveryOutcome:
        try:
            self.transport.send(recipient, payload)
        except TransportError as e:
            if e.permanent:
                log.info("Push endpoint gone (%s): %s", e.status_code, recipient.short())
                return DeliveryOutcome.FAILED_PERMANENT
            log.warning("Push failed (%s) for %s: %s", e.status_code, recipient.short(), e)
            return DeliveryOutcome.FAILED_TRANSIENT
        except Exception as e:
            # Tek alıcının beklenmeyen hatası diğerlerini etkilememeli
            log.exception("Unexpected push error for %s: %s", recipient.short(), e)
            return DeliveryOutcome.FAILED_TRANSIENT
        return DeliveryOutcome.SENT

    def deliver_many(
        self, jobs: Sequence[tuple[Recipient, bytes]]
    ) -> list[tuple[Recipient, DeliveryOutcome]]:
        """Tüm işleri sınırlı bir thread havuzunda paralel gönderir; sıra korunur."""
        if not jobs:
            return []
        workers = min(self.max_workers, len(jobs))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="push") as pool:
            outcomes = list(pool.map(lambda job: self.deliver(job[0], job[1]), jobs))
        return [(job[0], outcome) for job, outcome in zip(jobs, outcomes)]


_push_service: PushService | None = None


def get_push_service() -> PushService:
    """FastAPI dependency; testlerde dependency_overrides ile sahte transport verilir."""
    global _push_service
    if not settings.is_push_configured:
        raise PushNotConfigured()
    if _push_service is None:
        transport = WebPushTransport(
            private_key=settings.vapid_private_key,
            claims_email=settings.vapid_claims_email,
            ttl=settings.push_ttl_seconds,
        )
        _push_service = PushService(transport, max_workers=settings.push_max_workers)
    return _push_service
