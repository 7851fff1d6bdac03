"""Pytest fixtures: test client, test DB (in-memory SQLite), scripted push transport."""
import json
import os
import threading
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

# Test ortamında in-memory SQLite (app import edilmeden önce set edilmeli)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ADMIN_SECRET", "test-admin-secret")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("VAPID_PUBLIC_KEY", "test-vapid-public")
os.environ.setdefault("VAPID_PRIVATE_KEY", "test-vapid-private")
os.environ.setdefault("AUTOMATION_INTERVAL_MINUTES", "0")
# Rate limit yüksek olsun ki tüm testler geçebilsin
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "100000")
os.environ.setdefault("RATE_LIMIT_SUBSCRIBE_PER_MINUTE", "100000")

from sqlmodel import Session, SQLModel

import app.models  # noqa: F401
from app.core.database import engine
from app.core.exceptions import TransportError
from app.core.timeutils import utcnow
from app.main import app
from app.models import PushSubscriber
from app.services.push import PushService, Recipient, get_push_service

ADMIN_SECRET = os.environ["ADMIN_SECRET"]
CRON_SECRET = os.environ["CRON_SECRET"]


class FakeTransport:
    """endpoint -> HTTP durum kodu eşlemesi ile hata üretir; diğerleri başarılı."""

    def __init__(self):
        self.failures: dict[str, int | None] = {}
        self.sent: list[tuple[str, dict]] = []
        self.attempts: list[str] = []
        self._lock = threading.Lock()

    def fail(self, endpoint: str, status_code: int | None) -> None:
        self.failures[endpoint] = status_code

    def heal(self, endpoint: str) -> None:
        self.failures.pop(endpoint, None)

    def send(self, recipient: Recipient, payload: bytes) -> None:
        with self._lock:
            self.attempts.append(recipient.endpoint)
        if recipient.endpoint in self.failures:
            raise TransportError("push service said no", status_code=self.failures[recipient.endpoint])
        with self._lock:
            self.sent.append((recipient.endpoint, json.loads(payload)))

    def payloads_for(self, endpoint: str) -> list[dict]:
        return [p for e, p in self.sent if e == endpoint]


def endpoint_for(i: int) -> str:
    return f"https://push.example.com/send/{i}"


def add_subscriber(db: Session, i: int, created_at: datetime | None = None) -> PushSubscriber:
    now = created_at or utcnow()
    sub = PushSubscriber(
        endpoint=endpoint_for(i),
        p256dh=f"p256dh-{i}",
        auth=f"auth-{i}",
        user_agent="pytest",
        created_at=now,
        updated_at=now,
    )
    db.add(sub)
    db.commit()
    db.refresh(sub)
    return sub


def seed_subscribers(count: int, created_at: datetime | None = None) -> list[int]:
    """API testleri için: kendi oturumunda ekler ve kapatır."""
    with Session(engine) as db:
        return [add_subscriber(db, i, created_at).id for i in range(count)]


@pytest.fixture(autouse=True)
def _reset_db():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def db():
    with Session(engine) as session:
        yield session


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def push(transport: FakeTransport) -> PushService:
    return PushService(transport, max_workers=4)


@pytest.fixture(scope="function")
def client(push: PushService):
    """TestClient; lifespan ile in-memory DB ve tablolar hazır olur. Push transport sahte."""
    app.dependency_overrides[get_push_service] = lambda: push
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(get_push_service, None)


@pytest.fixture
def admin_headers() -> dict:
    return {"X-Admin-Secret": ADMIN_SECRET}


@pytest.fixture
def cron_headers() -> dict:
    return {"Authorization": f"Bearer {CRON_SECRET}"}
