"""Subscription registration and operator auth."""
from datetime import timedelta

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from app.core.database import engine
from app.core.timeutils import utcnow
from app.models import PushSubscriber
from app.services.subscribers import count_subscribers, upsert_subscriber

ENDPOINT = "https://fcm.googleapis.com/fcm/send/abc123"


def _subscribe(client: TestClient, endpoint: str = ENDPOINT, p256dh: str = "key-1", auth: str = "auth-1"):
    return client.post(
        "/api/subscribe",
        json={"endpoint": endpoint, "keys": {"p256dh": p256dh, "auth": auth}},
        headers={"User-Agent": "Mozilla/5.0 (pytest)"},
    )


def test_subscribe_creates_subscriber(client: TestClient, admin_headers: dict):
    r = _subscribe(client)
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True
    assert isinstance(data["subscriber_id"], int)

    r = client.get("/api/subscribers", headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"count": 1}


def test_resubscribe_updates_in_place(client: TestClient, admin_headers: dict):
    first = _subscribe(client).json()["subscriber_id"]
    second = _subscribe(client, p256dh="key-2", auth="auth-2").json()["subscriber_id"]
    assert first == second

    with Session(engine) as db:
        rows = db.exec(select(PushSubscriber)).all()
        assert len(rows) == 1
        assert rows[0].p256dh == "key-2"
        assert rows[0].auth == "auth-2"
        assert rows[0].user_agent.startswith("Mozilla/5.0")

    assert client.get("/api/subscribers", headers=admin_headers).json() == {"count": 1}


def test_resubscribe_keeps_created_at(db: Session):
    sub = upsert_subscriber(db, ENDPOINT, "k1", "a1")
    created = sub.created_at
    again = upsert_subscriber(db, ENDPOINT, "k2", "a2", "ua")
    assert again.id == sub.id
    assert again.created_at == created
    assert again.updated_at >= created
    assert count_subscribers(db) == 1


def test_subscribe_rejects_missing_keys(client: TestClient):
    r = client.post("/api/subscribe", json={"endpoint": ENDPOINT, "keys": {"p256dh": "", "auth": "x"}})
    assert r.status_code == 422
    assert r.json().get("status_code") == 422

    r = client.post("/api/subscribe", json={"endpoint": ENDPOINT})
    assert r.status_code == 422


def test_subscribe_rejects_non_https_endpoint(client: TestClient):
    r = _subscribe(client, endpoint="http://insecure.example.com/push")
    assert r.status_code == 422


def test_operator_endpoints_require_secret(client: TestClient):
    r = client.get("/api/subscribers")
    assert r.status_code == 401
    assert "error" in r.json()

    r = client.get("/api/subscribers", headers={"X-Admin-Secret": "wrong"})
    assert r.status_code == 401

    r = client.get("/api/subscribers", params={"admin_secret": "test-admin-secret"})
    assert r.status_code == 200


def test_operator_endpoints_unconfigured_secret(client: TestClient, monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "admin_secret", "")
    r = client.get("/api/subscribers", headers={"X-Admin-Secret": "anything"})
    assert r.status_code == 503


def test_timestamps_are_naive_utc(db: Session):
    sub = upsert_subscriber(db, ENDPOINT, "k1", "a1")
    assert sub.created_at.tzinfo is None
    assert abs(utcnow() - sub.created_at) < timedelta(minutes=1)
