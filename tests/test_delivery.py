"""Outcome classification for single deliveries and the parallel fan-out."""
import copy
import json

import pytest
import requests
from pywebpush import WebPushException

from app.core.exceptions import TransportError
from app.services import push as push_module
from app.services.push import (
    DeliveryOutcome,
    PushService,
    Recipient,
    WebPushTransport,
    build_payload,
)


def _recipient(i: int = 1) -> Recipient:
    return Recipient(id=i, endpoint=f"https://push.example.com/{i}", p256dh="p", auth="a")


class _Response:
    def __init__(self, status_code: int):
        self.status_code = status_code
        self.text = ""


@pytest.mark.parametrize(
    "status_code, expected",
    [
        (404, DeliveryOutcome.FAILED_PERMANENT),
        (410, DeliveryOutcome.FAILED_PERMANENT),
        (400, DeliveryOutcome.FAILED_TRANSIENT),
        (413, DeliveryOutcome.FAILED_TRANSIENT),
        (429, DeliveryOutcome.FAILED_TRANSIENT),
        (500, DeliveryOutcome.FAILED_TRANSIENT),
        (None, DeliveryOutcome.FAILED_TRANSIENT),
    ],
)
def test_deliver_classifies_status(transport, push, status_code, expected):
    r = _recipient()
    transport.fail(r.endpoint, status_code)
    assert push.deliver(r, b"{}") is expected


def test_deliver_success(transport, push):
    r = _recipient()
    assert push.deliver(r, build_payload("t", "b")) is DeliveryOutcome.SENT
    assert transport.payloads_for(r.endpoint) == [{"title": "t", "body": "b", "url": None}]


def test_unexpected_error_is_transient():
    class Exploding:
        def send(self, recipient, payload):
            raise RuntimeError("boom")

    assert PushService(Exploding()).deliver(_recipient(), b"{}") is DeliveryOutcome.FAILED_TRANSIENT


def test_deliver_many_isolates_failures_and_keeps_order(transport, push):
    recipients = [_recipient(i) for i in range(20)]
    transport.fail(recipients[3].endpoint, 410)
    transport.fail(recipients[7].endpoint, 503)
    results = push.deliver_many([(r, b"{}") for r in recipients])

    assert [r for r, _ in results] == recipients
    outcomes = {r.id: o for r, o in results}
    assert outcomes[3] is DeliveryOutcome.FAILED_PERMANENT
    assert outcomes[7] is DeliveryOutcome.FAILED_TRANSIENT
    assert sum(1 for o in outcomes.values() if o.ok) == 18
    assert len(transport.attempts) == 20


def test_deliver_many_empty(push):
    assert push.deliver_many([]) == []


def test_webpush_transport_maps_http_errors(monkeypatch):
    def fake_webpush(**kwargs):
        raise WebPushException("Push failed: 410 Gone", response=_Response(410))

    monkeypatch.setattr(push_module, "webpush", fake_webpush)
    transport = WebPushTransport("private", "mailto:ops@example.com")
    with pytest.raises(TransportError) as exc:
        transport.send(_recipient(), b"{}")
    assert exc.value.status_code == 410
    assert exc.value.permanent


def test_webpush_transport_network_error_is_transient(monkeypatch):
    def fake_webpush(**kwargs):
        raise requests.ConnectionError("connection reset")

    monkeypatch.setattr(push_module, "webpush", fake_webpush)
    outcome = PushService(WebPushTransport("private", "mailto:ops@example.com")).deliver(_recipient(), b"{}")
    assert outcome is DeliveryOutcome.FAILED_TRANSIENT


def test_webpush_transport_passes_fresh_claims(monkeypatch):
    seen = []

    def fake_webpush(**kwargs):
        seen.append(copy.deepcopy(kwargs))
        kwargs["vapid_claims"]["aud"] = "https://push.example.com"

    monkeypatch.setattr(push_module, "webpush", fake_webpush)
    transport = WebPushTransport("private", "mailto:ops@example.com", ttl=60)
    transport.send(_recipient(1), b'{"title": "x"}')
    transport.send(_recipient(2), b'{"title": "x"}')

    assert seen[0]["vapid_claims"] == {"sub": "mailto:ops@example.com"}
    assert seen[1]["vapid_claims"] == {"sub": "mailto:ops@example.com"}
    assert seen[0]["subscription_info"] == {
        "endpoint": "https://push.example.com/1",
        "keys": {"p256dh": "p", "auth": "a"},
    }
    assert seen[0]["ttl"] == 60
    assert json.loads(seen[0]["data"]) == {"title": "x"}
