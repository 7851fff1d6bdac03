"""A/B campaigns: deterministic split, single send, validation."""
import random
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from app.core.exceptions import AlreadySent, NoRecipients, NotFound, ValidationError
from app.models import CampaignStatus
from app.services import campaigns as campaigns_module
from app.services.campaigns import (
    Variant,
    _claim_for_sending,
    create_campaign,
    delete_campaign,
    get_campaign,
    list_campaigns,
    partition,
    send_campaign,
    split_index,
)
from app.services.push import Recipient
from app.services.subscribers import count_subscribers, list_subscribers

from conftest import add_subscriber, endpoint_for, seed_subscribers

A = Variant("A başlık", "A metin", "/a")
B = Variant("B başlık", "B metin", None)


@pytest.mark.parametrize("count", [0, 1, 2, 7, 10, 99, 100, 101])
@pytest.mark.parametrize("percentage", [1, 30, 50, 99])
def test_partition_sizes(count, percentage):
    items = list(range(count))
    group_a, group_b = partition(items, percentage, random.Random(1))
    assert len(group_a) == count * percentage // 100 == split_index(count, percentage)
    assert len(group_b) == count - len(group_a)
    assert sorted(group_a + group_b) == items


def test_partition_is_reproducible_with_seed():
    items = list(range(50))
    assert partition(items, 40, random.Random(42)) == partition(items, 40, random.Random(42))


def test_create_campaign_defaults_percentage_b(db: Session):
    c = create_campaign(db, "Hafta sonu", A, B, 30)
    assert c.variant_b_percentage == 70
    assert c.status == CampaignStatus.DRAFT
    assert (c.variant_a_sent, c.variant_b_sent) == (0, 0)
    assert c.sent_at is None


@pytest.mark.parametrize(
    "name, a, b, pa, pb",
    [
        ("x", A, B, 0, None),
        ("x", A, B, 100, None),
        ("x", A, B, 40, 50),
        ("", A, B, 50, None),
        ("x", Variant("", "b"), B, 50, None),
        ("x", A, Variant("t", "  "), 50, None),
    ],
)
def test_create_campaign_validation(db: Session, name, a, b, pa, pb):
    with pytest.raises(ValidationError):
        create_campaign(db, name, a, b, pa, pb)
    assert list_campaigns(db) == []


def test_send_campaign_splits_by_seeded_shuffle(db: Session, transport, push):
    for i in range(10):
        add_subscriber(db, i)
    campaign = create_campaign(db, "Test", A, B, 30)
    recipients = [Recipient.from_subscriber(s) for s in list_subscribers(db)]
    expected_a, expected_b = partition(recipients, 30, random.Random(7))

    result = send_campaign(db, push, campaign.id, rng=random.Random(7))

    assert (result.variant_a_sent, result.variant_b_sent, result.total_subscribers) == (3, 7, 10)
    for r in expected_a:
        [payload] = transport.payloads_for(r.endpoint)
        assert payload["variant"] == "A"
        assert payload["title"] == "A başlık"
        assert payload["url"] == "/a"
        assert payload["campaign_id"] == campaign.id
    for r in expected_b:
        [payload] = transport.payloads_for(r.endpoint)
        assert payload["variant"] == "B"
        assert payload["url"] is None

    saved = get_campaign(db, campaign.id)
    assert saved.status == CampaignStatus.COMPLETED
    assert (saved.variant_a_sent, saved.variant_b_sent) == (3, 7)
    assert saved.sent_at is not None


def test_send_campaign_counts_only_successes_and_keeps_subscribers(db: Session, transport, push):
    for i in range(4):
        add_subscriber(db, i)
    transport.fail(endpoint_for(0), 410)
    transport.fail(endpoint_for(1), 500)
    campaign = create_campaign(db, "Test", A, B, 50)

    result = send_campaign(db, push, campaign.id, rng=random.Random(3))
    assert result.variant_a_sent + result.variant_b_sent == 2
    assert count_subscribers(db) == 4


def test_send_campaign_twice(db: Session, push):
    add_subscriber(db, 0)
    campaign = create_campaign(db, "Test", A, B, 50)
    send_campaign(db, push, campaign.id)
    with pytest.raises(AlreadySent):
        send_campaign(db, push, campaign.id)


def test_claim_is_single_winner(db: Session):
    campaign = create_campaign(db, "Test", A, B, 50)
    assert _claim_for_sending(db, campaign.id) is True
    assert _claim_for_sending(db, campaign.id) is False


def test_send_campaign_without_subscribers_stays_draft(db: Session, push):
    campaign = create_campaign(db, "Test", A, B, 50)
    with pytest.raises(NoRecipients):
        send_campaign(db, push, campaign.id)
    assert get_campaign(db, campaign.id).status == CampaignStatus.DRAFT


def test_send_unknown_campaign(db: Session, push):
    with pytest.raises(NotFound):
        send_campaign(db, push, 999)


def test_delete_campaign(db: Session):
    campaign = create_campaign(db, "Test", A, B, 50)
    delete_campaign(db, campaign.id)
    with pytest.raises(NotFound):
        get_campaign(db, campaign.id)


def _create_payload(**overrides) -> dict:
    data = {
        "name": "Ekim",
        "variant_a": {"title": "A", "body": "a metin", "url": "/a"},
        "variant_b": {"title": "B", "body": "b metin"},
        "variant_a_percentage": 20,
    }
    data.update(overrides)
    return data


def test_campaign_api_flow(client: TestClient, admin_headers: dict, transport):
    seed_subscribers(5)

    r = client.post("/api/ab-campaigns", json=_create_payload(), headers=admin_headers)
    assert r.status_code == 200
    campaign = r.json()["campaign"]
    assert campaign["status"] == "draft"
    assert campaign["variant_b_percentage"] == 80

    r = client.get("/api/ab-campaigns", headers=admin_headers)
    assert [c["id"] for c in r.json()["campaigns"]] == [campaign["id"]]

    r = client.post(f"/api/ab-campaigns/{campaign['id']}/send", headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["variant_a_sent"] == 1
    assert body["variant_b_sent"] == 4
    assert len(transport.sent) == 5

    r = client.post(f"/api/ab-campaigns/{campaign['id']}/send", headers=admin_headers)
    assert r.status_code == 409
    assert len(transport.sent) == 5

    r = client.get("/api/ab-campaigns", headers=admin_headers)
    assert r.json()["campaigns"][0]["status"] == "completed"

    r = client.delete(f"/api/ab-campaigns/{campaign['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert client.get("/api/ab-campaigns", headers=admin_headers).json() == {"campaigns": []}


def test_campaign_api_validation(client: TestClient, admin_headers: dict):
    r = client.post(
        "/api/ab-campaigns",
        json=_create_payload(variant_a_percentage=60, variant_b_percentage=30),
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert r.json()["status_code"] == 400

    r = client.post("/api/ab-campaigns", json=_create_payload(variant_a_percentage=100), headers=admin_headers)
    assert r.status_code == 400


def test_campaign_api_errors(client: TestClient, admin_headers: dict):
    assert client.post("/api/ab-campaigns/42/send", headers=admin_headers).status_code == 404
    assert client.delete("/api/ab-campaigns/42", headers=admin_headers).status_code == 404

    campaign = client.post("/api/ab-campaigns", json=_create_payload(), headers=admin_headers).json()["campaign"]
    r = client.post(f"/api/ab-campaigns/{campaign['id']}/send", headers=admin_headers)
    assert r.status_code == 404  # abone yok

    assert client.get("/api/ab-campaigns").status_code == 401


def test_sent_at_is_claim_time(db: Session, push, monkeypatch):
    add_subscriber(db, 0)
    campaign = create_campaign(db, "Test", A, B, 50)
    ticks = iter(datetime(2026, 3, 1, 9, 0) + timedelta(minutes=n) for n in range(10))
    monkeypatch.setattr(campaigns_module, "utcnow", lambda: next(ticks))

    send_campaign(db, push, campaign.id)
    assert get_campaign(db, campaign.id).sent_at == datetime(2026, 3, 1, 9, 0)
