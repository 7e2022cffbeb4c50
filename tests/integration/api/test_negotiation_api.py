from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from skillswap.auth.jwt import create_token_pair
from skillswap.core.config import get_config
from skillswap.main import create_app
from skillswap.services import dispatcher as side_effects
from skillswap.services.dispatcher import RecordingDispatcher
from skillswap.services.notification_service import NotificationService

PREFIX = get_config().API_PREFIX
PROPOSAL = "I have shipped several marketplaces like this one and can start right away."


def _auth(user_id: int, role: str) -> dict[str, str]:
    token = create_token_pair(user_id, role, secret=get_config().JWT_SECRET).access_token
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def recorder(monkeypatch):
    recorder = RecordingDispatcher()
    monkeypatch.setattr(side_effects, "get_dispatcher", lambda: recorder)
    return recorder


@pytest.fixture
def client(bound_database, recorder):
    return TestClient(create_app())


@pytest.fixture
def actors(marketplace):
    return {
        "client": _auth(marketplace.client_user.id, "client"),
        "f1": _auth(marketplace.freelancer_users[0].id, "freelancer"),
        "f2": _auth(marketplace.freelancer_users[1].id, "freelancer"),
        "outsider": _auth(marketplace.outsider.id, "client"),
        "admin": _auth(marketplace.outsider.id, "admin"),
    }


def _submit(client, project_id: int, headers: dict, amount: float = 500.0, delivery_time: int = 7):
    return client.post(
        f"{PREFIX}/projects/{project_id}/bids",
        json={"amount": amount, "deliveryTime": delivery_time, "proposal": PROPOSAL},
        headers=headers,
    )


def test_health_reports_database(client):
    body = client.get(f"{PREFIX}/health").json()
    assert body["status"] == "ok"
    assert body["database"] == "ok"


def test_missing_or_bad_token_is_401(client, marketplace):
    response = client.get(f"{PREFIX}/projects/{marketplace.project.id}/bids")
    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "message": "Authorization header is required.",
        "code": "UNAUTHENTICATED",
    }
    bad = client.get(f"{PREFIX}/projects", headers={"Authorization": "Bearer nope"})
    assert bad.status_code == 401


def test_submit_bid_returns_camel_case_view(client, marketplace, actors, recorder):
    response = _submit(client, marketplace.project.id, actors["f1"])

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "Pending"
    assert body["data"]["deliveryTime"] == 7
    assert body["data"]["project"]["id"] == marketplace.project.id
    assert body["data"]["counterOffer"] is None
    assert recorder.notified("bid_received") == [marketplace.client_user.id]


def test_submit_errors_map_to_envelopes(client, marketplace, actors):
    project_id = marketplace.project.id

    wrong_role = _submit(client, project_id, actors["client"])
    assert wrong_role.status_code == 403
    assert wrong_role.json()["code"] == "FORBIDDEN"

    invalid = client.post(
        f"{PREFIX}/projects/{project_id}/bids",
        json={"amount": -1, "deliveryTime": 7, "proposal": PROPOSAL},
        headers=actors["f1"],
    )
    assert invalid.status_code == 400
    assert invalid.json()["code"] == "VALIDATION_ERROR"

    assert _submit(client, project_id, actors["f1"]).status_code == 201
    duplicate = _submit(client, project_id, actors["f1"])
    assert duplicate.status_code == 400
    assert duplicate.json()["code"] == "DUPLICATE_BID"

    missing = _submit(client, 9999, actors["f2"])
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"


def test_counter_round_trip_over_http(client, marketplace, actors):
    project_id = marketplace.project.id
    bid_id = _submit(client, project_id, actors["f1"]).json()["data"]["id"]

    countered = client.put(
        f"{PREFIX}/projects/{project_id}/bids/{bid_id}/counter",
        json={"amount": 450, "deliveryTime": 9, "message": "Can you do 450?"},
        headers=actors["client"],
    )
    assert countered.status_code == 200
    assert countered.json()["data"]["status"] == "Countered"
    assert countered.json()["data"]["counterOffer"]["amount"] == 450

    accepted = client.put(f"{PREFIX}/projects/{project_id}/bids/{bid_id}/counter/accept", headers=actors["f1"])
    assert accepted.status_code == 200
    assert accepted.json()["data"]["amount"] == 450
    assert accepted.json()["data"]["status"] == "Pending"
    assert accepted.json()["data"]["counterOffer"] is None

    again = client.put(f"{PREFIX}/projects/{project_id}/bids/{bid_id}/counter/reject", headers=actors["f1"])
    assert again.status_code == 400
    assert again.json()["code"] == "NO_COUNTER_OFFER"


def test_accept_closes_project_and_hides_bids_from_others(client, marketplace, actors, recorder):
    project_id = marketplace.project.id
    winner = _submit(client, project_id, actors["f1"]).json()["data"]["id"]
    loser = _submit(client, project_id, actors["f2"], amount=550).json()["data"]["id"]

    response = client.put(f"{PREFIX}/projects/{project_id}/bids/{winner}/accept", headers=actors["client"])
    assert response.status_code == 200
    returned = response.json()["data"]["project"]
    assert returned["status"] == "In Progress"
    assert returned["freelancerId"] == marketplace.freelancers[0].id
    assert {bid["id"]: bid["status"] for bid in returned["bids"]}[winner] == "Accepted"
    assert recorder.notified("bid_rejected") == [marketplace.freelancer_users[1].id]

    owner_view = client.get(f"{PREFIX}/projects/{project_id}", headers=actors["client"]).json()["data"]
    assert owner_view["status"] == "In Progress"
    assert {bid["id"]: bid["status"] for bid in owner_view["bids"]} == {winner: "Accepted", loser: "Rejected"}

    public_view = client.get(f"{PREFIX}/projects/{project_id}", headers=actors["f2"]).json()["data"]
    assert "bids" not in public_view

    stale = client.put(f"{PREFIX}/projects/{project_id}/bids/{loser}/accept", headers=actors["client"])
    assert stale.status_code == 400
    assert stale.json()["code"] == "BID_NOT_PENDING"


def test_bid_listings_respect_ownership(client, marketplace, actors):
    project_id = marketplace.project.id
    _submit(client, project_id, actors["f1"])

    assert client.get(f"{PREFIX}/projects/{project_id}/bids", headers=actors["client"]).status_code == 200
    assert client.get(f"{PREFIX}/projects/{project_id}/bids", headers=actors["admin"]).status_code == 200
    foreign = client.get(f"{PREFIX}/projects/{project_id}/bids", headers=actors["outsider"])
    assert foreign.status_code == 403
    assert foreign.json()["code"] == "NOT_OWNER"

    mine = client.get(f"{PREFIX}/projects/bids/freelancer", headers=actors["f1"]).json()["data"]
    assert mine["stats"]["pending"] == 1
    assert len(mine["bids"]) == 1

    recent = client.get(f"{PREFIX}/projects/client/recent-bids", headers=actors["client"]).json()["data"]
    assert len(recent) == 1


def test_withdraw_and_reject_with_reason(client, marketplace, actors):
    project_id = marketplace.project.id
    _submit(client, project_id, actors["f1"])
    second = _submit(client, project_id, actors["f2"]).json()["data"]["id"]

    withdrawn = client.put(f"{PREFIX}/projects/{project_id}/bids/withdraw", headers=actors["f1"])
    assert withdrawn.json()["data"]["status"] == "Withdrawn"

    rejected = client.put(
        f"{PREFIX}/projects/{project_id}/bids/{second}/reject",
        json={"rejectionReason": "Budget too high"},
        headers=actors["client"],
    )
    assert rejected.json()["data"]["status"] == "Rejected"
    assert rejected.json()["data"]["rejectionReason"] == "Budget too high"


def test_contract_lifecycle_over_http(client, marketplace, actors):
    project_id = marketplace.project.id
    bid_id = _submit(client, project_id, actors["f1"], amount=800).json()["data"]["id"]
    client.put(f"{PREFIX}/projects/{project_id}/bids/{bid_id}/accept", headers=actors["client"])

    terms = {
        "terms": "Deliver the MVP.",
        "paymentTerms": "On delivery",
        "startDate": "2026-11-01T00:00:00",
        "endDate": "2026-12-01T00:00:00",
        "deliverables": [{"title": "MVP", "dueDate": "2026-11-20T00:00:00"}],
    }
    created = client.post(f"{PREFIX}/projects/{project_id}/contract", json=terms, headers=actors["client"])
    assert created.status_code == 201
    assert created.json()["data"]["amount"] == 800
    assert created.json()["data"]["status"] == "Draft"

    backwards = client.put(
        f"{PREFIX}/projects/{project_id}/contract",
        json={"endDate": "2026-10-01T00:00:00"},
        headers=actors["client"],
    )
    assert backwards.status_code == 400

    client.put(f"{PREFIX}/projects/{project_id}/contract/sign", headers=actors["client"])
    signed = client.put(
        f"{PREFIX}/projects/{project_id}/contract/sign",
        json={"ipAddress": "203.0.113.9"},
        headers=actors["f1"],
    )
    assert signed.json()["data"]["status"] == "Active"

    assert client.get(f"{PREFIX}/projects/{project_id}/contract", headers=actors["f2"]).status_code == 403

    terminated = client.put(
        f"{PREFIX}/projects/{project_id}/contract/terminate",
        json={"terminationReason": "Client cancelled"},
        headers=actors["client"],
    )
    assert terminated.json()["data"]["status"] == "Terminated"


def test_notifications_list_and_mark_read(client, session, marketplace, actors):
    service = NotificationService(session)
    payload = {"title": "New Bid Received", "message": "A bid arrived"}
    service.email_sender.send_notification = lambda *args, **kwargs: False
    stored = service.deliver("bid_received", marketplace.client_user.id, payload)

    listed = client.get(f"{PREFIX}/notifications?unreadOnly=true", headers=actors["client"]).json()["data"]
    assert listed["unreadCount"] == 1
    assert listed["notifications"][0]["id"] == stored.id

    for _ in range(2):
        marked = client.put(f"{PREFIX}/notifications/{stored.id}/read", headers=actors["client"])
        assert marked.status_code == 200
        assert marked.json()["data"]["read"] is True

    assert client.put(f"{PREFIX}/notifications/{stored.id}/read", headers=actors["f1"]).status_code == 404


def test_mark_all_notifications_read(client, session, marketplace, actors):
    service = NotificationService(session)
    service.email_sender.send_notification = lambda *args, **kwargs: False
    for _ in range(2):
        service.deliver("bid_received", marketplace.client_user.id, {"title": "New Bid", "message": "A bid"})

    response = client.put(f"{PREFIX}/notifications/read-all", headers=actors["client"])

    assert response.status_code == 200
    assert response.json()["message"] == "All notifications marked as read"
    assert response.json()["data"] == {"updated": 2}
    listed = client.get(f"{PREFIX}/notifications", headers=actors["client"]).json()["data"]
    assert listed["unreadCount"] == 0


def test_notification_preferences_over_http(client, marketplace, actors):
    url = f"{PREFIX}/notifications/preferences"
    initial = client.get(url, headers=actors["f1"]).json()["data"]["preferences"]
    assert initial["emailEnabled"] is True

    updated = client.put(
        url,
        json={"emailEnabled": False, "disabledInAppTypes": ["bid_countered"], "phone": "+15550002222"},
        headers=actors["f1"],
    )
    assert updated.status_code == 200
    assert updated.json()["message"] == "Notification preferences updated"
    preferences = updated.json()["data"]["preferences"]
    assert preferences["emailEnabled"] is False
    assert preferences["disabledInAppTypes"] == ["bid_countered"]
    assert preferences["phone"] == "+15550002222"
    assert client.get(url, headers=actors["f1"]).json()["data"]["preferences"] == preferences

    refused = client.put(url, json={"disabledEmailTypes": ["carrier_pigeon"]}, headers=actors["f1"])
    assert refused.status_code == 400
    assert refused.json()["success"] is False
    assert client.get(url).status_code == 401


def test_notification_types_listing(client, actors):
    body = client.get(f"{PREFIX}/notifications/types", headers=actors["client"]).json()
    labels = {item["value"]: item["label"] for item in body["data"]["notificationTypes"]}
    assert labels["bid_received"] == "Bid Received"
    assert len(labels) == 11
