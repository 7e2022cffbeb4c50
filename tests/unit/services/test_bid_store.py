from __future__ import annotations

from datetime import datetime

from skillswap.database.models import Bid
from skillswap.services.bid_store import BidStore

NOW = datetime(2026, 10, 17, 8, 0)
PROPOSAL = "A detailed proposal that easily clears the minimum proposal length rule."


def _insert(store, marketplace, index=0, status="Pending", amount=1000.0):
    return store.insert(
        marketplace.project.id,
        marketplace.freelancers[index].id,
        {"amount": amount, "delivery_time": 10, "proposal": PROPOSAL, "status": status, "milestones": []},
        NOW,
    )


def test_compare_and_set_only_applies_from_expected_status(session, marketplace):
    store = BidStore(session)
    bid = _insert(store, marketplace)
    session.commit()

    assert store.compare_and_set_status(bid.id, "Countered", {"status": "Pending"}, NOW) == 0
    assert store.compare_and_set_status(bid.id, "Pending", {"status": "Withdrawn"}, NOW) == 1
    session.commit()
    session.expire_all()
    assert store.get(bid.id).status == "Withdrawn"


def test_reject_pending_siblings_matches_by_predicate(session, marketplace):
    store = BidStore(session)
    winner = _insert(store, marketplace, 0)
    pending = _insert(store, marketplace, 1)
    countered = _insert(store, marketplace, 2, status="Countered")
    session.commit()

    rejected = store.reject_pending_siblings(marketplace.project.id, winner.id, NOW)
    session.commit()
    session.expire_all()

    assert [row.id for row in rejected] == [pending.id]
    assert rejected[0].status == "Rejected"
    assert store.get(winner.id).status == "Pending"
    assert store.get(countered.id).status == "Countered"


def test_find_active_ignores_closed_bids(session, marketplace):
    store = BidStore(session)
    withdrawn = _insert(store, marketplace, 0, status="Withdrawn")
    session.commit()

    assert store.find_active(marketplace.project.id, marketplace.freelancers[0].id) is None
    assert store.find_latest(marketplace.project.id, marketplace.freelancers[0].id).id == withdrawn.id


def test_embedded_and_standalone_views_agree(session, marketplace):
    store = BidStore(session)
    bid = _insert(store, marketplace)
    bid.status = "Countered"
    bid.counter_amount = 900.0
    bid.counter_delivery_time = 12
    bid.counter_message = "Slightly lower?"
    bid.counter_date = NOW
    session.commit()

    embedded = BidStore.to_embedded(bid)
    standalone = BidStore.to_standalone(bid)
    assert embedded["status"] == standalone["status"] == "Countered"
    assert embedded["counterOffer"] == standalone["counterOffer"]
    assert standalone["counterOffer"]["amount"] == 900.0
    assert standalone["project"]["id"] == marketplace.project.id
    assert [b.id for b in marketplace.project.bids] == [bid.id]


def test_freelancer_stats_and_recent_client_bids(session, marketplace):
    store = BidStore(session)
    _insert(store, marketplace, 0, status="Pending", amount=100.0)
    _insert(store, marketplace, 0, status="Rejected", amount=300.0)
    _insert(store, marketplace, 1)
    session.commit()

    stats = store.stats_for_freelancer(marketplace.freelancers[0].id)
    assert stats["total"] == 2
    assert stats["pending"] == 1
    assert stats["rejected"] == 1
    assert stats["avgAmount"] == 200.0

    recent = store.list_recent_for_client(marketplace.client.id, limit=2)
    assert len(recent) == 2
    assert all(isinstance(item, Bid) for item in recent)
