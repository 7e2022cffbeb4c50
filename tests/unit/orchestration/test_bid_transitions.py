from __future__ import annotations

from datetime import datetime

import pytest

from skillswap.core.enums import BidAction
from skillswap.core.exceptions import (
    BidNotPendingError,
    DuplicateBidError,
    NoCounterOfferError,
    NotOwnerError,
    ProjectNotOpenError,
)
from skillswap.orchestration.bid_transitions import BidSnapshot, NegotiationContext, plan_transition
from skillswap.orchestration.effects import MESSAGE, NOTIFY, REALTIME

CLIENT = 1
FREELANCER = 2
NOW = datetime(2026, 10, 17, 12, 0, 0)


def _ctx(actor: int, status: str = "Open") -> NegotiationContext:
    return NegotiationContext(
        project_id=10,
        project_title="Logo design",
        project_status=status,
        client_user_id=CLIENT,
        actor_user_id=actor,
        actor_name="Actor",
        now=NOW,
    )


def _bid(status: str = "Pending", bid_id: int = 100, freelancer: int = FREELANCER, **fields) -> BidSnapshot:
    return BidSnapshot(
        bid_id=bid_id,
        freelancer_user_id=freelancer,
        status=status,
        amount=fields.pop("amount", 500.0),
        delivery_time=fields.pop("delivery_time", 10),
        **fields,
    )


def _kinds(plan):
    return [(effect.kind, effect.event, effect.recipient_id) for effect in plan.effects]


def test_submit_creates_pending_bid_and_tells_the_client():
    plan = plan_transition(
        BidAction.SUBMIT,
        _ctx(FREELANCER),
        payload={"amount": 400.0, "delivery_time": 7, "proposal": "p" * 60},
    )
    assert plan.to_status == "Pending"
    assert plan.changes["amount"] == 400.0
    assert _kinds(plan) == [(NOTIFY, "bid_received", CLIENT), (REALTIME, "bidUpdate", CLIENT)]


def test_submit_rejected_on_closed_project_and_duplicates():
    payload = {"amount": 400.0, "delivery_time": 7, "proposal": "p" * 60}
    with pytest.raises(ProjectNotOpenError):
        plan_transition(BidAction.SUBMIT, _ctx(FREELANCER, status="In Progress"), payload=payload)
    with pytest.raises(DuplicateBidError):
        plan_transition(BidAction.SUBMIT, _ctx(FREELANCER), payload=payload, has_active_bid=True)


def test_accept_rejects_pending_siblings_only():
    winner = _bid(bid_id=1)
    siblings = [
        winner,
        _bid(bid_id=2, freelancer=3),
        _bid(status="Countered", bid_id=3, freelancer=4, counter_amount=450.0),
        _bid(status="Withdrawn", bid_id=4, freelancer=5),
    ]
    plan = plan_transition(BidAction.ACCEPT, _ctx(CLIENT), winner, siblings=siblings)

    assert plan.changes == {"status": "Accepted"}
    assert plan.cascade_rejected == (2,)
    assert (NOTIFY, "bid_accepted", FREELANCER) in _kinds(plan)
    assert (REALTIME, "yourBidAccepted", FREELANCER) in _kinds(plan)
    assert (MESSAGE, "system_message", FREELANCER) in _kinds(plan)
    assert (NOTIFY, "bid_rejected", 3) in _kinds(plan)
    assert (REALTIME, "bidAcceptedUpdate", 3) in _kinds(plan)
    assert all(effect.recipient_id not in (4, 5) for effect in plan.effects)


def test_accept_by_non_owner_is_refused():
    with pytest.raises(NotOwnerError):
        plan_transition(BidAction.ACCEPT, _ctx(FREELANCER), _bid())


def test_accept_on_closed_project_reports_bid_not_pending():
    with pytest.raises(BidNotPendingError):
        plan_transition(BidAction.ACCEPT, _ctx(CLIENT, status="In Progress"), _bid())


@pytest.mark.parametrize("status", ["Accepted", "Rejected", "Withdrawn", "Countered"])
def test_reject_requires_pending(status):
    with pytest.raises(BidNotPendingError):
        plan_transition(BidAction.REJECT, _ctx(CLIENT), _bid(status=status))


def test_reject_stores_reason_and_notifies_bid_owner():
    plan = plan_transition(BidAction.REJECT, _ctx(CLIENT), _bid(), {"rejection_reason": "Over budget"})
    assert plan.changes == {"status": "Rejected", "rejection_reason": "Over budget"}
    assert _kinds(plan) == [(NOTIFY, "bid_rejected", FREELANCER), (REALTIME, "bidUpdate", FREELANCER)]
    assert "Over budget" in plan.effects[0].payload["message"]


def test_withdraw_only_by_bid_owner_and_only_when_pending():
    with pytest.raises(NotOwnerError):
        plan_transition(BidAction.WITHDRAW, _ctx(99), _bid())
    with pytest.raises(BidNotPendingError):
        plan_transition(BidAction.WITHDRAW, _ctx(FREELANCER), _bid(status="Countered", counter_amount=1.0))

    plan = plan_transition(BidAction.WITHDRAW, _ctx(FREELANCER), _bid())
    assert plan.to_status == "Withdrawn"
    assert _kinds(plan) == [(NOTIFY, "bid_withdrawn", CLIENT), (REALTIME, "bidUpdate", CLIENT)]


def test_counter_records_offer_and_emits_both_events():
    plan = plan_transition(
        BidAction.COUNTER,
        _ctx(CLIENT),
        _bid(),
        {"amount": 450.0, "delivery_time": 8, "message": "Can you do it for less?"},
    )
    assert plan.changes["status"] == "Countered"
    assert plan.changes["counter_amount"] == 450.0
    assert plan.changes["counter_date"] == NOW
    assert _kinds(plan) == [
        (NOTIFY, "bid_countered", FREELANCER),
        (REALTIME, "counterOffer", FREELANCER),
        (REALTIME, "counterOfferReceived", FREELANCER),
    ]


def test_counter_accept_adopts_counter_terms_and_clears_offer():
    bid = _bid(status="Countered", counter_amount=450.0, counter_delivery_time=8, counter_message="less?")
    plan = plan_transition(BidAction.COUNTER_ACCEPT, _ctx(FREELANCER), bid, {})

    assert plan.changes["status"] == "Pending"
    assert plan.changes["amount"] == 450.0
    assert plan.changes["delivery_time"] == 8
    assert plan.changes["counter_amount"] is None
    assert _kinds(plan) == [
        (NOTIFY, "counter_offer_accepted", CLIENT),
        (REALTIME, "counterOfferResponseReceived", CLIENT),
    ]


def test_counter_accept_honours_explicit_override():
    bid = _bid(status="Countered", counter_amount=450.0, counter_delivery_time=8, counter_message="less?")
    plan = plan_transition(BidAction.COUNTER_ACCEPT, _ctx(FREELANCER), bid, {"amount": 470.0})
    assert plan.changes["amount"] == 470.0
    assert plan.changes["delivery_time"] == 8


def test_counter_reject_keeps_original_terms():
    bid = _bid(status="Countered", counter_amount=450.0, counter_delivery_time=8, counter_message="less?")
    plan = plan_transition(BidAction.COUNTER_REJECT, _ctx(FREELANCER), bid)
    assert "amount" not in plan.changes
    assert plan.changes["status"] == "Pending"
    assert plan.effects[0].event == "counter_offer_rejected"


def test_counter_response_without_counter_offer():
    with pytest.raises(NoCounterOfferError):
        plan_transition(BidAction.COUNTER_ACCEPT, _ctx(FREELANCER), _bid())
    with pytest.raises(NotOwnerError):
        plan_transition(
            BidAction.COUNTER_REJECT,
            _ctx(CLIENT),
            _bid(status="Countered", counter_amount=1.0),
        )


def test_every_effect_has_a_single_recipient():
    plan = plan_transition(BidAction.ACCEPT, _ctx(CLIENT), _bid(), siblings=[_bid(bid_id=7, freelancer=8)])
    assert all(isinstance(effect.recipient_id, int) for effect in plan.effects)
