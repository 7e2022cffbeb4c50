"""Pure bid negotiation transitions.

Given a bid snapshot, the acting user and an action, compute the next bid
fields and the side effects to run after commit. Nothing here touches the
database; the project aggregate persists the plan.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from skillswap.core.enums import BidAction, BidStatus, NotificationType, ProjectStatus, RealtimeEvent
from skillswap.core.exceptions import (
    BidNotPendingError,
    DuplicateBidError,
    InvalidStateError,
    NoCounterOfferError,
    NotOwnerError,
    ProjectNotOpenError,
)
from skillswap.orchestration import effects
from skillswap.orchestration.effects import SideEffect
from skillswap.orchestration.state_machine import BID_STATES

PENDING = BidStatus.PENDING.value
ACCEPTED = BidStatus.ACCEPTED.value
REJECTED = BidStatus.REJECTED.value
WITHDRAWN = BidStatus.WITHDRAWN.value
COUNTERED = BidStatus.COUNTERED.value

_CLEARED_COUNTER = {
    "counter_amount": None,
    "counter_delivery_time": None,
    "counter_message": None,
    "counter_date": None,
}


@dataclass(frozen=True)
class BidSnapshot:
    bid_id: int | None
    freelancer_user_id: int
    status: str
    amount: float
    delivery_time: int
    counter_amount: float | None = None
    counter_delivery_time: int | None = None
    counter_message: str | None = None

    @property
    def has_counter_offer(self) -> bool:
        return self.counter_amount is not None


@dataclass(frozen=True)
class NegotiationContext:
    project_id: int
    project_title: str
    project_status: str
    client_user_id: int
    actor_user_id: int
    actor_name: str
    now: datetime


@dataclass(frozen=True)
class TransitionPlan:
    action: BidAction
    bid_id: int | None
    from_status: str | None
    to_status: str
    changes: dict[str, Any]
    effects: tuple[SideEffect, ...] = ()
    cascade_rejected: tuple[int, ...] = field(default_factory=tuple)


def _money(amount: float) -> str:
    return f"${amount:,.2f}"


def _require_actor(ctx: NegotiationContext, expected_user_id: int, message: str) -> None:
    if ctx.actor_user_id != expected_user_id:
        raise NotOwnerError(message)


def _require_open(ctx: NegotiationContext, message: str = "This project is no longer open for bidding") -> None:
    if ctx.project_status != ProjectStatus.OPEN.value:
        raise ProjectNotOpenError(message)


def _require_transition(
    bid: BidSnapshot, target: str, error: type[InvalidStateError], message: str
) -> None:
    if not BID_STATES.can_transition(bid.status, target):
        raise error(message)


def _freelancer_link(ctx: NegotiationContext) -> str:
    return f"/freelancer/projects/{ctx.project_id}"


def _client_link(ctx: NegotiationContext) -> str:
    return f"/client/projects/{ctx.project_id}"


def _plan_submit(
    ctx: NegotiationContext, bid: BidSnapshot | None, payload: dict[str, Any], **kwargs: Any
) -> TransitionPlan:
    _require_open(ctx, "This project is not open for bids")
    if kwargs.get("has_active_bid"):
        raise DuplicateBidError("You have already bid on this project")

    amount = payload["amount"]
    bid_id = kwargs.get("bid_id")
    return TransitionPlan(
        action=BidAction.SUBMIT,
        bid_id=bid_id,
        from_status=None,
        to_status=PENDING,
        changes={
            "amount": amount,
            "delivery_time": payload["delivery_time"],
            "proposal": payload["proposal"],
            "milestones": list(payload.get("milestones") or []),
            "status": PENDING,
        },
        effects=(
            effects.notify(
                ctx.client_user_id,
                NotificationType.BID_RECEIVED.value,
                "New Bid Received",
                f'{ctx.actor_name} has placed a bid of {_money(amount)} on your project "{ctx.project_title}"',
                sender_id=ctx.actor_user_id,
                project_id=ctx.project_id,
                bid_id=bid_id,
                action_link=_client_link(ctx),
            ),
            effects.realtime(
                ctx.client_user_id,
                RealtimeEvent.BID_UPDATE.value,
                projectId=ctx.project_id,
                bidId=bid_id,
                status=PENDING,
                freelancerId=ctx.actor_user_id,
                amount=amount,
            ),
        ),
    )


def _plan_accept(
    ctx: NegotiationContext, bid: BidSnapshot, payload: dict[str, Any], **kwargs: Any
) -> TransitionPlan:
    _require_actor(ctx, ctx.client_user_id, "You are not authorized to accept bids for this project")
    # A closed project means another acceptance already committed.
    if ctx.project_status != ProjectStatus.OPEN.value:
        raise BidNotPendingError("This bid cannot be accepted")
    _require_transition(bid, ACCEPTED, BidNotPendingError, "This bid cannot be accepted")

    siblings: Sequence[BidSnapshot] = kwargs.get("siblings") or ()
    losers = [s for s in siblings if s.bid_id != bid.bid_id and s.status == PENDING]

    planned: list[SideEffect] = [
        effects.notify(
            bid.freelancer_user_id,
            NotificationType.BID_ACCEPTED.value,
            "Bid Accepted",
            f'{ctx.actor_name} has accepted your bid for the project "{ctx.project_title}"',
            sender_id=ctx.actor_user_id,
            project_id=ctx.project_id,
            bid_id=bid.bid_id,
            action_link=_freelancer_link(ctx),
        ),
        effects.realtime(
            bid.freelancer_user_id,
            RealtimeEvent.YOUR_BID_ACCEPTED.value,
            projectId=ctx.project_id,
            bidId=bid.bid_id,
            projectTitle=ctx.project_title,
            status=ACCEPTED,
        ),
        effects.message(
            ctx.actor_user_id,
            bid.freelancer_user_id,
            f'Hi! I\'ve accepted your bid for the project "{ctx.project_title}". '
            "Looking forward to working with you!",
            project_id=ctx.project_id,
        ),
    ]
    for loser in losers:
        planned.append(
            effects.notify(
                loser.freelancer_user_id,
                NotificationType.BID_REJECTED.value,
                "Bid Rejected",
                f'Another bid was accepted for the project "{ctx.project_title}"',
                sender_id=ctx.actor_user_id,
                project_id=ctx.project_id,
                bid_id=loser.bid_id,
                action_link="/freelancer/projects",
            )
        )
        planned.append(
            effects.realtime(
                loser.freelancer_user_id,
                RealtimeEvent.BID_ACCEPTED_UPDATE.value,
                projectId=ctx.project_id,
                bidId=loser.bid_id,
                acceptedBidId=bid.bid_id,
                status=REJECTED,
            )
        )

    return TransitionPlan(
        action=BidAction.ACCEPT,
        bid_id=bid.bid_id,
        from_status=bid.status,
        to_status=ACCEPTED,
        changes={"status": ACCEPTED},
        effects=tuple(planned),
        cascade_rejected=tuple(loser.bid_id for loser in losers),
    )


def _plan_reject(
    ctx: NegotiationContext, bid: BidSnapshot, payload: dict[str, Any], **kwargs: Any
) -> TransitionPlan:
    _require_actor(ctx, ctx.client_user_id, "You are not authorized to reject bids for this project")
    _require_open(ctx)
    _require_transition(bid, REJECTED, BidNotPendingError, "This bid cannot be rejected")

    reason = payload.get("rejection_reason")
    suffix = f": {reason}" if reason else ""
    return TransitionPlan(
        action=BidAction.REJECT,
        bid_id=bid.bid_id,
        from_status=bid.status,
        to_status=REJECTED,
        changes={"status": REJECTED, "rejection_reason": reason},
        effects=(
            effects.notify(
                bid.freelancer_user_id,
                NotificationType.BID_REJECTED.value,
                "Bid Rejected",
                f'{ctx.actor_name} has rejected your bid for the project "{ctx.project_title}"{suffix}',
                sender_id=ctx.actor_user_id,
                project_id=ctx.project_id,
                bid_id=bid.bid_id,
                action_link="/freelancer/projects",
            ),
            effects.realtime(
                bid.freelancer_user_id,
                RealtimeEvent.BID_UPDATE.value,
                projectId=ctx.project_id,
                bidId=bid.bid_id,
                status=REJECTED,
                rejectionReason=reason,
            ),
        ),
    )


def _plan_withdraw(
    ctx: NegotiationContext, bid: BidSnapshot, payload: dict[str, Any], **kwargs: Any
) -> TransitionPlan:
    _require_actor(ctx, bid.freelancer_user_id, "You are not authorized to withdraw this bid")
    _require_open(ctx)
    _require_transition(bid, WITHDRAWN, BidNotPendingError, "This bid cannot be withdrawn")

    return TransitionPlan(
        action=BidAction.WITHDRAW,
        bid_id=bid.bid_id,
        from_status=bid.status,
        to_status=WITHDRAWN,
        changes={"status": WITHDRAWN},
        effects=(
            effects.notify(
                ctx.client_user_id,
                NotificationType.BID_WITHDRAWN.value,
                "Bid Withdrawn",
                f'{ctx.actor_name} has withdrawn their bid on your project "{ctx.project_title}"',
                sender_id=ctx.actor_user_id,
                project_id=ctx.project_id,
                bid_id=bid.bid_id,
                action_link=_client_link(ctx),
            ),
            effects.realtime(
                ctx.client_user_id,
                RealtimeEvent.BID_UPDATE.value,
                projectId=ctx.project_id,
                bidId=bid.bid_id,
                status=WITHDRAWN,
            ),
        ),
    )


def _plan_counter(
    ctx: NegotiationContext, bid: BidSnapshot, payload: dict[str, Any], **kwargs: Any
) -> TransitionPlan:
    _require_actor(ctx, ctx.client_user_id, "You are not authorized to counter bids for this project")
    _require_open(ctx)
    _require_transition(bid, COUNTERED, BidNotPendingError, "This bid cannot be countered")

    offer = {
        "amount": payload["amount"],
        "deliveryTime": payload["delivery_time"],
        "message": payload["message"],
        "date": ctx.now.isoformat(),
    }
    return TransitionPlan(
        action=BidAction.COUNTER,
        bid_id=bid.bid_id,
        from_status=bid.status,
        to_status=COUNTERED,
        changes={
            "status": COUNTERED,
            "counter_amount": payload["amount"],
            "counter_delivery_time": payload["delivery_time"],
            "counter_message": payload["message"],
            "counter_date": ctx.now,
        },
        effects=(
            effects.notify(
                bid.freelancer_user_id,
                NotificationType.BID_COUNTERED.value,
                "Counter Offer Received",
                f'You have received a counter offer of {_money(payload["amount"])} '
                f'for project "{ctx.project_title}"',
                sender_id=ctx.actor_user_id,
                project_id=ctx.project_id,
                bid_id=bid.bid_id,
                action_link=_freelancer_link(ctx),
            ),
            # Full bid update for list views.
            effects.realtime(
                bid.freelancer_user_id,
                RealtimeEvent.COUNTER_OFFER.value,
                projectId=ctx.project_id,
                bidId=bid.bid_id,
                status=COUNTERED,
                counterOffer=offer,
                clientId=ctx.actor_user_id,
                clientName=ctx.actor_name,
            ),
            # Summary for toasts.
            effects.realtime(
                bid.freelancer_user_id,
                RealtimeEvent.COUNTER_OFFER_RECEIVED.value,
                projectId=ctx.project_id,
                bidId=bid.bid_id,
                projectTitle=ctx.project_title,
                amount=payload["amount"],
            ),
        ),
    )


def _plan_counter_response(
    ctx: NegotiationContext, bid: BidSnapshot, payload: dict[str, Any], accepted: bool
) -> TransitionPlan:
    verb = "accept" if accepted else "reject"
    _require_actor(ctx, bid.freelancer_user_id, f"You are not authorized to {verb} this counter offer")
    _require_open(ctx)
    if bid.status != COUNTERED or not bid.has_counter_offer:
        raise NoCounterOfferError(f"This bid does not have a counter offer to {verb}")
    _require_transition(bid, PENDING, NoCounterOfferError, f"This bid does not have a counter offer to {verb}")

    changes: dict[str, Any] = {"status": PENDING, **_CLEARED_COUNTER}
    if accepted:
        changes["amount"] = payload.get("amount") or bid.counter_amount
        changes["delivery_time"] = payload.get("delivery_time") or bid.counter_delivery_time
        notification_type = NotificationType.COUNTER_OFFER_ACCEPTED.value
        title = "Counter Offer Accepted"
    else:
        notification_type = NotificationType.COUNTER_OFFER_REJECTED.value
        title = "Counter Offer Rejected"

    return TransitionPlan(
        action=BidAction.COUNTER_ACCEPT if accepted else BidAction.COUNTER_REJECT,
        bid_id=bid.bid_id,
        from_status=bid.status,
        to_status=PENDING,
        changes=changes,
        effects=(
            effects.notify(
                ctx.client_user_id,
                notification_type,
                title,
                f'Your counter offer for project "{ctx.project_title}" has been {verb}ed',
                sender_id=ctx.actor_user_id,
                project_id=ctx.project_id,
                bid_id=bid.bid_id,
                action_link=_client_link(ctx),
            ),
            effects.realtime(
                ctx.client_user_id,
                RealtimeEvent.COUNTER_OFFER_RESPONSE_RECEIVED.value,
                projectId=ctx.project_id,
                bidId=bid.bid_id,
                accepted=accepted,
                amount=changes.get("amount", bid.amount),
                deliveryTime=changes.get("delivery_time", bid.delivery_time),
                freelancerName=ctx.actor_name,
            ),
        ),
    )


def _plan_counter_accept(
    ctx: NegotiationContext, bid: BidSnapshot, payload: dict[str, Any], **kwargs: Any
) -> TransitionPlan:
    return _plan_counter_response(ctx, bid, payload, accepted=True)


def _plan_counter_reject(
    ctx: NegotiationContext, bid: BidSnapshot, payload: dict[str, Any], **kwargs: Any
) -> TransitionPlan:
    return _plan_counter_response(ctx, bid, payload, accepted=False)


_PLANNERS: dict[BidAction, Callable[..., TransitionPlan]] = {
    BidAction.SUBMIT: _plan_submit,
    BidAction.ACCEPT: _plan_accept,
    BidAction.REJECT: _plan_reject,
    BidAction.WITHDRAW: _plan_withdraw,
    BidAction.COUNTER: _plan_counter,
    BidAction.COUNTER_ACCEPT: _plan_counter_accept,
    BidAction.COUNTER_REJECT: _plan_counter_reject,
}


def plan_transition(
    action: BidAction,
    ctx: NegotiationContext,
    bid: BidSnapshot | None = None,
    payload: dict[str, Any] | None = None,
    *,
    siblings: Sequence[BidSnapshot] = (),
    has_active_bid: bool = False,
    bid_id: int | None = None,
) -> TransitionPlan:
    """Validate ``action`` against the current state and plan its effects.

    ``siblings`` is only consulted for acceptance (the other bids on the
    project); ``has_active_bid`` only for submission.
    """
    if action is not BidAction.SUBMIT and bid is None:
        raise ValueError(f"{action.value} requires an existing bid")
    planner = _PLANNERS[action]
    return planner(ctx, bid, payload or {}, siblings=siblings, has_active_bid=has_active_bid, bid_id=bid_id)
