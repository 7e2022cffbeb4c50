"""Bid negotiation service: submit, decide, withdraw and counter."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from skillswap.core.config import Config, get_config
from skillswap.core.enums import BidAction
from skillswap.core.exceptions import (
    BidNotPendingError,
    DuplicateBidError,
    NoCounterOfferError,
    NotFoundError,
    NotOwnerError,
    SkillSwapException,
    ValidationError,
)
from skillswap.database.models import Bid, Project
from skillswap.orchestration.bid_transitions import plan_transition
from skillswap.services.base_service import BaseService
from skillswap.services.dispatcher import SideEffectDispatcher
from skillswap.services.project_service import ProjectService

logger = logging.getLogger(__name__)

_COUNTER_RESPONSES = (BidAction.COUNTER_ACCEPT, BidAction.COUNTER_REJECT)


class BidService(BaseService):
    """Every bid transition runs through ``plan_transition`` and a conditional write."""

    def __init__(
        self,
        db: Session | None = None,
        dispatcher: SideEffectDispatcher | None = None,
        config: Config | None = None,
    ) -> None:
        super().__init__(db)
        self.config = config or get_config()
        self.projects = ProjectService(self.db, dispatcher)
        self.bids = self.projects.bids

    def _validate_terms(self, amount: float | None, delivery_time: int | None) -> None:
        if amount is None or amount <= 0:
            raise ValidationError("Amount must be greater than 0")
        if delivery_time is None or int(delivery_time) < 1:
            raise ValidationError("Delivery time must be at least 1 day")

    def submit_bid(self, project_id: int, actor_user_id: int, payload: dict[str, Any]) -> Bid:
        proposal = str(payload.get("proposal") or "").strip()
        if len(proposal) < self.config.PROPOSAL_MIN_LENGTH:
            raise ValidationError(
                f"Proposal must be at least {self.config.PROPOSAL_MIN_LENGTH} characters long"
            )
        self._validate_terms(payload.get("amount"), payload.get("delivery_time"))

        freelancer = self.projects.freelancer_profile_for(actor_user_id)
        project = self.projects.lock_project(project_id)
        has_active_bid = self.bids.find_active(project_id, freelancer.id) is not None

        ctx = self.projects.context_for(project, actor_user_id)
        submitted = {**payload, "proposal": proposal}
        plan = plan_transition(BidAction.SUBMIT, ctx, payload=submitted, has_active_bid=has_active_bid)
        try:
            bid = self.bids.insert(project_id, freelancer.id, plan.changes, ctx.now)
            plan = plan_transition(BidAction.SUBMIT, ctx, payload=submitted, bid_id=bid.id)
            self.commit()
        except IntegrityError as exc:
            self.rollback()
            raise DuplicateBidError("You have already bid on this project") from exc

        logger.info(
            "bid.submitted",
            extra={"event": "bid.submitted", "project_id": project_id, "bid_id": bid.id, "actor_id": actor_user_id},
        )
        self.projects.dispatch(plan.effects)
        return bid

    def accept_bid(self, project_id: int, bid_id: int, actor_user_id: int) -> Project:
        return self.projects.accept_bid(project_id, bid_id, actor_user_id)

    def reject_bid(
        self, project_id: int, bid_id: int, actor_user_id: int, rejection_reason: str | None = None
    ) -> Bid:
        return self._transition(
            BidAction.REJECT, project_id, bid_id, actor_user_id, {"rejection_reason": rejection_reason}
        )

    def withdraw_bid(self, project_id: int, actor_user_id: int) -> Bid:
        """Withdraw the caller's own bid; the bid is found by freelancer identity."""
        freelancer = self.projects.freelancer_profile_for(actor_user_id)
        project = self.projects.lock_project(project_id)
        bid = self.bids.find_active(project_id, freelancer.id) or self.bids.find_latest(project_id, freelancer.id)
        if bid is None:
            raise NotFoundError("Bid not found")
        return self._commit_plan(BidAction.WITHDRAW, project, bid, actor_user_id)

    def counter_bid(
        self,
        project_id: int,
        bid_id: int,
        actor_user_id: int,
        amount: float,
        delivery_time: int,
        message: str,
    ) -> Bid:
        self._validate_terms(amount, delivery_time)
        if not (message or "").strip():
            raise ValidationError("Counter offer message is required")
        return self._transition(
            BidAction.COUNTER,
            project_id,
            bid_id,
            actor_user_id,
            {"amount": amount, "delivery_time": delivery_time, "message": message.strip()},
        )

    def accept_counter_offer(
        self,
        project_id: int,
        bid_id: int,
        actor_user_id: int,
        amount: float | None = None,
        delivery_time: int | None = None,
    ) -> Bid:
        if amount is not None and amount <= 0:
            raise ValidationError("Amount must be greater than 0")
        if delivery_time is not None and delivery_time < 1:
            raise ValidationError("Delivery time must be at least 1 day")
        return self._transition(
            BidAction.COUNTER_ACCEPT,
            project_id,
            bid_id,
            actor_user_id,
            {"amount": amount, "delivery_time": delivery_time},
        )

    def reject_counter_offer(self, project_id: int, bid_id: int, actor_user_id: int) -> Bid:
        return self._transition(BidAction.COUNTER_REJECT, project_id, bid_id, actor_user_id)

    # views

    def list_project_bids(self, project_id: int, actor_user_id: int, is_admin: bool = False) -> list[Bid]:
        project = self.projects.get_project(project_id)
        if not is_admin and not self.projects.is_owner(project, actor_user_id):
            raise NotOwnerError("You are not authorized to view bids for this project")
        return self.bids.list_for_project(project_id)

    def list_freelancer_bids(self, actor_user_id: int) -> tuple[list[Bid], dict[str, Any]]:
        freelancer = self.projects.freelancer_profile_for(actor_user_id)
        return self.bids.list_for_freelancer(freelancer.id), self.bids.stats_for_freelancer(freelancer.id)

    def recent_bids_for_client(self, actor_user_id: int, limit: int = 10) -> list[Bid]:
        client = self.projects.client_profile_for(actor_user_id)
        return self.bids.list_recent_for_client(client.id, limit=limit)

    # internals

    def _transition(
        self,
        action: BidAction,
        project_id: int,
        bid_id: int,
        actor_user_id: int,
        payload: dict[str, Any] | None = None,
    ) -> Bid:
        project = self.projects.lock_project(project_id)
        bid = self.bids.get_for_project(project_id, bid_id)
        if bid is None:
            raise NotFoundError("Bid not found")
        return self._commit_plan(action, project, bid, actor_user_id, payload)

    def _commit_plan(
        self,
        action: BidAction,
        project: Project,
        bid: Bid,
        actor_user_id: int,
        payload: dict[str, Any] | None = None,
    ) -> Bid:
        ctx = self.projects.context_for(project, actor_user_id)
        plan = plan_transition(action, ctx, self.bids.snapshot(bid), payload)
        stale = NoCounterOfferError if action in _COUNTER_RESPONSES else BidNotPendingError
        try:
            if self.bids.compare_and_set_status(bid.id, plan.from_status, plan.changes, ctx.now) != 1:
                raise stale(f"This bid cannot be updated: {action.value}")
            self.commit()
        except SkillSwapException:
            self.rollback()
            raise
        except IntegrityError as exc:
            self.rollback()
            raise stale(f"This bid cannot be updated: {action.value}") from exc

        self.db.expire_all()
        logger.info(
            "bid.transitioned",
            extra={
                "event": "bid.transitioned",
                "project_id": project.id,
                "bid_id": bid.id,
                "actor_id": actor_user_id,
                "action": action.value,
                "status": plan.to_status,
            },
        )
        self.projects.dispatch(plan.effects)
        return self.bids.get(bid.id)
