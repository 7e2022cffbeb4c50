"""Project aggregate: the bidding gate and the single-winner rule."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from skillswap.core.enums import BidAction, BidStatus, ProjectStatus
from skillswap.core.exceptions import (
    BidNotPendingError,
    NotFoundError,
    ProfileMissingError,
    ValidationError,
)
from skillswap.database.models import ClientProfile, FreelancerProfile, Project, User
from skillswap.orchestration.bid_transitions import NegotiationContext, plan_transition
from skillswap.orchestration.effects import SideEffect
from skillswap.services.base_service import BaseService
from skillswap.services.bid_store import BidStore
from skillswap.services.dispatcher import SideEffectDispatcher, get_dispatcher

logger = logging.getLogger(__name__)


class ProjectService(BaseService):
    def __init__(self, db: Session | None = None, dispatcher: SideEffectDispatcher | None = None) -> None:
        super().__init__(db)
        self.dispatcher = dispatcher or get_dispatcher()
        self.bids = BidStore(self.db)

    # lookups

    def client_profile_for(self, user_id: int) -> ClientProfile:
        profile = self.db.query(ClientProfile).filter(ClientProfile.user_id == user_id).first()
        if profile is None:
            raise ProfileMissingError("Client profile not found")
        return profile

    def freelancer_profile_for(self, user_id: int) -> FreelancerProfile:
        profile = self.db.query(FreelancerProfile).filter(FreelancerProfile.user_id == user_id).first()
        if profile is None:
            raise ProfileMissingError("Freelancer profile not found")
        return profile

    def user_name(self, user_id: int) -> str:
        user = self.db.get(User, user_id)
        return user.name if user is not None else "A user"

    def get_project(self, project_id: int) -> Project:
        project = self.db.get(Project, project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def lock_project(self, project_id: int) -> Project:
        """Load the project row for a transition, locking it where supported."""
        project = (
            self.db.query(Project)
            .filter(Project.id == project_id)
            .populate_existing()
            .with_for_update()
            .first()
        )
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def owner_user_id(self, project: Project) -> int:
        return project.client.user_id

    def is_owner(self, project: Project, user_id: int) -> bool:
        return self.owner_user_id(project) == user_id

    @staticmethod
    def is_open_for_bids(project: Project) -> bool:
        return project.status == ProjectStatus.OPEN.value

    def context_for(self, project: Project, actor_user_id: int) -> NegotiationContext:
        return NegotiationContext(
            project_id=project.id,
            project_title=project.title,
            project_status=project.status,
            client_user_id=self.owner_user_id(project),
            actor_user_id=actor_user_id,
            actor_name=self.user_name(actor_user_id),
            now=self._utcnow_naive(),
        )

    # collaborator CRUD

    def create_project(self, actor_user_id: int, fields: dict[str, Any]) -> Project:
        client = self.client_profile_for(actor_user_id)
        if not str(fields.get("title") or "").strip():
            raise ValidationError("Title is required")
        if not str(fields.get("description") or "").strip():
            raise ValidationError("Description is required")
        if fields.get("budget") is None or float(fields["budget"]) <= 0:
            raise ValidationError("Budget must be greater than 0")

        now = self._utcnow_naive()
        project = Project(
            client_id=client.id,
            title=fields["title"].strip(),
            description=fields["description"].strip(),
            category=fields.get("category"),
            budget=float(fields["budget"]),
            deadline=fields.get("deadline"),
            status=ProjectStatus.OPEN.value,
            created_at=now,
            updated_at=now,
        )
        self.db.add(project)
        self.commit()
        self.db.refresh(project)
        logger.info(
            "project.created",
            extra={"event": "project.created", "project_id": project.id, "actor_id": actor_user_id},
        )
        return project

    def list_open_projects(self, limit: int = 50) -> list[Project]:
        return (
            self.db.query(Project)
            .filter(Project.status == ProjectStatus.OPEN.value)
            .order_by(Project.created_at.desc(), Project.id.desc())
            .limit(limit)
            .all()
        )

    def to_view(self, project: Project, viewer_user_id: int | None = None, is_admin: bool = False) -> dict[str, Any]:
        """Project payload; bids are embedded only for the owner or an admin."""
        view: dict[str, Any] = {
            "id": project.id,
            "clientId": project.client_id,
            "freelancerId": project.freelancer_id,
            "contractId": project.contract_id,
            "title": project.title,
            "description": project.description,
            "category": project.category,
            "budget": project.budget,
            "deadline": project.deadline,
            "status": project.status,
            "startDate": project.start_date,
            "createdAt": project.created_at,
            "updatedAt": project.updated_at,
        }
        if is_admin or (viewer_user_id is not None and self.is_owner(project, viewer_user_id)):
            view["bids"] = [self.bids.to_embedded(bid) for bid in project.bids]
        return view

    # acceptance

    def accept_bid(self, project_id: int, bid_id: int, actor_user_id: int) -> Project:
        """Accept one bid and close bidding, atomically; returns the updated project.

        The bid moves Pending -> Accepted, every other Pending bid is rejected
        and the project moves Open -> In Progress in a single transaction.
        Each write is conditional on the state that was validated; if any of
        them loses a race the whole transaction is rolled back. Losers are
        taken from the rows the cascade actually rejected, not from an
        earlier read, so their notifications match the committed state.
        """
        project = self.lock_project(project_id)
        bid = self.bids.get_for_project(project_id, bid_id)
        if bid is None:
            raise NotFoundError("Bid not found")

        ctx = self.context_for(project, actor_user_id)
        winner = self.bids.snapshot(bid)
        plan = plan_transition(BidAction.ACCEPT, ctx, winner, siblings=[])

        try:
            if self.bids.compare_and_set_status(bid.id, BidStatus.PENDING.value, plan.changes, ctx.now) != 1:
                raise BidNotPendingError("This bid cannot be accepted")
            rejected = self.bids.reject_pending_siblings(project_id, bid.id, ctx.now)
            claimed = self.db.execute(
                update(Project)
                .where(Project.id == project_id, Project.status == ProjectStatus.OPEN.value)
                .values(
                    status=ProjectStatus.IN_PROGRESS.value,
                    freelancer_id=bid.freelancer_id,
                    start_date=ctx.now,
                    updated_at=ctx.now,
                )
                .execution_options(synchronize_session=False)
            ).rowcount
            if claimed != 1:
                raise BidNotPendingError("This bid cannot be accepted")
            losers = [replace(self.bids.snapshot(row), status=BidStatus.PENDING.value) for row in rejected]
            plan = plan_transition(BidAction.ACCEPT, ctx, winner, siblings=losers)
            self.commit()
        except BidNotPendingError:
            self.rollback()
            logger.info(
                "bid.accept_lost_race",
                extra={"event": "bid.accept_lost_race", "project_id": project_id, "bid_id": bid_id},
            )
            raise
        except IntegrityError as exc:
            self.rollback()
            raise BidNotPendingError("This bid cannot be accepted") from exc

        self.db.expire_all()
        logger.info(
            "bid.accepted",
            extra={
                "event": "bid.accepted",
                "project_id": project_id,
                "bid_id": bid_id,
                "actor_id": actor_user_id,
            },
        )
        self.dispatch(plan.effects)
        return self.get_project(project_id)

    def dispatch(self, effects: tuple[SideEffect, ...]) -> None:
        self.dispatcher.dispatch(effects)
