"""Bid record store: the single source of truth for bids.

The project-side ("embedded") and freelancer-side ("standalone") views are
rendered from the same row, so they cannot disagree. All writes are
conditional on the expected current status and report affected rows.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from skillswap.core.enums import ACTIVE_BID_STATUSES, BidStatus
from skillswap.database.models import Bid, Project
from skillswap.orchestration.bid_transitions import BidSnapshot


class BidStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    # reads

    def get(self, bid_id: int) -> Bid | None:
        return self.db.query(Bid).filter(Bid.id == bid_id).first()

    def get_for_project(self, project_id: int, bid_id: int) -> Bid | None:
        return self.db.query(Bid).filter(Bid.id == bid_id, Bid.project_id == project_id).first()

    def find_active(self, project_id: int, freelancer_id: int) -> Bid | None:
        return (
            self.db.query(Bid)
            .filter(
                Bid.project_id == project_id,
                Bid.freelancer_id == freelancer_id,
                Bid.status.in_(ACTIVE_BID_STATUSES),
            )
            .first()
        )

    def find_latest(self, project_id: int, freelancer_id: int) -> Bid | None:
        return (
            self.db.query(Bid)
            .filter(Bid.project_id == project_id, Bid.freelancer_id == freelancer_id)
            .order_by(Bid.id.desc())
            .first()
        )

    def list_for_project(self, project_id: int) -> list[Bid]:
        return (
            self.db.query(Bid)
            .filter(Bid.project_id == project_id)
            .order_by(Bid.created_at.desc(), Bid.id.desc())
            .all()
        )

    def list_for_freelancer(self, freelancer_id: int) -> list[Bid]:
        return (
            self.db.query(Bid)
            .filter(Bid.freelancer_id == freelancer_id)
            .order_by(Bid.created_at.desc(), Bid.id.desc())
            .all()
        )

    def list_recent_for_client(self, client_id: int, limit: int = 10) -> list[Bid]:
        return (
            self.db.query(Bid)
            .join(Project, Project.id == Bid.project_id)
            .filter(Project.client_id == client_id)
            .order_by(Bid.created_at.desc(), Bid.id.desc())
            .limit(limit)
            .all()
        )

    def stats_for_freelancer(self, freelancer_id: int) -> dict[str, Any]:
        rows = (
            self.db.query(Bid.status, func.count(Bid.id), func.avg(Bid.amount))
            .filter(Bid.freelancer_id == freelancer_id)
            .group_by(Bid.status)
            .all()
        )
        stats: dict[str, Any] = {status.value.lower(): 0 for status in BidStatus}
        stats["total"] = 0
        stats["avgAmount"] = 0.0

        total_amount = 0.0
        for status, count, avg_amount in rows:
            stats[str(status).lower()] = int(count)
            stats["total"] += int(count)
            total_amount += float(avg_amount or 0.0) * int(count)
        if stats["total"]:
            stats["avgAmount"] = round(total_amount / stats["total"], 2)
        return stats

    # writes

    def insert(self, project_id: int, freelancer_id: int, changes: dict[str, Any], now: datetime) -> Bid:
        bid = Bid(
            project_id=project_id,
            freelancer_id=freelancer_id,
            created_at=now,
            updated_at=now,
            **changes,
        )
        self.db.add(bid)
        self.db.flush()
        return bid

    def compare_and_set_status(self, bid_id: int, expected_status: str, changes: dict[str, Any], now: datetime) -> int:
        """Apply ``changes`` only if the bid is still in ``expected_status``."""
        result = self.db.execute(
            update(Bid)
            .where(Bid.id == bid_id, Bid.status == expected_status)
            .values(**changes, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)

    def reject_pending_siblings(self, project_id: int, winner_id: int, now: datetime) -> list[Bid]:
        """Reject every other Pending bid on the project and return the rejected rows.

        The predicate is evaluated by the UPDATE itself, so a bid inserted
        after the caller last read the project is still rejected.
        """
        rejected_ids = self.db.execute(
            update(Bid)
            .where(
                Bid.project_id == project_id,
                Bid.id != winner_id,
                Bid.status == BidStatus.PENDING.value,
            )
            .values(status=BidStatus.REJECTED.value, updated_at=now)
            .returning(Bid.id)
            .execution_options(synchronize_session=False)
        ).scalars().all()
        if not rejected_ids:
            return []
        return (
            self.db.query(Bid)
            .filter(Bid.id.in_(rejected_ids))
            .populate_existing()
            .order_by(Bid.id)
            .all()
        )

    # views

    @staticmethod
    def snapshot(bid: Bid) -> BidSnapshot:
        return BidSnapshot(
            bid_id=bid.id,
            freelancer_user_id=bid.freelancer.user_id,
            status=bid.status,
            amount=bid.amount,
            delivery_time=bid.delivery_time,
            counter_amount=bid.counter_amount,
            counter_delivery_time=bid.counter_delivery_time,
            counter_message=bid.counter_message,
        )

    @staticmethod
    def counter_offer(bid: Bid) -> dict[str, Any] | None:
        if not bid.has_counter_offer:
            return None
        return {
            "amount": bid.counter_amount,
            "deliveryTime": bid.counter_delivery_time,
            "message": bid.counter_message,
            "date": bid.counter_date,
        }

    @classmethod
    def to_embedded(cls, bid: Bid) -> dict[str, Any]:
        """Project-side view of a bid (the ``project.bids[]`` entry)."""
        freelancer = bid.freelancer
        return {
            "id": bid.id,
            "freelancer": {
                "id": freelancer.id,
                "userId": freelancer.user_id,
                "name": freelancer.user.name if freelancer.user else None,
            },
            "amount": bid.amount,
            "deliveryTime": bid.delivery_time,
            "proposal": bid.proposal,
            "status": bid.status,
            "counterOffer": cls.counter_offer(bid),
            "createdAt": bid.created_at,
        }

    @classmethod
    def to_standalone(cls, bid: Bid) -> dict[str, Any]:
        """Freelancer-side view of a bid (the "my bids" entry)."""
        payload = cls.to_embedded(bid)
        project = bid.project
        payload.update(
            {
                "project": {
                    "id": project.id,
                    "title": project.title,
                    "budget": project.budget,
                    "status": project.status,
                },
                "milestones": list(bid.milestones or []),
                "rejectionReason": bid.rejection_reason,
                "updatedAt": bid.updated_at,
            }
        )
        return payload
