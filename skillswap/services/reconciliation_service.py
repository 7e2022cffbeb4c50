"""Repairs project-level drift from the authoritative bid rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from skillswap.core.enums import BidStatus, ProjectStatus
from skillswap.database.models import Bid, Project
from skillswap.services.base_service import BaseService

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationReport:
    repaired: list[int] = field(default_factory=list)
    anomalies: list[int] = field(default_factory=list)


class ReconciliationService(BaseService):
    def reconcile_projects(self) -> ReconciliationReport:
        report = ReconciliationReport()
        accepted = {
            bid.project_id: bid
            for bid in self.db.query(Bid).filter(Bid.status == BidStatus.ACCEPTED.value).all()
        }

        for project_id, bid in accepted.items():
            project = self.db.get(Project, project_id)
            if project is None or project.freelancer_id == bid.freelancer_id:
                continue
            project.freelancer_id = bid.freelancer_id
            if project.status == ProjectStatus.OPEN.value:
                project.status = ProjectStatus.IN_PROGRESS.value
            if project.start_date is None:
                project.start_date = bid.updated_at or self._utcnow_naive()
            project.updated_at = self._utcnow_naive()
            report.repaired.append(project_id)
            logger.warning(
                "reconcile.project_repaired",
                extra={"event": "reconcile.project_repaired", "project_id": project_id, "bid_id": bid.id},
            )

        orphaned = (
            self.db.query(Project.id)
            .filter(Project.freelancer_id.isnot(None), Project.id.notin_(list(accepted) or [0]))
            .all()
        )
        for (project_id,) in orphaned:
            report.anomalies.append(project_id)
            logger.error(
                "reconcile.assignment_without_accepted_bid",
                extra={"event": "reconcile.assignment_without_accepted_bid", "project_id": project_id},
            )

        if report.repaired:
            self.commit()
        return report
