from __future__ import annotations

from skillswap.database.models import Bid, Project
from skillswap.services.reconciliation_service import ReconciliationService


def _accepted_bid(session, marketplace, freelancer_index: int = 0) -> Bid:
    bid = Bid(
        project_id=marketplace.project.id,
        freelancer_id=marketplace.freelancers[freelancer_index].id,
        amount=900.0,
        delivery_time=12,
        proposal="Accepted outside of the normal flow.",
        status="Accepted",
    )
    session.add(bid)
    session.commit()
    return bid


def test_project_assignment_is_repaired_from_accepted_bid(session, marketplace):
    _accepted_bid(session, marketplace)

    report = ReconciliationService(session).reconcile_projects()

    assert report.repaired == [marketplace.project.id]
    project = session.get(Project, marketplace.project.id)
    assert project.freelancer_id == marketplace.freelancers[0].id
    assert project.status == "In Progress"
    assert project.start_date is not None


def test_consistent_projects_are_left_alone(session, marketplace):
    _accepted_bid(session, marketplace)
    service = ReconciliationService(session)
    service.reconcile_projects()

    assert service.reconcile_projects().repaired == []


def test_assignment_without_accepted_bid_is_reported(session, marketplace):
    marketplace.project.freelancer_id = marketplace.freelancers[1].id
    session.commit()

    report = ReconciliationService(session).reconcile_projects()

    assert report.repaired == []
    assert report.anomalies == [marketplace.project.id]
