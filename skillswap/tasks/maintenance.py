"""Periodic maintenance tasks."""

from __future__ import annotations

import logging
from typing import Any

from skillswap.services.reconciliation_service import ReconciliationService
from skillswap.tasks.celery_app import celery_app
from skillswap.tasks.hooks import after_task, before_task

logger = logging.getLogger(__name__)

RECONCILE_PROJECTS = "skillswap.maintenance.reconcile_projects"


@celery_app.task(name=RECONCILE_PROJECTS)
def reconcile_projects() -> dict[str, Any]:
    logger.info("task.start", extra=before_task(RECONCILE_PROJECTS, {}))
    with ReconciliationService() as service:
        report = service.reconcile_projects()
    logger.info(
        "task.finish",
        extra=after_task(RECONCILE_PROJECTS, {}, "succeeded"),
    )
    return {"repaired": report.repaired, "anomalies": report.anomalies}
