"""Celery application bootstrap."""

from __future__ import annotations

import os

from celery import Celery

from skillswap.core.config import get_config

_config = get_config()

celery_app = Celery(
    "skillswap",
    broker=_config.CELERY_BROKER_URL,
    backend=_config.CELERY_RESULT_BACKEND,
    include=["skillswap.tasks.notification_tasks", "skillswap.tasks.maintenance"],
)
celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_ignore_result=True,
    # Publishing from a request thread must not hang on a dead broker.
    broker_connection_timeout=_config.SIDE_EFFECT_TIMEOUT_SECONDS,
    broker_connection_retry_on_startup=True,
    beat_schedule={
        "reconcile-projects": {
            "task": "skillswap.maintenance.reconcile_projects",
            "schedule": 15 * 60.0,
        },
    },
)

# Local/dev convenience: run tasks synchronously when requested.
if os.getenv("CELERY_TASK_ALWAYS_EAGER", "false").lower() in {"1", "true", "yes", "on"}:
    celery_app.conf.task_always_eager = True
