"""Worker-side execution of post-commit side effects."""

from __future__ import annotations

import logging
from typing import Any

import redis

from skillswap.database.db import get_db_session
from skillswap.services.message_service import MessageService
from skillswap.services.notification_service import NotificationService
from skillswap.services.realtime import RealtimePublisher
from skillswap.tasks.celery_app import celery_app
from skillswap.tasks.hooks import after_task, before_task

logger = logging.getLogger(__name__)

DELIVER_NOTIFICATION = "skillswap.notifications.deliver"
PUSH_REALTIME = "skillswap.realtime.push"
POST_MESSAGE = "skillswap.messages.post"


def _log_context(recipient_id: int, payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "user_id": recipient_id,
        "project_id": payload.get("project_id", payload.get("projectId")),
        "bid_id": payload.get("bid_id", payload.get("bidId")),
    }


@celery_app.task(name=DELIVER_NOTIFICATION)
def deliver_notification(notification_type: str, recipient_id: int, payload: dict[str, Any]) -> int | None:
    context = _log_context(recipient_id, payload)
    logger.info("task.start", extra=before_task(DELIVER_NOTIFICATION, context))
    with get_db_session() as session:
        notification = NotificationService(session).deliver(notification_type, recipient_id, payload)
    logger.info("task.finish", extra=after_task(DELIVER_NOTIFICATION, context, "succeeded"))
    return notification.id if notification is not None else None


@celery_app.task(
    name=PUSH_REALTIME,
    autoretry_for=(redis.exceptions.ConnectionError, redis.exceptions.TimeoutError),
    retry_backoff=True,
    max_retries=2,
)
def push_realtime_event(event: str, recipient_id: int, payload: dict[str, Any]) -> int:
    context = _log_context(recipient_id, payload)
    logger.info("task.start", extra=before_task(PUSH_REALTIME, context))
    delivered = RealtimePublisher().publish(recipient_id, event, payload)
    logger.info("task.finish", extra=after_task(PUSH_REALTIME, context, "succeeded"))
    return delivered


@celery_app.task(name=POST_MESSAGE)
def post_message(
    sender_id: int,
    recipient_id: int,
    content: str,
    project_id: int | None = None,
    is_system: bool = False,
) -> int:
    context = {"user_id": sender_id, "project_id": project_id}
    logger.info("task.start", extra=before_task(POST_MESSAGE, context))
    with get_db_session() as session:
        message = MessageService(session).post(
            sender_id, recipient_id, content, project_id=project_id, is_system=is_system
        )
    logger.info("task.finish", extra=after_task(POST_MESSAGE, context, "succeeded"))
    return message.id
