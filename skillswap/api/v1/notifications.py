"""Notification endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Header, Query

from skillswap.api.v1._authz import authorize
from skillswap.database.db import get_db_session
from skillswap.schemas import NotificationPreferencesRequest, NotificationResponse, envelope
from skillswap.services.notification_service import NotificationService

router = APIRouter(tags=["notifications"])


@router.get("/notifications")
def list_notifications(
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    limit: int = Query(default=50, ge=1, le=500),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    user = authorize(authorization, scopes=["notifications.read"])
    with get_db_session() as session:
        service = NotificationService(session)
        items = service.list_for_user(user.user_id, unread_only=unread_only, limit=limit)
        return envelope(
            {
                "notifications": [
                    NotificationResponse.model_validate(item).model_dump(by_alias=True) for item in items
                ],
                "unreadCount": service.unread_count(user.user_id),
            }
        )


@router.put("/notifications/read-all")
def mark_all_notifications_read(authorization: str | None = Header(default=None, alias="Authorization")) -> dict:
    user = authorize(authorization, scopes=["notifications.read"])
    with get_db_session() as session:
        updated = NotificationService(session).mark_all_read(user.user_id)
        return envelope({"updated": updated}, "All notifications marked as read")


@router.get("/notifications/preferences")
def get_notification_preferences(authorization: str | None = Header(default=None, alias="Authorization")) -> dict:
    user = authorize(authorization, scopes=["notifications.read"])
    with get_db_session() as session:
        return envelope({"preferences": NotificationService(session).preferences_view(user.user_id)})


@router.put("/notifications/preferences")
def update_notification_preferences(
    payload: NotificationPreferencesRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    user = authorize(authorization, scopes=["notifications.read"])
    changes = payload.model_dump(exclude_unset=True, exclude_none=True, exclude={"phone"})
    with get_db_session() as session:
        service = NotificationService(session)
        service.update_preferences(user.user_id, phone=payload.phone, **changes)
        return envelope(
            {"preferences": service.preferences_view(user.user_id)}, "Notification preferences updated"
        )


@router.get("/notifications/types")
def list_notification_types(authorization: str | None = Header(default=None, alias="Authorization")) -> dict:
    authorize(authorization, scopes=["notifications.read"])
    return envelope({"notificationTypes": NotificationService.notification_types()})


@router.put("/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: int,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    user = authorize(authorization, scopes=["notifications.read"])
    with get_db_session() as session:
        notification = NotificationService(session).mark_read(notification_id, user.user_id)
        return envelope(NotificationResponse.model_validate(notification).model_dump(by_alias=True))
