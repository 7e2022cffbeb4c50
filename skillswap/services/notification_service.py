"""In-app notification store and multi-channel delivery.

Delivery tries email and SMS per the recipient's preferences, then stores the
in-app record with the outcome of each channel. A failing channel is logged
and recorded on the notification; it never fails the whole delivery.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import update
from sqlalchemy.orm import Session

from skillswap.core.enums import DEFAULT_SMS_TYPES, NotificationType
from skillswap.core.exceptions import NotFoundError, ValidationError
from skillswap.database.models import Notification, NotificationPreference, User
from skillswap.services.base_service import BaseService
from skillswap.services.email_sender import EmailSender
from skillswap.services.sms_sender import SmsSender

logger = logging.getLogger(__name__)

_TYPE_LIST_FIELDS = ("disabled_in_app_types", "disabled_email_types", "enabled_sms_types")
_KNOWN_TYPES = {item.value for item in NotificationType}


@dataclass(frozen=True)
class ChannelPreferences:
    in_app: bool
    email: bool
    sms: bool


def resolve_channels(preference: NotificationPreference | None, notification_type: str) -> ChannelPreferences:
    """Which channels a notification type goes out on for one user."""
    if preference is None:
        return ChannelPreferences(in_app=True, email=True, sms=notification_type in DEFAULT_SMS_TYPES)

    sms_types = preference.enabled_sms_types
    if sms_types is None:
        sms_types = list(DEFAULT_SMS_TYPES)
    return ChannelPreferences(
        in_app=bool(preference.in_app_enabled) and notification_type not in (preference.disabled_in_app_types or []),
        email=bool(preference.email_enabled) and notification_type not in (preference.disabled_email_types or []),
        sms=bool(preference.sms_enabled) and notification_type in sms_types,
    )


class NotificationService(BaseService):
    def __init__(
        self,
        db: Session | None = None,
        email_sender: EmailSender | None = None,
        sms_sender: SmsSender | None = None,
    ) -> None:
        super().__init__(db)
        self.email_sender = email_sender or EmailSender()
        self.sms_sender = sms_sender or SmsSender()

    def preferences_for(self, user_id: int) -> NotificationPreference | None:
        return self.db.query(NotificationPreference).filter(NotificationPreference.user_id == user_id).first()

    def preferences_view(self, user_id: int) -> dict[str, Any]:
        """Effective preferences; a user without a stored row sees the defaults."""
        preference = self.preferences_for(user_id)
        user = self.db.get(User, user_id)
        if preference is None:
            view = {
                "inAppEnabled": True,
                "emailEnabled": True,
                "smsEnabled": False,
                "disabledInAppTypes": [],
                "disabledEmailTypes": [],
                "enabledSmsTypes": list(DEFAULT_SMS_TYPES),
            }
        else:
            sms_types = preference.enabled_sms_types
            view = {
                "inAppEnabled": bool(preference.in_app_enabled),
                "emailEnabled": bool(preference.email_enabled),
                "smsEnabled": bool(preference.sms_enabled),
                "disabledInAppTypes": list(preference.disabled_in_app_types or []),
                "disabledEmailTypes": list(preference.disabled_email_types or []),
                "enabledSmsTypes": list(DEFAULT_SMS_TYPES) if sms_types is None else list(sms_types),
            }
        view["phone"] = user.phone if user is not None else None
        return view

    def update_preferences(self, user_id: int, phone: str | None = None, **changes: Any) -> NotificationPreference:
        for key, value in changes.items():
            if not hasattr(NotificationPreference, key):
                raise ValueError(f"unknown preference: {key}")
            if key in _TYPE_LIST_FIELDS and value is not None:
                unknown = sorted(set(value) - _KNOWN_TYPES)
                if unknown:
                    raise ValidationError(f"Unknown notification types: {', '.join(unknown)}")

        preference = self.preferences_for(user_id)
        if preference is None:
            preference = NotificationPreference(user_id=user_id)
            self.db.add(preference)
        for key, value in changes.items():
            setattr(preference, key, value)
        preference.updated_at = self._utcnow_naive()
        if phone is not None:
            user = self.db.get(User, user_id)
            if user is None:
                raise NotFoundError("User not found")
            user.phone = phone.strip() or None
        self.commit()
        self.db.refresh(preference)
        logger.info(
            "notification.preferences_updated",
            extra={"event": "notification.preferences_updated", "user_id": user_id},
        )
        return preference

    @staticmethod
    def notification_types() -> list[dict[str, str]]:
        return [
            {"key": item.name, "value": item.value, "label": item.name.replace("_", " ").title()}
            for item in NotificationType
        ]

    def deliver(self, notification_type: str, recipient_id: int, payload: dict[str, Any]) -> Notification | None:
        """Fan one notification out to the recipient's enabled channels."""
        recipient = self.db.query(User).filter(User.id == recipient_id).first()
        if recipient is None:
            logger.warning(
                "notification.recipient_missing",
                extra={"event": "notification.recipient_missing", "recipient_id": recipient_id},
            )
            return None

        channels = resolve_channels(self.preferences_for(recipient_id), notification_type)
        title = payload.get("title") or notification_type
        message = payload.get("message") or ""

        email_delivered = False
        if channels.email and recipient.email:
            email_delivered = self.email_sender.send_notification(
                recipient.email, title, message, payload.get("action_link")
            )

        sms_delivered = False
        if channels.sms and recipient.phone:
            sms_delivered = self.sms_sender.send_notification(recipient.phone, title, message)

        if not channels.in_app:
            logger.info(
                "notification.in_app_disabled",
                extra={"event": "notification.in_app_disabled", "recipient_id": recipient_id, "action": notification_type},
            )
            return None

        notification = Notification(
            recipient_id=recipient_id,
            sender_id=payload.get("sender_id"),
            type=notification_type,
            title=title,
            message=message,
            project_id=payload.get("project_id"),
            bid_id=payload.get("bid_id"),
            contract_id=payload.get("contract_id"),
            action_link=payload.get("action_link"),
            email_delivered=email_delivered,
            sms_delivered=sms_delivered,
            created_at=self._utcnow_naive(),
        )
        self.db.add(notification)
        self.commit()
        self.db.refresh(notification)
        logger.info(
            "notification.delivered",
            extra={
                "event": "notification.delivered",
                "recipient_id": recipient_id,
                "action": notification_type,
                "project_id": notification.project_id,
            },
        )
        return notification

    def list_for_user(self, user_id: int, unread_only: bool = False, limit: int = 50) -> list[Notification]:
        query = self.db.query(Notification).filter(Notification.recipient_id == user_id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    def unread_count(self, user_id: int) -> int:
        return (
            self.db.query(Notification)
            .filter(Notification.recipient_id == user_id, Notification.read.is_(False))
            .count()
        )

    def mark_read(self, notification_id: int, user_id: int) -> Notification:
        """Mark one notification read; repeating the call changes nothing."""
        notification = (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.recipient_id == user_id)
            .first()
        )
        if notification is None:
            raise NotFoundError("Notification not found")
        if notification.read:
            return notification

        notification.read = True
        notification.read_at = self._utcnow_naive()
        self.commit()
        self.db.refresh(notification)
        return notification

    def mark_all_read(self, user_id: int) -> int:
        """Mark every unread notification of the user read; returns how many changed."""
        result = self.db.execute(
            update(Notification)
            .where(Notification.recipient_id == user_id, Notification.read.is_(False))
            .values(read=True, read_at=self._utcnow_naive())
            .execution_options(synchronize_session=False)
        )
        self.commit()
        self.db.expire_all()
        return int(result.rowcount or 0)
