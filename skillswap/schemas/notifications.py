"""Notification response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict

from skillswap.schemas.common import CamelModel


class NotificationResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    recipient_id: int
    sender_id: int | None = None
    type: str
    title: str
    message: str
    project_id: int | None = None
    bid_id: int | None = None
    contract_id: int | None = None
    action_link: str | None = None
    read: bool
    read_at: datetime | None = None
    created_at: datetime | None = None


class NotificationPreferencesRequest(CamelModel):
    in_app_enabled: bool | None = None
    email_enabled: bool | None = None
    sms_enabled: bool | None = None
    disabled_in_app_types: list[str] | None = None
    disabled_email_types: list[str] | None = None
    enabled_sms_types: list[str] | None = None
    phone: str | None = None
