"""Typed side effects planned by transitions and executed after commit.

Every effect names exactly one recipient user id; there is no broadcast.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

NOTIFY = "notify"
REALTIME = "realtime"
MESSAGE = "message"


@dataclass(frozen=True)
class SideEffect:
    kind: str
    event: str
    recipient_id: int
    payload: dict[str, Any] = field(default_factory=dict)


def notify(
    recipient_id: int,
    notification_type: str,
    title: str,
    message: str,
    sender_id: int | None = None,
    project_id: int | None = None,
    bid_id: int | None = None,
    contract_id: int | None = None,
    action_link: str | None = None,
) -> SideEffect:
    return SideEffect(
        kind=NOTIFY,
        event=notification_type,
        recipient_id=recipient_id,
        payload={
            "title": title,
            "message": message,
            "sender_id": sender_id,
            "project_id": project_id,
            "bid_id": bid_id,
            "contract_id": contract_id,
            "action_link": action_link,
        },
    )


def realtime(recipient_id: int, event: str, **payload: Any) -> SideEffect:
    return SideEffect(kind=REALTIME, event=event, recipient_id=recipient_id, payload=payload)


def message(
    sender_id: int,
    recipient_id: int,
    content: str,
    project_id: int | None = None,
    is_system: bool = False,
) -> SideEffect:
    return SideEffect(
        kind=MESSAGE,
        event="system_message",
        recipient_id=recipient_id,
        payload={
            "sender_id": sender_id,
            "content": content,
            "project_id": project_id,
            "is_system": is_system,
        },
    )
