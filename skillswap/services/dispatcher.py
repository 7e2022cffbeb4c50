"""Post-commit hand-off of side effects.

Services call ``dispatch`` only after their transaction has committed. Any
failure here is logged and dropped: a side effect can never change the
outcome of the transition that planned it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from skillswap.core.config import get_config
from skillswap.orchestration.effects import MESSAGE, NOTIFY, REALTIME, SideEffect
from skillswap.tasks.notification_tasks import deliver_notification, post_message, push_realtime_event

logger = logging.getLogger(__name__)


class SideEffectDispatcher:
    """Base dispatcher; subclasses decide how each kind is delivered.

    With ``stop_on_failure`` set, the first failed effect ends the batch and
    the rest are logged as skipped.
    """

    stop_on_failure = False

    def notify(self, event: str, payload: dict[str, Any]) -> None:
        raise NotImplementedError

    def push_realtime(self, event: str, payload: dict[str, Any]) -> None:
        raise NotImplementedError

    def send_message(self, payload: dict[str, Any]) -> None:
        raise NotImplementedError

    def dispatch(self, effects: Iterable[SideEffect]) -> None:
        pending = list(effects)
        for index, effect in enumerate(pending):
            payload = {**effect.payload, "recipient_id": effect.recipient_id}
            try:
                if effect.kind == NOTIFY:
                    self.notify(effect.event, payload)
                elif effect.kind == REALTIME:
                    self.push_realtime(effect.event, payload)
                elif effect.kind == MESSAGE:
                    self.send_message(payload)
                else:
                    logger.error(
                        "side_effect.unknown_kind",
                        extra={"event": "side_effect.unknown_kind", "action": effect.kind},
                    )
            except Exception:
                logger.exception(
                    "side_effect.dispatch_failed",
                    extra={
                        "event": "side_effect.dispatch_failed",
                        "action": effect.event,
                        "channel": effect.kind,
                        "recipient_id": effect.recipient_id,
                    },
                )
                if self.stop_on_failure:
                    self._skip(pending[index + 1:])
                    return

    @staticmethod
    def _skip(effects: list[SideEffect]) -> None:
        for effect in effects:
            logger.warning(
                "side_effect.dispatch_skipped",
                extra={
                    "event": "side_effect.dispatch_skipped",
                    "action": effect.event,
                    "channel": effect.kind,
                    "recipient_id": effect.recipient_id,
                },
            )


class CeleryDispatcher(SideEffectDispatcher):
    """Enqueue each effect as a Celery task that expires if not run in time.

    A failed enqueue means the broker is unreachable, so the remaining
    effects are skipped instead of each waiting out its own connect timeout.
    """

    stop_on_failure = True

    def __init__(self, timeout_seconds: float | None = None) -> None:
        self.timeout_seconds = timeout_seconds or get_config().SIDE_EFFECT_TIMEOUT_SECONDS

    def _enqueue(self, task, kwargs: dict[str, Any]) -> None:
        task.apply_async(kwargs=kwargs, expires=self.timeout_seconds, retry=False)

    def notify(self, event: str, payload: dict[str, Any]) -> None:
        data = dict(payload)
        recipient_id = data.pop("recipient_id")
        self._enqueue(
            deliver_notification,
            {"notification_type": event, "recipient_id": recipient_id, "payload": data},
        )

    def push_realtime(self, event: str, payload: dict[str, Any]) -> None:
        data = dict(payload)
        recipient_id = data.pop("recipient_id")
        self._enqueue(push_realtime_event, {"event": event, "recipient_id": recipient_id, "payload": data})

    def send_message(self, payload: dict[str, Any]) -> None:
        self._enqueue(
            post_message,
            {
                "sender_id": payload["sender_id"],
                "recipient_id": payload["recipient_id"],
                "content": payload["content"],
                "project_id": payload.get("project_id"),
                "is_system": bool(payload.get("is_system")),
            },
        )


class RecordingDispatcher(SideEffectDispatcher):
    """Keeps dispatched effects in memory; used by tests and dry runs."""

    def __init__(self) -> None:
        self.notifications: list[tuple[str, dict[str, Any]]] = []
        self.realtime: list[tuple[str, dict[str, Any]]] = []
        self.messages: list[dict[str, Any]] = []

    def notify(self, event: str, payload: dict[str, Any]) -> None:
        self.notifications.append((event, payload))

    def push_realtime(self, event: str, payload: dict[str, Any]) -> None:
        self.realtime.append((event, payload))

    def send_message(self, payload: dict[str, Any]) -> None:
        self.messages.append(payload)

    def notified(self, event: str) -> list[int]:
        return [payload["recipient_id"] for name, payload in self.notifications if name == event]

    def pushed(self, event: str) -> list[int]:
        return [payload["recipient_id"] for name, payload in self.realtime if name == event]


def get_dispatcher() -> SideEffectDispatcher:
    return CeleryDispatcher()
