"""Per-user realtime channel backed by Redis pub/sub.

Each user owns exactly one channel, ``realtime:user:<id>``; the websocket
gateway subscribes on the user's behalf. Nothing is broadcast.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import redis

from skillswap.core.config import Config, get_config

logger = logging.getLogger(__name__)


def user_channel(user_id: int) -> str:
    return f"realtime:user:{user_id}"


class RealtimePublisher:
    def __init__(self, config: Config | None = None, client: redis.Redis | None = None):
        self.config = config or get_config()
        self.client = client or redis.Redis.from_url(
            self.config.REDIS_URL,
            socket_timeout=self.config.SIDE_EFFECT_TIMEOUT_SECONDS,
            socket_connect_timeout=self.config.SIDE_EFFECT_TIMEOUT_SECONDS,
        )

    def publish(self, recipient_id: int, event: str, payload: dict[str, Any]) -> int:
        """Publish one event to one user; returns the subscriber count."""
        message = json.dumps({"event": event, "payload": payload}, default=str)
        delivered = int(self.client.publish(user_channel(recipient_id), message))
        logger.info(
            "realtime.published",
            extra={"event": "realtime.published", "recipient_id": recipient_id, "action": event},
        )
        return delivered
