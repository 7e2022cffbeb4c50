"""SMS delivery through an HTTP gateway."""

from __future__ import annotations

import logging

import requests

from skillswap.core.config import Config, get_config

logger = logging.getLogger(__name__)

# Gateways reject bodies above a single concatenated segment set.
MAX_SMS_LENGTH = 320


class SmsSender:
    def __init__(self, config: Config | None = None, session: requests.Session | None = None):
        self.config = config or get_config()
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.config.SMS_GATEWAY_URL)

    def send_sms(self, to_number: str, body: str) -> bool:
        if not self.configured:
            logger.info("sms.gateway_not_configured", extra={"event": "sms.gateway_not_configured", "channel": "sms"})
            return False

        headers = {}
        if self.config.SMS_API_KEY:
            headers["Authorization"] = f"Bearer {self.config.SMS_API_KEY}"
        try:
            response = self.session.post(
                self.config.SMS_GATEWAY_URL,
                json={"to": to_number, "from": self.config.SMS_SENDER, "body": body[:MAX_SMS_LENGTH]},
                headers=headers,
                timeout=self.config.SIDE_EFFECT_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            return True
        except requests.RequestException:
            logger.exception("sms.send_failed", extra={"event": "sms.send_failed", "channel": "sms"})
            return False

    def send_notification(self, to_number: str, title: str, message: str) -> bool:
        return self.send_sms(to_number, f"SkillSwap: {title} - {message}")
