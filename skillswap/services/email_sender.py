"""SMTP email sender service."""

from __future__ import annotations

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from skillswap.core.config import Config, get_config

logger = logging.getLogger(__name__)


class EmailSender:
    """Sends notification emails via SMTP."""

    def __init__(self, config: Config | None = None):
        self.config = config or get_config()

    def send_email(self, to_email: str, subject: str, body: str, is_html: bool = False) -> bool:
        if not self.config.SMTP_SERVER:
            logger.warning("email.smtp_not_configured", extra={"event": "email.smtp_not_configured"})
            return False

        try:
            message = MIMEMultipart("alternative")
            message["Subject"] = subject
            message["From"] = self.config.SMTP_USERNAME or "noreply@skillswap.app"
            message["To"] = to_email
            message.attach(MIMEText(body, "html" if is_html else "plain"))

            with smtplib.SMTP(
                self.config.SMTP_SERVER,
                self.config.SMTP_PORT,
                timeout=self.config.SIDE_EFFECT_TIMEOUT_SECONDS,
            ) as server:
                server.starttls()
                if self.config.SMTP_USERNAME:
                    server.login(self.config.SMTP_USERNAME, self.config.SMTP_PASSWORD or "")
                server.send_message(message)
            return True
        except (smtplib.SMTPException, OSError):
            logger.exception("email.send_failed", extra={"event": "email.send_failed", "channel": "email"})
            return False

    def send_notification(self, to_email: str, title: str, message: str, action_link: str | None = None) -> bool:
        body = [f"<h2>{html.escape(title)}</h2>", f"<p>{html.escape(message)}</p>"]
        if action_link:
            href = html.escape(f"{self.config.FRONTEND_URL}{action_link}", quote=True)
            body.append(f'<p><a href="{href}">View on SkillSwap</a></p>')
        return self.send_email(to_email, title, "\n".join(body), is_html=True)
