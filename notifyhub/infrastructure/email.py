"""Send notification emails through the SendGrid REST API."""

from __future__ import annotations

import json
import logging
from html import escape
from typing import Any

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from notifyhub.config import Settings

logger = logging.getLogger(__name__)


def _format_error(item: Any) -> str | None:
    if not isinstance(item, dict) or not item.get("message"):
        return None
    field = item.get("field")
    return f"{item['message']} (field: {field})" if field else str(item["message"])


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Summarise a SendGrid error body, which may be raw bytes, text or JSON."""

    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        text = body.strip()
        if not text:
            return None
        try:
            body = json.loads(text)
        except ValueError:
            return text

    if isinstance(body, list):
        return "; ".join(str(item) for item in body) or None
    if not isinstance(body, dict):
        return None

    messages = [m for m in map(_format_error, body.get("errors") or []) if m]
    return "; ".join(messages) if messages else json.dumps(body, default=str)


def _log_sendgrid_failure(status_code: Any, body: Any) -> None:
    details = _extract_sendgrid_error_details(body) or "no details"
    if status_code:
        logger.error("SendGrid request failed with status %s: %s", status_code, details)
    else:
        logger.error("SendGrid request failed: %s", details)


class SendGridEmailSender:
    """Blocking SendGrid client bound to one sender address."""

    def __init__(self, api_key: str, sender: str, *, client: Any | None = None) -> None:
        self._sender = sender
        self._client = client or SendGridAPIClient(api_key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SendGridEmailSender | None":
        """Return a sender, or ``None`` when SendGrid is not configured."""

        if not settings.email_enabled:
            logger.info("SendGrid configuration incomplete; email delivery disabled")
            return None
        return cls(settings.sendgrid_api_key, settings.sendgrid_sender)

    def send(self, subject: str, html_content: str, recipient: str) -> bool:
        """Send one email; return ``True`` on a 2xx response."""

        message = Mail(
            from_email=self._sender,
            to_emails=recipient,
            subject=subject,
            html_content=html_content,
        )
        try:
            response = self._client.send(message)
        except Exception as exc:  # pragma: no cover - network failures depend on environment
            _log_sendgrid_failure(getattr(exc, "status_code", None), getattr(exc, "body", None))
            return False

        status_code = getattr(response, "status_code", None)
        if not isinstance(status_code, int) or not 200 <= status_code < 300:
            _log_sendgrid_failure(status_code, getattr(response, "body", None))
            return False
        return True


def render_notification_html(title: str, body: str) -> str:
    """Return a minimal HTML rendering of a notification."""

    paragraphs = "".join(f"<p>{escape(line)}</p>" for line in body.splitlines() if line.strip())
    return f"<h2>{escape(title)}</h2>{paragraphs or '<p></p>'}"


__all__ = ["SendGridEmailSender", "render_notification_html"]
