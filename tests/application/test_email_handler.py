"""Tests for the SendGrid backed email delivery handler."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from notifyhub.application.delivery import build_email_handler
from notifyhub.domain.entities import Notification, UserPreferences
from notifyhub.domain.exceptions import NotificationDeliveryError


class FakeSender:
    def __init__(self, *, result: bool = True) -> None:
        self.result = result
        self.sent: list[tuple[str, str, str]] = []

    def send(self, subject: str, html_content: str, recipient: str) -> bool:
        self.sent.append((subject, html_content, recipient))
        return self.result


def _notification(metadata=None) -> Notification:
    return Notification(
        id="notif_1",
        user_id="u1",
        type="email",
        title="Password changed",
        body="Your password was changed.",
        category="security",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        metadata=metadata,
    )


@pytest.mark.asyncio
async def test_email_is_sent_to_the_metadata_address():
    sender = FakeSender()
    handler = build_email_handler(sender)

    await handler(_notification({"email": "ada@example.com"}), UserPreferences.defaults("u1"))

    [(subject, html, recipient)] = sender.sent
    assert subject == "Password changed"
    assert recipient == "ada@example.com"
    assert "<p>Your password was changed.</p>" in html


@pytest.mark.asyncio
async def test_missing_address_skips_delivery():
    sender = FakeSender()

    await build_email_handler(sender)(_notification(), UserPreferences.defaults("u1"))

    assert sender.sent == []


@pytest.mark.asyncio
async def test_rejected_email_raises():
    handler = build_email_handler(FakeSender(result=False))

    with pytest.raises(NotificationDeliveryError):
        await handler(_notification({"email": "ada@example.com"}), UserPreferences.defaults("u1"))
