"""Tests for preference entities and partial updates."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from notifyhub.domain.entities import (
    PreferencesUpdate,
    QuietHours,
    UserPreferences,
    deserialize_preferences,
    serialize_preferences,
)
from notifyhub.domain.exceptions import NotificationValidationError

NOW = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


def test_defaults():
    preferences = UserPreferences.defaults("u1", now=NOW)
    payload = serialize_preferences(preferences)

    assert payload["channels"] == {"email": True, "push": True, "sms": False, "inApp": True}
    assert payload["categories"] == {
        "marketing": False,
        "updates": True,
        "security": True,
        "social": True,
        "reminders": True,
    }
    assert payload["quietHours"] == {
        "enabled": False,
        "start": "22:00",
        "end": "08:00",
        "timezone": "UTC",
    }
    assert payload["frequency"] == "realtime"
    assert payload["updatedAt"] == "2024-05-01T10:00:00Z"


def test_update_merges_maps_key_by_key():
    existing = UserPreferences.defaults("u1", now=NOW)
    update = PreferencesUpdate(channels={"email": False}, categories={"marketing": True})

    updated = update.apply_to(existing, now=NOW)

    assert updated.channels.email is False
    assert updated.channels.push is True
    assert updated.channels.in_app is True
    assert updated.categories.marketing is True
    assert updated.categories.updates is True


def test_update_replaces_quiet_hours_wholesale():
    existing = UserPreferences.defaults("u1", now=NOW)
    window = QuietHours(enabled=True, start="23:30", end="06:15", timezone="Europe/Madrid")

    updated = PreferencesUpdate(quiet_hours=window).apply_to(existing, now=NOW)

    assert updated.quiet_hours == window


@pytest.mark.parametrize(
    "update",
    [
        PreferencesUpdate(channels={"fax": True}),
        PreferencesUpdate(categories={"news": True}),
        PreferencesUpdate(frequency="monthly"),
        PreferencesUpdate(quiet_hours=QuietHours(enabled=True, start="25:00")),
        PreferencesUpdate(quiet_hours=QuietHours(enabled=True, timezone="Mars/Olympus")),
    ],
)
def test_invalid_updates_are_rejected(update):
    with pytest.raises(NotificationValidationError):
        update.apply_to(UserPreferences.defaults("u1"))


def test_deserialize_tolerates_missing_sections():
    preferences = deserialize_preferences({"userId": "u1", "channels": {"push": False}})

    assert preferences.channels.push is False
    assert preferences.channels.email is True
    assert preferences.quiet_hours is None
    assert preferences.frequency == "realtime"
