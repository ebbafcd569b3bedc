"""Tests for the preference gates applied before delivery."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from notifyhub.application.delivery import gating
from notifyhub.application.delivery.gating import (
    CATEGORY_DISABLED,
    CHANNEL_DISABLED,
    QUIET_HOURS,
    evaluate_gates,
    is_in_quiet_hours,
    is_within_quiet_window,
)
from notifyhub.domain.entities import (
    CategoryPreferences,
    ChannelPreferences,
    Notification,
    QuietHours,
    UserPreferences,
)

NIGHT = QuietHours(enabled=True, start="22:00", end="08:00")


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 6, 3, hour, minute, tzinfo=timezone.utc)


def _notification(type_: str = "in-app", category: str = "updates") -> Notification:
    return Notification(
        id="notif_1",
        user_id="u1",
        type=type_,
        title="Title",
        body="Body",
        category=category,
        created_at=_at(12),
    )


def _preferences(**overrides) -> UserPreferences:
    return UserPreferences(user_id="u1", **overrides)


def _brute_force(start: int, end: int, current: int) -> bool:
    minute = start
    while minute != end:
        if minute == current:
            return True
        minute = (minute + 1) % 1440
    return False


@pytest.mark.parametrize("start", [0, 60, 480, 1320, 1439])
@pytest.mark.parametrize("end", [0, 60, 480, 1320, 1439])
def test_quiet_window_matches_minute_walk(start, end):
    for current in range(0, 1440, 17):
        assert is_within_quiet_window(start, end, current) == _brute_force(start, end, current)


def test_wrapping_window_boundaries():
    assert is_within_quiet_window(1320, 480, 1320) is True
    assert is_within_quiet_window(1320, 480, 0) is True
    assert is_within_quiet_window(1320, 480, 479) is True
    assert is_within_quiet_window(1320, 480, 480) is False
    assert is_within_quiet_window(1320, 480, 1319) is False


def test_quiet_hours_disabled_or_missing():
    assert is_in_quiet_hours(_preferences(quiet_hours=None), _at(23)) is False
    disabled = QuietHours(enabled=False, start="22:00", end="08:00")
    assert is_in_quiet_hours(_preferences(quiet_hours=disabled), _at(23)) is False


def test_quiet_hours_use_the_user_timezone():
    preferences = _preferences(
        quiet_hours=QuietHours(
            enabled=True, start="22:00", end="08:00", timezone="America/New_York"
        )
    )

    # 03:30 UTC is 23:30 in New York during daylight saving time.
    assert is_in_quiet_hours(preferences, _at(3, 30)) is True
    # 14:00 UTC is 10:00 in New York.
    assert is_in_quiet_hours(preferences, _at(14)) is False


def test_invalid_quiet_hours_are_ignored(caplog):
    preferences = _preferences(
        quiet_hours=QuietHours(enabled=True, start="22:00", end="08:00", timezone="Mars/Base")
    )

    with caplog.at_level("WARNING", logger=gating.logger.name):
        assert is_in_quiet_hours(preferences, _at(23)) is False

    assert "Ignoring invalid quiet hours" in caplog.text


def test_security_notifications_bypass_quiet_hours():
    preferences = _preferences(quiet_hours=NIGHT)

    assert evaluate_gates(_notification(category="security"), preferences, _at(23)) is None
    assert evaluate_gates(_notification(category="social"), preferences, _at(23)) == QUIET_HOURS
    assert evaluate_gates(_notification(category="social"), preferences, _at(12)) is None


def test_category_gate_applies_at_any_time():
    preferences = _preferences(
        categories=CategoryPreferences(updates=False), quiet_hours=NIGHT
    )

    for hour in (3, 12, 23):
        assert evaluate_gates(_notification(), preferences, _at(hour)) == CATEGORY_DISABLED


def test_channel_gate_runs_first():
    preferences = _preferences(
        channels=ChannelPreferences(push=False),
        categories=CategoryPreferences(updates=False),
    )

    assert evaluate_gates(_notification("push"), preferences, _at(12)) == CHANNEL_DISABLED
    assert evaluate_gates(_notification("email"), preferences, _at(12)) == CATEGORY_DISABLED


def test_security_category_can_still_be_disabled():
    preferences = _preferences(categories=CategoryPreferences(security=False))

    assert (
        evaluate_gates(_notification(category="security"), preferences, _at(12))
        == CATEGORY_DISABLED
    )
