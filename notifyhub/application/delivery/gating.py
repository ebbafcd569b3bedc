"""Preference gates deciding whether a notification may be delivered."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Final

from notifyhub.domain.entities import SECURITY_CATEGORY, Notification, UserPreferences
from notifyhub.utils import minutes_since_midnight, parse_clock, resolve_timezone, utc_now

logger = logging.getLogger(__name__)

CHANNEL_DISABLED: Final[str] = "channel_disabled"
CATEGORY_DISABLED: Final[str] = "category_disabled"
QUIET_HOURS: Final[str] = "quiet_hours"


def is_channel_enabled(preferences: UserPreferences, notification_type: str) -> bool:
    return preferences.channels.allows(notification_type)


def is_category_enabled(preferences: UserPreferences, category: str) -> bool:
    return preferences.categories.allows(category)


def is_within_quiet_window(start: int, end: int, current: int) -> bool:
    """Return whether ``current`` lies in ``[start, end)``, all in minutes.

    A window whose start is after its end wraps past midnight.
    """

    if start > end:
        return current >= start or current < end
    return start <= current < end


def is_in_quiet_hours(preferences: UserPreferences, now: datetime | None = None) -> bool:
    """Return whether ``now`` falls inside the user's enabled quiet hours."""

    quiet_hours = preferences.quiet_hours
    if quiet_hours is None or not quiet_hours.enabled:
        return False

    try:
        tz = resolve_timezone(quiet_hours.timezone)
        start = parse_clock(quiet_hours.start)
        end = parse_clock(quiet_hours.end)
    except ValueError as exc:
        logger.warning(
            "Ignoring invalid quiet hours for user %s: %s", preferences.user_id, exc
        )
        return False

    current = minutes_since_midnight(now or utc_now(), tz)
    return is_within_quiet_window(start, end, current)


def evaluate_gates(
    notification: Notification,
    preferences: UserPreferences,
    now: datetime | None = None,
) -> str | None:
    """Return the reason delivery is suppressed, or ``None`` to deliver.

    Gates run in order: channel, category, quiet hours. Security
    notifications are never held back by quiet hours.
    """

    if not is_channel_enabled(preferences, notification.type):
        return CHANNEL_DISABLED
    if not is_category_enabled(preferences, notification.category):
        return CATEGORY_DISABLED
    if notification.category != SECURITY_CATEGORY and is_in_quiet_hours(preferences, now):
        return QUIET_HOURS
    return None


__all__ = [
    "CATEGORY_DISABLED",
    "CHANNEL_DISABLED",
    "QUIET_HOURS",
    "evaluate_gates",
    "is_category_enabled",
    "is_channel_enabled",
    "is_in_quiet_hours",
    "is_within_quiet_window",
]
