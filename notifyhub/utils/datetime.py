"""Helpers for working with timezone-aware datetimes."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_OFFSET_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)
_CLOCK_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?P<hours>[01]?\d|2[0-3]):(?P<minutes>[0-5]\d)$"
)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(tz=timezone.utc)


def epoch_millis(value: datetime | None = None) -> int:
    """Return ``value`` (default: now) as milliseconds since the Unix epoch."""

    moment = value or utc_now()
    return int(moment.timestamp() * 1000)


def isoformat(value: datetime | None) -> str | None:
    """Serialize ``value`` as an ISO-8601 string in UTC."""

    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 string produced by :func:`isoformat`.

    Naive values are interpreted as UTC so every datetime leaving this helper
    is timezone aware.
    """

    if not value:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO-8601 string, got {type(value).__name__}")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def resolve_timezone(tz_name: str) -> tzinfo:
    """Resolve ``tz_name`` into a ``tzinfo`` instance.

    IANA names (``Europe/Madrid``) and fixed offsets (``UTC+02:00``,
    ``GMT-5``) are accepted. Unknown names raise ``ValueError``.
    """

    name = (tz_name or "").strip()
    if not name or name.upper() in {"UTC", "GMT", "Z"}:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        match = _OFFSET_PATTERN.match(name)
        if match:
            sign = -1 if match.group("sign") == "-" else 1
            hours = int(match.group("hours"))
            minutes = int(match.group("minutes") or 0)
            offset = timedelta(hours=hours, minutes=minutes)
            return timezone(sign * offset)
    msg = f"Unknown timezone: {tz_name!r}"
    raise ValueError(msg)


def parse_clock(value: str) -> int:
    """Return the minutes since midnight represented by an ``HH:MM`` string."""

    match = _CLOCK_PATTERN.match(value or "")
    if not match:
        msg = f"Clock value must use the HH:MM format, got {value!r}"
        raise ValueError(msg)
    return int(match.group("hours")) * 60 + int(match.group("minutes"))


def minutes_since_midnight(moment: datetime, tz: tzinfo) -> int:
    """Return the wall-clock minute of ``moment`` once expressed in ``tz``."""

    localized = moment.astimezone(tz)
    return localized.hour * 60 + localized.minute


__all__ = [
    "epoch_millis",
    "isoformat",
    "minutes_since_midnight",
    "parse_clock",
    "parse_datetime",
    "resolve_timezone",
    "utc_now",
]
