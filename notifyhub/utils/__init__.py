"""Utility helpers for reusable functionality."""

from .datetime import (
    epoch_millis,
    isoformat,
    minutes_since_midnight,
    parse_clock,
    parse_datetime,
    resolve_timezone,
    utc_now,
)
from .identifiers import generate_notification_id, to_base36

__all__ = [
    "epoch_millis",
    "generate_notification_id",
    "isoformat",
    "minutes_since_midnight",
    "parse_clock",
    "parse_datetime",
    "resolve_timezone",
    "to_base36",
    "utc_now",
]
