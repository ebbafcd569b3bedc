"""Identifier generation helpers."""

from __future__ import annotations

import secrets
import string
import time

_BASE36_ALPHABET = string.digits + string.ascii_lowercase
_RANDOM_SUFFIX_LENGTH = 8
NOTIFICATION_ID_PREFIX = "notif"


def to_base36(value: int) -> str:
    """Return the lowercase base-36 representation of a non-negative ``value``."""

    if value < 0:
        raise ValueError("Only non-negative integers can be encoded")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_notification_id() -> str:
    """Return a collision-resistant id such as ``notif_lz3k9a1b_4f9x0q2m``.

    The millisecond timestamp prefix keeps ids roughly sortable by creation
    time; the random suffix separates ids generated within the same
    millisecond.
    """

    timestamp = to_base36(time.time_ns() // 1_000_000)
    suffix = "".join(
        secrets.choice(_BASE36_ALPHABET) for _ in range(_RANDOM_SUFFIX_LENGTH)
    )
    return f"{NOTIFICATION_ID_PREFIX}_{timestamp}_{suffix}"


__all__ = ["NOTIFICATION_ID_PREFIX", "generate_notification_id", "to_base36"]
