"""Tests for the clock and timezone helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from notifyhub.utils import (
    epoch_millis,
    isoformat,
    minutes_since_midnight,
    parse_clock,
    parse_datetime,
    resolve_timezone,
)


@pytest.mark.parametrize(
    ("value", "minutes"),
    [("00:00", 0), ("8:05", 485), ("22:00", 1320), ("23:59", 1439)],
)
def test_parse_clock(value, minutes):
    assert parse_clock(value) == minutes


@pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "", "1200"])
def test_parse_clock_rejects_invalid_values(value):
    with pytest.raises(ValueError):
        parse_clock(value)


def test_resolve_timezone_accepts_names_and_offsets():
    assert resolve_timezone("UTC") is timezone.utc
    assert resolve_timezone("UTC+05:30").utcoffset(None) == timedelta(hours=5, minutes=30)
    moment = datetime(2024, 1, 15, 3, 30, tzinfo=timezone.utc)
    assert minutes_since_midnight(moment, resolve_timezone("America/New_York")) == 22 * 60 + 30


def test_resolve_timezone_rejects_unknown_names():
    with pytest.raises(ValueError):
        resolve_timezone("Nowhere/Special")


def test_isoformat_round_trip_and_epoch_millis():
    moment = datetime(2024, 1, 1, 0, 0, 0, 500000, tzinfo=timezone.utc)
    assert parse_datetime(isoformat(moment)) == moment
    assert parse_datetime("2024-01-01T00:00:00") == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert epoch_millis(moment) == 1704067200500
