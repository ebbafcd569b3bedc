"""Tests for the Redis preference cache."""

from __future__ import annotations

import json

import pytest

from notifyhub.domain.entities import PreferencesUpdate, QuietHours
from notifyhub.domain.exceptions import NotificationValidationError, PreferenceStoreError
from notifyhub.infrastructure.cache import (
    NOTIFICATION_SETTINGS_KEY,
    PreferenceStore,
    preferences_key,
)
from tests.stubs import InMemoryRedis


@pytest.mark.asyncio
async def test_missing_preferences_fall_back_to_defaults(redis):
    store = PreferenceStore(redis)

    preferences = await store.get("u1")

    assert preferences.user_id == "u1"
    assert preferences.channels.in_app is True
    assert preferences.categories.marketing is False
    assert preferences.frequency == "realtime"


@pytest.mark.asyncio
async def test_set_merges_and_persists_with_ttl(redis):
    store = PreferenceStore(redis, ttl_seconds=120)
    await store.set("u1", PreferencesUpdate(channels={"email": False}))

    updated = await store.set(
        "u1",
        PreferencesUpdate(
            categories={"marketing": True},
            quiet_hours=QuietHours(enabled=True, start="23:00", end="07:00"),
        ),
    )

    assert updated.channels.email is False
    assert updated.categories.marketing is True
    assert redis.ttls[preferences_key("u1")] == 120

    stored = json.loads(redis.strings[preferences_key("u1")])
    assert stored["channels"]["email"] is False
    assert stored["quietHours"] == {
        "enabled": True,
        "start": "23:00",
        "end": "07:00",
        "timezone": "UTC",
    }
    assert (await store.get("u1")) == updated


@pytest.mark.asyncio
async def test_invalid_update_writes_nothing(redis):
    store = PreferenceStore(redis)

    with pytest.raises(NotificationValidationError):
        await store.set("u1", PreferencesUpdate(channels={"fax": True}))

    assert preferences_key("u1") not in redis.strings


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "cached",
    [
        "{broken",
        "[]",
        "42",
        json.dumps({"userId": "u1", "channels": ["email"]}),
        json.dumps({"userId": "u1", "quietHours": "on"}),
        json.dumps({"userId": "u1", "updatedAt": 1700000000}),
    ],
)
async def test_corrupt_entry_reads_as_defaults(redis, cached):
    redis.strings[preferences_key("u1")] = cached
    store = PreferenceStore(redis)

    assert (await store.get("u1")).channels.email is True


@pytest.mark.asyncio
async def test_unreachable_cache_reads_defaults_and_fails_writes():
    store = PreferenceStore(InMemoryRedis(fail=True))

    assert (await store.get("u1")).user_id == "u1"
    assert await store.delete("u1") is False
    with pytest.raises(PreferenceStoreError):
        await store.set("u1", PreferencesUpdate(frequency="daily"))


@pytest.mark.asyncio
async def test_delete_reports_whether_an_entry_existed(redis):
    store = PreferenceStore(redis)
    await store.set("u1", PreferencesUpdate(frequency="weekly"))

    assert await store.delete("u1") is True
    assert await store.delete("u1") is False


@pytest.mark.asyncio
async def test_notification_settings_are_cached(redis):
    store = PreferenceStore(redis)
    assert await store.get_notification_settings() is None

    cached = await store.cache_notification_settings()

    assert cached["availableChannels"] == ["email", "push", "sms", "inApp"]
    assert "security" in cached["availableCategories"]
    assert cached["frequencyOptions"] == ["realtime", "hourly", "daily", "weekly"]
    assert "userId" not in cached["defaults"]
    assert NOTIFICATION_SETTINGS_KEY in redis.strings
    assert await store.get_notification_settings() == cached
