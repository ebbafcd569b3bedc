"""Redis backed cache of per-user delivery preferences."""

from __future__ import annotations

import json
import logging
from typing import Any, Final

from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import RedisError

from notifyhub.domain.entities import (
    CHANNEL_KEYS,
    FREQUENCIES,
    NOTIFICATION_CATEGORIES,
    PreferencesUpdate,
    UserPreferences,
    deserialize_preferences,
    serialize_preferences,
)
from notifyhub.domain.exceptions import PreferenceStoreError
from notifyhub.utils import isoformat, utc_now

logger = logging.getLogger(__name__)

PREFERENCES_KEY_PREFIX: Final[str] = "user:preferences:"
NOTIFICATION_SETTINGS_KEY: Final[str] = "notification:settings:global"
DEFAULT_PREFERENCES_TTL: Final[int] = 60 * 60


def preferences_key(user_id: str) -> str:
    return f"{PREFERENCES_KEY_PREFIX}{user_id}"


def _default_preferences_payload() -> dict[str, Any]:
    payload = serialize_preferences(UserPreferences.defaults(""))
    payload.pop("userId", None)
    payload.pop("updatedAt", None)
    return payload


class PreferenceStore:
    """Cache-through store of :class:`UserPreferences`.

    Reads never fail: a missing entry or an unreachable cache yields the
    default preferences. Writes raise :class:`PreferenceStoreError`.
    """

    def __init__(self, redis: AsyncRedis, *, ttl_seconds: int = DEFAULT_PREFERENCES_TTL) -> None:
        self._redis = redis
        self._ttl_seconds = ttl_seconds

    async def get(self, user_id: str) -> UserPreferences:
        """Return stored preferences for ``user_id`` or the defaults."""

        try:
            cached = await self._redis.get(preferences_key(user_id))
            if cached:
                return deserialize_preferences(json.loads(cached))
        except (RedisError, ValueError, KeyError, TypeError) as exc:
            logger.error("Error fetching preferences for user %s: %s", user_id, exc)
        return UserPreferences.defaults(user_id)

    async def set(self, user_id: str, update: PreferencesUpdate) -> UserPreferences:
        """Merge ``update`` into the stored preferences and persist the result.

        Validation problems in ``update`` propagate as
        :class:`~notifyhub.domain.exceptions.NotificationValidationError`
        before anything is written.
        """

        existing = await self.get(user_id)
        updated = update.apply_to(existing)
        try:
            await self._redis.set(
                preferences_key(user_id),
                json.dumps(serialize_preferences(updated)),
                ex=self._ttl_seconds,
            )
        except RedisError as exc:
            logger.error("Error setting preferences for user %s: %s", user_id, exc)
            raise PreferenceStoreError("Failed to save user preferences") from exc

        logger.info("Updated preferences for user %s", user_id)
        return updated

    async def delete(self, user_id: str) -> bool:
        """Drop stored preferences; return ``True`` when an entry existed."""

        try:
            removed = await self._redis.delete(preferences_key(user_id))
        except RedisError as exc:
            logger.error("Error deleting preferences for user %s: %s", user_id, exc)
            return False
        return removed == 1

    async def cache_notification_settings(self) -> dict[str, Any]:
        """Write the system-wide channel, category and frequency options."""

        settings = {
            "availableChannels": list(CHANNEL_KEYS),
            "availableCategories": list(NOTIFICATION_CATEGORIES),
            "defaults": _default_preferences_payload(),
            "frequencyOptions": list(FREQUENCIES),
            "cachedAt": isoformat(utc_now()),
        }
        try:
            await self._redis.set(NOTIFICATION_SETTINGS_KEY, json.dumps(settings))
        except RedisError as exc:
            logger.error("Error caching notification settings: %s", exc)
            raise PreferenceStoreError("Failed to cache notification settings") from exc

        logger.info("Notification settings cached successfully")
        return settings

    async def get_notification_settings(self) -> dict[str, Any] | None:
        try:
            cached = await self._redis.get(NOTIFICATION_SETTINGS_KEY)
            return json.loads(cached) if cached else None
        except (RedisError, ValueError) as exc:
            logger.error("Error fetching notification settings: %s", exc)
            return None


__all__ = [
    "DEFAULT_PREFERENCES_TTL",
    "NOTIFICATION_SETTINGS_KEY",
    "PREFERENCES_KEY_PREFIX",
    "PreferenceStore",
    "preferences_key",
]
