"""Bounded per-user notification history kept in Redis lists."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Final

from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import RedisError

from notifyhub.domain.entities import (
    Notification,
    deserialize_notification,
    serialize_notification,
)
from notifyhub.domain.exceptions import HistoryStoreError, MessageParseError

logger = logging.getLogger(__name__)

HISTORY_KEY_PREFIX: Final[str] = "notifications:user:"
DEFAULT_MAX_ENTRIES: Final[int] = 100
DEFAULT_HISTORY_TTL: Final[int] = 7 * 24 * 60 * 60
DEFAULT_PAGE_SIZE: Final[int] = 20


def history_key(user_id: str) -> str:
    return f"{HISTORY_KEY_PREFIX}{user_id}"


def _decode(item: str) -> Notification | None:
    try:
        return deserialize_notification(json.loads(item))
    except (MessageParseError, ValueError) as exc:
        logger.warning("Skipping unreadable history entry: %s", exc)
        return None


class HistoryStore:
    """Newest-first notification log, capped at ``max_entries`` per user.

    Every append refreshes the key's TTL. Reads degrade to empty results when
    Redis is unavailable; mutations raise :class:`HistoryStoreError`.
    """

    def __init__(
        self,
        redis: AsyncRedis,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: int = DEFAULT_HISTORY_TTL,
        default_page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._redis = redis
        self._max_entries = max_entries
        self._ttl_seconds = ttl_seconds
        self._default_page_size = default_page_size

    @property
    def max_entries(self) -> int:
        return self._max_entries

    async def append(self, notification: Notification) -> None:
        """Insert ``notification`` at the head of its user's history."""

        key = history_key(notification.user_id)
        try:
            await self._redis.lpush(key, json.dumps(serialize_notification(notification)))
            await self._redis.ltrim(key, 0, self._max_entries - 1)
            await self._redis.expire(key, self._ttl_seconds)
        except RedisError as exc:
            logger.error(
                "Error storing notification for user %s: %s", notification.user_id, exc
            )
            raise HistoryStoreError("Failed to store notification") from exc

    async def range(
        self, user_id: str, *, offset: int = 0, limit: int | None = None
    ) -> tuple[list[Notification], int]:
        """Return a page of the history together with the total entry count."""

        if limit is None:
            limit = self._default_page_size
        limit = max(0, min(limit, self._max_entries))
        offset = max(0, offset)
        if limit == 0:
            return [], await self._length(user_id)

        key = history_key(user_id)
        try:
            total = await self._redis.llen(key)
            items = await self._redis.lrange(key, offset, offset + limit - 1)
        except RedisError as exc:
            logger.error("Error fetching notification history for user %s: %s", user_id, exc)
            return [], 0

        notifications = [n for n in (_decode(item) for item in items) if n is not None]
        return notifications, total

    async def mark_read(
        self, user_id: str, notification_id: str, *, read_at: datetime | None = None
    ) -> bool:
        """Set ``readAt`` on the matching entry; return whether it was found.

        Marking an already read entry keeps its original ``readAt``.
        """

        key = history_key(user_id)
        try:
            items = await self._redis.lrange(key, 0, -1)
            for index, item in enumerate(items):
                notification = _decode(item)
                if notification is None or notification.id != notification_id:
                    continue
                if not notification.is_read:
                    updated = notification.mark_read(read_at)
                    await self._redis.lset(
                        key, index, json.dumps(serialize_notification(updated))
                    )
                return True
        except RedisError as exc:
            logger.error("Error marking notification %s as read: %s", notification_id, exc)
            raise HistoryStoreError("Failed to mark notification as read") from exc
        return False

    async def remove(self, user_id: str, notification_id: str) -> bool:
        """Delete the first entry with ``notification_id``."""

        key = history_key(user_id)
        try:
            items = await self._redis.lrange(key, 0, -1)
            for item in items:
                notification = _decode(item)
                if notification is not None and notification.id == notification_id:
                    await self._redis.lrem(key, 1, item)
                    return True
        except RedisError as exc:
            logger.error("Error deleting notification %s: %s", notification_id, exc)
            raise HistoryStoreError("Failed to delete notification") from exc
        return False

    async def unread_count(self, user_id: str) -> int:
        try:
            items = await self._redis.lrange(history_key(user_id), 0, -1)
        except RedisError as exc:
            logger.error("Error getting unread count for user %s: %s", user_id, exc)
            return 0
        return sum(
            1
            for notification in (_decode(item) for item in items)
            if notification is not None and not notification.is_read
        )

    async def clear(self, user_id: str) -> None:
        """Delete the user's whole history."""

        try:
            await self._redis.delete(history_key(user_id))
        except RedisError as exc:
            logger.error("Error clearing notification history for user %s: %s", user_id, exc)
            raise HistoryStoreError("Failed to clear notification history") from exc

    async def _length(self, user_id: str) -> int:
        try:
            return await self._redis.llen(history_key(user_id))
        except RedisError as exc:
            logger.error("Error fetching history length for user %s: %s", user_id, exc)
            return 0


__all__ = [
    "DEFAULT_HISTORY_TTL",
    "DEFAULT_MAX_ENTRIES",
    "DEFAULT_PAGE_SIZE",
    "HISTORY_KEY_PREFIX",
    "HistoryStore",
    "history_key",
]
