"""Read-only inspection of raw cache keys."""

from __future__ import annotations

from typing import Any, Final

from redis.asyncio import Redis as AsyncRedis

LIST_PREVIEW_LENGTH: Final[int] = 50


def describe_ttl(ttl: int) -> str:
    """Render a Redis ``TTL`` reply for humans."""

    if ttl == -1:
        return "no expiry"
    if ttl == -2:
        return "expired"
    return f"{ttl}s"


async def inspect_key(redis: AsyncRedis, key: str) -> dict[str, Any]:
    """Return the type, value and TTL stored under ``key``.

    Lists are truncated to their first ``LIST_PREVIEW_LENGTH`` entries;
    unsupported types and missing keys report a ``None`` value.
    """

    key_type = await redis.type(key)
    value: Any
    if key_type == "string":
        value = await redis.get(key)
    elif key_type == "list":
        value = await redis.lrange(key, 0, LIST_PREVIEW_LENGTH - 1)
    elif key_type == "set":
        value = sorted(await redis.smembers(key))
    elif key_type == "hash":
        value = await redis.hgetall(key)
    else:
        value = None

    ttl = await redis.ttl(key)
    return {"key": key, "type": key_type, "value": value, "ttl": describe_ttl(ttl)}


__all__ = ["LIST_PREVIEW_LENGTH", "describe_ttl", "inspect_key"]
