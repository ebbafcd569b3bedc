"""Async Redis client used for preferences, history and settings."""

from __future__ import annotations

import logging

from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)


def create_redis_client(redis_url: str) -> AsyncRedis:
    """Return an async Redis client decoding responses as UTF-8 strings."""

    client = AsyncRedis.from_url(
        redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    logger.info("Async Redis client initialized")
    return client


async def close_redis_client(client: AsyncRedis | None) -> None:
    """Close ``client`` gracefully, ignoring ``None``."""

    if client is None:
        return
    await client.aclose()
    logger.info("Async Redis client closed")


__all__ = ["close_redis_client", "create_redis_client"]
