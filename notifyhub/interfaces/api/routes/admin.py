"""Inspection endpoints for the cache and live connections."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from redis.exceptions import RedisError

from notifyhub.application.service import NotificationService
from notifyhub.infrastructure.cache import inspect_key
from notifyhub.interfaces.api.dependencies import get_notification_service
from notifyhub.interfaces.api.schemas import CacheEntryRead, ConnectionRead, ConnectionsRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/cache", response_model=CacheEntryRead)
async def read_cache_entry(
    key: str = Query(..., min_length=1),
    service: NotificationService = Depends(get_notification_service),
) -> CacheEntryRead:
    try:
        entry = await inspect_key(service.redis, key)
    except RedisError as exc:
        logger.error("Error fetching cache value for %s: %s", key, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch cache value",
        ) from exc
    return CacheEntryRead(**entry)


@router.get("/connections", response_model=ConnectionsRead)
async def list_connections(
    service: NotificationService = Depends(get_notification_service),
) -> ConnectionsRead:
    registry = service.registry
    connections = []
    for user_id in registry.connected_users():
        info = registry.connection_info(user_id) or {}
        connections.append(
            ConnectionRead(
                user_id=user_id,
                connected_at=info.get("connectedAt"),
                last_activity=info.get("lastActivity"),
            )
        )
    return ConnectionsRead(connection_count=registry.count, connections=connections)
