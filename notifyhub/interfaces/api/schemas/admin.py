"""Schemas for the inspection endpoints."""

from __future__ import annotations

from typing import Any

from .base import CamelModel


class CacheEntryRead(CamelModel):
    key: str
    type: str
    value: Any = None
    ttl: str


class ConnectionRead(CamelModel):
    user_id: str
    connected_at: str | None = None
    last_activity: str | None = None


class ConnectionsRead(CamelModel):
    connection_count: int
    connections: list[ConnectionRead]


__all__ = ["CacheEntryRead", "ConnectionRead", "ConnectionsRead"]
