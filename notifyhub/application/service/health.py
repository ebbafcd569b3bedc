"""Liveness probes for the cache and the broker."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Final, Iterable

from redis.asyncio import Redis as AsyncRedis

from notifyhub.infrastructure.broker import NOTIFICATIONS_QUEUE, BrokerConnectionManager
from notifyhub.utils import isoformat, utc_now

HEALTHY: Final[str] = "healthy"
DEGRADED: Final[str] = "degraded"
UNHEALTHY: Final[str] = "unhealthy"


@dataclass(frozen=True)
class ServiceStatus:
    status: str
    latency_ms: int
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"status": self.status, "latencyMs": self.latency_ms}
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class HealthReport:
    status: str
    uptime: int
    services: dict[str, ServiceStatus]
    timestamp: str = field(default_factory=lambda: isoformat(utc_now()) or "")

    @property
    def is_unhealthy(self) -> bool:
        return self.status == UNHEALTHY

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "timestamp": self.timestamp,
            "uptime": self.uptime,
            "services": {name: status.to_dict() for name, status in self.services.items()},
        }


def _elapsed_ms(started: float) -> int:
    return round((time.perf_counter() - started) * 1000)


async def check_redis(redis: AsyncRedis) -> ServiceStatus:
    started = time.perf_counter()
    try:
        pong = await redis.ping()
    except Exception as exc:
        return ServiceStatus(UNHEALTHY, _elapsed_ms(started), str(exc) or type(exc).__name__)
    return ServiceStatus(HEALTHY if pong else UNHEALTHY, _elapsed_ms(started))


async def check_broker(broker: BrokerConnectionManager) -> ServiceStatus:
    """Passively declare the main queue; this fails if the broker link is broken."""

    started = time.perf_counter()
    try:
        channel = await broker.get_channel()
        await channel.get_queue(NOTIFICATIONS_QUEUE, ensure=True)
    except Exception as exc:
        return ServiceStatus(UNHEALTHY, _elapsed_ms(started), str(exc) or type(exc).__name__)
    return ServiceStatus(HEALTHY, _elapsed_ms(started))


def overall_status(statuses: Iterable[ServiceStatus]) -> str:
    """``healthy`` when all pass, ``unhealthy`` when all fail, else ``degraded``."""

    results = [status.status == HEALTHY for status in statuses]
    if all(results):
        return HEALTHY
    if not any(results):
        return UNHEALTHY
    return DEGRADED


async def build_health_report(
    redis: AsyncRedis, broker: BrokerConnectionManager, *, started_at: float
) -> HealthReport:
    """Probe both dependencies concurrently; ``started_at`` is a monotonic time."""

    redis_status, broker_status = await asyncio.gather(check_redis(redis), check_broker(broker))
    services = {"redis": redis_status, "rabbitmq": broker_status}
    return HealthReport(
        status=overall_status(services.values()),
        uptime=round(time.monotonic() - started_at),
        services=services,
    )


__all__ = [
    "DEGRADED",
    "HEALTHY",
    "HealthReport",
    "ServiceStatus",
    "UNHEALTHY",
    "build_health_report",
    "check_broker",
    "check_redis",
    "overall_status",
]
