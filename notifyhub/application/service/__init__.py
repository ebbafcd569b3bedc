"""Service container and health checks for the notification pipeline."""

from .container import NotificationService
from .health import (
    DEGRADED,
    HEALTHY,
    UNHEALTHY,
    HealthReport,
    ServiceStatus,
    build_health_report,
    check_broker,
    check_redis,
    overall_status,
)

__all__ = [
    "DEGRADED",
    "HEALTHY",
    "HealthReport",
    "NotificationService",
    "ServiceStatus",
    "UNHEALTHY",
    "build_health_report",
    "check_broker",
    "check_redis",
    "overall_status",
]
