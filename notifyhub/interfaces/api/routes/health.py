"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from notifyhub.application.service import NotificationService
from notifyhub.interfaces.api.dependencies import get_notification_service

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    service: NotificationService = Depends(get_notification_service),
) -> JSONResponse:
    """Probe Redis and RabbitMQ; respond 503 when both are down."""

    report = await service.check_health()
    status_code = (
        status.HTTP_503_SERVICE_UNAVAILABLE if report.is_unhealthy else status.HTTP_200_OK
    )
    return JSONResponse(report.to_dict(), status_code=status_code)
