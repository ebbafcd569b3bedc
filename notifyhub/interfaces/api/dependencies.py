"""FastAPI dependency utilities."""

from fastapi import HTTPException, Request, status

from notifyhub.application.service import NotificationService


def get_notification_service(request: Request) -> NotificationService:
    """Return the service attached to the running application."""

    service = getattr(request.app.state, "notification_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification service is not running",
        )
    return service
