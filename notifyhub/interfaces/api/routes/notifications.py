"""Endpoints for publishing notifications, reading history and streaming."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from notifyhub.application.service import NotificationService
from notifyhub.domain.exceptions import (
    BrokerUnavailableError,
    HistoryStoreError,
    NotificationError,
    NotificationValidationError,
    TopologySetupError,
)
from notifyhub.infrastructure.realtime import LiveStreamRegistry, QueueSink
from notifyhub.interfaces.api.dependencies import get_notification_service
from notifyhub.interfaces.api.schemas import (
    ActionResponse,
    NotificationBroadcastRequest,
    NotificationBroadcastResponse,
    NotificationHistoryResponse,
    NotificationMarkReadRequest,
    NotificationRead,
    NotificationSendRequest,
    NotificationSendResponse,
    PaginationRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])

STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _publish_error(exc: NotificationError) -> HTTPException:
    if isinstance(exc, NotificationValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    logger.error("Error publishing notification: %s", exc)
    if isinstance(exc, (BrokerUnavailableError, TopologySetupError)):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification broker unavailable",
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Failed to publish notification",
    )


@router.post(
    "/send",
    response_model=NotificationSendResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_notification(
    payload: NotificationSendRequest,
    service: NotificationService = Depends(get_notification_service),
) -> NotificationSendResponse:
    """Publish a notification for processing."""

    try:
        notification = await service.publisher.publish(payload.to_input())
    except NotificationError as exc:
        raise _publish_error(exc) from exc
    return NotificationSendResponse(notification=NotificationRead.from_entity(notification))


@router.post(
    "/broadcast",
    response_model=NotificationBroadcastResponse,
    status_code=status.HTTP_201_CREATED,
)
async def broadcast_notification(
    payload: NotificationBroadcastRequest,
    service: NotificationService = Depends(get_notification_service),
) -> NotificationBroadcastResponse:
    """Publish one notification per user id."""

    try:
        notifications = await service.publisher.broadcast_notification(
            payload.unique_user_ids(),
            payload.type,
            payload.title,
            payload.body,
            payload.category,
            payload.metadata,
        )
    except NotificationError as exc:
        raise _publish_error(exc) from exc
    return NotificationBroadcastResponse(
        count=len(notifications),
        notifications=[NotificationRead.from_entity(n) for n in notifications],
    )


@router.get("/history", response_model=NotificationHistoryResponse)
async def get_history(
    user_id: str = Query(..., alias="userId", min_length=1),
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationHistoryResponse:
    """Return a page of the user's notification history."""

    history = service.history
    effective_limit = min(limit or service.settings.history_default_page_size, history.max_entries)
    notifications, total = await history.range(user_id, offset=offset, limit=effective_limit)
    unread_count = await history.unread_count(user_id)
    return NotificationHistoryResponse(
        notifications=[NotificationRead.from_entity(n) for n in notifications],
        pagination=PaginationRead(
            total=total,
            limit=effective_limit,
            offset=offset,
            has_more=offset + len(notifications) < total,
        ),
        unread_count=unread_count,
    )


@router.patch("/history", response_model=ActionResponse)
async def mark_notification_read(
    payload: NotificationMarkReadRequest,
    service: NotificationService = Depends(get_notification_service),
) -> ActionResponse:
    """Mark one notification as read; repeated calls keep the first read time."""

    try:
        found = await service.history.mark_read(payload.user_id, payload.notification_id)
    except HistoryStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to mark notification as read",
        ) from exc
    if not found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return ActionResponse(success=True, message="Notification marked as read")


@router.delete("/history", response_model=ActionResponse)
async def delete_history(
    user_id: str = Query(..., alias="userId", min_length=1),
    notification_id: str | None = Query(None, alias="notificationId", min_length=1),
    service: NotificationService = Depends(get_notification_service),
) -> ActionResponse:
    """Delete one notification, or the whole history when no id is given."""

    try:
        if notification_id is None:
            await service.history.clear(user_id)
            return ActionResponse(success=True, message="Notification history cleared")
        found = await service.history.remove(user_id, notification_id)
    except HistoryStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete notification",
        ) from exc
    if not found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return ActionResponse(success=True, message="Notification deleted")


async def stream_events(
    registry: LiveStreamRegistry, user_id: str, sink: QueueSink
) -> AsyncIterator[str]:
    """Yield the frames written to ``sink`` while it is registered for ``user_id``.

    The connection is registered, greeted and kept alive with heartbeats; on
    exit it is removed only if ``sink`` still owns the user's slot.
    """

    registry.register(user_id, sink)
    registry.send_connected(user_id)
    stop = asyncio.Event()
    heartbeat = asyncio.create_task(
        registry.run_heartbeat(user_id, stop, sink=sink), name=f"sse-heartbeat-{user_id}"
    )
    try:
        async for frame in sink.frames():
            yield frame
    finally:
        stop.set()
        heartbeat.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await heartbeat
        registry.remove(user_id, sink=sink)
        logger.info("Notification stream closed for user %s", user_id)


@router.get("/stream")
async def stream_notifications(
    user_id: str = Query(..., alias="userId", min_length=1),
    service: NotificationService = Depends(get_notification_service),
) -> StreamingResponse:
    """Open a server-sent event stream of the user's notifications."""

    return StreamingResponse(
        stream_events(service.registry, user_id, QueueSink()),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )
