"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from notifyhub.domain.entities import (
    Notification,
    NotificationCategory,
    NotificationInput,
    NotificationType,
)

from .base import CamelModel


class NotificationSendRequest(CamelModel):
    """Payload used to publish a notification for one user."""

    user_id: str = Field(..., min_length=1)
    type: NotificationType
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    category: NotificationCategory
    metadata: dict[str, Any] | None = None

    def to_input(self) -> NotificationInput:
        return NotificationInput(
            user_id=self.user_id,
            type=self.type,
            title=self.title,
            body=self.body,
            category=self.category,
            metadata=self.metadata,
        )


class NotificationBroadcastRequest(CamelModel):
    """Payload used to publish the same notification to several users."""

    user_ids: list[str] = Field(..., min_length=1)
    type: NotificationType
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    category: NotificationCategory
    metadata: dict[str, Any] | None = None

    def unique_user_ids(self) -> list[str]:
        """Return the non-empty user ids without duplicates, preserving order."""

        return list(dict.fromkeys(user_id for user_id in self.user_ids if user_id))


class NotificationRead(CamelModel):
    """Representation of a notification returned to clients."""

    id: str
    user_id: str
    type: str
    title: str
    body: str
    category: str
    metadata: dict[str, Any] | None = None
    created_at: datetime
    read_at: datetime | None = None

    @classmethod
    def from_entity(cls, notification: Notification) -> "NotificationRead":
        return cls(
            id=notification.id,
            user_id=notification.user_id,
            type=notification.type,
            title=notification.title,
            body=notification.body,
            category=notification.category,
            metadata=notification.metadata,
            created_at=notification.created_at,
            read_at=notification.read_at,
        )


class NotificationSendResponse(CamelModel):
    success: bool = True
    notification: NotificationRead
    message: str = "Notification published successfully"


class NotificationBroadcastResponse(CamelModel):
    success: bool = True
    count: int
    notifications: list[NotificationRead]
    message: str = "Notifications published successfully"


class NotificationMarkReadRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
    notification_id: str = Field(..., min_length=1)


class PaginationRead(CamelModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class NotificationHistoryResponse(CamelModel):
    notifications: list[NotificationRead]
    pagination: PaginationRead
    unread_count: int


__all__ = [
    "NotificationBroadcastRequest",
    "NotificationBroadcastResponse",
    "NotificationHistoryResponse",
    "NotificationMarkReadRequest",
    "NotificationRead",
    "NotificationSendRequest",
    "NotificationSendResponse",
    "PaginationRead",
]
