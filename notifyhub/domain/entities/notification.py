"""Domain entities describing notifications and their broker envelope."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Final, Literal, Mapping

from notifyhub.domain.exceptions import (
    MessageParseError,
    NotificationValidationError,
    UnknownNotificationTypeError,
)
from notifyhub.utils import isoformat, parse_datetime, utc_now

NotificationType = Literal["email", "push", "in-app"]
NotificationCategory = Literal["marketing", "updates", "security", "social", "reminders"]

NOTIFICATION_TYPES: Final[tuple[str, ...]] = ("email", "push", "in-app")
NOTIFICATION_CATEGORIES: Final[tuple[str, ...]] = (
    "marketing",
    "updates",
    "security",
    "social",
    "reminders",
)
SECURITY_CATEGORY: Final[str] = "security"

ROUTING_KEYS: Final[dict[str, str]] = {
    "email": "notification.email",
    "push": "notification.push",
    "in-app": "notification.in-app",
}


def routing_key_for(notification_type: str) -> str:
    """Return the routing key used to publish ``notification_type``."""

    try:
        return ROUTING_KEYS[notification_type]
    except (KeyError, TypeError):
        raise UnknownNotificationTypeError(notification_type) from None


@dataclass(frozen=True)
class NotificationInput:
    """Caller supplied fields required to publish a notification."""

    user_id: str
    type: str
    title: str
    body: str
    category: str
    metadata: dict[str, Any] | None = None

    def validate(self) -> None:
        """Raise :class:`NotificationValidationError` for incomplete input."""

        missing = [
            name
            for name in ("user_id", "type", "title", "body", "category")
            if not getattr(self, name)
        ]
        if missing:
            msg = f"Missing required notification fields: {', '.join(missing)}"
            raise NotificationValidationError(msg)
        if self.type not in NOTIFICATION_TYPES:
            raise UnknownNotificationTypeError(self.type)
        if self.category not in NOTIFICATION_CATEGORIES:
            msg = (
                f"Unknown notification category: {self.category!r}. "
                f"Valid categories: {', '.join(NOTIFICATION_CATEGORIES)}"
            )
            raise NotificationValidationError(msg)


@dataclass(frozen=True)
class Notification:
    """Message delivered to a specific user.

    Every field except ``read_at`` is fixed at creation; reading a
    notification produces a copy through :meth:`mark_read`.
    """

    id: str
    user_id: str
    type: str
    title: str
    body: str
    category: str
    created_at: datetime
    metadata: dict[str, Any] | None = None
    read_at: datetime | None = None

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def mark_read(self, read_at: datetime | None = None) -> "Notification":
        """Return a read copy, leaving an existing ``read_at`` untouched."""

        if self.read_at is not None:
            return self
        return replace(self, read_at=read_at or utc_now())


@dataclass(frozen=True)
class QueueMessage:
    """Envelope published to the broker for a single notification."""

    notification: Notification
    routing_key: str
    timestamp: datetime = field(default_factory=utc_now)

    def to_json(self) -> bytes:
        payload = {
            "notification": serialize_notification(self.notification),
            "routingKey": self.routing_key,
            "timestamp": isoformat(self.timestamp),
        }
        return json.dumps(payload).encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes | str) -> "QueueMessage":
        """Decode a broker message body, raising :class:`MessageParseError`."""

        try:
            data = json.loads(raw)
            notification = deserialize_notification(data["notification"])
            return cls(
                notification=notification,
                routing_key=str(data["routingKey"]),
                timestamp=parse_datetime(data.get("timestamp")) or utc_now(),
            )
        except MessageParseError:
            raise
        except (TypeError, KeyError, ValueError) as exc:
            raise MessageParseError(f"Invalid queue message: {exc}") from exc


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the JSON representation shared by the broker, cache and streams."""

    payload: dict[str, Any] = {
        "id": notification.id,
        "userId": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "body": notification.body,
        "category": notification.category,
        "createdAt": isoformat(notification.created_at),
    }
    if notification.metadata is not None:
        payload["metadata"] = notification.metadata
    if notification.read_at is not None:
        payload["readAt"] = isoformat(notification.read_at)
    return payload


def deserialize_notification(data: Mapping[str, Any]) -> Notification:
    """Build a :class:`Notification` from :func:`serialize_notification` output."""

    if not isinstance(data, Mapping):
        raise MessageParseError("Notification payload must be an object")
    try:
        created_at = parse_datetime(data.get("createdAt"))
        if created_at is None:
            raise MessageParseError("Notification payload is missing createdAt")
        metadata = data.get("metadata")
        if metadata is not None and not isinstance(metadata, Mapping):
            raise MessageParseError("Notification metadata must be an object")
        return Notification(
            id=str(data["id"]),
            user_id=str(data["userId"]),
            type=str(data["type"]),
            title=str(data["title"]),
            body=str(data["body"]),
            category=str(data["category"]),
            created_at=created_at,
            metadata=dict(metadata) if metadata is not None else None,
            read_at=parse_datetime(data.get("readAt")),
        )
    except KeyError as exc:
        raise MessageParseError(f"Notification payload is missing {exc.args[0]}") from exc


__all__ = [
    "NOTIFICATION_CATEGORIES",
    "NOTIFICATION_TYPES",
    "Notification",
    "NotificationCategory",
    "NotificationInput",
    "NotificationType",
    "QueueMessage",
    "ROUTING_KEYS",
    "SECURITY_CATEGORY",
    "deserialize_notification",
    "routing_key_for",
    "serialize_notification",
]
