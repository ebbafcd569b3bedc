"""Errors raised by the notification delivery pipeline."""

from __future__ import annotations


class NotificationError(Exception):
    """Base class for every error raised by the notification pipeline."""


class NotificationValidationError(NotificationError, ValueError):
    """Input is missing required fields or carries unsupported values."""


class UnknownNotificationTypeError(NotificationValidationError):
    """A notification type has no routing key."""

    def __init__(self, notification_type: object) -> None:
        self.notification_type = notification_type
        super().__init__(f"Unknown notification type: {notification_type!r}")


class MessageParseError(NotificationError, ValueError):
    """A queue message body could not be decoded into a queue message."""


class BrokerUnavailableError(NotificationError):
    """No broker channel could be obtained."""


class TopologySetupError(NotificationError):
    """Exchanges, queues or bindings could not be declared."""


class NotificationDeliveryError(NotificationError):
    """The broker or a delivery channel refused a notification."""


class MissingDeliveryHandlerError(NotificationError):
    """No delivery handler is configured for a recognised notification type."""

    def __init__(self, notification_type: str) -> None:
        self.notification_type = notification_type
        super().__init__(f"No handler for notification type: {notification_type}")


class PreferenceStoreError(NotificationError):
    """User preferences could not be persisted."""


class HistoryStoreError(NotificationError):
    """Notification history could not be updated."""


__all__ = [
    "BrokerUnavailableError",
    "HistoryStoreError",
    "MessageParseError",
    "MissingDeliveryHandlerError",
    "NotificationDeliveryError",
    "NotificationError",
    "NotificationValidationError",
    "PreferenceStoreError",
    "TopologySetupError",
    "UnknownNotificationTypeError",
]
