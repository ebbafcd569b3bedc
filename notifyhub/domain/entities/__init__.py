"""Domain entities exposed by the notification service."""

from .connection import Connection, StreamSink
from .notification import (
    NOTIFICATION_CATEGORIES,
    NOTIFICATION_TYPES,
    ROUTING_KEYS,
    SECURITY_CATEGORY,
    Notification,
    NotificationCategory,
    NotificationInput,
    NotificationType,
    QueueMessage,
    deserialize_notification,
    routing_key_for,
    serialize_notification,
)
from .preferences import (
    CHANNEL_KEYS,
    FREQUENCIES,
    CategoryPreferences,
    ChannelPreferences,
    Frequency,
    PreferencesUpdate,
    QuietHours,
    UserPreferences,
    deserialize_preferences,
    serialize_preferences,
)

__all__ = [
    "CHANNEL_KEYS",
    "CategoryPreferences",
    "ChannelPreferences",
    "Connection",
    "FREQUENCIES",
    "Frequency",
    "NOTIFICATION_CATEGORIES",
    "NOTIFICATION_TYPES",
    "Notification",
    "NotificationCategory",
    "NotificationInput",
    "NotificationType",
    "PreferencesUpdate",
    "QueueMessage",
    "QuietHours",
    "ROUTING_KEYS",
    "SECURITY_CATEGORY",
    "StreamSink",
    "UserPreferences",
    "deserialize_notification",
    "deserialize_preferences",
    "routing_key_for",
    "serialize_notification",
    "serialize_preferences",
]
