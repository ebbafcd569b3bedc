"""Redis backed stores for preferences and notification history."""

from .history import HISTORY_KEY_PREFIX, HistoryStore, history_key
from .inspection import describe_ttl, inspect_key
from .preferences import (
    NOTIFICATION_SETTINGS_KEY,
    PREFERENCES_KEY_PREFIX,
    PreferenceStore,
    preferences_key,
)
from .redis import close_redis_client, create_redis_client

__all__ = [
    "HISTORY_KEY_PREFIX",
    "HistoryStore",
    "NOTIFICATION_SETTINGS_KEY",
    "PREFERENCES_KEY_PREFIX",
    "PreferenceStore",
    "close_redis_client",
    "create_redis_client",
    "describe_ttl",
    "history_key",
    "inspect_key",
    "preferences_key",
]
