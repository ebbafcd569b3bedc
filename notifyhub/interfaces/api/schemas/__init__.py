from .admin import CacheEntryRead, ConnectionRead, ConnectionsRead
from .base import ActionResponse, CamelModel
from .notification import (
    NotificationBroadcastRequest,
    NotificationBroadcastResponse,
    NotificationHistoryResponse,
    NotificationMarkReadRequest,
    NotificationRead,
    NotificationSendRequest,
    NotificationSendResponse,
    PaginationRead,
)
from .preferences import (
    PreferencesRead,
    PreferencesResponse,
    PreferencesUpdateRequest,
    PreferencesUpdateResponse,
    QuietHoursSchema,
)

__all__ = [
    "ActionResponse",
    "CacheEntryRead",
    "CamelModel",
    "ConnectionRead",
    "ConnectionsRead",
    "NotificationBroadcastRequest",
    "NotificationBroadcastResponse",
    "NotificationHistoryResponse",
    "NotificationMarkReadRequest",
    "NotificationRead",
    "NotificationSendRequest",
    "NotificationSendResponse",
    "PaginationRead",
    "PreferencesRead",
    "PreferencesResponse",
    "PreferencesUpdateRequest",
    "PreferencesUpdateResponse",
    "QuietHoursSchema",
]
