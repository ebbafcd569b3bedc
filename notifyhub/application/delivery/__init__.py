"""Delivery pipeline: preference gates, channel handlers and dispatching."""

from .dispatcher import DispatchOutcome, NotificationDispatcher
from .gating import (
    CATEGORY_DISABLED,
    CHANNEL_DISABLED,
    QUIET_HOURS,
    evaluate_gates,
    is_category_enabled,
    is_channel_enabled,
    is_in_quiet_hours,
    is_within_quiet_window,
)
from .handlers import (
    DEFAULT_HANDLERS,
    DeliveryHandler,
    build_email_handler,
    build_handler_table,
    resolve_handler,
)

__all__ = [
    "CATEGORY_DISABLED",
    "CHANNEL_DISABLED",
    "DEFAULT_HANDLERS",
    "DeliveryHandler",
    "DispatchOutcome",
    "NotificationDispatcher",
    "QUIET_HOURS",
    "build_email_handler",
    "build_handler_table",
    "evaluate_gates",
    "is_category_enabled",
    "is_channel_enabled",
    "is_in_quiet_hours",
    "is_within_quiet_window",
    "resolve_handler",
]
