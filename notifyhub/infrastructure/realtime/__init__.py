"""Live server-sent event streams for connected users."""

from .registry import (
    CONNECTED_EVENT,
    HEARTBEAT_EVENT,
    NOTIFICATION_EVENT,
    DeliveryStats,
    LiveStreamRegistry,
)
from .sink import QueueSink, StreamClosedError
from .sse import encode_event

__all__ = [
    "CONNECTED_EVENT",
    "DeliveryStats",
    "HEARTBEAT_EVENT",
    "LiveStreamRegistry",
    "NOTIFICATION_EVENT",
    "QueueSink",
    "StreamClosedError",
    "encode_event",
]
