"""Client side helpers for consuming the notification stream."""

from .sse import SSEDecoder, ServerSentEvent, iter_events
from .subscriber import (
    DEFAULT_STREAM_PATH,
    ReconnectingStreamSubscriber,
    StreamClosedByServer,
    SubscriberStatus,
)

__all__ = [
    "DEFAULT_STREAM_PATH",
    "ReconnectingStreamSubscriber",
    "SSEDecoder",
    "ServerSentEvent",
    "StreamClosedByServer",
    "SubscriberStatus",
    "iter_events",
]
