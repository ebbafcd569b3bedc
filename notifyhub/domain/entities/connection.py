"""Domain entity representing a live notification stream."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from notifyhub.utils import utc_now


class StreamSink(Protocol):
    """Write side of a long-lived server-to-client stream."""

    def write(self, frame: str) -> None:
        """Queue ``frame`` for the client; raise if the stream is gone."""

    def close(self) -> None:
        """Terminate the stream. Closing twice must be harmless."""


@dataclass
class Connection:
    """Registry entry for the stream currently owned by ``user_id``."""

    user_id: str
    sink: StreamSink
    connected_at: datetime = field(default_factory=utc_now)
    last_activity: datetime = field(default_factory=utc_now)

    def touch(self) -> None:
        self.last_activity = utc_now()


__all__ = ["Connection", "StreamSink"]
