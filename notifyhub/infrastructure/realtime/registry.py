"""Process-local registry of live notification streams."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Iterable

from notifyhub.domain.entities import Connection, Notification, StreamSink, serialize_notification
from notifyhub.utils import epoch_millis, isoformat

from .sse import encode_event

logger = logging.getLogger(__name__)

CONNECTED_EVENT = "connected"
NOTIFICATION_EVENT = "notification"
HEARTBEAT_EVENT = "heartbeat"
CONNECTED_MESSAGE = "Successfully connected to notification stream"


@dataclass(frozen=True)
class DeliveryStats:
    sent: int = 0
    failed: int = 0


class LiveStreamRegistry:
    """Hold at most one live stream per user and push events to it.

    Registering a second stream for a user closes the first. A failed write
    evicts the stream; clients are expected to notice and reconnect.
    """

    def __init__(self, *, heartbeat_interval: float = 30.0) -> None:
        self._heartbeat_interval = heartbeat_interval
        self._connections: dict[str, Connection] = {}

    @property
    def heartbeat_interval(self) -> float:
        return self._heartbeat_interval

    def register(self, user_id: str, sink: StreamSink) -> Connection:
        """Install ``sink`` as the stream for ``user_id``."""

        existing = self._connections.get(user_id)
        if existing is not None:
            logger.info("Closing existing stream for user %s", user_id)
            self._close_sink(user_id, existing.sink)

        connection = Connection(user_id=user_id, sink=sink)
        self._connections[user_id] = connection
        logger.info(
            "Stream connected for user %s (total connections: %s)",
            user_id,
            len(self._connections),
        )
        return connection

    def remove(self, user_id: str, *, sink: StreamSink | None = None) -> bool:
        """Close and forget the stream of ``user_id``.

        When ``sink`` is given the entry is only removed if it still holds that
        sink, so a replaced stream never evicts its successor.
        """

        connection = self._connections.get(user_id)
        if connection is None:
            return False
        if sink is not None and connection.sink is not sink:
            return False

        del self._connections[user_id]
        self._close_sink(user_id, connection.sink)
        logger.info(
            "Stream removed for user %s (total connections: %s)",
            user_id,
            len(self._connections),
        )
        return True

    def send(self, user_id: str, event: str, payload: Any) -> bool:
        """Write one event to the user's stream; return whether it was written."""

        connection = self._connections.get(user_id)
        if connection is None:
            logger.debug("No active stream for user %s", user_id)
            return False

        try:
            connection.sink.write(encode_event(event, payload))
        except Exception as exc:
            logger.warning("Failed to write %s event for user %s: %s", event, user_id, exc)
            self.remove(user_id, sink=connection.sink)
            return False

        connection.touch()
        return True

    def send_notification(self, notification: Notification) -> bool:
        return self.send(
            notification.user_id, NOTIFICATION_EVENT, serialize_notification(notification)
        )

    def send_connected(self, user_id: str) -> bool:
        return self.send(
            user_id,
            CONNECTED_EVENT,
            {"userId": user_id, "timestamp": epoch_millis(), "message": CONNECTED_MESSAGE},
        )

    def send_heartbeat(self, user_id: str) -> bool:
        return self.send(user_id, HEARTBEAT_EVENT, {"timestamp": epoch_millis()})

    def send_to_many(self, user_ids: Iterable[str], event: str, payload: Any) -> DeliveryStats:
        sent = failed = 0
        for user_id in user_ids:
            if self.send(user_id, event, payload):
                sent += 1
            else:
                failed += 1
        return DeliveryStats(sent=sent, failed=failed)

    def broadcast(self, event: str, payload: Any) -> DeliveryStats:
        """Send ``event`` to every connected user."""

        return self.send_to_many(self.connected_users(), event, payload)

    def connected_users(self) -> list[str]:
        return list(self._connections)

    def is_connected(self, user_id: str) -> bool:
        return user_id in self._connections

    def connection_info(self, user_id: str) -> dict[str, str | None] | None:
        connection = self._connections.get(user_id)
        if connection is None:
            return None
        return {
            "connectedAt": isoformat(connection.connected_at),
            "lastActivity": isoformat(connection.last_activity),
        }

    @property
    def count(self) -> int:
        return len(self._connections)

    async def run_heartbeat(
        self,
        user_id: str,
        stop: asyncio.Event,
        *,
        sink: StreamSink | None = None,
    ) -> None:
        """Send heartbeats until ``stop`` is set or the stream disappears.

        With ``sink`` the loop also ends once another stream replaced it.
        """

        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=self._heartbeat_interval)
                return
            except asyncio.TimeoutError:
                pass

            connection = self._connections.get(user_id)
            if connection is None or (sink is not None and connection.sink is not sink):
                return
            if not self.send_heartbeat(user_id):
                return

    @staticmethod
    def _close_sink(user_id: str, sink: StreamSink) -> None:
        try:
            sink.close()
        except Exception as exc:
            logger.debug("Stream for user %s was already closed: %s", user_id, exc)


__all__ = [
    "CONNECTED_EVENT",
    "CONNECTED_MESSAGE",
    "DeliveryStats",
    "HEARTBEAT_EVENT",
    "LiveStreamRegistry",
    "NOTIFICATION_EVENT",
]
