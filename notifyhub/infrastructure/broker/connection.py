"""RabbitMQ connection management with bounded automatic reconnection."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable
from urllib.parse import urlsplit, urlunsplit

import aio_pika
from aio_pika.abc import AbstractChannel, AbstractConnection

from notifyhub.domain.exceptions import BrokerUnavailableError

logger = logging.getLogger(__name__)

ConnectFactory = Callable[[str], Awaitable[AbstractConnection]]
StateListener = Callable[["ConnectionState"], None]


class ConnectionState(str, Enum):
    """Lifecycle of the broker connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"
    CLOSED = "closed"


def _redact_url(url: str) -> str:
    parts = urlsplit(url)
    if parts.password is None:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@")
    return urlunsplit(parts._replace(netloc=netloc))


class BrokerConnectionManager:
    """Own the single broker connection and channel used by the process.

    When an established connection drops, the handles are discarded and a
    background loop retries ``max_retries`` times, ``reconnect_interval``
    seconds apart. Callers asking for a channel while disconnected trigger
    an immediate connection attempt.
    """

    def __init__(
        self,
        url: str,
        *,
        reconnect_interval: float = 5.0,
        max_retries: int = 10,
        connect: ConnectFactory | None = None,
    ) -> None:
        self._url = url
        self._reconnect_interval = reconnect_interval
        self._max_retries = max_retries
        self._connect_factory: ConnectFactory = connect or aio_pika.connect
        self._connection: AbstractConnection | None = None
        self._channel: AbstractChannel | None = None
        self._connect_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._retry_count = 0
        self._closing = False
        self._state = ConnectionState.DISCONNECTED
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._channel is not None and not self._channel.is_closed

    @property
    def retry_count(self) -> int:
        return self._retry_count

    def add_state_listener(self, listener: StateListener) -> None:
        """Call ``listener`` with the new state on every state change."""

        self._listeners.append(listener)

    def remove_state_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def connect(self) -> None:
        """Open the connection and channel unless they are already usable."""

        if self.is_connected:
            return
        if self._connect_task is None or self._connect_task.done():
            self._connect_task = asyncio.create_task(self._open())
        await asyncio.shield(self._connect_task)

    async def get_channel(self) -> AbstractChannel:
        """Return the shared channel, connecting first when necessary."""

        if not self.is_connected:
            await self.connect()
        if self._channel is None:
            raise BrokerUnavailableError("RabbitMQ channel not available")
        return self._channel

    async def close(self) -> None:
        """Close the channel and connection without scheduling reconnects."""

        self._closing = True
        if self._reconnect_task is not None and not self._reconnect_task.done():
            self._reconnect_task.cancel()
        channel, connection = self._channel, self._connection
        self._channel = None
        self._connection = None
        try:
            if channel is not None and not channel.is_closed:
                await channel.close()
            if connection is not None and not connection.is_closed:
                await connection.close()
            logger.info("RabbitMQ connection closed gracefully")
        except Exception:  # pragma: no cover - depends on broker state
            logger.exception("Error closing RabbitMQ connection")
        self._set_state(ConnectionState.CLOSED)

    async def _open(self) -> None:
        self._closing = False
        self._set_state(ConnectionState.CONNECTING)
        logger.info("Connecting to RabbitMQ at %s", _redact_url(self._url))
        try:
            connection = await self._connect_factory(self._url)
            channel = await connection.channel()
        except Exception as exc:
            self._set_state(ConnectionState.DISCONNECTED)
            logger.error("Failed to connect to RabbitMQ: %s", exc)
            raise BrokerUnavailableError(f"Failed to connect to RabbitMQ: {exc}") from exc

        connection.close_callbacks.add(self._on_connection_closed)
        self._connection = connection
        self._channel = channel
        self._retry_count = 0
        self._set_state(ConnectionState.CONNECTED)
        logger.info("RabbitMQ connected successfully")

    def _on_connection_closed(self, _sender: Any, exc: BaseException | None = None) -> None:
        if self._closing:
            return
        logger.warning("RabbitMQ connection lost: %s", exc)
        self._connection = None
        self._channel = None
        self._set_state(ConnectionState.DISCONNECTED)
        if self._reconnect_task is None or self._reconnect_task.done():
            self._reconnect_task = asyncio.get_running_loop().create_task(
                self._reconnect_loop()
            )

    async def _reconnect_loop(self) -> None:
        while self._retry_count < self._max_retries:
            self._retry_count += 1
            logger.info(
                "Reconnecting to RabbitMQ (attempt %s/%s)...",
                self._retry_count,
                self._max_retries,
            )
            await asyncio.sleep(self._reconnect_interval)
            if self._closing:
                return
            try:
                await self.connect()
            except BrokerUnavailableError:
                continue
            return
        logger.error("Max RabbitMQ reconnection attempts reached")
        self._set_state(ConnectionState.FAILED)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Broker state listener failed")


__all__ = ["BrokerConnectionManager", "ConnectionState"]
