"""Client for the notification stream that reconnects after failures."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable

import httpx

from .sse import ServerSentEvent, iter_events

logger = logging.getLogger(__name__)

DEFAULT_STREAM_PATH = "/notifications/stream"

EventCallback = Callable[[Any], None]
ErrorCallback = Callable[[BaseException], None]
StatusCallback = Callable[["SubscriberStatus"], None]


class SubscriberStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class StreamClosedByServer(ConnectionError):
    """The server ended the event stream."""


class ReconnectingStreamSubscriber:
    """Subscribe to a user's notification stream and keep it open.

    A transport failure moves the subscriber to ``error`` and schedules a new
    attempt after ``reconnect_interval`` seconds. Every ``connected`` event
    resets the attempt counter; once ``max_reconnect_attempts`` consecutive
    attempts have failed the subscriber settles in ``disconnected``.

    Callbacks are plain functions called on the event loop. With
    ``auto_connect`` the first connection is scheduled as soon as the
    subscriber is created inside a running loop.
    """

    def __init__(
        self,
        base_url: str,
        user_id: str,
        *,
        on_notification: EventCallback | None = None,
        on_connected: EventCallback | None = None,
        on_heartbeat: EventCallback | None = None,
        on_error: ErrorCallback | None = None,
        on_status_change: StatusCallback | None = None,
        reconnect_interval: float = 5.0,
        max_reconnect_attempts: int = 10,
        auto_connect: bool = True,
        stream_path: str = DEFAULT_STREAM_PATH,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._user_id = user_id
        self._on_notification = on_notification
        self._on_connected = on_connected
        self._on_heartbeat = on_heartbeat
        self._on_error = on_error
        self._on_status_change = on_status_change
        self._reconnect_interval = reconnect_interval
        self._max_reconnect_attempts = max_reconnect_attempts
        self._stream_path = stream_path
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            timeout=httpx.Timeout(10.0, read=None),
        )
        self._status = SubscriberStatus.DISCONNECTED
        self._reconnect_attempts = 0
        self._task: asyncio.Task[None] | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None

        if auto_connect:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("No running event loop; call connect() explicitly")
            else:
                loop.call_soon(self.connect)

    @property
    def status(self) -> SubscriberStatus:
        return self._status

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    @property
    def is_streaming(self) -> bool:
        return self._task is not None and not self._task.done()

    def connect(self) -> None:
        """Open the stream unless one is already open or opening."""

        if self.is_streaming:
            return
        if not self._user_id:
            logger.warning("A user id is required to connect to the notification stream")
            return

        self._set_status(SubscriberStatus.CONNECTING)
        self._task = asyncio.get_running_loop().create_task(self._run())

    def disconnect(self) -> None:
        """Cancel any pending reconnect, close the stream and reset the counter."""

        self._cancel_reconnect()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._reconnect_attempts = 0
        self._set_status(SubscriberStatus.DISCONNECTED)

    async def aclose(self) -> None:
        """Disconnect and release the HTTP client when it was created here."""

        task = self._task
        self.disconnect()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ReconnectingStreamSubscriber":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _run(self) -> None:
        try:
            async with self._client.stream(
                "GET",
                self._stream_path,
                params={"userId": self._user_id},
                headers={"Accept": "text/event-stream"},
            ) as response:
                response.raise_for_status()
                async for event in iter_events(response.aiter_lines()):
                    self._handle_event(event)
        except (httpx.HTTPError, OSError) as exc:
            self._handle_transport_error(exc)
            return
        self._handle_transport_error(StreamClosedByServer("Notification stream closed by server"))

    def _handle_event(self, event: ServerSentEvent) -> None:
        try:
            data = event.json()
        except ValueError:
            logger.warning("Ignoring %s event with a non-JSON payload", event.event)
            return

        if event.event == "connected":
            self._reconnect_attempts = 0
            self._set_status(SubscriberStatus.CONNECTED)
            self._call(self._on_connected, data)
        elif event.event == "notification":
            self._call(self._on_notification, data)
        elif event.event == "heartbeat":
            self._call(self._on_heartbeat, data)
        else:
            logger.debug("Ignoring unknown stream event: %s", event.event)

    def _handle_transport_error(self, exc: BaseException) -> None:
        logger.error("Notification stream error: %s", exc)
        self._task = None
        self._set_status(SubscriberStatus.ERROR)
        if self._on_error is not None:
            self._call(self._on_error, exc)
            if self._status is SubscriberStatus.DISCONNECTED:
                return

        if self._reconnect_attempts < self._max_reconnect_attempts:
            self._reconnect_attempts += 1
            logger.info(
                "Reconnecting to notification stream (attempt %s/%s)",
                self._reconnect_attempts,
                self._max_reconnect_attempts,
            )
            self._reconnect_handle = asyncio.get_running_loop().call_later(
                self._reconnect_interval, self._reconnect
            )
        else:
            logger.error("Max notification stream reconnection attempts reached")
            self._set_status(SubscriberStatus.DISCONNECTED)

    def _reconnect(self) -> None:
        self._reconnect_handle = None
        self.connect()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def _set_status(self, status: SubscriberStatus) -> None:
        if status is self._status:
            return
        self._status = status
        self._call(self._on_status_change, status)

    def _call(self, callback: Callable[[Any], None] | None, argument: Any) -> None:
        # Callback errors are logged and never end the stream task.
        if callback is None:
            return
        try:
            callback(argument)
        except Exception:
            logger.exception("Notification stream callback %r failed", callback)


__all__ = [
    "DEFAULT_STREAM_PATH",
    "ReconnectingStreamSubscriber",
    "StreamClosedByServer",
    "SubscriberStatus",
]
