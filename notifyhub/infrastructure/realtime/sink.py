"""In-memory stream sink feeding a streaming HTTP response."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator

_CLOSED = object()


class StreamClosedError(ConnectionError):
    """Raised when writing to a sink that has been closed."""


class QueueSink:
    """Buffer frames for one client until the response body consumes them.

    Writes are synchronous so the registry can push from any coroutine; the
    response drains the buffer through :meth:`frames`.
    """

    def __init__(self, max_pending: int = 1000) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=max_pending)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, frame: str) -> None:
        if self._closed:
            raise StreamClosedError("Stream is closed")
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull as exc:
            raise StreamClosedError("Stream buffer is full") from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            pass

    async def frames(self) -> AsyncIterator[str]:
        """Yield buffered frames until the sink is closed and drained."""

        while True:
            if self._closed and self._queue.empty():
                return
            frame = await self._queue.get()
            if frame is _CLOSED:
                return
            yield frame  # type: ignore[misc]


__all__ = ["QueueSink", "StreamClosedError"]
