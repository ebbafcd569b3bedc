"""Consume the notifications queue and settle every delivery."""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from hashlib import sha256
from typing import Any, Awaitable, Callable

from aio_pika.abc import AbstractIncomingMessage, AbstractQueue

from notifyhub.domain.entities import Notification, QueueMessage

from .connection import BrokerConnectionManager, ConnectionState
from .topology import NOTIFICATIONS_QUEUE, TopologyManager

logger = logging.getLogger(__name__)

MessageProcessor = Callable[[QueueMessage], Awaitable[Any]]
ErrorCallback = Callable[[Exception, "Notification | None"], None]

DEFAULT_MAX_TRACKED_FAILURES = 10_000


class NotificationConsumer:
    """Subscribe to the notifications queue and hand messages to ``processor``.

    A processed message is acknowledged. A message whose body cannot be
    parsed, or whose processing raises, is requeued until it has failed
    ``max_delivery_attempts`` times and is then rejected without requeue so
    the queue dead-letters it. ``max_delivery_attempts=0`` requeues forever.

    Failure counts live in this process only and at most
    ``max_tracked_failures`` bodies are tracked; the oldest count is dropped
    first, so a message that stops failing elsewhere does not linger here.
    """

    def __init__(
        self,
        broker: BrokerConnectionManager,
        topology: TopologyManager,
        processor: MessageProcessor,
        *,
        prefetch_count: int | None = None,
        max_delivery_attempts: int = 5,
        on_error: ErrorCallback | None = None,
        max_tracked_failures: int = DEFAULT_MAX_TRACKED_FAILURES,
    ) -> None:
        self._broker = broker
        self._topology = topology
        self._processor = processor
        self._prefetch_count = prefetch_count
        self._max_delivery_attempts = max_delivery_attempts
        self._on_error = on_error
        self._queue: AbstractQueue | None = None
        self._consumer_tag: str | None = None
        self._resume_on_reconnect = False
        self._max_tracked_failures = max_tracked_failures
        self._failed_attempts: OrderedDict[str, int] = OrderedDict()
        self._resume_task: asyncio.Task[str] | None = None
        self._broker.add_state_listener(self._on_broker_state)

    @property
    def consumer_tag(self) -> str | None:
        return self._consumer_tag

    @property
    def is_consuming(self) -> bool:
        return self._consumer_tag is not None

    async def start(self) -> str:
        """Begin consuming and return the consumer tag.

        Starting while a consumer is already active returns the active tag.
        """

        if self._consumer_tag is not None:
            logger.info("Notification consumer already active: %s", self._consumer_tag)
            return self._consumer_tag

        await self._topology.ensure_topology()
        channel = await self._broker.get_channel()
        if self._prefetch_count:
            await channel.set_qos(prefetch_count=self._prefetch_count)

        logger.info("Starting notification consumer on queue: %s", NOTIFICATIONS_QUEUE)
        queue = await channel.get_queue(NOTIFICATIONS_QUEUE)
        consumer_tag = await queue.consume(self.handle_message)

        self._queue = queue
        self._consumer_tag = consumer_tag
        self._resume_on_reconnect = True
        logger.info("Consumer started with tag: %s", consumer_tag)
        return consumer_tag

    async def stop(self, consumer_tag: str | None = None) -> None:
        """Cancel ``consumer_tag`` or, by default, the tracked consumer."""

        if consumer_tag is None:
            self._resume_on_reconnect = False
            await self._cancel_resume()

        tag = consumer_tag or self._consumer_tag
        if not tag:
            logger.info("No active consumer to stop")
            return

        queue = self._queue
        if queue is None or tag != self._consumer_tag:
            channel = await self._broker.get_channel()
            queue = await channel.get_queue(NOTIFICATIONS_QUEUE)
        await queue.cancel(tag)

        if tag == self._consumer_tag:
            self._consumer_tag = None
            self._queue = None
            self._resume_on_reconnect = False
        logger.info("Consumer stopped: %s", tag)

    async def handle_message(self, message: AbstractIncomingMessage) -> None:
        """Process one delivery and acknowledge or reject it."""

        notification: Notification | None = None
        try:
            envelope = QueueMessage.from_json(message.body)
            notification = envelope.notification
            await self._processor(envelope)
        except Exception as exc:
            logger.exception("Error processing notification message %s", message.message_id)
            self._report_error(exc, notification)
            await self._settle_failure(message)
            return

        if self._failed_attempts:
            self._failed_attempts.pop(self._message_key(message), None)
        await message.ack()

    async def _settle_failure(self, message: AbstractIncomingMessage) -> None:
        if self._max_delivery_attempts <= 0:
            await message.nack(requeue=True)
            return

        key = self._message_key(message)
        attempts = self._failed_attempts.get(key, 0) + 1
        if attempts >= self._max_delivery_attempts:
            self._failed_attempts.pop(key, None)
            logger.error(
                "Dead-lettering message %s after %s failed attempts",
                message.message_id,
                attempts,
            )
            await message.reject(requeue=False)
            return

        self._failed_attempts[key] = attempts
        self._failed_attempts.move_to_end(key)
        while len(self._failed_attempts) > self._max_tracked_failures:
            self._failed_attempts.popitem(last=False)
        logger.warning(
            "Requeueing message %s (failed attempt %s/%s)",
            message.message_id,
            attempts,
            self._max_delivery_attempts,
        )
        await message.nack(requeue=True)

    def _report_error(self, exc: Exception, notification: Notification | None) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(exc, notification)
        except Exception:
            logger.exception("Consumer error callback failed")

    @staticmethod
    def _message_key(message: AbstractIncomingMessage) -> str:
        return sha256(message.body).hexdigest()

    def _on_broker_state(self, state: ConnectionState) -> None:
        if state is ConnectionState.DISCONNECTED:
            self._consumer_tag = None
            self._queue = None
        elif state is ConnectionState.CONNECTED and self._resume_on_reconnect:
            if self._consumer_tag is None and self._resume_task is None:
                logger.info("Resuming notification consumer after reconnect")
                task = asyncio.get_running_loop().create_task(self.start())
                task.add_done_callback(self._on_resume_done)
                self._resume_task = task

    def _on_resume_done(self, task: "asyncio.Task[str]") -> None:
        if self._resume_task is task:
            self._resume_task = None
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            # Stays resumable; the next reconnect tries again.
            logger.error("Failed to resume notification consumer: %s", exc)

    async def _cancel_resume(self) -> None:
        task = self._resume_task
        self._resume_task = None
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)


__all__ = ["ErrorCallback", "MessageProcessor", "NotificationConsumer"]
