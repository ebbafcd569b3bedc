"""Exchange, queue and binding declarations for the notification pipeline."""

from __future__ import annotations

import logging
from typing import Any, Final

from aio_pika import ExchangeType

from notifyhub.domain.entities import ROUTING_KEYS
from notifyhub.domain.exceptions import TopologySetupError

from .connection import BrokerConnectionManager

logger = logging.getLogger(__name__)

NOTIFICATIONS_EXCHANGE: Final[str] = "notifications.exchange"
NOTIFICATIONS_QUEUE: Final[str] = "notifications.queue"
NOTIFICATIONS_DLX: Final[str] = "notifications.dlx"
NOTIFICATIONS_DLQ: Final[str] = "notifications.dlq"
DEAD_LETTER_ROUTING_KEY: Final[str] = "dead-letter"
DEAD_LETTER_TTL_MS: Final[int] = 7 * 24 * 60 * 60 * 1000

MAIN_QUEUE_ARGUMENTS: Final[dict[str, Any]] = {
    "x-dead-letter-exchange": NOTIFICATIONS_DLX,
    "x-dead-letter-routing-key": DEAD_LETTER_ROUTING_KEY,
}
DEAD_LETTER_QUEUE_ARGUMENTS: Final[dict[str, Any]] = {
    "x-message-ttl": DEAD_LETTER_TTL_MS,
}


class TopologyManager:
    """Declare the broker topology once per process.

    The readiness flag is only raised after every declaration succeeded, so a
    failed attempt can simply be retried.
    """

    def __init__(self, broker: BrokerConnectionManager) -> None:
        self._broker = broker
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    def reset(self) -> None:
        """Forget a previous successful setup so the next call re-declares."""

        self._ready = False

    async def ensure_topology(self) -> None:
        """Declare exchanges, queues and bindings if not done already."""

        if self._ready:
            logger.debug("Notification topology already set up")
            return

        logger.info("Setting up notification topology...")
        try:
            channel = await self._broker.get_channel()

            dead_letter_exchange = await channel.declare_exchange(
                NOTIFICATIONS_DLX, ExchangeType.DIRECT, durable=True
            )
            logger.info("Declared dead letter exchange: %s", NOTIFICATIONS_DLX)

            exchange = await channel.declare_exchange(
                NOTIFICATIONS_EXCHANGE, ExchangeType.TOPIC, durable=True
            )
            logger.info("Declared notifications exchange: %s", NOTIFICATIONS_EXCHANGE)

            dead_letter_queue = await channel.declare_queue(
                NOTIFICATIONS_DLQ,
                durable=True,
                arguments=dict(DEAD_LETTER_QUEUE_ARGUMENTS),
            )
            await dead_letter_queue.bind(
                dead_letter_exchange, routing_key=DEAD_LETTER_ROUTING_KEY
            )
            logger.info("Bound %s to %s", NOTIFICATIONS_DLQ, NOTIFICATIONS_DLX)

            queue = await channel.declare_queue(
                NOTIFICATIONS_QUEUE,
                durable=True,
                arguments=dict(MAIN_QUEUE_ARGUMENTS),
            )
            for routing_key in ROUTING_KEYS.values():
                await queue.bind(exchange, routing_key=routing_key)
                logger.info(
                    "Bound %s to %s with key: %s",
                    NOTIFICATIONS_QUEUE,
                    NOTIFICATIONS_EXCHANGE,
                    routing_key,
                )
        except Exception as exc:
            logger.error("Failed to set up notification topology: %s", exc)
            raise TopologySetupError(f"Failed to set up notification topology: {exc}") from exc

        self._ready = True
        logger.info("Notification topology setup complete")


__all__ = [
    "DEAD_LETTER_QUEUE_ARGUMENTS",
    "DEAD_LETTER_ROUTING_KEY",
    "DEAD_LETTER_TTL_MS",
    "MAIN_QUEUE_ARGUMENTS",
    "NOTIFICATIONS_DLQ",
    "NOTIFICATIONS_DLX",
    "NOTIFICATIONS_EXCHANGE",
    "NOTIFICATIONS_QUEUE",
    "TopologyManager",
]
