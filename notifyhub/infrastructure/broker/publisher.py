"""Publish notifications to the broker exchange."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from aio_pika import DeliveryMode, Message
from aio_pika.exceptions import AMQPError, DeliveryError

from notifyhub.domain.entities import (
    Notification,
    NotificationInput,
    QueueMessage,
    routing_key_for,
)
from notifyhub.domain.exceptions import NotificationDeliveryError
from notifyhub.utils import generate_notification_id, utc_now

from .connection import BrokerConnectionManager
from .topology import NOTIFICATIONS_EXCHANGE, TopologyManager

logger = logging.getLogger(__name__)


class NotificationPublisher:
    """Build notifications from caller input and hand them to the broker."""

    def __init__(self, broker: BrokerConnectionManager, topology: TopologyManager) -> None:
        self._broker = broker
        self._topology = topology

    async def publish(self, data: NotificationInput) -> Notification:
        """Publish a single notification and return it as created."""

        data.validate()
        await self._topology.ensure_topology()

        notification = Notification(
            id=generate_notification_id(),
            user_id=data.user_id,
            type=data.type,
            title=data.title,
            body=data.body,
            category=data.category,
            metadata=dict(data.metadata) if data.metadata is not None else None,
            created_at=utc_now(),
        )
        routing_key = routing_key_for(notification.type)
        envelope = QueueMessage(notification=notification, routing_key=routing_key)

        message = Message(
            body=envelope.to_json(),
            content_type="application/json",
            delivery_mode=DeliveryMode.PERSISTENT,
            message_id=notification.id,
            timestamp=envelope.timestamp,
        )

        channel = await self._broker.get_channel()
        exchange = await channel.get_exchange(NOTIFICATIONS_EXCHANGE, ensure=False)
        try:
            await exchange.publish(message, routing_key=routing_key)
        except (DeliveryError, AMQPError) as exc:
            logger.error("Broker rejected notification %s: %s", notification.id, exc)
            raise NotificationDeliveryError(
                "Failed to publish notification to exchange"
            ) from exc

        logger.info(
            "Published notification %s with routing key: %s", notification.id, routing_key
        )
        return notification

    async def publish_batch(self, inputs: Iterable[NotificationInput]) -> list[Notification]:
        """Publish ``inputs`` one after another.

        The first failure stops the batch; notifications published before it
        stay published.
        """

        notifications: list[Notification] = []
        for data in inputs:
            notifications.append(await self.publish(data))
        logger.info("Published %s notifications", len(notifications))
        return notifications

    async def notify_user(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        body: str,
        category: str,
        metadata: dict[str, Any] | None = None,
    ) -> Notification:
        return await self.publish(
            NotificationInput(
                user_id=user_id,
                type=notification_type,
                title=title,
                body=body,
                category=category,
                metadata=metadata,
            )
        )

    async def broadcast_notification(
        self,
        user_ids: Sequence[str],
        notification_type: str,
        title: str,
        body: str,
        category: str,
        metadata: dict[str, Any] | None = None,
    ) -> list[Notification]:
        """Publish one independent notification per user in ``user_ids``."""

        return await self.publish_batch(
            NotificationInput(
                user_id=user_id,
                type=notification_type,
                title=title,
                body=body,
                category=category,
                metadata=metadata,
            )
            for user_id in user_ids
        )


__all__ = ["NotificationPublisher"]
