"""Wire the delivery pipeline together and own its lifecycle."""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

from redis.asyncio import Redis as AsyncRedis

from notifyhub.application.delivery import (
    DeliveryHandler,
    NotificationDispatcher,
    build_email_handler,
    build_handler_table,
)
from notifyhub.config import Settings, get_settings
from notifyhub.domain.exceptions import PreferenceStoreError
from notifyhub.infrastructure.broker import (
    BrokerConnectionManager,
    ErrorCallback,
    NotificationConsumer,
    NotificationPublisher,
    TopologyManager,
)
from notifyhub.infrastructure.cache import (
    HistoryStore,
    PreferenceStore,
    close_redis_client,
    create_redis_client,
)
from notifyhub.infrastructure.email import SendGridEmailSender
from notifyhub.infrastructure.realtime import LiveStreamRegistry

from .health import HealthReport, build_health_report

logger = logging.getLogger(__name__)


class NotificationService:
    """Container holding every pipeline component for one process.

    Nothing touches the network until :meth:`start`; :meth:`stop` releases
    the consumer, live streams, broker connection and Redis client.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        broker: BrokerConnectionManager,
        redis: AsyncRedis,
        handlers: Mapping[str, DeliveryHandler | None] | None = None,
        email_sender: SendGridEmailSender | None = None,
        on_consumer_error: ErrorCallback | None = None,
    ) -> None:
        self.settings = settings
        self.broker = broker
        self.redis = redis
        self.topology = TopologyManager(broker)
        self.publisher = NotificationPublisher(broker, self.topology)
        self.preferences = PreferenceStore(redis, ttl_seconds=settings.preferences_ttl_seconds)
        self.history = HistoryStore(
            redis,
            max_entries=settings.history_max_entries,
            ttl_seconds=settings.history_ttl_seconds,
            default_page_size=settings.history_default_page_size,
        )
        self.registry = LiveStreamRegistry(heartbeat_interval=settings.sse_heartbeat_interval)

        overrides: dict[str, DeliveryHandler | None] = dict(handlers or {})
        if email_sender is not None and "email" not in overrides:
            overrides["email"] = build_email_handler(email_sender)
        self.dispatcher = NotificationDispatcher(
            self.preferences,
            handlers=build_handler_table(overrides),
            history=self.history,
            registry=self.registry,
        )
        self.consumer = NotificationConsumer(
            broker,
            self.topology,
            self.dispatcher.dispatch,
            prefetch_count=settings.consumer_prefetch_count,
            max_delivery_attempts=settings.consumer_max_delivery_attempts,
            on_error=on_consumer_error,
        )
        self._started_at = time.monotonic()
        self._running = False

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs: Any) -> "NotificationService":
        """Build a service connected to the broker and Redis named in ``settings``."""

        settings = settings or get_settings()
        broker = BrokerConnectionManager(
            settings.rabbitmq_url,
            reconnect_interval=settings.rabbitmq_reconnect_interval,
            max_retries=settings.rabbitmq_max_retries,
        )
        kwargs.setdefault("email_sender", SendGridEmailSender.from_settings(settings))
        return cls(
            settings,
            broker=broker,
            redis=create_redis_client(settings.redis_url),
            **kwargs,
        )

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Connect, declare the topology and optionally start consuming.

        Broker and topology failures propagate; the service must not accept
        traffic without them.
        """

        if self._running:
            return

        logger.info("Starting notification service")
        await self.broker.connect()
        await self.topology.ensure_topology()
        try:
            await self.preferences.cache_notification_settings()
        except PreferenceStoreError as exc:
            logger.warning("Notification settings were not cached: %s", exc)
        if self.settings.consumer_autostart:
            await self.consumer.start()

        self._started_at = time.monotonic()
        self._running = True
        logger.info("Notification service started")

    async def stop(self) -> None:
        """Stop consuming and release every external resource."""

        logger.info("Stopping notification service")
        if self.consumer.is_consuming:
            try:
                await self.consumer.stop()
            except Exception:
                logger.exception("Error stopping notification consumer")

        for user_id in self.registry.connected_users():
            self.registry.remove(user_id)

        await self.broker.close()
        await close_redis_client(self.redis)
        self._running = False
        logger.info("Notification service stopped")

    async def check_health(self) -> HealthReport:
        return await build_health_report(self.redis, self.broker, started_at=self._started_at)


__all__ = ["NotificationService"]
