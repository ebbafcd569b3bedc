"""RabbitMQ infrastructure: connection, topology, publishing and consuming."""

from .connection import BrokerConnectionManager, ConnectionState
from .consumer import ErrorCallback, MessageProcessor, NotificationConsumer
from .publisher import NotificationPublisher
from .topology import (
    DEAD_LETTER_ROUTING_KEY,
    NOTIFICATIONS_DLQ,
    NOTIFICATIONS_DLX,
    NOTIFICATIONS_EXCHANGE,
    NOTIFICATIONS_QUEUE,
    TopologyManager,
)

__all__ = [
    "BrokerConnectionManager",
    "ConnectionState",
    "DEAD_LETTER_ROUTING_KEY",
    "ErrorCallback",
    "MessageProcessor",
    "NOTIFICATIONS_DLQ",
    "NOTIFICATIONS_DLX",
    "NOTIFICATIONS_EXCHANGE",
    "NOTIFICATIONS_QUEUE",
    "NotificationConsumer",
    "NotificationPublisher",
    "TopologyManager",
]
