"""Publish a notification to the broker from the command line."""

from __future__ import annotations

import argparse
import asyncio
import json

from notifyhub.config import get_settings
from notifyhub.domain.entities import NOTIFICATION_CATEGORIES, NOTIFICATION_TYPES
from notifyhub.domain.exceptions import NotificationError
from notifyhub.infrastructure.broker import (
    BrokerConnectionManager,
    NotificationPublisher,
    TopologyManager,
)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments describing the notification."""

    parser = argparse.ArgumentParser(description="Publish a notification to RabbitMQ.")
    parser.add_argument(
        "--user",
        dest="user_ids",
        action="append",
        required=True,
        help="Recipient user id; repeat to broadcast to several users",
    )
    parser.add_argument("--type", choices=NOTIFICATION_TYPES, default="in-app")
    parser.add_argument("--category", choices=NOTIFICATION_CATEGORIES, default="updates")
    parser.add_argument("--title", required=True)
    parser.add_argument("--body", required=True)
    parser.add_argument(
        "--metadata",
        default=None,
        help='JSON object attached to the notification, e.g. \'{"email": "a@b.c"}\'',
    )
    return parser.parse_args()


async def publish(args: argparse.Namespace) -> None:
    settings = get_settings()
    metadata = json.loads(args.metadata) if args.metadata else None
    broker = BrokerConnectionManager(
        settings.rabbitmq_url,
        reconnect_interval=settings.rabbitmq_reconnect_interval,
        max_retries=settings.rabbitmq_max_retries,
    )
    publisher = NotificationPublisher(broker, TopologyManager(broker))
    try:
        notifications = await publisher.broadcast_notification(
            args.user_ids, args.type, args.title, args.body, args.category, metadata
        )
    finally:
        await broker.close()

    for notification in notifications:
        print(f"Published {notification.id} to user {notification.user_id}")


def main() -> None:
    """Publish the notification described by the command line arguments."""

    args = parse_args()
    try:
        asyncio.run(publish(args))
    except json.JSONDecodeError as exc:
        raise SystemExit(f"--metadata is not valid JSON: {exc}") from exc
    except NotificationError as exc:
        raise SystemExit(f"Could not publish notification: {exc}") from exc


if __name__ == "__main__":
    main()
