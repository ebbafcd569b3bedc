"""Per-type delivery handlers invoked once a notification passes its gates."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Awaitable, Callable, Mapping

from anyio import to_thread

from notifyhub.domain.entities import NOTIFICATION_TYPES, Notification, UserPreferences
from notifyhub.domain.exceptions import (
    MissingDeliveryHandlerError,
    NotificationDeliveryError,
    UnknownNotificationTypeError,
)
from notifyhub.infrastructure.email import SendGridEmailSender, render_notification_html

logger = logging.getLogger(__name__)

DeliveryHandler = Callable[[Notification, UserPreferences], Awaitable[None]]


async def log_email_delivery(notification: Notification, preferences: UserPreferences) -> None:
    logger.info(
        "Sending email notification %s to user %s: %s",
        notification.id,
        notification.user_id,
        notification.title,
    )


async def log_push_delivery(notification: Notification, preferences: UserPreferences) -> None:
    logger.info(
        "Sending push notification %s to user %s: %s",
        notification.id,
        notification.user_id,
        notification.title,
    )


async def log_in_app_delivery(notification: Notification, preferences: UserPreferences) -> None:
    logger.info(
        "Delivering in-app notification %s to user %s: %s",
        notification.id,
        notification.user_id,
        notification.title,
    )


DEFAULT_HANDLERS: Mapping[str, DeliveryHandler] = MappingProxyType(
    {
        "email": log_email_delivery,
        "push": log_push_delivery,
        "in-app": log_in_app_delivery,
    }
)


def build_handler_table(
    overrides: Mapping[str, DeliveryHandler | None] | None = None,
) -> dict[str, DeliveryHandler]:
    """Merge ``overrides`` over the default handlers.

    Mapping a type to ``None`` removes its handler, which makes dispatching
    that type fail with :class:`MissingDeliveryHandlerError`.
    """

    table: dict[str, DeliveryHandler | None] = dict(DEFAULT_HANDLERS)
    for notification_type, handler in (overrides or {}).items():
        if notification_type not in NOTIFICATION_TYPES:
            raise UnknownNotificationTypeError(notification_type)
        table[notification_type] = handler
    return {key: value for key, value in table.items() if value is not None}


def resolve_handler(
    notification_type: str, handlers: Mapping[str, DeliveryHandler] | None = None
) -> DeliveryHandler:
    """Return the handler responsible for ``notification_type``."""

    if notification_type not in NOTIFICATION_TYPES:
        raise UnknownNotificationTypeError(notification_type)
    table = DEFAULT_HANDLERS if handlers is None else handlers
    handler = table.get(notification_type)
    if handler is None:
        raise MissingDeliveryHandlerError(notification_type)
    return handler


def build_email_handler(sender: SendGridEmailSender) -> DeliveryHandler:
    """Return an ``email`` handler that sends through ``sender``.

    The recipient address is read from ``metadata["email"]``; notifications
    without one are skipped.
    """

    async def deliver_email(notification: Notification, preferences: UserPreferences) -> None:
        recipient = (notification.metadata or {}).get("email")
        if not recipient:
            logger.warning(
                "Notification %s has no email address in metadata; skipping email delivery",
                notification.id,
            )
            return

        html_content = render_notification_html(notification.title, notification.body)
        sent = await to_thread.run_sync(
            sender.send, notification.title, html_content, str(recipient)
        )
        if not sent:
            raise NotificationDeliveryError(
                f"Email delivery failed for notification {notification.id}"
            )
        logger.info("Email notification %s sent to user %s", notification.id, notification.user_id)

    return deliver_email


__all__ = [
    "DEFAULT_HANDLERS",
    "DeliveryHandler",
    "build_email_handler",
    "build_handler_table",
    "log_email_delivery",
    "log_in_app_delivery",
    "log_push_delivery",
    "resolve_handler",
]
