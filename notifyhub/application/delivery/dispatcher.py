"""Turn queue messages into gated, delivered and recorded notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Mapping

from notifyhub.domain.entities import Notification, QueueMessage
from notifyhub.domain.exceptions import HistoryStoreError
from notifyhub.infrastructure.cache import HistoryStore, PreferenceStore
from notifyhub.infrastructure.realtime import LiveStreamRegistry
from notifyhub.utils import utc_now

from .gating import evaluate_gates
from .handlers import DEFAULT_HANDLERS, DeliveryHandler, resolve_handler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchOutcome:
    """Result of processing one queue message.

    ``reason`` names the gate that suppressed delivery when ``delivered`` is
    ``False``.
    """

    notification: Notification
    delivered: bool
    reason: str | None = None


class NotificationDispatcher:
    """Apply preference gates and run the delivery handler for a message.

    Once a handler succeeds the notification is appended to the user's history
    and pushed to their live stream. Those follow-up steps only log failures,
    the delivery itself already happened.
    """

    def __init__(
        self,
        preferences: PreferenceStore,
        *,
        handlers: Mapping[str, DeliveryHandler] | None = None,
        history: HistoryStore | None = None,
        registry: LiveStreamRegistry | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._preferences = preferences
        self._handlers = dict(DEFAULT_HANDLERS if handlers is None else handlers)
        self._history = history
        self._registry = registry
        self._clock = clock

    async def dispatch(self, message: QueueMessage) -> DispatchOutcome:
        """Deliver ``message`` unless a gate suppresses it.

        Handler errors, and a missing handler, propagate to the caller.
        """

        notification = message.notification
        preferences = await self._preferences.get(notification.user_id)

        reason = evaluate_gates(notification, preferences, self._clock())
        if reason is not None:
            logger.info(
                "Notification %s for user %s suppressed: %s",
                notification.id,
                notification.user_id,
                reason,
            )
            return DispatchOutcome(notification=notification, delivered=False, reason=reason)

        handler = resolve_handler(notification.type, self._handlers)
        await handler(notification, preferences)
        logger.info(
            "Delivered %s notification %s to user %s",
            notification.type,
            notification.id,
            notification.user_id,
        )

        await self._fan_out(notification)
        return DispatchOutcome(notification=notification, delivered=True)

    async def _fan_out(self, notification: Notification) -> None:
        if self._history is not None:
            try:
                await self._history.append(notification)
            except HistoryStoreError as exc:
                logger.warning(
                    "Notification %s delivered but not stored in history: %s",
                    notification.id,
                    exc,
                )
        if self._registry is not None and not self._registry.send_notification(notification):
            logger.debug(
                "User %s has no live stream for notification %s",
                notification.user_id,
                notification.id,
            )


__all__ = ["DispatchOutcome", "NotificationDispatcher"]
