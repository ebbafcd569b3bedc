"""Tests for exchange and queue declarations."""

from __future__ import annotations

import pytest
from aio_pika import ExchangeType

from notifyhub.domain.exceptions import TopologySetupError
from notifyhub.infrastructure.broker import TopologyManager
from notifyhub.infrastructure.broker.topology import DEAD_LETTER_TTL_MS


@pytest.mark.asyncio
async def test_ensure_topology_declares_everything(broker, connection):
    topology = TopologyManager(broker)

    await topology.ensure_topology()

    channel = connection.channels[0]
    assert channel.exchanges["notifications.dlx"].type == ExchangeType.DIRECT
    assert channel.exchanges["notifications.exchange"].type == ExchangeType.TOPIC

    dead_letter_queue = channel.queues["notifications.dlq"]
    assert dead_letter_queue.arguments == {"x-message-ttl": DEAD_LETTER_TTL_MS}
    assert dead_letter_queue.bindings == [("notifications.dlx", "dead-letter")]

    queue = channel.queues["notifications.queue"]
    assert queue.durable is True
    assert queue.arguments == {
        "x-dead-letter-exchange": "notifications.dlx",
        "x-dead-letter-routing-key": "dead-letter",
    }
    assert sorted(key for _, key in queue.bindings) == [
        "notification.email",
        "notification.in-app",
        "notification.push",
    ]
    assert topology.is_ready


@pytest.mark.asyncio
async def test_ensure_topology_is_idempotent(broker, connection):
    topology = TopologyManager(broker)
    await topology.ensure_topology()
    channel = connection.channels[0]
    declared = dict(channel.queues)

    await topology.ensure_topology()

    assert channel.queues == declared
    assert len(channel.queues["notifications.queue"].bindings) == 3


@pytest.mark.asyncio
async def test_failed_setup_can_be_retried(broker, connection):
    topology = TopologyManager(broker)
    channel = await broker.get_channel()
    channel.fail_declarations = True

    with pytest.raises(TopologySetupError):
        await topology.ensure_topology()
    assert not topology.is_ready

    channel.fail_declarations = False
    await topology.ensure_topology()
    assert topology.is_ready
