"""Tests for the live stream registry."""

from __future__ import annotations

import asyncio
import json

import pytest

from notifyhub.domain.entities import Notification
from notifyhub.infrastructure.realtime import LiveStreamRegistry
from notifyhub.infrastructure.realtime.registry import CONNECTED_MESSAGE
from notifyhub.utils import utc_now
from tests.stubs import RecordingSink


def _parse(frame: str) -> tuple[str, dict]:
    event_line, data_line = frame.strip().split("\n")
    assert event_line.startswith("event: ")
    assert data_line.startswith("data: ")
    return event_line[len("event: ") :], json.loads(data_line[len("data: ") :])


def _notification(user_id: str = "u1") -> Notification:
    return Notification(
        id="notif_1",
        user_id=user_id,
        type="in-app",
        title="Hello",
        body="World",
        category="social",
        created_at=utc_now(),
    )


def test_second_registration_replaces_and_closes_the_first():
    registry = LiveStreamRegistry()
    first, second = RecordingSink(), RecordingSink()

    registry.register("u1", first)
    registry.register("u1", second)

    assert first.closed == 1
    assert registry.send("u1", "notification", {"id": "n1"}) is True
    assert first.frames == []
    assert len(second.frames) == 1
    assert registry.count == 1


def test_send_without_connection_returns_false():
    assert LiveStreamRegistry().send("ghost", "notification", {}) is False


def test_failed_write_evicts_the_connection():
    registry = LiveStreamRegistry()
    sink = RecordingSink(fail_writes=True)
    registry.register("u1", sink)

    assert registry.send("u1", "notification", {"id": "n1"}) is False
    assert not registry.is_connected("u1")
    assert sink.closed == 1


def test_remove_with_a_replaced_sink_keeps_the_successor():
    registry = LiveStreamRegistry()
    old, new = RecordingSink(), RecordingSink()
    registry.register("u1", old)
    registry.register("u1", new)

    assert registry.remove("u1", sink=old) is False
    assert registry.is_connected("u1")
    assert registry.remove("u1", sink=new) is True
    assert new.closed == 1
    assert registry.remove("u1") is False


def test_event_payloads():
    registry = LiveStreamRegistry()
    sink = RecordingSink()
    registry.register("u1", sink)

    registry.send_connected("u1")
    registry.send_notification(_notification())
    registry.send_heartbeat("u1")

    events = [_parse(frame) for frame in sink.frames]
    assert [name for name, _ in events] == ["connected", "notification", "heartbeat"]
    connected = events[0][1]
    assert connected["userId"] == "u1"
    assert connected["message"] == CONNECTED_MESSAGE
    assert isinstance(connected["timestamp"], int)
    assert events[1][1]["id"] == "notif_1"
    assert events[1][1]["userId"] == "u1"
    assert isinstance(events[2][1]["timestamp"], int)


def test_broadcast_counts_deliveries():
    registry = LiveStreamRegistry()
    registry.register("u1", RecordingSink())
    registry.register("u2", RecordingSink(fail_writes=True))

    stats = registry.broadcast("notification", {"id": "n1"})
    targeted = registry.send_to_many(["u1", "u3"], "notification", {"id": "n2"})

    assert (stats.sent, stats.failed) == (1, 1)
    assert (targeted.sent, targeted.failed) == (1, 1)
    assert registry.connected_users() == ["u1"]


def test_connection_info():
    registry = LiveStreamRegistry()
    registry.register("u1", RecordingSink())

    info = registry.connection_info("u1")

    assert info is not None
    assert info["connectedAt"].endswith("Z")
    assert set(info) == {"connectedAt", "lastActivity"}
    assert registry.connection_info("ghost") is None


@pytest.mark.asyncio
async def test_heartbeat_runs_until_stopped():
    registry = LiveStreamRegistry(heartbeat_interval=0.01)
    sink = RecordingSink()
    registry.register("u1", sink)
    stop = asyncio.Event()

    task = asyncio.create_task(registry.run_heartbeat("u1", stop, sink=sink))
    await asyncio.sleep(0.05)
    stop.set()
    await asyncio.wait_for(task, 1)

    beats = [_parse(frame)[0] for frame in sink.frames]
    assert beats
    assert set(beats) == {"heartbeat"}


@pytest.mark.asyncio
async def test_heartbeat_ends_when_the_stream_is_replaced():
    registry = LiveStreamRegistry(heartbeat_interval=0.01)
    old, new = RecordingSink(), RecordingSink()
    registry.register("u1", old)
    task = asyncio.create_task(registry.run_heartbeat("u1", asyncio.Event(), sink=old))

    registry.register("u1", new)

    await asyncio.wait_for(task, 1)
    assert new.frames == []
