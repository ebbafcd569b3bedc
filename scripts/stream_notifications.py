"""Follow a user's notification stream and print every event."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Any

from notifyhub.client import ReconnectingStreamSubscriber, SubscriberStatus


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Print live notifications for a user.")
    parser.add_argument("--user", required=True, help="User id to subscribe as")
    parser.add_argument(
        "--base-url",
        default="http://localhost:8000",
        help="Base URL of the notification API (default: http://localhost:8000)",
    )
    parser.add_argument("--reconnect-interval", type=float, default=5.0)
    parser.add_argument("--max-reconnect-attempts", type=int, default=10)
    return parser.parse_args()


def _print_event(name: str) -> Any:
    def handler(data: Any) -> None:
        print(f"[{name}] {json.dumps(data)}", flush=True)

    return handler


async def follow(args: argparse.Namespace) -> None:
    finished = asyncio.Event()

    def on_status_change(status: SubscriberStatus) -> None:
        print(f"[status] {status.value}", flush=True)
        if status is SubscriberStatus.DISCONNECTED:
            finished.set()

    subscriber = ReconnectingStreamSubscriber(
        args.base_url,
        args.user,
        on_notification=_print_event("notification"),
        on_connected=_print_event("connected"),
        on_heartbeat=_print_event("heartbeat"),
        on_status_change=on_status_change,
        reconnect_interval=args.reconnect_interval,
        max_reconnect_attempts=args.max_reconnect_attempts,
        auto_connect=False,
    )
    async with subscriber:
        subscriber.connect()
        await finished.wait()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    try:
        asyncio.run(follow(parse_args()))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
