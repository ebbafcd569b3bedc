"""Server-sent event framing."""

from __future__ import annotations

import json
from typing import Any


def encode_event(event: str, data: Any) -> str:
    """Return ``data`` framed as a server-sent event named ``event``.

    Strings are sent verbatim; anything else is JSON encoded.
    """

    payload = data if isinstance(data, str) else json.dumps(data)
    return f"event: {event}\ndata: {payload}\n\n"


__all__ = ["encode_event"]
