"""Server-sent event framing for the notification stream.

Each event is a single ``data: <JSON>`` record followed by a blank line.
"""

import json
import logging
from typing import Any, AsyncIterable, AsyncIterator, Dict

logger = logging.getLogger(__name__)

EVENT_STREAM_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # disable nginx buffering
}


def format_event(payload: Dict[str, Any]) -> bytes:
    """Encode one event record.

    Args:
        payload: JSON-serializable event body.

    Returns:
        UTF-8 bytes ``data: {...}\\n\\n``.
    """
    return f"data: {json.dumps(payload)}\n\n".encode("utf-8")


async def iter_events(lines: AsyncIterable[bytes]) -> AsyncIterator[Dict[str, Any]]:
    """Decode event records from a line stream.

    Args:
        lines: Async iterable of raw lines, e.g. an aiohttp ``StreamReader``.

    Yields:
        Decoded event payloads. Records that are not valid JSON objects
        are skipped.
    """
    data: list[str] = []

    async for raw in lines:
        line = raw.decode("utf-8").rstrip("\r\n")

        if not line:
            if data:
                payload = _decode("\n".join(data))
                data = []
                if payload is not None:
                    yield payload
            continue

        if line.startswith(":"):
            continue  # comment / keepalive

        field, _, value = line.partition(":")
        if field == "data":
            data.append(value[1:] if value.startswith(" ") else value)

    if data:
        payload = _decode("\n".join(data))
        if payload is not None:
            yield payload


def _decode(text: str) -> Dict[str, Any] | None:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Skipping malformed event record")
        return None
    return payload if isinstance(payload, dict) else None
