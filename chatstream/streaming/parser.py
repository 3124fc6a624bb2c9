"""Event parser: decode one SSE block into a typed StreamEvent.

A block is expected to carry one ``event: <type>`` line and one
``data: <json>`` line. Only the first line of each kind is honoured;
the backend emits one event per block, so later duplicates are ignored
rather than merged.

Malformed payloads are logged and dropped so a single bad block never
ends the stream.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from chatstream.exceptions import DecodeError
from chatstream.streaming.events import EVENT_TYPES, StreamEvent, stream_event_adapter

logger = logging.getLogger(__name__)

EVENT_PREFIX = "event: "
DATA_PREFIX = "data: "


def split_block(block: str) -> tuple[str, str] | None:
    """Extract the event type and raw data text from a block.

    Returns:
        ``(event_type, data)`` or None when either line is missing or empty.
    """
    event_type: str | None = None
    data: str | None = None

    for line in block.split("\n"):
        if event_type is None and line.startswith(EVENT_PREFIX):
            event_type = line[len(EVENT_PREFIX) :].strip()
        elif data is None and line.startswith(DATA_PREFIX):
            data = line[len(DATA_PREFIX) :]

    if not event_type or not data:
        return None
    return event_type, data


def decode_event(event_type: str, data: str) -> StreamEvent:
    """Decode and validate the payload of a known event type.

    Raises:
        DecodeError: If the payload is not JSON, not an object, or does not
            match the shape of ``event_type``.
    """
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON payload: {e}", event_type=event_type) from e

    if not isinstance(payload, dict):
        raise DecodeError(
            f"Expected a JSON object, got {type(payload).__name__}",
            event_type=event_type,
        )

    try:
        return stream_event_adapter.validate_python({**payload, "type": event_type})
    except ValidationError as e:
        raise DecodeError(
            f"Payload does not match '{event_type}' event: {e.error_count()} error(s)",
            event_type=event_type,
        ) from e


def parse_event_block(block: str) -> StreamEvent | None:
    """Parse one SSE block.

    Returns:
        The typed event, or None if the block lacks a marker, names an
        unknown event type, or carries a malformed payload.
    """
    parts = split_block(block)
    if parts is None:
        return None

    event_type, data = parts
    if event_type not in EVENT_TYPES:
        logger.debug("Ignoring unknown SSE event type '%s'", event_type)
        return None

    try:
        return decode_event(event_type, data)
    except DecodeError as e:
        logger.warning(
            "Failed to parse SSE message (%s): %s. Raw data: %s",
            event_type,
            e,
            data[:200],
        )
        return None
