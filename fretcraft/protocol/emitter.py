"""Typed SSE event emitter and parser.

  ``emit(LessonEvent)``: serialize a typed event to SSE wire format.
  ``parse_event(dict)``: deserialize a wire-format dict back into the
                           right ``LessonEvent`` subclass (inverse of ``emit``).

Streams end with ``DONE_FRAME`` after the last event.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping

from pydantic import ValidationError

from fretcraft.protocol.events import EVENT_REGISTRY, LessonEvent

logger = logging.getLogger(__name__)

DONE_FRAME = "data: [DONE]\n\n"


class ProtocolSerializationError(Exception):
    """Raised when an event dict fails protocol validation."""


def emit(event: LessonEvent) -> str:
    """Serialize a LessonEvent to SSE wire format.

    Returns ``data: {json}\\n\\n``.

    Raises TypeError for non-LessonEvent arguments.
    Raises ValueError for unregistered event types.
    """
    if not isinstance(event, LessonEvent):
        raise TypeError(
            f"emit() requires a LessonEvent, got {type(event).__name__}."
        )

    if event.type not in EVENT_REGISTRY:
        raise ValueError(f"Unknown event type '{event.type}'.")

    data = event.model_dump(mode="json", by_alias=True, exclude_none=True)
    return f"data: {json.dumps(data, separators=(',', ':'), ensure_ascii=False)}\n\n"


def parse_event(data: Mapping[str, object]) -> LessonEvent:
    """Deserialize a wire-format dict into the matching LessonEvent subclass.

    Raises ``ProtocolSerializationError`` for unknown or malformed events.
    """
    event_type = data.get("type")
    if not isinstance(event_type, str):
        raise ProtocolSerializationError("Event dict missing 'type' field")

    model_class = EVENT_REGISTRY.get(event_type)
    if model_class is None:
        raise ProtocolSerializationError(f"Unknown event type '{event_type}'")

    try:
        return model_class.model_validate(dict(data))
    except ValidationError as e:
        logger.error(f"Malformed '{event_type}' event: {e}")
        raise ProtocolSerializationError(f"Malformed '{event_type}' event: {e}") from e


def parse_sse_stream(body: str) -> list[LessonEvent]:
    """Parse a complete SSE body into events, stopping at ``[DONE]``."""
    events: list[LessonEvent] = []
    for frame in body.split("\n\n"):
        frame = frame.strip()
        if not frame.startswith("data: "):
            continue
        payload = frame[6:]
        if payload == "[DONE]":
            break
        events.append(parse_event(json.loads(payload)))
    return events
