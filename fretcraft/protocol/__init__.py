"""Chat stream protocol: typed events and their SSE serialization."""
from __future__ import annotations

from fretcraft.protocol.emitter import (
    DONE_FRAME,
    ProtocolSerializationError,
    emit,
    parse_event,
    parse_sse_stream,
)
from fretcraft.protocol.events import (
    DoneEvent,
    ErrorEvent,
    LessonEvent,
    TextEvent,
    ToolResultEvent,
    ToolStartEvent,
)

__all__ = [
    "DONE_FRAME",
    "ProtocolSerializationError",
    "emit",
    "parse_event",
    "parse_sse_stream",
    "DoneEvent",
    "ErrorEvent",
    "LessonEvent",
    "TextEvent",
    "ToolResultEvent",
    "ToolStartEvent",
]
