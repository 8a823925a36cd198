"""Block construction helpers.

Every block gets a fresh ``uuid4`` id and a UTC ``createdAt`` at the moment it
is built.  The tool executor builds AI blocks here; the block routes build
user blocks here.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from fretcraft.models.blocks import (
    LESSON_BLOCK_ADAPTER,
    ChordDiagramBlock,
    CreatedBy,
    FretboardDiagramBlock,
    LessonBlock,
    TextBlock,
    VideoEmbedBlock,
    VideoSource,
)
from fretcraft.models.diagrams import ChordDiagramData, FretboardDiagramData


def generate_block_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def chord_diagram_block(data: ChordDiagramData, created_by: CreatedBy = "ai") -> ChordDiagramBlock:
    return ChordDiagramBlock(
        id=generate_block_id(),
        created_by=created_by,
        created_at=utc_now(),
        data=data,
        animate=True,
        show_intervals=True,
    )


def fretboard_diagram_block(
    data: FretboardDiagramData,
    created_by: CreatedBy = "ai",
) -> FretboardDiagramBlock:
    return FretboardDiagramBlock(
        id=generate_block_id(),
        created_by=created_by,
        created_at=utc_now(),
        data=data,
        highlight_roots=True,
    )


def text_block(content: str, created_by: CreatedBy = "ai") -> TextBlock:
    return TextBlock(
        id=generate_block_id(),
        created_by=created_by,
        created_at=utc_now(),
        content=content,
    )


def video_embed_block(
    video_id: str,
    start_time_seconds: int | None = None,
    created_by: CreatedBy = "ai",
) -> VideoEmbedBlock:
    return VideoEmbedBlock(
        id=generate_block_id(),
        created_by=created_by,
        created_at=utc_now(),
        video=VideoSource(video_id=video_id, start_time_seconds=start_time_seconds),
    )


def block_from_payload(payload: dict[str, Any], created_by: CreatedBy = "user") -> LessonBlock:
    """Validate a client-supplied block body and stamp server-owned fields.

    Any ``id`` / ``createdBy`` / ``createdAt`` in ``payload`` is overwritten.
    Raises ``pydantic.ValidationError`` when the body is not a valid variant.
    """
    stamped = {
        **payload,
        "id": generate_block_id(),
        "createdBy": created_by,
        "createdAt": utc_now(),
    }
    return LESSON_BLOCK_ADAPTER.validate_python(stamped)
