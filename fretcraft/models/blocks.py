"""Lesson blocks: the closed set of content variants a lesson can hold.

``LessonBlock`` is a discriminated union on ``type``; use ``LESSON_BLOCK_ADAPTER``
to validate an arbitrary dict into the right variant.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from fretcraft.models.base import CamelModel
from fretcraft.models.diagrams import ChordDiagramData, FretboardDiagramData

BlockType = Literal["TextBlock", "ChordDiagram", "FretboardDiagram", "VideoEmbed"]
CreatedBy = Literal["ai", "user"]

# Fields no update path may change.
IMMUTABLE_BLOCK_FIELDS: tuple[str, ...] = ("id", "type", "createdBy", "createdAt")


class BaseBlock(CamelModel):
    """Common fields for all block types."""

    id: str = Field(min_length=1)
    created_by: CreatedBy
    created_at: datetime


class TextBlock(BaseBlock):
    """Markdown content."""

    type: Literal["TextBlock"] = "TextBlock"
    content: str


class ChordDiagramBlock(BaseBlock):
    type: Literal["ChordDiagram"] = "ChordDiagram"
    data: ChordDiagramData
    animate: Optional[bool] = None
    show_intervals: Optional[bool] = None


class FretboardDiagramBlock(BaseBlock):
    type: Literal["FretboardDiagram"] = "FretboardDiagram"
    data: FretboardDiagramData
    highlight_roots: Optional[bool] = None


class VideoSource(CamelModel):
    """A YouTube embed reference."""

    provider: Literal["youtube"] = "youtube"
    video_id: str = Field(min_length=1)
    start_time_seconds: Optional[Annotated[int, Field(strict=True, ge=0)]] = None


class VideoEmbedBlock(BaseBlock):
    type: Literal["VideoEmbed"] = "VideoEmbed"
    video: VideoSource


LessonBlock = Annotated[
    Union[TextBlock, ChordDiagramBlock, FretboardDiagramBlock, VideoEmbedBlock],
    Field(discriminator="type"),
]

LESSON_BLOCK_ADAPTER: TypeAdapter[LessonBlock] = TypeAdapter(LessonBlock)


def dump_block(block: LessonBlock) -> dict[str, object]:
    """Serialize a block to its camelCase JSON wire shape."""
    return block.model_dump(mode="json", by_alias=True, exclude_none=True)
