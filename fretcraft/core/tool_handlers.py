"""
Tool executor.

Turns one named tool invocation from the model into either a new lesson block,
a piece of lookup data, or an error.  Nothing here touches lesson state; the
planner receives the blocks later.  No exception escapes ``handle_tool_call``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Annotated, Optional

from pydantic import Field, StrictStr, ValidationError

from fretcraft.contracts.json_types import JSONObject
from fretcraft.core.blocks import (
    chord_diagram_block,
    fretboard_diagram_block,
    generate_block_id,
    text_block,
    video_embed_block,
)
from fretcraft.core.tools import ToolName
from fretcraft.models.base import CamelModel
from fretcraft.models.blocks import LessonBlock
from fretcraft.models.diagrams import ChordDiagramData, FretboardDiagramData
from fretcraft.reference.chord_voicings import lookup_voicings

logger = logging.getLogger(__name__)


@dataclass
class ToolCall:
    """A completed tool invocation from the model."""

    id: str
    name: str
    input: object = field(default_factory=dict)


class ToolCallResult(CamelModel):
    """Outcome of one tool call.

    Block-producing tools set ``block``; ``lookup_chord_voicing`` sets ``data``.
    """

    success: bool
    block: Optional[LessonBlock] = None
    data: Optional[dict[str, object]] = None
    error: Optional[str] = None

    def feedback(self) -> JSONObject:
        """Payload sent back to the model as the tool_result content."""
        if not self.success:
            return {"success": False, "error": self.error}
        if self.block is not None:
            return {"success": True, "blockId": self.block.id}
        return {"success": True, "data": self.model_dump(mode="json")["data"]}


@dataclass
class FieldError:
    """A single validation error, located by dotted field path."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}" if self.field else self.message


def format_validation_error(exc: ValidationError) -> str:
    errors = [
        FieldError(
            field=".".join(str(part) for part in err["loc"]),
            message=err["msg"],
        )
        for err in exc.errors()
    ]
    return "; ".join(str(e) for e in errors)


class LookupChordVoicingInput(CamelModel):
    root: StrictStr = Field(min_length=1)
    quality: StrictStr = Field(min_length=1)
    voicing_index: Optional[Annotated[int, Field(strict=True, ge=0)]] = None


class EmbedVideoInput(CamelModel):
    video_id: StrictStr = Field(min_length=1)
    start_time_seconds: Optional[Annotated[int, Field(strict=True, ge=0)]] = None


def _fail(error: str) -> ToolCallResult:
    return ToolCallResult(success=False, error=error)


def _with_id(raw: object) -> object:
    # The tool schema has no id; the executor assigns one.
    if isinstance(raw, dict) and "id" not in raw:
        return {**raw, "id": generate_block_id()}
    return raw


def _create_chord_diagram(raw: object) -> ToolCallResult:
    try:
        data = ChordDiagramData.model_validate(_with_id(raw))
    except ValidationError as exc:
        return _fail(f"Invalid chord diagram data: {format_validation_error(exc)}")
    return ToolCallResult(success=True, block=chord_diagram_block(data))


def _create_fretboard_diagram(raw: object) -> ToolCallResult:
    try:
        data = FretboardDiagramData.model_validate(_with_id(raw))
    except ValidationError as exc:
        return _fail(f"Invalid fretboard diagram data: {format_validation_error(exc)}")
    return ToolCallResult(success=True, block=fretboard_diagram_block(data))


def _add_text_block(raw: object) -> ToolCallResult:
    content = raw.get("content") if isinstance(raw, dict) else None
    if not isinstance(content, str) or not content:
        return _fail("Text block requires content string")
    return ToolCallResult(success=True, block=text_block(content))


def _embed_video(raw: object) -> ToolCallResult:
    video_id = raw.get("videoId") if isinstance(raw, dict) else None
    if not isinstance(video_id, str) or not video_id:
        return _fail("Video embed requires videoId string")
    try:
        params = EmbedVideoInput.model_validate(raw)
    except ValidationError as exc:
        return _fail(f"Invalid video embed data: {format_validation_error(exc)}")
    return ToolCallResult(
        success=True,
        block=video_embed_block(params.video_id, params.start_time_seconds),
    )


def _lookup_chord_voicing(raw: object) -> ToolCallResult:
    try:
        params = LookupChordVoicingInput.model_validate(raw)
    except ValidationError as exc:
        return _fail(f"Chord lookup requires root and quality strings: {format_validation_error(exc)}")

    voicings = lookup_voicings(params.root, params.quality)
    if not voicings:
        return _fail(f"No voicings found for {params.root} {params.quality}")

    if params.voicing_index is not None:
        if params.voicing_index >= len(voicings):
            return _fail(
                f"Voicing index {params.voicing_index} out of range for "
                f"{params.root} {params.quality} ({len(voicings)} available)"
            )
        voicing = voicings[params.voicing_index]
        return ToolCallResult(
            success=True,
            data=voicing.model_dump(mode="json", by_alias=True),
        )

    return ToolCallResult(
        success=True,
        data={
            "root": params.root,
            "quality": params.quality,
            "voicings": [
                {"index": i, **v.model_dump(mode="json", by_alias=True)}
                for i, v in enumerate(voicings)
            ],
        },
    )


_HANDLERS = {
    ToolName.LOOKUP_CHORD_VOICING.value: _lookup_chord_voicing,
    ToolName.CREATE_CHORD_DIAGRAM.value: _create_chord_diagram,
    ToolName.CREATE_FRETBOARD_DIAGRAM.value: _create_fretboard_diagram,
    ToolName.ADD_TEXT_BLOCK.value: _add_text_block,
    ToolName.EMBED_VIDEO.value: _embed_video,
}


async def handle_tool_call(tool_call: ToolCall) -> ToolCallResult:
    """Validate and execute one tool call.

    Returns ``success=False`` with a readable ``error`` for every failure mode,
    including unknown tools and unexpected exceptions.
    """
    handler = _HANDLERS.get(tool_call.name)
    if handler is None:
        logger.warning(f"Unknown tool requested: {tool_call.name}")
        return _fail(f"Unknown tool: {tool_call.name}")

    try:
        result = handler(tool_call.input)
    except Exception as e:
        logger.exception(f"Tool {tool_call.name} ({tool_call.id}) raised")
        return _fail(f"Tool {tool_call.name} failed: {e}")

    if result.success:
        logger.info(
            f"Tool {tool_call.name} ok"
            + (f" -> block {result.block.id}" if result.block is not None else "")
        )
    else:
        logger.info(f"Tool {tool_call.name} rejected: {result.error}")
    return result


async def handle_tool_calls(tool_calls: list[ToolCall]) -> list[ToolCallResult]:
    """Execute tool calls one after another, in order."""
    results: list[ToolCallResult] = []
    for tool_call in tool_calls:
        results.append(await handle_tool_call(tool_call))
    return results
