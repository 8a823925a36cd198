"""
Tool definitions in Anthropic tool schema format.

These five tools are the only way the model can put content into a lesson.
Block-producing tools are validated again server-side; the schemas here are
guidance for the model, not the enforcement point.
"""
from __future__ import annotations

from enum import Enum

from fretcraft.contracts.json_types import JSONValue
from fretcraft.contracts.llm_types import ToolSchemaDict
from fretcraft.models.primitives import INTERVALS, NOTE_NAMES


class ToolName(str, Enum):
    """Tool names used in executor dispatch."""

    LOOKUP_CHORD_VOICING = "lookup_chord_voicing"
    CREATE_CHORD_DIAGRAM = "create_chord_diagram"
    CREATE_FRETBOARD_DIAGRAM = "create_fretboard_diagram"
    ADD_TEXT_BLOCK = "add_text_block"
    EMBED_VIDEO = "embed_video"

    def __str__(self) -> str:
        return self.value


_NOTE_ENUM: dict[str, JSONValue] = {"type": "string", "enum": list(NOTE_NAMES)}
_INTERVAL_ENUM: dict[str, JSONValue] = {"type": "string", "enum": list(INTERVALS)}

_POSITION: dict[str, JSONValue] = {
    "type": "object",
    "required": ["string", "fret"],
    "properties": {
        "string": {"type": "integer", "minimum": 1, "maximum": 6},
        "fret": {"type": "integer", "minimum": 0, "maximum": 24},
    },
}

_TUNING: dict[str, JSONValue] = {
    "type": "array",
    "items": {"type": "string"},
    "minItems": 6,
    "maxItems": 6,
    "description": "Tuning for each string (default: standard)",
}


TOOL_DEFINITIONS: list[ToolSchemaDict] = [
    {
        "name": ToolName.LOOKUP_CHORD_VOICING.value,
        "description": (
            "Look up reference chord voicings from the database. Use this BEFORE "
            "creating a chord diagram to get correct fret positions. Returns voicing "
            "data with positions, baseFret, and mutedStrings that can be used "
            "directly with create_chord_diagram."
        ),
        "input_schema": {
            "type": "object",
            "required": ["root", "quality"],
            "properties": {
                "root": {**_NOTE_ENUM, "description": "Root note of the chord"},
                "quality": {
                    "type": "string",
                    "description": (
                        "Chord quality: 'maj' for major, 'm' for minor, "
                        "'maj7', 'm7', '7' for seventh chords"
                    ),
                },
                "voicingIndex": {
                    "type": "integer",
                    "minimum": 0,
                    "description": (
                        "Optional: index of specific voicing to retrieve "
                        "(0 = first/most common voicing)"
                    ),
                },
            },
        },
    },
    {
        "name": ToolName.CREATE_CHORD_DIAGRAM.value,
        "description": (
            "Create a single concrete guitar chord diagram (one voicing). Use for "
            "shell voicings, drop voicings, triads, and partial grips."
        ),
        "input_schema": {
            "type": "object",
            "required": ["root", "quality", "positions"],
            "properties": {
                "root": _NOTE_ENUM,
                "quality": {
                    "type": "string",
                    "description": "Chord quality (e.g. m7, 7, maj7, dim7, aug)",
                },
                "positions": {
                    "type": "array",
                    "minItems": 1,
                    "maxItems": 10,
                    "items": {
                        "type": "object",
                        "required": ["position", "interval", "note"],
                        "properties": {
                            "position": _POSITION,
                            "interval": _INTERVAL_ENUM,
                            "note": _NOTE_ENUM,
                        },
                    },
                },
                "baseFret": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": 24,
                    "description": "Starting fret for higher-position shapes",
                },
                "mutedStrings": {
                    "type": "array",
                    "items": {"type": "integer", "minimum": 1, "maximum": 6},
                    "description": "Strings that are muted (not played)",
                },
                "metadata": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string", "description": "Display name for the chord"},
                        "tuning": _TUNING,
                    },
                },
            },
        },
    },
    {
        "name": ToolName.CREATE_FRETBOARD_DIAGRAM.value,
        "description": (
            "Create a fretboard diagram showing note positions over a range. Use for "
            "scales, arpeggios, and chord tones."
        ),
        "input_schema": {
            "type": "object",
            "required": ["root", "range", "notes"],
            "properties": {
                "root": _NOTE_ENUM,
                "label": {
                    "type": "string",
                    "description": "Optional display label (e.g. 'C Minor Pentatonic')",
                },
                "range": {
                    "type": "object",
                    "required": ["fromFret", "toFret"],
                    "properties": {
                        "fromFret": {"type": "integer", "minimum": 0, "maximum": 24},
                        "toFret": {"type": "integer", "minimum": 0, "maximum": 24},
                    },
                },
                "notes": {
                    "type": "array",
                    "minItems": 1,
                    "items": {
                        "type": "object",
                        "required": ["position", "interval", "note"],
                        "properties": {
                            "position": _POSITION,
                            "interval": _INTERVAL_ENUM,
                            "note": _NOTE_ENUM,
                            "isRoot": {
                                "type": "boolean",
                                "description": "Whether this note is a root note",
                            },
                        },
                    },
                },
                "metadata": {
                    "type": "object",
                    "properties": {
                        "tuning": _TUNING,
                        "scaleFormula": {"type": "array", "items": _INTERVAL_ENUM},
                    },
                },
            },
        },
    },
    {
        "name": ToolName.ADD_TEXT_BLOCK.value,
        "description": "Add an explanatory text block to the lesson. Use markdown formatting.",
        "input_schema": {
            "type": "object",
            "required": ["content"],
            "properties": {
                "content": {
                    "type": "string",
                    "description": "Markdown content for the text block",
                },
            },
        },
    },
    {
        "name": ToolName.EMBED_VIDEO.value,
        "description": "Embed a YouTube video in the lesson.",
        "input_schema": {
            "type": "object",
            "required": ["videoId"],
            "properties": {
                "videoId": {
                    "type": "string",
                    "description": "YouTube video ID (e.g. 'dQw4w9WgXcQ')",
                },
                "startTimeSeconds": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Optional start time in seconds",
                },
            },
        },
    },
]

TOOL_NAMES: frozenset[str] = frozenset(t.value for t in ToolName)
