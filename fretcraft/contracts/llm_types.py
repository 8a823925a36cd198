"""Typed structures for Anthropic Messages API payloads and stream events.

Every shape used by ``LLMClient`` and the agent loop is defined here as a
TypedDict so field access can be checked statically.

Organisation:
  Content blocks         → ``TextContentBlock``, ``ToolUseContentBlock``,
                           ``ToolResultContentBlock``, ``ContentBlock`` (union)
  Chat messages          → ``UserMessage``, ``AssistantMessage``,
                           ``ChatMessage`` (union)
  Tool schemas           → ``ToolInputSchema``, ``ToolSchemaDict``
  Token usage            → ``UsageStats``
  Request payload        → ``MessagesRequestPayload``
  Stream events          → ``MessageStartEvent``, ``ContentBlockStartEvent``,
                           ``ContentBlockDeltaEvent``, ``ContentBlockStopEvent``,
                           ``MessageDeltaEvent``, ``MessageStopEvent``,
                           ``StreamEvent`` (union)
  Finalized message      → ``FinalMessage``
"""
from __future__ import annotations

from typing import Literal, Union

from typing_extensions import NotRequired, Required, TypedDict

from fretcraft.contracts.json_types import JSONObject, JSONValue


# ── Content blocks ────────────────────────────────────────────────────────────


class TextContentBlock(TypedDict):
    """A plain text block inside a message."""

    type: Literal["text"]
    text: str


class ToolUseContentBlock(TypedDict):
    """A tool invocation authored by the assistant.

    ``input`` is the parsed JSON object; the stream delivers it as
    ``input_json_delta`` fragments that only parse once the block closes.
    """

    type: Literal["tool_use"]
    id: str
    name: str
    input: JSONObject


class ToolResultContentBlock(TypedDict):
    """A tool outcome sent back to the model in a user-role message."""

    type: Literal["tool_result"]
    tool_use_id: str
    content: str


ContentBlock = Union[TextContentBlock, ToolUseContentBlock, ToolResultContentBlock]


# ── Chat messages ─────────────────────────────────────────────────────────────


class UserMessage(TypedDict):
    """A user-role message (plain text, or tool_result blocks)."""

    role: Literal["user"]
    content: str | list[ContentBlock]


class AssistantMessage(TypedDict):
    """An assistant reply (plain text, or text + tool_use blocks)."""

    role: Literal["assistant"]
    content: str | list[ContentBlock]


ChatMessage = Union[UserMessage, AssistantMessage]
"""Either side of the conversation.  The system prompt travels separately."""


# ── Tool schemas ──────────────────────────────────────────────────────────────


class ToolInputSchema(TypedDict, total=False):
    """JSON Schema for a tool's input object."""

    type: Required[str]
    properties: dict[str, JSONValue]
    required: list[str]


class ToolSchemaDict(TypedDict):
    """An Anthropic tool definition."""

    name: str
    description: str
    input_schema: ToolInputSchema


# ── Token usage ───────────────────────────────────────────────────────────────


class UsageStats(TypedDict, total=False):
    """Token usage reported in ``message_start`` / ``message_delta``."""

    input_tokens: int
    output_tokens: int
    cache_creation_input_tokens: int
    cache_read_input_tokens: int


# ── Request payload ───────────────────────────────────────────────────────────


class MessagesRequestPayload(TypedDict, total=False):
    """Body of ``POST /v1/messages``."""

    model: Required[str]
    max_tokens: Required[int]
    messages: Required[list[ChatMessage]]
    system: str
    tools: list[ToolSchemaDict]
    tool_choice: dict[str, str]
    temperature: float
    stream: bool


# ── Stream events ─────────────────────────────────────────────────────────────


class MessageStartEvent(TypedDict):
    """First event of a streamed message."""

    type: Literal["message_start"]
    message: JSONObject


class ContentBlockStartEvent(TypedDict):
    """A content block opens at ``index``.

    ``content_block`` is ``{"type": "text", "text": ""}`` or
    ``{"type": "tool_use", "id": ..., "name": ..., "input": {}}``.
    """

    type: Literal["content_block_start"]
    index: int
    content_block: JSONObject


class ContentBlockDeltaEvent(TypedDict):
    """An incremental fragment for the block at ``index``.

    ``delta`` is ``{"type": "text_delta", "text": ...}`` or
    ``{"type": "input_json_delta", "partial_json": ...}``.
    """

    type: Literal["content_block_delta"]
    index: int
    delta: JSONObject


class ContentBlockStopEvent(TypedDict):
    """The block at ``index`` is complete."""

    type: Literal["content_block_stop"]
    index: int


class MessageDeltaEvent(TypedDict):
    """Top-level message changes; carries the stop reason."""

    type: Literal["message_delta"]
    delta: JSONObject
    usage: NotRequired[UsageStats]


class MessageStopEvent(TypedDict):
    """Last event of a streamed message."""

    type: Literal["message_stop"]


StreamEvent = Union[
    MessageStartEvent,
    ContentBlockStartEvent,
    ContentBlockDeltaEvent,
    ContentBlockStopEvent,
    MessageDeltaEvent,
    MessageStopEvent,
]


class FinalMessage(TypedDict):
    """The assistant message reassembled from a completed stream."""

    role: Literal["assistant"]
    content: list[ContentBlock]
    stop_reason: str | None
    usage: UsageStats
