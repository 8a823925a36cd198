"""Agent loop: streams a model conversation and executes its tool calls.

One user message may take several model turns: each turn's tool results are
fed back as ``tool_result`` blocks and the model is asked to continue, until
a turn finishes without any tool call (or the turn cap is hit).
"""
from __future__ import annotations

import json
import logging
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Protocol

from fretcraft.config import settings
from fretcraft.contracts.llm_types import (
    ChatMessage,
    FinalMessage,
    StreamEvent,
    ToolResultContentBlock,
    ToolSchemaDict,
)
from fretcraft.core.prompts import SYSTEM_PROMPT
from fretcraft.core.tool_handlers import ToolCall, ToolCallResult, handle_tool_call
from fretcraft.core.tools import TOOL_DEFINITIONS
from fretcraft.protocol.events import (
    DoneEvent,
    ErrorEvent,
    LessonEvent,
    TextEvent,
    ToolResultEvent,
    ToolStartEvent,
)

logger = logging.getLogger(__name__)


class AgentLoopError(Exception):
    """The loop ended with an error event."""


class ModelStream(Protocol):
    def __aiter__(self) -> AsyncIterator[StreamEvent]: ...

    def final_message(self) -> FinalMessage: ...


class CompletionClient(Protocol):
    """What the loop needs from a completion service client."""

    def stream(
        self,
        messages: list[ChatMessage],
        system: Optional[str] = None,
        tools: Optional[list[ToolSchemaDict]] = None,
    ) -> AbstractAsyncContextManager[ModelStream]: ...


@dataclass
class _PendingToolCall:
    id: str
    name: str
    input: str = ""


async def _complete_tool_call(pending: _PendingToolCall) -> ToolCallResult:
    logger.debug(f"Tool call complete: {pending.name} input={pending.input[:200]}")
    try:
        tool_input = json.loads(pending.input) if pending.input.strip() else {}
    except json.JSONDecodeError as e:
        logger.warning(f"Tool input parse error for {pending.name}: {e}")
        return ToolCallResult(success=False, error=f"Failed to parse tool input: {e}")
    return await handle_tool_call(ToolCall(id=pending.id, name=pending.name, input=tool_input))


def _tool_result_block(tool_use_id: str, result: ToolCallResult) -> ToolResultContentBlock:
    return {
        "type": "tool_result",
        "tool_use_id": tool_use_id,
        "content": json.dumps(result.feedback(), separators=(",", ":")),
    }


async def stream_chat_response(
    messages: list[ChatMessage],
    *,
    llm: CompletionClient,
    system: str = SYSTEM_PROMPT,
    tools: Optional[list[ToolSchemaDict]] = None,
    max_turns: Optional[int] = None,
) -> AsyncIterator[LessonEvent]:
    """Run the agentic tool-call loop over ``messages``.

    ``messages`` is the prior transcript plus the new user message; it is not
    modified.  Yields events in stream arrival order and always finishes with
    exactly one ``DoneEvent`` or ``ErrorEvent``.
    """
    conversation: list[ChatMessage] = list(messages)
    tool_schemas = TOOL_DEFINITIONS if tools is None else tools
    max_turns = max_turns or settings.agent_max_turns
    full_response = ""
    turn = 0

    try:
        while True:
            if turn >= max_turns:
                logger.warning(f"Agent loop hit the turn cap ({max_turns}); stopping")
                break
            turn += 1

            pending: dict[int, _PendingToolCall] = {}
            completed: list[tuple[str, ToolCallResult]] = []
            logger.info(f"Agent turn {turn}: {len(conversation)} messages")

            async with llm.stream(conversation, system=system, tools=tool_schemas) as stream:
                async for event in stream:
                    event_type = event["type"]

                    if event_type == "content_block_start":
                        block = event["content_block"]
                        if block.get("type") == "tool_use":
                            name = str(block.get("name", ""))
                            pending[event["index"]] = _PendingToolCall(
                                id=str(block.get("id", "")),
                                name=name,
                            )
                            logger.info(f"Tool use started: {name}")
                            yield ToolStartEvent(name=name)

                    elif event_type == "content_block_delta":
                        delta = event["delta"]
                        if delta.get("type") == "text_delta":
                            text = str(delta.get("text", ""))
                            full_response += text
                            yield TextEvent(content=text)
                        elif delta.get("type") == "input_json_delta":
                            call = pending.get(event["index"])
                            if call is not None:
                                call.input += str(delta.get("partial_json", ""))

                    elif event_type == "content_block_stop":
                        call = pending.pop(event["index"], None)
                        if call is not None:
                            result = await _complete_tool_call(call)
                            yield ToolResultEvent(result=result)
                            completed.append((call.id, result))

                    elif event_type == "message_delta":
                        logger.debug(f"stop_reason: {event['delta'].get('stop_reason')}")

                final = stream.final_message()

            if not completed:
                break

            logger.info(f"Agent turn {turn}: sending {len(completed)} tool results back")
            conversation.append({"role": "assistant", "content": final["content"]})
            conversation.append({
                "role": "user",
                "content": [_tool_result_block(tool_use_id, result) for tool_use_id, result in completed],
            })

        yield DoneEvent(full_response=full_response)

    except Exception as e:
        logger.exception(f"Agent loop failed on turn {turn}")
        yield ErrorEvent(error=str(e) or type(e).__name__)


async def run_chat(
    messages: list[ChatMessage],
    *,
    llm: CompletionClient,
    system: str = SYSTEM_PROMPT,
) -> tuple[str, list[ToolCallResult]]:
    """Non-streaming variant: returns (response text, tool results).

    Raises ``AgentLoopError`` if the loop ends with an error event.
    """
    response = ""
    tool_results: list[ToolCallResult] = []
    async for event in stream_chat_response(messages, llm=llm, system=system):
        if isinstance(event, TextEvent):
            response += event.content
        elif isinstance(event, ToolResultEvent):
            tool_results.append(event.result)
        elif isinstance(event, ErrorEvent):
            raise AgentLoopError(event.error)
    return response, tool_results
