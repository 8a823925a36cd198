"""Tests for the agent loop (streamed turns, tool execution and feedback)."""
from __future__ import annotations

import json

import pytest
from conftest import FakeLLM, text_turn, tool_turn

from fretcraft.core.agent_loop import AgentLoopError, run_chat, stream_chat_response
from fretcraft.core.tools import TOOL_DEFINITIONS
from fretcraft.protocol.events import DoneEvent, ErrorEvent, TextEvent, ToolResultEvent, ToolStartEvent

USER = [{"role": "user", "content": "Show me open C"}]


async def _collect(fake: FakeLLM, **kwargs):
    return [event async for event in stream_chat_response(USER, llm=fake, **kwargs)]


class TestTextOnly:

    async def test_single_turn(self) -> None:

        fake = FakeLLM([text_turn("Hello ", "there")])

        events = await _collect(fake)

        assert [type(e) for e in events] == [TextEvent, TextEvent, DoneEvent]
        assert events[-1].full_response == "Hello there"
        assert len(fake.requests) == 1

    async def test_sends_system_prompt(self) -> None:

        fake = FakeLLM([text_turn("ok")])

        await _collect(fake, system="custom prompt")

        assert fake.systems == ["custom prompt"]

    async def test_input_messages_not_mutated(self) -> None:

        messages = list(USER)
        fake = FakeLLM([tool_turn([("t1", "add_text_block", {"content": "x"})]), text_turn("done")])

        _ = [e async for e in stream_chat_response(messages, llm=fake)]

        assert messages == USER


class TestToolLoop:

    async def test_tools_then_text(self, chord_input: dict) -> None:

        fake = FakeLLM([
            tool_turn(
                [("t1", "create_chord_diagram", chord_input), ("t2", "add_text_block", {"content": "Strum it"})],
                text="Here you go. ",
            ),
            text_turn("Enjoy!"),
        ])

        events = await _collect(fake)

        starts = [e for e in events if isinstance(e, ToolStartEvent)]
        results = [e for e in events if isinstance(e, ToolResultEvent)]
        assert [s.name for s in starts] == ["create_chord_diagram", "add_text_block"]
        assert [r.result.success for r in results] == [True, True]
        assert isinstance(events[-1], DoneEvent)
        assert events[-1].full_response == "Here you go. Enjoy!"
        assert len(fake.requests) == 2

    async def test_tool_results_fed_back(self) -> None:

        fake = FakeLLM([
            tool_turn([("t1", "add_text_block", {"content": "hi"}), ("t2", "embed_video", {})]),
            text_turn("done"),
        ])

        events = await _collect(fake)
        block_id = next(e.result.block.id for e in events if isinstance(e, ToolResultEvent) and e.result.block)

        second = fake.requests[1]
        assert second[0] == USER[0]
        assert second[1]["role"] == "assistant"
        assert [b["type"] for b in second[1]["content"]] == ["tool_use", "tool_use"]
        feedback = second[2]
        assert feedback["role"] == "user"
        assert [b["tool_use_id"] for b in feedback["content"]] == ["t1", "t2"]
        assert json.loads(feedback["content"][0]["content"]) == {"success": True, "blockId": block_id}
        assert json.loads(feedback["content"][1]["content"]) == {
            "success": False,
            "error": "Video embed requires videoId string",
        }

    async def test_start_precedes_result(self) -> None:

        fake = FakeLLM([tool_turn([("t1", "add_text_block", {"content": "hi"})]), text_turn("ok")])

        events = await _collect(fake)
        kinds = [type(e).__name__ for e in events]

        assert kinds.index("ToolStartEvent") < kinds.index("ToolResultEvent")

    async def test_lookup_then_create(self) -> None:

        fake = FakeLLM([
            tool_turn([("t1", "lookup_chord_voicing", {"root": "A", "quality": "m"})]),
            tool_turn([("t2", "add_text_block", {"content": "Am"})]),
            text_turn("done"),
        ])

        events = await _collect(fake)

        lookup_feedback = json.loads(fake.requests[1][2]["content"][0]["content"])
        assert lookup_feedback["success"] is True
        assert lookup_feedback["data"]["voicings"][0]["name"] == "Open Am"
        assert len(fake.requests) == 3
        assert isinstance(events[-1], DoneEvent)

    async def test_malformed_tool_input(self) -> None:

        fake = FakeLLM([tool_turn([("t1", "add_text_block", '{"content": ')]), text_turn("sorry")])

        events = await _collect(fake)

        result = next(e.result for e in events if isinstance(e, ToolResultEvent))
        assert result.success is False
        assert (result.error or "").startswith("Failed to parse tool input: ")
        assert isinstance(events[-1], DoneEvent)

    async def test_turn_cap(self) -> None:

        fake = FakeLLM([tool_turn([(f"t{i}", "add_text_block", {"content": "x"})]) for i in range(5)])

        events = await _collect(fake, max_turns=2)

        assert len(fake.requests) == 2
        assert len([e for e in events if isinstance(e, ToolResultEvent)]) == 2
        assert isinstance(events[-1], DoneEvent)


class TestErrors:

    async def test_stream_open_failure(self) -> None:

        fake = FakeLLM([RuntimeError("connection refused")])

        events = await _collect(fake)

        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)
        assert events[0].error == "connection refused"

    async def test_mid_stream_failure_keeps_earlier_events(self) -> None:

        turn = text_turn("partial")
        turn.insert(3, RuntimeError("stream dropped"))
        fake = FakeLLM([turn])

        events = await _collect(fake)

        assert isinstance(events[0], TextEvent)
        assert isinstance(events[-1], ErrorEvent)
        assert not any(isinstance(e, DoneEvent) for e in events)

    async def test_error_without_message_uses_type_name(self) -> None:

        fake = FakeLLM([TimeoutError()])

        events = await _collect(fake)

        assert events[-1] == ErrorEvent(error="TimeoutError")


class TestRunChat:

    async def test_collects_text_and_results(self) -> None:

        fake = FakeLLM([tool_turn([("t1", "add_text_block", {"content": "x"})], text="A"), text_turn("B")])

        text, results = await run_chat(USER, llm=fake)

        assert text == "AB"
        assert len(results) == 1
        assert results[0].success

    async def test_raises_on_error(self) -> None:

        fake = FakeLLM([RuntimeError("boom")])

        with pytest.raises(AgentLoopError, match="boom"):
            await run_chat(USER, llm=fake)


def test_tool_definitions_cover_all_tools() -> None:

    names = {tool["name"] for tool in TOOL_DEFINITIONS}
    assert names == {
        "lookup_chord_voicing",
        "create_chord_diagram",
        "create_fretboard_diagram",
        "add_text_block",
        "embed_video",
    }
