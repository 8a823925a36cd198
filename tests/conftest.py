"""Pytest configuration and fixtures."""
from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Optional

import pytest
import pytest_asyncio


def pytest_configure(config):
    """Ensure asyncio_mode is auto so async fixtures work when pyproject is not in cwd."""
    if hasattr(config.option, "asyncio_mode") and config.option.asyncio_mode is None:
        config.option.asyncio_mode = "auto"
    logging.getLogger("httpcore").setLevel(logging.CRITICAL)


from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from fretcraft.api.routes.chat import get_chat_llm
from fretcraft.main import app
from fretcraft.db import database
from fretcraft.db.database import Base, get_db


@pytest_asyncio.fixture
async def db_session():
    """Create an in-memory test database session."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    # Inject so the chat route's AsyncSessionLocal() uses the test DB
    old_engine = database._engine
    old_factory = database._async_session_factory
    database._engine = engine
    database._async_session_factory = async_session_factory
    try:
        async with async_session_factory() as session:
            async def override_get_db():
                yield session
            app.dependency_overrides[get_db] = override_get_db
            yield session
            app.dependency_overrides.clear()
    finally:
        database._engine = old_engine
        database._async_session_factory = old_factory
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session):
    """Async test client bound to the in-memory database."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# -----------------------------------------------------------------------------
# Scripted completion service
# -----------------------------------------------------------------------------

def text_turn(*chunks: str, stop_reason: str = "end_turn") -> list[dict[str, Any]]:
    """Stream events for a turn made only of text."""
    events: list[dict[str, Any]] = [
        {"type": "message_start", "message": {"usage": {"input_tokens": 10}}},
        {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
    ]
    for chunk in chunks:
        events.append({
            "type": "content_block_delta",
            "index": 0,
            "delta": {"type": "text_delta", "text": chunk},
        })
    events += [
        {"type": "content_block_stop", "index": 0},
        {"type": "message_delta", "delta": {"stop_reason": stop_reason}, "usage": {"output_tokens": 5}},
        {"type": "message_stop"},
    ]
    return events


def tool_turn(
    calls: list[tuple[str, str, Any]],
    text: Optional[str] = None,
) -> list[dict[str, Any]]:
    """Stream events for a turn with optional leading text and tool calls.

    ``calls`` holds ``(tool_use_id, name, input)``; a ``str`` input is sent as
    raw JSON fragments so tests can script malformed input.
    """
    events: list[dict[str, Any]] = [{"type": "message_start", "message": {"usage": {}}}]
    index = 0
    if text is not None:
        events += [
            {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
            {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": text}},
            {"type": "content_block_stop", "index": 0},
        ]
        index = 1
    for tool_use_id, name, tool_input in calls:
        raw = tool_input if isinstance(tool_input, str) else json.dumps(tool_input)
        half = len(raw) // 2
        events.append({
            "type": "content_block_start",
            "index": index,
            "content_block": {"type": "tool_use", "id": tool_use_id, "name": name, "input": {}},
        })
        for fragment in (raw[:half], raw[half:]):
            events.append({
                "type": "content_block_delta",
                "index": index,
                "delta": {"type": "input_json_delta", "partial_json": fragment},
            })
        events.append({"type": "content_block_stop", "index": index})
        index += 1
    events += [
        {"type": "message_delta", "delta": {"stop_reason": "tool_use"}},
        {"type": "message_stop"},
    ]
    return events


class FakeStream:
    """Replays scripted events and reassembles the final message."""

    def __init__(self, events: list[dict[str, Any]]) -> None:
        self._events = events

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[dict[str, Any]]:
        for event in self._events:
            if isinstance(event, Exception):
                raise event
            yield event

    def final_message(self) -> dict[str, Any]:
        blocks: dict[int, dict[str, Any]] = {}
        partial: dict[int, str] = {}
        stop_reason = None
        for event in self._events:
            if isinstance(event, Exception):
                continue
            if event["type"] == "content_block_start":
                blocks[event["index"]] = dict(event["content_block"])
                partial[event["index"]] = ""
            elif event["type"] == "content_block_delta":
                delta = event["delta"]
                if delta["type"] == "text_delta":
                    blocks[event["index"]]["text"] += delta["text"]
                else:
                    partial[event["index"]] += delta["partial_json"]
            elif event["type"] == "message_delta":
                stop_reason = event["delta"].get("stop_reason")
        content = []
        for index in sorted(blocks):
            block = blocks[index]
            if block["type"] == "tool_use":
                try:
                    block["input"] = json.loads(partial[index]) if partial[index] else {}
                except json.JSONDecodeError:
                    block["input"] = {}
            content.append(block)
        return {"role": "assistant", "content": content, "stop_reason": stop_reason, "usage": {}}


class FakeLLM:
    """Completion client stand-in that plays back one scripted turn per call.

    Records the messages it was sent so tests can inspect the feedback loop.
    """

    def __init__(self, turns: list[list[Any]]) -> None:
        self.turns = list(turns)
        self.requests: list[list[dict[str, Any]]] = []
        self.systems: list[Optional[str]] = []
        self.closed = False

    @asynccontextmanager
    async def stream(
        self,
        messages: list[dict[str, Any]],
        system: Optional[str] = None,
        tools: Optional[list[dict[str, Any]]] = None,
    ) -> AsyncIterator[FakeStream]:
        self.requests.append(json.loads(json.dumps(messages)))
        self.systems.append(system)
        if not self.turns:
            raise RuntimeError("FakeLLM ran out of scripted turns")
        turn = self.turns.pop(0)
        if isinstance(turn, Exception):
            raise turn
        yield FakeStream(turn)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_llm_factory():
    """Install a scripted FakeLLM as the chat route's completion client."""
    installed: list[FakeLLM] = []

    def install(turns: list[list[Any]]) -> FakeLLM:
        fake = FakeLLM(turns)
        installed.append(fake)
        app.dependency_overrides[get_chat_llm] = lambda: fake
        return fake

    yield install
    app.dependency_overrides.pop(get_chat_llm, None)


# -----------------------------------------------------------------------------
# Domain payloads
# -----------------------------------------------------------------------------

C_MAJOR_OPEN: dict[str, Any] = {
    "root": "C",
    "quality": "maj",
    "positions": [
        {"position": {"string": 5, "fret": 3}, "interval": "R", "note": "C"},
        {"position": {"string": 4, "fret": 2}, "interval": "3", "note": "E"},
        {"position": {"string": 3, "fret": 0}, "interval": "5", "note": "G"},
        {"position": {"string": 2, "fret": 1}, "interval": "R", "note": "C"},
        {"position": {"string": 1, "fret": 0}, "interval": "3", "note": "E"},
    ],
    "mutedStrings": [6],
}


@pytest.fixture
def chord_input() -> dict[str, Any]:
    return json.loads(json.dumps(C_MAJOR_OPEN))
