"""Tests for lesson persistence."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from fretcraft.core.blocks import text_block
from fretcraft.core.planner import LessonPlanner
from fretcraft.db.models import Lesson
from fretcraft.models.lesson_state import create_empty_lesson_ui_state
from fretcraft.models.requests import ToolCallRecord, TranscriptMessage
from fretcraft.services import lessons as lesson_store
from fretcraft.services.lessons import LessonNotFoundError, LessonStoreError


def _message(role: str, content: str, **kwargs) -> TranscriptMessage:
    return TranscriptMessage(
        id=f"{role}-{content}",
        role=role,  # type: ignore[arg-type]
        content=content,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        **kwargs,
    )


class TestLessonCrud:

    async def test_create_defaults(self, db_session: AsyncSession) -> None:

        lesson = await lesson_store.create_lesson(db_session)

        assert lesson.title == "Untitled Lesson"
        document = await lesson_store.load_document(db_session, lesson.id)
        assert document.lesson_id == lesson.id
        assert document.blocks == {}
        assert await lesson_store.load_transcript(db_session, lesson.id) == []

    async def test_create_with_title(self, db_session: AsyncSession) -> None:

        lesson = await lesson_store.create_lesson(db_session, "Jazz shells")

        assert (await lesson_store.get_lesson(db_session, lesson.id)).title == "Jazz shells"

    async def test_get_missing(self, db_session: AsyncSession) -> None:

        with pytest.raises(LessonNotFoundError):
            await lesson_store.get_lesson(db_session, "missing")

    async def test_list_most_recent_first(self, db_session: AsyncSession) -> None:

        first = await lesson_store.create_lesson(db_session, "first")
        second = await lesson_store.create_lesson(db_session, "second")
        await lesson_store.update_lesson(db_session, first.id, title="first renamed")

        lessons = await lesson_store.list_lessons(db_session)

        assert [lesson.id for lesson in lessons] == [first.id, second.id]

    async def test_list_pagination(self, db_session: AsyncSession) -> None:

        for i in range(3):
            await lesson_store.create_lesson(db_session, f"l{i}")

        assert len(await lesson_store.list_lessons(db_session, limit=2)) == 2
        assert len(await lesson_store.list_lessons(db_session, limit=2, offset=2)) == 1

    async def test_delete_removes_chat(self, db_session: AsyncSession) -> None:

        lesson = await lesson_store.create_lesson(db_session)
        await lesson_store.save_transcript(db_session, lesson.id, [_message("user", "hi")])

        await lesson_store.delete_lesson(db_session, lesson.id)

        with pytest.raises(LessonNotFoundError):
            await lesson_store.load_transcript(db_session, lesson.id)

    async def test_delete_missing(self, db_session: AsyncSession) -> None:

        with pytest.raises(LessonNotFoundError):
            await lesson_store.delete_lesson(db_session, "missing")


class TestDocument:

    async def test_round_trip(self, db_session: AsyncSession) -> None:

        lesson = await lesson_store.create_lesson(db_session)
        planner = LessonPlanner(await lesson_store.load_document(db_session, lesson.id))
        block = text_block("Triads on the top strings")
        planner.add_block(block)
        planner.toggle_pin(block.id)

        await lesson_store.save_document(db_session, lesson.id, planner.get_state())
        loaded = await lesson_store.load_document(db_session, lesson.id)

        assert loaded == planner.get_state()
        assert loaded.layout.pinned == [block.id]

    async def test_mismatched_lesson_id(self, db_session: AsyncSession) -> None:

        lesson = await lesson_store.create_lesson(db_session)

        with pytest.raises(LessonStoreError):
            await lesson_store.save_document(db_session, lesson.id, create_empty_lesson_ui_state("other"))

    async def test_empty_stored_document_is_fresh(self, db_session: AsyncSession) -> None:

        lesson = Lesson(title="legacy", ui_schema={})
        db_session.add(lesson)
        await db_session.flush()

        document = await lesson_store.load_document(db_session, lesson.id)

        assert document == create_empty_lesson_ui_state(lesson.id)

    async def test_corrupt_document(self, db_session: AsyncSession) -> None:

        lesson = Lesson(title="broken", ui_schema={"lessonId": "x", "blocks": {"a": {"type": "Nope"}}})
        db_session.add(lesson)
        await db_session.flush()

        with pytest.raises(LessonStoreError):
            await lesson_store.load_document(db_session, lesson.id)


class TestTranscript:

    async def test_round_trip(self, db_session: AsyncSession) -> None:

        lesson = await lesson_store.create_lesson(db_session)
        messages = [
            _message("user", "Show me G7"),
            _message("assistant", "Here it is", tool_calls=[ToolCallRecord(success=True, block_id="b1")]),
        ]

        await lesson_store.save_transcript(db_session, lesson.id, messages)

        assert await lesson_store.load_transcript(db_session, lesson.id) == messages

    async def test_save_replaces(self, db_session: AsyncSession) -> None:

        lesson = await lesson_store.create_lesson(db_session)
        await lesson_store.save_transcript(db_session, lesson.id, [_message("user", "a")])
        await lesson_store.save_transcript(db_session, lesson.id, [_message("user", "b")])

        loaded = await lesson_store.load_transcript(db_session, lesson.id)

        assert [m.content for m in loaded] == ["b"]

    async def test_save_creates_missing_chat(self, db_session: AsyncSession) -> None:

        lesson = Lesson(title="no chat", ui_schema={})
        db_session.add(lesson)
        await db_session.flush()

        await lesson_store.save_transcript(db_session, lesson.id, [_message("user", "hi")])

        assert len(await lesson_store.load_transcript(db_session, lesson.id)) == 1
