"""
Lesson persistence service.

Handles CRUD for lessons plus loading and saving the two JSON payloads each
lesson carries: the UI document and the chat transcript.  Saves replace the
whole payload (last writer wins).
"""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from fretcraft.db.models import Chat, Lesson, utc_now
from fretcraft.models.lesson_state import LessonUIState, create_empty_lesson_ui_state
from fretcraft.models.requests import TranscriptMessage

logger = logging.getLogger(__name__)

DEFAULT_LESSON_TITLE = "Untitled Lesson"


class LessonStoreError(Exception):
    """A lesson could not be loaded or saved."""


class LessonNotFoundError(LessonStoreError):
    """No lesson with the requested id."""

    def __init__(self, lesson_id: str):
        super().__init__(f"Lesson {lesson_id} not found")
        self.lesson_id = lesson_id


# =============================================================================
# Lesson CRUD
# =============================================================================

async def create_lesson(db: AsyncSession, title: Optional[str] = None) -> Lesson:
    """
    Create a lesson with an empty document and an empty chat.

    Args:
        db: Database session
        title: Lesson title (defaults to "Untitled Lesson")

    Returns:
        Created Lesson instance
    """
    lesson = Lesson(title=title or DEFAULT_LESSON_TITLE, ui_schema={})
    db.add(lesson)
    await db.flush()

    lesson.ui_schema = create_empty_lesson_ui_state(lesson.id).to_wire()
    db.add(Chat(lesson_id=lesson.id, messages=[]))
    await db.flush()

    logger.info(f"Created lesson {lesson.id[:8]}")
    return lesson


async def list_lessons(db: AsyncSession, limit: int = 50, offset: int = 0) -> list[Lesson]:
    """Lessons, most recently updated first."""
    result = await db.execute(
        select(Lesson).order_by(desc(Lesson.updated_at)).limit(limit).offset(offset)
    )
    return list(result.scalars().all())


async def get_lesson(db: AsyncSession, lesson_id: str) -> Lesson:
    """
    Get a lesson by ID.

    Raises:
        LessonNotFoundError: no such lesson
    """
    lesson = await db.get(Lesson, lesson_id, populate_existing=True)
    if lesson is None:
        raise LessonNotFoundError(lesson_id)
    return lesson


async def update_lesson(
    db: AsyncSession,
    lesson_id: str,
    title: Optional[str] = None,
    ui_state: Optional[LessonUIState] = None,
) -> Lesson:
    """
    Update a lesson's title and/or replace its document.

    Args:
        db: Database session
        lesson_id: Lesson UUID
        title: New title, if changing
        ui_state: Replacement document, if changing; its ``lessonId`` must match

    Raises:
        LessonNotFoundError: no such lesson
        LessonStoreError: the document belongs to a different lesson
    """
    lesson = await get_lesson(db, lesson_id)

    if ui_state is not None:
        if ui_state.lesson_id != lesson_id:
            raise LessonStoreError(
                f"Document lessonId {ui_state.lesson_id} does not match lesson {lesson_id}"
            )
        lesson.ui_schema = ui_state.to_wire()
    if title is not None:
        lesson.title = title

    lesson.updated_at = utc_now()
    await db.flush()
    logger.info(f"Updated lesson {lesson_id[:8]}")
    return lesson


async def delete_lesson(db: AsyncSession, lesson_id: str) -> None:
    """Delete a lesson and its chat."""
    lesson = await get_lesson(db, lesson_id)
    await db.execute(delete(Chat).where(Chat.lesson_id == lesson_id))
    await db.delete(lesson)
    await db.flush()
    logger.info(f"Deleted lesson {lesson_id[:8]}")


# =============================================================================
# Document and transcript
# =============================================================================

async def load_document(db: AsyncSession, lesson_id: str) -> LessonUIState:
    """
    Load a lesson's UI document.

    A lesson whose stored document is empty gets a fresh empty document.

    Raises:
        LessonNotFoundError: no such lesson
        LessonStoreError: the stored document does not validate
    """
    lesson = await get_lesson(db, lesson_id)
    if not lesson.ui_schema:
        return create_empty_lesson_ui_state(lesson_id)
    try:
        return LessonUIState.model_validate(lesson.ui_schema)
    except ValidationError as e:
        logger.error(f"Stored document for lesson {lesson_id[:8]} is invalid: {e}")
        raise LessonStoreError(f"Stored document for lesson {lesson_id} is invalid") from e


async def save_document(db: AsyncSession, lesson_id: str, state: LessonUIState) -> None:
    """Replace a lesson's UI document."""
    await update_lesson(db, lesson_id, ui_state=state)


async def _get_chat(db: AsyncSession, lesson_id: str) -> Optional[Chat]:
    result = await db.execute(
        select(Chat).where(Chat.lesson_id == lesson_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def load_transcript(db: AsyncSession, lesson_id: str) -> list[TranscriptMessage]:
    """
    Load a lesson's chat transcript in order.

    Raises:
        LessonNotFoundError: no such lesson
        LessonStoreError: the stored transcript does not validate
    """
    await get_lesson(db, lesson_id)
    chat = await _get_chat(db, lesson_id)
    if chat is None:
        return []
    try:
        return [TranscriptMessage.model_validate(m) for m in chat.messages]
    except ValidationError as e:
        logger.error(f"Stored transcript for lesson {lesson_id[:8]} is invalid: {e}")
        raise LessonStoreError(f"Stored transcript for lesson {lesson_id} is invalid") from e


async def save_transcript(
    db: AsyncSession,
    lesson_id: str,
    messages: list[TranscriptMessage],
) -> None:
    """Replace a lesson's chat transcript, creating the chat row if needed."""
    await get_lesson(db, lesson_id)
    payload = [m.model_dump(mode="json", by_alias=True, exclude_none=True) for m in messages]

    chat = await _get_chat(db, lesson_id)
    if chat is None:
        db.add(Chat(lesson_id=lesson_id, messages=payload))
    else:
        chat.messages = payload
        chat.updated_at = utc_now()
    await db.flush()
    logger.debug(f"Saved {len(messages)} transcript messages for lesson {lesson_id[:8]}")
