"""Lesson CRUD endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fretcraft.db import get_db
from fretcraft.db.models import Lesson
from fretcraft.models.lesson_state import LessonUIState
from fretcraft.models.requests import (
    LessonCreateRequest,
    LessonDetail,
    LessonSummary,
    LessonUpdateRequest,
    TranscriptMessage,
)
from fretcraft.services import lessons as lesson_store
from fretcraft.services.lessons import LessonNotFoundError, LessonStoreError

router = APIRouter()
logger = logging.getLogger(__name__)


def _summary(lesson: Lesson) -> LessonSummary:
    return LessonSummary(
        id=lesson.id,
        title=lesson.title,
        created_at=lesson.created_at,
        updated_at=lesson.updated_at,
    )


def _detail(
    lesson: Lesson,
    state: LessonUIState,
    transcript: list[TranscriptMessage],
) -> LessonDetail:
    return LessonDetail(
        id=lesson.id,
        title=lesson.title,
        created_at=lesson.created_at,
        updated_at=lesson.updated_at,
        ui_schema=state,
        messages=transcript,
    )


async def _load_detail(db: AsyncSession, lesson_id: str) -> LessonDetail:
    lesson = await lesson_store.get_lesson(db, lesson_id)
    state = await lesson_store.load_document(db, lesson_id)
    transcript = await lesson_store.load_transcript(db, lesson_id)
    return _detail(lesson, state, transcript)


@router.get("/lessons", response_model=list[LessonSummary])
async def list_lessons(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> list[LessonSummary]:
    """Lessons, most recently updated first."""
    rows = await lesson_store.list_lessons(db, limit=limit, offset=offset)
    return [_summary(lesson) for lesson in rows]


@router.post(
    "/lessons",
    response_model=LessonDetail,
    response_model_exclude_none=True,
    status_code=201,
)
async def create_lesson(
    body: LessonCreateRequest,
    db: AsyncSession = Depends(get_db),
) -> LessonDetail:
    """Create a lesson with an empty document and chat."""
    lesson = await lesson_store.create_lesson(db, title=body.title)
    return await _load_detail(db, lesson.id)


@router.get(
    "/lessons/{lesson_id}",
    response_model=LessonDetail,
    response_model_exclude_none=True,
)
async def get_lesson(lesson_id: str, db: AsyncSession = Depends(get_db)) -> LessonDetail:
    """Lesson with its document and chat transcript."""
    try:
        return await _load_detail(db, lesson_id)
    except LessonNotFoundError:
        raise HTTPException(status_code=404, detail="Lesson not found")
    except LessonStoreError as e:
        logger.error(f"Failed to load lesson {lesson_id}: {e}")
        raise HTTPException(status_code=500, detail="Stored lesson data is invalid")


@router.put(
    "/lessons/{lesson_id}",
    response_model=LessonDetail,
    response_model_exclude_none=True,
)
async def update_lesson(
    lesson_id: str,
    body: LessonUpdateRequest,
    db: AsyncSession = Depends(get_db),
) -> LessonDetail:
    """Rename a lesson and/or replace its document."""
    if body.title is None and body.ui_schema is None:
        raise HTTPException(status_code=400, detail="No updates provided")
    try:
        await lesson_store.update_lesson(db, lesson_id, title=body.title, ui_state=body.ui_schema)
        return await _load_detail(db, lesson_id)
    except LessonNotFoundError:
        raise HTTPException(status_code=404, detail="Lesson not found")
    except LessonStoreError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/lessons/{lesson_id}", status_code=204)
async def delete_lesson(lesson_id: str, db: AsyncSession = Depends(get_db)) -> Response:
    """Delete a lesson and its chat."""
    try:
        await lesson_store.delete_lesson(db, lesson_id)
    except LessonNotFoundError:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return Response(status_code=204)
