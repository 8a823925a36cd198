"""
User-facing planner endpoints.

Each request loads the lesson document, applies one planner operation and
saves the result.  Pinned blocks answer 409 until the confirm endpoint is
used; removal is always two-step (remove-request, then DELETE).
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from fretcraft.core.blocks import block_from_payload
from fretcraft.core.planner import LessonPlanner
from fretcraft.core.tool_handlers import format_validation_error
from fretcraft.db import get_db
from fretcraft.models.planner_actions import BlockUpdateData, PlannerActionResult
from fretcraft.models.requests import (
    BlockMutationResponse,
    NewBlockRequest,
    RemoveBlockRequest,
    ReorderRequest,
)
from fretcraft.services import lessons as lesson_store
from fretcraft.services.lessons import LessonNotFoundError

router = APIRouter()
logger = logging.getLogger(__name__)


async def _load_planner(db: AsyncSession, lesson_id: str) -> LessonPlanner:
    try:
        return LessonPlanner(await lesson_store.load_document(db, lesson_id))
    except LessonNotFoundError:
        raise HTTPException(status_code=404, detail="Lesson not found")


async def _save(
    db: AsyncSession,
    lesson_id: str,
    planner: LessonPlanner,
    result: PlannerActionResult,
) -> BlockMutationResponse:
    state = planner.get_state()
    await lesson_store.save_document(db, lesson_id, state)
    return BlockMutationResponse(result=result, ui_schema=state)


def _block_not_found(planner: LessonPlanner, block_id: str) -> bool:
    return block_id not in planner.get_state().blocks


@router.post(
    "/lessons/{lesson_id}/blocks",
    response_model=BlockMutationResponse,
    response_model_exclude_none=True,
    status_code=201,
)
async def add_block(
    lesson_id: str,
    body: NewBlockRequest,
    db: AsyncSession = Depends(get_db),
) -> BlockMutationResponse:
    """Add a user-authored block at ``insertAt`` (or the end)."""
    planner = await _load_planner(db, lesson_id)
    try:
        block = block_from_payload(body.block, created_by="user")
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid block: {format_validation_error(e)}")

    result = planner.add_block(block, body.insert_at)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    logger.info(f"User added {block.type} block {block.id[:8]} to lesson {lesson_id[:8]}")
    return await _save(db, lesson_id, planner, result)


@router.patch(
    "/lessons/{lesson_id}/blocks/{block_id}",
    response_model=BlockMutationResponse,
    response_model_exclude_none=True,
)
async def update_block(
    lesson_id: str,
    block_id: str,
    body: BlockUpdateData,
    db: AsyncSession = Depends(get_db),
) -> BlockMutationResponse:
    """Update a block.  Pinned blocks answer 409 with ``requiresConfirmation``."""
    planner = await _load_planner(db, lesson_id)
    result = planner.update_block(block_id, body)

    if result.requires_confirmation:
        raise HTTPException(
            status_code=409,
            detail=result.model_dump(by_alias=True, exclude_none=True),
        )
    if not result.success:
        status = 404 if _block_not_found(planner, block_id) else 400
        raise HTTPException(status_code=status, detail=result.message)
    return await _save(db, lesson_id, planner, result)


@router.post(
    "/lessons/{lesson_id}/blocks/{block_id}/confirm-update",
    response_model=BlockMutationResponse,
    response_model_exclude_none=True,
)
async def confirm_update_block(
    lesson_id: str,
    block_id: str,
    body: BlockUpdateData,
    db: AsyncSession = Depends(get_db),
) -> BlockMutationResponse:
    """Apply an update the user has approved, pinned or not."""
    planner = await _load_planner(db, lesson_id)
    if not planner.confirm_update_block(block_id, body):
        if _block_not_found(planner, block_id):
            raise HTTPException(status_code=404, detail=f'Block "{block_id}" not found')
        raise HTTPException(status_code=400, detail="Invalid block update")
    result = PlannerActionResult(success=True, block_id=block_id, message="Block updated")
    return await _save(db, lesson_id, planner, result)


@router.post(
    "/lessons/{lesson_id}/blocks/{block_id}/remove-request",
    response_model=PlannerActionResult,
    response_model_exclude_none=True,
)
async def request_remove_block(
    lesson_id: str,
    block_id: str,
    body: RemoveBlockRequest,
    db: AsyncSession = Depends(get_db),
) -> PlannerActionResult:
    """Ask to remove a block.  Never removes; the answer asks for confirmation."""
    planner = await _load_planner(db, lesson_id)
    result = planner.request_remove_block(block_id, body.reason)
    if not result.requires_confirmation:
        raise HTTPException(status_code=404, detail=result.message)
    return result


@router.delete(
    "/lessons/{lesson_id}/blocks/{block_id}",
    response_model=BlockMutationResponse,
    response_model_exclude_none=True,
)
async def confirm_remove_block(
    lesson_id: str,
    block_id: str,
    db: AsyncSession = Depends(get_db),
) -> BlockMutationResponse:
    """Remove a block after the user confirmed."""
    planner = await _load_planner(db, lesson_id)
    if not planner.confirm_remove_block(block_id):
        raise HTTPException(status_code=404, detail=f'Block "{block_id}" not found')
    logger.info(f"Removed block {block_id[:8]} from lesson {lesson_id[:8]}")
    result = PlannerActionResult(success=True, block_id=block_id, message="Block removed")
    return await _save(db, lesson_id, planner, result)


@router.post(
    "/lessons/{lesson_id}/blocks/{block_id}/pin",
    response_model=BlockMutationResponse,
    response_model_exclude_none=True,
)
async def toggle_pin(
    lesson_id: str,
    block_id: str,
    db: AsyncSession = Depends(get_db),
) -> BlockMutationResponse:
    """Pin or unpin a block."""
    planner = await _load_planner(db, lesson_id)
    if not planner.toggle_pin(block_id):
        raise HTTPException(status_code=404, detail=f'Block "{block_id}" not found')
    pinned = planner.is_pinned(block_id)
    result = PlannerActionResult(
        success=True,
        block_id=block_id,
        message="Block pinned" if pinned else "Block unpinned",
    )
    return await _save(db, lesson_id, planner, result)


@router.put(
    "/lessons/{lesson_id}/layout/order",
    response_model=BlockMutationResponse,
    response_model_exclude_none=True,
)
async def reorder_blocks(
    lesson_id: str,
    body: ReorderRequest,
    db: AsyncSession = Depends(get_db),
) -> BlockMutationResponse:
    """Replace the display order."""
    planner = await _load_planner(db, lesson_id)
    if not planner.reorder_blocks(body.order):
        raise HTTPException(
            status_code=400,
            detail="Order must list existing block ids without duplicates",
        )
    result = PlannerActionResult(success=True, message="Blocks reordered")
    return await _save(db, lesson_id, planner, result)
