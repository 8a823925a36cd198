"""
Lesson planner: the only writer of lesson document state.

Blocks reach the document here whether they come from the model or the user.
Every operation is all-or-nothing: a failed operation leaves the state exactly
as it was.  Pinned blocks cannot be changed without the confirm path, and
removal always needs confirmation.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from fretcraft.models.base import to_camel
from fretcraft.models.blocks import IMMUTABLE_BLOCK_FIELDS, LESSON_BLOCK_ADAPTER, LessonBlock
from fretcraft.models.lesson_state import LessonUIState
from fretcraft.models.planner_actions import (
    AddBlockAction,
    BlockUpdateData,
    PlannerAction,
    PlannerActionResult,
    RequestRemoveBlockAction,
    UpdateBlockAction,
)

logger = logging.getLogger(__name__)

PartialBlock = Union[BlockUpdateData, Mapping[str, Any]]


def _normalize_partial(partial: PartialBlock) -> dict[str, Any]:
    if isinstance(partial, BlockUpdateData):
        return partial.to_partial()
    return {to_camel(key): value for key, value in partial.items()}


class LessonPlanner:
    """Owns one lesson's ``LessonUIState`` for the length of a request."""

    def __init__(self, initial_state: LessonUIState):
        self._state = initial_state.model_copy(deep=True)

    def get_state(self) -> LessonUIState:
        """An independent copy; changing it does not affect the planner."""
        return self._state.model_copy(deep=True)

    def get_blocks_in_order(self) -> list[LessonBlock]:
        return [
            self._state.blocks[block_id].model_copy(deep=True)
            for block_id in self._state.layout.order
            if block_id in self._state.blocks
        ]

    def is_pinned(self, block_id: str) -> bool:
        return block_id in self._state.layout.pinned

    # ── Actions ──────────────────────────────────────────────────────────

    def apply_action(self, action: PlannerAction) -> PlannerActionResult:
        if isinstance(action, AddBlockAction):
            return self.add_block(action.block, action.insert_at)
        if isinstance(action, UpdateBlockAction):
            return self.update_block(action.block_id, action.new_data)
        if isinstance(action, RequestRemoveBlockAction):
            return self.request_remove_block(action.block_id, action.reason)
        return PlannerActionResult(success=False, message="Unknown action")

    def add_block(self, block: LessonBlock, insert_at: Optional[int] = None) -> PlannerActionResult:
        if block.id in self._state.blocks:
            return PlannerActionResult(
                success=False,
                message=f'Block ID "{block.id}" already exists',
            )

        self._state.blocks[block.id] = block.model_copy(deep=True)
        order = self._state.layout.order
        if insert_at is not None and 0 <= insert_at <= len(order):
            order.insert(insert_at, block.id)
        else:
            order.append(block.id)

        logger.debug(f"Added {block.type} block {block.id}")
        return PlannerActionResult(
            success=True,
            block_id=block.id,
            message=f"Added {block.type} block",
        )

    def add_block_direct(self, block: LessonBlock) -> bool:
        """Append a block, skipping action bookkeeping.  False on id collision."""
        if block.id in self._state.blocks:
            return False
        self._state.blocks[block.id] = block.model_copy(deep=True)
        self._state.layout.order.append(block.id)
        return True

    def update_block(self, block_id: str, partial: PartialBlock) -> PlannerActionResult:
        existing = self._state.blocks.get(block_id)
        if existing is None:
            return PlannerActionResult(success=False, message=f'Block "{block_id}" not found')

        if self.is_pinned(block_id):
            return PlannerActionResult(
                success=False,
                requires_confirmation=True,
                block_id=block_id,
                message="This block is pinned. User confirmation required to update.",
            )

        merged, error = self._merge(existing, partial)
        if merged is None:
            return PlannerActionResult(
                success=False,
                block_id=block_id,
                message=f"Invalid block update: {error}",
            )

        self._state.blocks[block_id] = merged
        return PlannerActionResult(success=True, block_id=block_id, message="Block updated")

    def confirm_update_block(self, block_id: str, partial: PartialBlock) -> bool:
        """Apply an update after user approval; pinned blocks included."""
        existing = self._state.blocks.get(block_id)
        if existing is None:
            return False
        merged, error = self._merge(existing, partial)
        if merged is None:
            logger.info(f"Confirmed update of {block_id} rejected: {error}")
            return False
        self._state.blocks[block_id] = merged
        return True

    def request_remove_block(self, block_id: str, reason: str) -> PlannerActionResult:
        """Never removes anything; the user must confirm."""
        if block_id not in self._state.blocks:
            return PlannerActionResult(success=False, message=f'Block "{block_id}" not found')
        return PlannerActionResult(
            success=False,
            requires_confirmation=True,
            block_id=block_id,
            message=f"AI wants to remove this block: {reason}",
        )

    def confirm_remove_block(self, block_id: str) -> bool:
        if block_id not in self._state.blocks:
            return False
        del self._state.blocks[block_id]
        layout = self._state.layout
        layout.order = [i for i in layout.order if i != block_id]
        layout.pinned = [i for i in layout.pinned if i != block_id]
        return True

    def reorder_blocks(self, new_order: list[str]) -> bool:
        """Replace the display order.

        Every id must exist and appear once.  Ids left out of ``new_order``
        stay in ``blocks`` but are no longer displayed.
        """
        if not all(block_id in self._state.blocks for block_id in new_order):
            return False
        if len(set(new_order)) != len(new_order):
            return False
        self._state.layout.order = list(new_order)
        return True

    def toggle_pin(self, block_id: str) -> bool:
        if block_id not in self._state.blocks:
            return False
        pinned = self._state.layout.pinned
        if block_id in pinned:
            pinned.remove(block_id)
        else:
            pinned.append(block_id)
        return True

    # ── Internals ────────────────────────────────────────────────────────

    @staticmethod
    def _merge(existing: LessonBlock, partial: PartialBlock) -> tuple[Optional[LessonBlock], str]:
        current = existing.model_dump(by_alias=True)
        merged = {**current, **_normalize_partial(partial)}
        for key in IMMUTABLE_BLOCK_FIELDS:
            merged[key] = current[key]
        try:
            return LESSON_BLOCK_ADAPTER.validate_python(merged), ""
        except ValidationError as e:
            return None, str(e)
