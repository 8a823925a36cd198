"""Planner action requests and results."""
from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from fretcraft.models.base import CamelModel
from fretcraft.models.blocks import LessonBlock, VideoSource


class BlockUpdateData(CamelModel):
    """Partial data for updating a block.

    ``type`` is absent because it is immutable.  ``data`` is left loose here;
    the planner re-validates the merged block against its variant.
    """

    content: Optional[str] = None
    data: Optional[dict[str, object]] = None
    animate: Optional[bool] = None
    show_intervals: Optional[bool] = None
    highlight_roots: Optional[bool] = None
    video: Optional[VideoSource] = None

    def to_partial(self) -> dict[str, object]:
        """Only the fields the caller actually sent, camelCase."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class AddBlockAction(CamelModel):
    action: Literal["add_block"] = "add_block"
    block: LessonBlock
    insert_at: Optional[Annotated[int, Field(ge=0)]] = None


class UpdateBlockAction(CamelModel):
    action: Literal["update_block"] = "update_block"
    block_id: str
    new_data: BlockUpdateData


class RequestRemoveBlockAction(CamelModel):
    """Request to remove a block.  Always needs user confirmation."""

    action: Literal["request_remove_block"] = "request_remove_block"
    block_id: str
    reason: str


PlannerAction = Annotated[
    Union[AddBlockAction, UpdateBlockAction, RequestRemoveBlockAction],
    Field(discriminator="action"),
]


class PlannerActionResult(CamelModel):
    """Outcome of a planner operation.  Failures never mutate state."""

    success: bool
    requires_confirmation: Optional[bool] = None
    message: Optional[str] = None
    block_id: Optional[str] = None
