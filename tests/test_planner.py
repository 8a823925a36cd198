"""Tests for the lesson planner."""
from __future__ import annotations

from typing import Any

import pytest

from fretcraft.core.blocks import chord_diagram_block, text_block
from fretcraft.core.planner import LessonPlanner
from fretcraft.models.blocks import TextBlock
from fretcraft.models.diagrams import ChordDiagramData
from fretcraft.models.lesson_state import LessonUIState, create_empty_lesson_ui_state
from fretcraft.models.planner_actions import (
    AddBlockAction,
    BlockUpdateData,
    RequestRemoveBlockAction,
    UpdateBlockAction,
)


@pytest.fixture
def planner() -> LessonPlanner:
    return LessonPlanner(create_empty_lesson_ui_state("lesson-1"))


def _seed(planner: LessonPlanner, *contents: str) -> list[str]:
    ids = []
    for content in contents:
        block = text_block(content)
        assert planner.add_block(block).success
        ids.append(block.id)
    return ids


class TestIsolation:

    def test_initial_state_is_copied(self) -> None:

        state = create_empty_lesson_ui_state("lesson-1")
        planner = LessonPlanner(state)
        planner.add_block(text_block("a"))

        assert state.blocks == {}
        assert state.layout.order == []

    def test_get_state_returns_copy(self, planner: LessonPlanner) -> None:

        (block_id,) = _seed(planner, "a")
        snapshot = planner.get_state()
        snapshot.layout.order.clear()
        snapshot.blocks.clear()

        assert planner.get_state().layout.order == [block_id]

    def test_blocks_in_order_returns_copies(self, planner: LessonPlanner) -> None:

        (block_id,) = _seed(planner, "orig")
        planner.toggle_pin(block_id)
        block = planner.get_blocks_in_order()[0]
        assert isinstance(block, TextBlock)
        block.content = "tampered"

        stored = planner.get_state().blocks[block_id]
        assert isinstance(stored, TextBlock)
        assert stored.content == "orig"

    @pytest.mark.parametrize("direct", [False, True])
    def test_added_block_is_copied(self, planner: LessonPlanner, direct: bool) -> None:

        block = text_block("orig")
        if direct:
            assert planner.add_block_direct(block) is True
        else:
            assert planner.add_block(block).success is True
        planner.toggle_pin(block.id)
        block.content = "tampered"

        stored = planner.get_state().blocks[block.id]
        assert isinstance(stored, TextBlock)
        assert stored.content == "orig"


class TestAddBlock:

    def test_append(self, planner: LessonPlanner) -> None:

        first, second = _seed(planner, "a", "b")

        assert planner.get_state().layout.order == [first, second]

    def test_result_message(self, planner: LessonPlanner) -> None:

        block = text_block("a")
        result = planner.add_block(block)

        assert result.success is True
        assert result.block_id == block.id
        assert result.message == "Added TextBlock block"

    def test_insert_at_head(self, planner: LessonPlanner) -> None:

        first, second = _seed(planner, "a", "b")
        block = text_block("c")
        planner.add_block(block, insert_at=0)

        assert planner.get_state().layout.order == [block.id, first, second]

    def test_insert_at_end_index(self, planner: LessonPlanner) -> None:

        ids = _seed(planner, "a", "b")
        block = text_block("c")
        planner.add_block(block, insert_at=2)

        assert planner.get_state().layout.order == ids + [block.id]

    def test_out_of_range_insert_appends(self, planner: LessonPlanner) -> None:

        ids = _seed(planner, "a")
        block = text_block("c")
        planner.add_block(block, insert_at=10)

        assert planner.get_state().layout.order == ids + [block.id]

    def test_duplicate_id_rejected(self, planner: LessonPlanner) -> None:

        block = text_block("a")
        planner.add_block(block)
        before = planner.get_state()

        result = planner.add_block(block)

        assert result.success is False
        assert result.message == f'Block ID "{block.id}" already exists'
        assert planner.get_state() == before

    def test_add_block_direct(self, planner: LessonPlanner) -> None:

        block = text_block("a")

        assert planner.add_block_direct(block) is True
        assert planner.add_block_direct(block) is False
        assert planner.get_state().layout.order == [block.id]


class TestUpdateBlock:

    def test_update_content(self, planner: LessonPlanner) -> None:

        (block_id,) = _seed(planner, "old")
        original = planner.get_state().blocks[block_id]

        result = planner.update_block(block_id, {"content": "new"})

        updated = planner.get_state().blocks[block_id]
        assert result.success is True
        assert result.message == "Block updated"
        assert isinstance(updated, TextBlock)
        assert updated.content == "new"
        assert updated.created_at == original.created_at

    def test_immutable_fields_preserved(self, planner: LessonPlanner) -> None:

        (block_id,) = _seed(planner, "old")
        original = planner.get_state().blocks[block_id]

        planner.update_block(block_id, {
            "id": "hijack",
            "type": "VideoEmbed",
            "createdBy": "user",
            "created_at": "2000-01-01T00:00:00Z",
            "content": "new",
        })

        updated = planner.get_state().blocks[block_id]
        assert updated.id == block_id
        assert updated.type == "TextBlock"
        assert updated.created_by == "ai"
        assert updated.created_at == original.created_at
        assert "hijack" not in planner.get_state().blocks

    def test_update_with_model(self, planner: LessonPlanner) -> None:

        (block_id,) = _seed(planner, "old")

        result = planner.update_block(block_id, BlockUpdateData(content="typed"))

        assert result.success
        assert planner.get_state().blocks[block_id].content == "typed"  # type: ignore[union-attr]

    def test_update_chord_data_revalidated(self, planner: LessonPlanner, chord_input: dict[str, Any]) -> None:

        block = chord_diagram_block(ChordDiagramData.model_validate({"id": "c", **chord_input}))
        planner.add_block(block)
        before = planner.get_state()

        bad = dict(chord_input, id="c", positions=[{"position": {"string": 9, "fret": 0}, "interval": "R", "note": "C"}])
        result = planner.update_block(block.id, {"data": bad})

        assert result.success is False
        assert (result.message or "").startswith("Invalid block update: ")
        assert planner.get_state() == before

    def test_not_found(self, planner: LessonPlanner) -> None:

        result = planner.update_block("missing", {"content": "x"})

        assert result.success is False
        assert result.message == 'Block "missing" not found'

    def test_pinned_requires_confirmation(self, planner: LessonPlanner) -> None:

        (block_id,) = _seed(planner, "keep me")
        planner.toggle_pin(block_id)
        before = planner.get_state()

        result = planner.update_block(block_id, {"content": "changed"})

        assert result.success is False
        assert result.requires_confirmation is True
        assert result.block_id == block_id
        assert result.message == "This block is pinned. User confirmation required to update."
        assert planner.get_state() == before

    def test_confirm_update_on_pinned(self, planner: LessonPlanner) -> None:

        (block_id,) = _seed(planner, "keep me")
        planner.toggle_pin(block_id)

        assert planner.confirm_update_block(block_id, {"content": "approved"}) is True
        state = planner.get_state()
        assert state.blocks[block_id].content == "approved"  # type: ignore[union-attr]
        assert state.layout.pinned == [block_id]

    def test_confirm_update_missing_or_invalid(self, planner: LessonPlanner) -> None:

        (block_id,) = _seed(planner, "a")

        assert planner.confirm_update_block("missing", {"content": "x"}) is False
        assert planner.confirm_update_block(block_id, {"content": 5}) is False
        assert planner.get_state().blocks[block_id].content == "a"  # type: ignore[union-attr]


class TestRemoval:

    def test_request_never_removes(self, planner: LessonPlanner) -> None:

        (block_id,) = _seed(planner, "a")

        result = planner.request_remove_block(block_id, "duplicate")

        assert result.success is False
        assert result.requires_confirmation is True
        assert result.message == "AI wants to remove this block: duplicate"
        assert block_id in planner.get_state().blocks

    def test_request_missing(self, planner: LessonPlanner) -> None:

        result = planner.request_remove_block("nope", "why")

        assert result.success is False
        assert not result.requires_confirmation

    def test_confirm_remove_clears_everything(self, planner: LessonPlanner) -> None:

        first, second = _seed(planner, "a", "b")
        planner.toggle_pin(first)

        assert planner.confirm_remove_block(first) is True
        state = planner.get_state()
        assert first not in state.blocks
        assert state.layout.order == [second]
        assert state.layout.pinned == []

    def test_confirm_remove_missing(self, planner: LessonPlanner) -> None:

        assert planner.confirm_remove_block("nope") is False


class TestLayout:

    def test_reorder(self, planner: LessonPlanner) -> None:

        a, b, c = _seed(planner, "a", "b", "c")

        assert planner.reorder_blocks([c, a, b]) is True
        assert [blk.id for blk in planner.get_blocks_in_order()] == [c, a, b]

    def test_reorder_rejects_unknown_and_duplicates(self, planner: LessonPlanner) -> None:

        a, b = _seed(planner, "a", "b")

        assert planner.reorder_blocks([a, "ghost"]) is False
        assert planner.reorder_blocks([a, a, b]) is False
        assert planner.get_state().layout.order == [a, b]

    def test_reorder_subset_hides_blocks(self, planner: LessonPlanner) -> None:

        a, b = _seed(planner, "a", "b")

        assert planner.reorder_blocks([b]) is True
        assert [blk.id for blk in planner.get_blocks_in_order()] == [b]
        assert a in planner.get_state().blocks

    def test_toggle_pin_twice(self, planner: LessonPlanner) -> None:

        (block_id,) = _seed(planner, "a")

        assert planner.toggle_pin(block_id) is True
        assert planner.is_pinned(block_id)
        assert planner.toggle_pin(block_id) is True
        assert not planner.is_pinned(block_id)
        assert planner.toggle_pin("missing") is False

    def test_blocks_in_order_skips_dangling_ids(self) -> None:

        block = text_block("a")
        state = LessonUIState.model_validate({
            "lessonId": "l",
            "layout": {"order": ["ghost", block.id], "pinned": []},
            "blocks": {block.id: block.model_dump(by_alias=True)},
        })

        assert [b.id for b in LessonPlanner(state).get_blocks_in_order()] == [block.id]


class TestApplyAction:

    def test_dispatch(self, planner: LessonPlanner) -> None:

        block = text_block("a")

        added = planner.apply_action(AddBlockAction(block=block))
        updated = planner.apply_action(UpdateBlockAction(block_id=block.id, new_data=BlockUpdateData(content="b")))
        removal = planner.apply_action(RequestRemoveBlockAction(block_id=block.id, reason="old"))

        assert added.success and updated.success
        assert removal.requires_confirmation is True
        assert planner.get_state().blocks[block.id].content == "b"  # type: ignore[union-attr]
