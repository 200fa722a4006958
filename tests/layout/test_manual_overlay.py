"""
Manual Placement Tests

A dragged card keeps its position through unrelated edits and loses it
on the next organize pass.
"""

import pytest


class TestManualPlacement:

    def test_drag_applies_final_offset(self, board):
        card = board.get_card("1")
        moved = board.drag_end("1", 25.0, -40.0)
        assert (moved.x, moved.y) == (card.x + 25.0, card.y - 40.0)
        assert board.overlay.is_overridden("1")

    def test_no_bounds_checking(self, board):
        moved = board.set_position("2", -500.0, 99999.0)
        assert (moved.x, moved.y) == (-500.0, 99999.0)

    def test_drag_unknown_card_is_noop(self, board):
        assert board.drag_end("missing", 1.0, 1.0) is None
        assert board.overlay.overridden_ids == frozenset()

    def test_override_survives_content_edit(self, board):
        board.set_position("1", 640.0, 480.0)
        board.update_card("1", {"claims": "Changed story"})
        board.update_card("2", {"place": "Harbour"})
        card = board.get_card("1")
        assert (card.x, card.y) == (640.0, 480.0)
        assert board.overlay.is_overridden("1")

    def test_axis_change_overwrites_override(self, board):
        board.set_position("1", 640.0, 480.0)
        board.set_x_axis("actor")
        card = board.get_card("1")
        expected = board.layout.position_for(card, board.cards(), "actor", "time")
        assert (card.x, card.y) == expected
        assert not board.overlay.is_overridden("1")

    def test_delete_forgets_override(self, board):
        board.set_position("1", 1.0, 1.0)
        board.delete_card("1")
        assert not board.overlay.is_overridden("1")

    @pytest.mark.parametrize("dx,dy", [(0.0, 0.0), (0.5, -0.5)])
    def test_drag_is_audited(self, board, dx, dy):
        board.drag_end("2", dx, dy)
        assert board.observability.count("overlay", "position_set") == 1
