"""
Freeform Buffer Tests

Debounced sync of the JSON text view, driven by a manual scheduler.
"""

import json
import sys

import pytest

from instaplot.contracts import BufferSyncStatus
from instaplot.sync import FreeformBuffer

requires_digit_limit = pytest.mark.skipif(
    not hasattr(sys, "get_int_max_str_digits"),
    reason="interpreter has no integer digit limit"
)


def cards_text(*ids):
    return json.dumps([
        {"id": i, "time": "2024-01-16T08:00", "actor": "Bob",
         "place": "Harbour", "claims": "c", "x": 150, "y": 150}
        for i in ids
    ])


class TestDebounce:

    def test_buffer_starts_with_live_cards(self, board):
        buffer = board.open_buffer()
        assert [c["id"] for c in json.loads(buffer.text)] == ["1", "2"]
        assert not buffer.pending

    def test_edits_keep_one_pending_parse(self, board, scheduler):
        buffer = board.open_buffer()
        buffer.edit(cards_text("a"))
        buffer.edit(cards_text("a", "b"))
        buffer.edit(cards_text("a", "b", "c"))

        assert len(scheduler.live) == 1
        assert scheduler.live[0].delay == 0.5
        assert [c.id for c in board.cards()] == ["1", "2"]

        scheduler.fire_all()
        assert [c.id for c in board.cards()] == ["a", "b", "c"]
        assert buffer.last_outcome.status is BufferSyncStatus.APPLIED
        assert not buffer.pending

    def test_stale_timer_does_nothing(self, board, scheduler):
        buffer = board.open_buffer()
        buffer.edit(cards_text("a"))
        stale = scheduler.timers[0]
        buffer.edit(cards_text("b"))
        stale.callback()
        assert [c.id for c in board.cards()] == ["1", "2"]
        scheduler.fire_all()
        assert [c.id for c in board.cards()] == ["b"]

    def test_flush_runs_pending_parse_now(self, board):
        buffer = board.open_buffer()
        buffer.edit(cards_text("a"))
        outcome = buffer.flush()
        assert outcome.applied
        assert buffer.flush() is None


class TestSilentSkips:

    @pytest.mark.parametrize("text,status", [
        ('[{"time": ', BufferSyncStatus.UNPARSEABLE),
        ('{"id": "a"}', BufferSyncStatus.NOT_A_SEQUENCE),
        ('[{"id": "a"}]', BufferSyncStatus.NO_VALID_ITEMS),
    ])
    def test_unusable_draft_is_ignored(self, board, scheduler, text, status):
        before = board.cards()
        buffer = board.open_buffer()
        buffer.edit(text)
        scheduler.fire_all()
        assert buffer.last_outcome.status is status
        assert board.cards() == before


class TestBufferLifecycle:

    def test_applied_draft_is_not_laid_out(self, board, scheduler):
        board.set_position("1", 999.0, 999.0)
        buffer = board.open_buffer()
        buffer.edit(cards_text("a"))
        scheduler.fire_all()
        card = board.get_card("a")
        assert (card.x, card.y) == (150.0, 150.0)
        assert board.overlay.overridden_ids == frozenset()

    def test_close_drops_pending_parse(self, board, scheduler):
        buffer = board.open_buffer()
        buffer.edit(cards_text("a"))
        board.close_buffer()
        scheduler.fire_all()
        assert [c.id for c in board.cards()] == ["1", "2"]
        assert buffer.closed
        assert buffer.last_outcome.status is BufferSyncStatus.CANCELLED

    def test_edit_after_close_raises(self, board):
        buffer = board.open_buffer()
        buffer.close()
        with pytest.raises(RuntimeError):
            buffer.edit("[]")

    def test_reopen_closes_previous(self, board):
        first = board.open_buffer()
        second = board.open_buffer()
        assert first.closed
        assert board.buffer is second


class ClosingLock:
    """Board lock stand-in whose acquisition races a close() of the buffer."""

    def __init__(self):
        self.buffer = None

    def __enter__(self):
        self.buffer.close()
        return self

    def __exit__(self, *exc):
        return False


class TestOversizedDrafts:

    def test_huge_coordinate_draft_applies(self, board, scheduler):
        buffer = board.open_buffer()
        buffer.edit('[{"id": "a", "time": "t", "actor": "A", "place": "P", '
                    '"claims": "c", "y": 150, "x": 1' + "0" * 400 + '}]')
        scheduler.fire_all()
        assert buffer.last_outcome.status is BufferSyncStatus.APPLIED
        assert 100.0 <= board.get_card("a").x < 500.0

    @requires_digit_limit
    def test_digit_limit_draft_is_skipped(self, board, scheduler):
        before = board.cards()
        buffer = board.open_buffer()
        buffer.edit('[{"x": 1' + "0" * 5000 + '}]')
        outcome = buffer.flush()
        assert outcome.status is BufferSyncStatus.UNPARSEABLE
        assert board.cards() == before


class TestCloseRace:

    def test_close_after_fire_drops_the_draft(self, board, scheduler):
        before = board.cards()
        lock = ClosingLock()
        buffer = FreeformBuffer(board.sync, scheduler=scheduler, lock=lock)
        lock.buffer = buffer

        buffer.edit(cards_text("a"))
        scheduler.fire_all()

        assert board.cards() == before
        assert buffer.last_outcome.status is BufferSyncStatus.CANCELLED
