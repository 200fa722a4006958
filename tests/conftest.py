"""
Shared fixtures: an in-memory board with a seeded RNG and a manual
scheduler so debounced buffer parses fire only when a test says so.
"""

import pytest

from instaplot.engine import BoardConfig, PlotBoard
from instaplot.storage import InMemoryKeyValueStore


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Collects scheduled callbacks; `fire_all` runs the live ones."""

    def __init__(self):
        self.timers = []

    def schedule(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def live(self):
        return [t for t in self.timers if not t.cancelled]

    def fire_all(self):
        for timer in self.live:
            timer.cancelled = True
            timer.callback()


class FixedClock:
    """Deterministic millisecond clock that advances on every read."""

    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        self.now += 0.001
        return self.now


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def board(kv_store, scheduler):
    return PlotBoard(
        BoardConfig(random_seed=42),
        store=kv_store,
        scheduler=scheduler,
        clock=FixedClock()
    )


@pytest.fixture
def empty_board(board):
    for card in board.cards():
        board.delete_card(card.id)
    return board
