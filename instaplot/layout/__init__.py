"""
Layout Engine

RESPONSIBILITY: Deterministic card coordinates from two axis selections
ALLOWED INPUTS: The full card collection, an x attribute, a y attribute
OUTPUTS: (x, y) per card; an updated collection for `organize`

WHAT THIS LAYER MUST NOT DO:
============================
- Read or write the record store (callers pass cards in, take cards out)
- Depend on previous coordinates (every pass is a full recompute)
- Nudge colliding cards apart (equal values share a bucket on purpose)

PROJECTION:
===========
time axis:        (t - t_min) / (t_max - t_min or 1) * span + margin
                  span = 600 on x, 400 on y
categorical axis: bucket_index * bucket_width + margin
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import random

from ..contracts.base import AxisAttribute
from ..contracts.card import Card
from .axis import AxisResolver, domain_for, parse_card_time

__all__ = [
    "LayoutConfig", "LayoutEngine", "AxisResolver", "domain_for",
    "parse_card_time", "random_position",
]


@dataclass(frozen=True)
class LayoutConfig:
    """Board geometry, in pixels."""
    margin: float = 100.0
    time_span_x: float = 600.0
    time_span_y: float = 400.0
    bucket_width: float = 200.0

    # Region for randomized initial placement: [origin, origin + extent)
    spawn_x: float = 100.0
    spawn_width: float = 400.0
    spawn_y: float = 100.0
    spawn_height: float = 300.0

    def time_span(self, axis: str) -> float:
        return self.time_span_x if axis == "x" else self.time_span_y


def random_position(
    rng: Optional[random.Random] = None,
    config: Optional[LayoutConfig] = None
) -> Tuple[float, float]:
    """Uniform draw over the spawn region. Not deterministic unless `rng` is seeded."""
    rng = rng or random
    config = config or LayoutConfig()
    return (
        rng.random() * config.spawn_width + config.spawn_x,
        rng.random() * config.spawn_height + config.spawn_y,
    )


class _AxisProjection:
    """
    Precomputed projection of one attribute onto one axis.

    Built once per pass so every card in the pass sees the same bounds
    and the same bucket table.
    """

    def __init__(
        self,
        attribute: AxisAttribute,
        axis: str,
        cards: Sequence[Card],
        config: LayoutConfig
    ):
        self.attribute = attribute
        self._margin = config.margin

        if attribute is AxisAttribute.TIME:
            self._span = config.time_span(axis)
            instants = [t for t in (parse_card_time(c.time) for c in cards) if t is not None]
            self._t_min = min(instants) if instants else 0.0
            self._t_range = (max(instants) - self._t_min) if instants else 0.0
        else:
            self._bucket_width = config.bucket_width
            self._buckets: Dict[str, int] = {
                value: index
                for index, value in enumerate(domain_for(attribute, cards))
            }

    def project(self, card: Card) -> float:
        if self.attribute is AxisAttribute.TIME:
            t = parse_card_time(card.time)
            if t is None:
                return self._margin
            return ((t - self._t_min) / (self._t_range or 1)) * self._span + self._margin

        index = self._buckets.get(card.value_of(self.attribute.value), len(self._buckets))
        return index * self._bucket_width + self._margin

    def ticks(self, cards: Sequence[Card]) -> Tuple[Tuple[float, str], ...]:
        if self.attribute is AxisAttribute.TIME:
            labels = domain_for(self.attribute, cards)
            by_label = {c.time: c for c in cards}
            return tuple((self.project(by_label[label]), label) for label in labels)
        return tuple(
            (index * self._bucket_width + self._margin, value)
            for value, index in self._buckets.items()
        )


class LayoutEngine:
    """
    Axis-bucketing layout.

    DETERMINISTIC:
    Same cards (in the same order) + same axis pair = bit-identical
    coordinates. `organize` applied twice in a row is a no-op the second
    time.
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self._config = config or LayoutConfig()

    @property
    def config(self) -> LayoutConfig:
        return self._config

    def _projections(self, cards, x_attr, y_attr):
        return (
            _AxisProjection(AxisAttribute.parse(x_attr), "x", cards, self._config),
            _AxisProjection(AxisAttribute.parse(y_attr), "y", cards, self._config),
        )

    def position_for(
        self,
        card: Card,
        cards: Sequence[Card],
        x_attr,
        y_attr
    ) -> Tuple[float, float]:
        """Target (x, y) for one card against the full collection."""
        x_proj, y_proj = self._projections(cards, x_attr, y_attr)
        return x_proj.project(card), y_proj.project(card)

    def organize(self, cards: Sequence[Card], x_attr, y_attr) -> List[Card]:
        """Full recompute: every card gets its engine position, order kept."""
        x_proj, y_proj = self._projections(cards, x_attr, y_attr)
        return [
            card.with_position(x_proj.project(card), y_proj.project(card))
            for card in cards
        ]

    def axis_ticks(self, cards: Sequence[Card], attribute, axis: str) -> Tuple[Tuple[float, str], ...]:
        """(position, label) pairs for drawing one axis."""
        if axis not in ("x", "y"):
            raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")
        projection = _AxisProjection(AxisAttribute.parse(attribute), axis, cards, self._config)
        return projection.ticks(cards)
