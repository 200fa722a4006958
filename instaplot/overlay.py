"""
Manual Placement Overlay

Positions written by direct manipulation. A manual position bypasses the
layout engine and holds until the next organize pass overwrites it.

No bounds checking: coordinates may be negative or beyond the nominal
canvas. Scrolling and clipping belong to the rendering surface.
"""

from __future__ import annotations
from typing import FrozenSet, Optional, Set

from .contracts.card import Card
from .contracts.events import AuditEventType
from .observability import ObservabilityEngine
from .records import RecordStore


class ManualPlacementOverlay:
    """Writes drag results straight into the record store."""

    def __init__(self, store: RecordStore, observability: Optional[ObservabilityEngine] = None):
        self._store = store
        self._observability = observability
        self._overridden: Set[str] = set()
        store.on_delete(self._overridden.discard)

    def set_position(self, card_id: str, x: float, y: float) -> Optional[Card]:
        """Pin `card_id` at (x, y). Returns the moved card, or None if absent."""
        card = self._store.update(card_id, {"x": x, "y": y})
        if card is None:
            return None
        self._overridden.add(card_id)
        if self._observability:
            self._observability.log_audit(
                "overlay", "position_set", event_type=AuditEventType.LAYOUT,
                entity_id=card_id, metadata=(("x", repr(card.x)), ("y", repr(card.y)))
            )
        return card

    def drag(self, card_id: str, dx: float, dy: float) -> Optional[Card]:
        """Apply the final pointer offset of a drag gesture."""
        card = self._store.get(card_id)
        if card is None:
            return None
        return self.set_position(card_id, card.x + dx, card.y + dy)

    def is_overridden(self, card_id: str) -> bool:
        return card_id in self._overridden

    @property
    def overridden_ids(self) -> FrozenSet[str]:
        return frozenset(self._overridden)

    def clear(self):
        """Forget all manual placements (called after a full re-layout)."""
        self._overridden.clear()
