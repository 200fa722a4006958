"""
Record Store

RESPONSIBILITY: The authoritative in-memory card collection
ALLOWED INPUTS: Create/update/delete/replace commands
OUTPUTS: Cards in insertion order; Result for creation

WHAT THIS LAYER MUST NOT DO:
============================
- Lay cards out (that is the layout engine's job)
- Re-validate on update (inline edits may transiently empty a field)
- Roll back memory when persistence fails (memory stays authoritative)

LIFECYCLE:
==========
load_or_seed() runs exactly once. Absent or unreadable storage yields the
two-card default seed, never an empty board; the seed is written back at
once. Every mutation is followed by a full-collection write to the
repository.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Any, Callable, List, Mapping, Optional, Sequence
import logging
import random
import string
import time

from ..contracts.base import Error, ErrorCode, Result
from ..contracts.card import Card, REQUIRED_TEXT_FIELDS, missing_required_fields
from ..contracts.events import AuditEventType, StorageWriteResult
from ..layout import LayoutConfig, random_position
from ..observability import ObservabilityEngine
from ..storage import CardRepository, StorageReadError

logger = logging.getLogger("instaplot.records")

_ID_ALPHABET = string.digits + string.ascii_lowercase


def default_seed() -> List[Card]:
    """The two illustrative cards shown on a fresh board."""
    return [
        Card(
            id="1",
            time="2024-01-15T09:00",
            actor="John Smith",
            place="Office Building",
            claims="Was in a meeting with the client",
            is_lie=False,
            x=100.0,
            y=100.0,
        ),
        Card(
            id="2",
            time="2024-01-15T14:30",
            actor="Jane Doe",
            place="Coffee Shop",
            claims="Saw the suspect leaving the area",
            is_lie=True,
            x=300.0,
            y=200.0,
        ),
    ]


def generate_card_id(
    taken,
    rng: Optional[random.Random] = None,
    with_suffix: bool = False,
    clock: Callable[[], float] = time.time
) -> str:
    """
    Time-derived id unique against `taken`.

    `with_suffix` appends 9 random base36 characters, used for bulk-synced
    items where many ids are minted within the same millisecond.
    """
    rng = rng or random
    millis = int(clock() * 1000)
    while True:
        candidate = str(millis)
        if with_suffix:
            candidate += "".join(rng.choice(_ID_ALPHABET) for _ in range(9))
        if candidate not in taken:
            return candidate
        millis += 1


class RecordStore:
    """
    Ordered, id-unique card collection with write-through persistence.
    """

    def __init__(
        self,
        repository: CardRepository,
        layout_config: Optional[LayoutConfig] = None,
        rng: Optional[random.Random] = None,
        observability: Optional[ObservabilityEngine] = None,
        clock: Callable[[], float] = time.time
    ):
        self._repository = repository
        self._layout_config = layout_config or LayoutConfig()
        self._rng = rng or random.Random()
        self._observability = observability
        self._clock = clock
        self._cards: List[Card] = []
        self._loaded = False
        self._delete_listeners: List[Callable[[str], None]] = []
        self._last_write: Optional[StorageWriteResult] = None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def load_or_seed(self) -> List[Card]:
        """Load once from the repository, falling back to the default seed."""
        if self._loaded:
            return self.list()

        try:
            cards = self._repository.load()
            cards = self._dedupe_ids(cards)
            source = "storage"
        except StorageReadError as e:
            logger.warning("Error loading cards from durable store: %s; using default seed", e)
            self._audit("load_fallback", event_type=AuditEventType.ERROR,
                        metadata=(("reason", str(e)),))
            cards = default_seed()
            source = "seed"

        self._cards = cards
        self._loaded = True
        if source == "seed":
            self._persist()
        self._audit("loaded", metadata=(("source", source), ("count", str(len(cards)))))
        return self.list()

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def on_delete(self, listener: Callable[[str], None]):
        """Register a callback invoked with the id of every deleted card."""
        self._delete_listeners.append(listener)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def list(self) -> List[Card]:
        """Cards in insertion order (a copy; cards themselves are immutable)."""
        return list(self._cards)

    def get(self, card_id: str) -> Optional[Card]:
        for card in self._cards:
            if card.id == card_id:
                return card
        return None

    def ids(self) -> List[str]:
        return [card.id for card in self._cards]

    def __len__(self) -> int:
        return len(self._cards)

    def __contains__(self, card_id: str) -> bool:
        return self.get(card_id) is not None

    @property
    def last_write(self) -> Optional[StorageWriteResult]:
        return self._last_write

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def create(self, fields: Mapping[str, Any]) -> Result:
        """
        Validate and append a new card.

        All of time/actor/place/claims must be non-empty. The id is minted
        here and coordinates are drawn at random inside the spawn region.
        """
        missing = missing_required_fields(fields)
        if missing:
            error = Error.create(
                ErrorCode.VALIDATION_FAILED,
                f"Missing required fields: {', '.join(missing)}",
                missing=",".join(missing)
            )
            self._audit("create_rejected", event_type=AuditEventType.ERROR,
                        metadata=(("missing", ",".join(missing)),))
            return Result.failure(error)

        x, y = random_position(self._rng, self._layout_config)
        card = Card(
            id=generate_card_id(set(self.ids()), self._rng, clock=self._clock),
            time=str(fields["time"]),
            actor=str(fields["actor"]),
            place=str(fields["place"]),
            claims=str(fields["claims"]),
            is_lie=bool(fields.get("is_lie", fields.get("isLie", False))),
            x=x,
            y=y,
        )
        self._cards.append(card)
        self._audit("card_created", entity_id=card.id)
        self._persist()
        return Result.success(card)

    def update(self, card_id: str, patch: Mapping[str, Any]) -> Optional[Card]:
        """Apply a partial change. Returns the new card, or None if `card_id` is absent."""
        for index, card in enumerate(self._cards):
            if card.id == card_id:
                updated = card.with_changes(patch)
                self._cards[index] = updated
                self._audit("card_updated", entity_id=card_id,
                            metadata=tuple(("field", k) for k in sorted(patch)))
                self._persist()
                return updated
        self._audit("update_missing", entity_id=card_id)
        return None

    def delete(self, card_id: str) -> bool:
        """Remove a card. Missing ids are a no-op returning False."""
        remaining = [card for card in self._cards if card.id != card_id]
        if len(remaining) == len(self._cards):
            return False
        self._cards = remaining
        self._audit("card_deleted", entity_id=card_id)
        self._persist()
        for listener in self._delete_listeners:
            listener(card_id)
        return True

    def replace_all(self, cards: Sequence[Card]) -> None:
        """Swap the whole collection in one step (bulk sync, organize)."""
        new_cards = list(cards)
        ids = [card.id for card in new_cards]
        if len(set(ids)) != len(ids):
            raise ValueError("replace_all requires unique card ids")

        surviving = set(ids)
        dropped = [card.id for card in self._cards if card.id not in surviving]
        self._cards = new_cards
        self._audit("collection_replaced", metadata=(("count", str(len(new_cards))),))
        self._persist()
        for card_id in dropped:
            for listener in self._delete_listeners:
                listener(card_id)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _dedupe_ids(self, cards: List[Card]) -> List[Card]:
        """Stored collections from other writers may repeat ids; re-mint repeats."""
        seen = set()
        result = []
        for card in cards:
            if card.id in seen:
                new_id = generate_card_id(seen, self._rng, with_suffix=True, clock=self._clock)
                logger.warning("Duplicate stored card id %s re-minted as %s", card.id, new_id)
                card = replace(card, id=new_id)
            seen.add(card.id)
            result.append(card)
        return result

    def _persist(self):
        self._last_write = self._repository.save(self._cards)

    def _audit(self, action, entity_id=None, event_type=AuditEventType.RECORD, metadata=()):
        if self._observability:
            self._observability.log_audit(
                "records", action, event_type=event_type,
                entity_id=entity_id, metadata=metadata
            )


__all__ = [
    "RecordStore", "default_seed", "generate_card_id", "REQUIRED_TEXT_FIELDS",
]
