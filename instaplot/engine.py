"""
Board Orchestration Module

Unified interface for one investigation board. Coordinates the record
store, layout engine, manual placement overlay and bulk sync while each
stays unaware of the others.

CONTROL FLOW:
=============
1. Axis mode change  -> full organize pass (explicit hook, never implicit)
2. Card content edit -> store write only; manual placements survive
3. Drag end          -> overlay writes the position; holds until organize
4. Bulk sync         -> store replaced wholesale; no layout pass

All entry points take the board lock, so mutations, layout and the
debounced buffer parse run as one sequential stream.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
import random
import threading
import time

from .contracts.base import AxisAttribute, Error, ErrorCode, Result
from .contracts.card import Card, REQUIRED_TEXT_FIELDS
from .contracts.events import AuditEventType
from .layout import LayoutConfig, LayoutEngine, domain_for
from .observability import ObservabilityConfig, ObservabilityEngine
from .overlay import ManualPlacementOverlay
from .records import RecordStore
from .storage import (
    CardRepository, KeyValueStore, StorageConfig, create_store, serialize_cards,
)
from .sync import BulkSyncEngine, FreeformBuffer, SyncConfig

AxisListener = Callable[[AxisAttribute, AxisAttribute], None]

STAGED_FIELDS = REQUIRED_TEXT_FIELDS + ("is_lie",)


@dataclass
class BoardConfig:
    """Unified configuration for one board."""
    storage: StorageConfig = None
    layout: LayoutConfig = None
    sync: SyncConfig = None
    observability: ObservabilityConfig = None
    default_x_axis: str = "place"
    default_y_axis: str = "time"
    random_seed: Optional[int] = None

    def __post_init__(self):
        self.storage = self.storage or StorageConfig()
        self.layout = self.layout or LayoutConfig()
        self.sync = self.sync or SyncConfig()
        self.observability = self.observability or ObservabilityConfig()


class EditSession:
    """
    Staged edit of one card (the edit modal).

    Changes accumulate in a draft and reach the store only on commit();
    cancel() throws the draft away. Like inline edits, a commit is not
    re-validated.
    """

    def __init__(self, board: PlotBoard, card: Card):
        self._board = board
        self._card_id = card.id
        self._draft: Dict[str, Any] = {name: getattr(card, name) for name in STAGED_FIELDS}
        self._open = True

    @property
    def card_id(self) -> str:
        return self._card_id

    @property
    def draft(self) -> Dict[str, Any]:
        return dict(self._draft)

    @property
    def is_open(self) -> bool:
        return self._open

    def set(self, field: str, value: Any) -> EditSession:
        if not self._open:
            raise RuntimeError("Edit session is closed")
        if field not in STAGED_FIELDS:
            raise ValueError(f"Field {field!r} cannot be edited in a session")
        self._draft[field] = value
        return self

    def commit(self) -> Optional[Card]:
        """Write the draft. Returns None if the card was deleted meanwhile."""
        if not self._open:
            raise RuntimeError("Edit session is closed")
        self._open = False
        return self._board.update_card(self._card_id, self._draft)

    def cancel(self):
        self._open = False


class PlotBoard:
    """
    One investigation board.

    LAYER FLOW:
    ===========
    RecordStore (authoritative cards, write-through persistence)
      <- LayoutEngine (organize: full deterministic recompute)
      <- ManualPlacementOverlay (drag results)
      <- BulkSyncEngine (file import, freeform buffer)
    ObservabilityEngine records every layer.
    """

    def __init__(
        self,
        config: Optional[BoardConfig] = None,
        store: Optional[KeyValueStore] = None,
        scheduler: Optional[Any] = None,
        clock: Callable[[], float] = time.time
    ):
        self._config = config or BoardConfig()
        self._lock = threading.RLock()
        self._scheduler = scheduler

        self._observability = ObservabilityEngine(self._config.observability)
        rng = random.Random(self._config.random_seed)

        repository = CardRepository(
            store if store is not None else create_store(self._config.storage),
            key=self._config.storage.key,
            observability=self._observability
        )
        self._records = RecordStore(
            repository, self._config.layout, rng, self._observability, clock
        )
        self._layout = LayoutEngine(self._config.layout)
        self._overlay = ManualPlacementOverlay(self._records, self._observability)
        self._sync = BulkSyncEngine(
            self._records, self._config.sync, self._config.layout,
            rng, self._observability, clock
        )

        self._x_axis = AxisAttribute.parse(self._config.default_x_axis)
        self._y_axis = AxisAttribute.parse(self._config.default_y_axis)
        self._selected_id: Optional[str] = None
        self._buffer: Optional[FreeformBuffer] = None

        self._axis_listeners: List[AxisListener] = []
        self.on_axis_change(lambda x, y: self.organize())
        self._records.on_delete(self._forget_selection)

        self._records.load_or_seed()

    # =========================================================================
    # COMPONENT ACCESS
    # =========================================================================

    @property
    def records(self) -> RecordStore:
        return self._records

    @property
    def layout(self) -> LayoutEngine:
        return self._layout

    @property
    def overlay(self) -> ManualPlacementOverlay:
        return self._overlay

    @property
    def sync(self) -> BulkSyncEngine:
        return self._sync

    @property
    def observability(self) -> ObservabilityEngine:
        return self._observability

    @property
    def lock(self):
        return self._lock

    # =========================================================================
    # CARDS
    # =========================================================================

    def cards(self) -> List[Card]:
        with self._lock:
            return self._records.list()

    def get_card(self, card_id: str) -> Optional[Card]:
        with self._lock:
            return self._records.get(card_id)

    def create_card(self, fields: Mapping[str, Any]) -> Result:
        with self._lock:
            return self._records.create(fields)

    def update_card(self, card_id: str, patch: Mapping[str, Any]) -> Optional[Card]:
        """Inline edit. Never triggers a layout pass."""
        with self._lock:
            return self._records.update(card_id, patch)

    def delete_card(self, card_id: str) -> bool:
        with self._lock:
            return self._records.delete(card_id)

    def begin_edit(self, card_id: str) -> Optional[EditSession]:
        with self._lock:
            card = self._records.get(card_id)
            if card is None:
                return None
            if self._selected_id == card_id:
                self._selected_id = None
            return EditSession(self, card)

    # =========================================================================
    # PLACEMENT
    # =========================================================================

    def drag_end(self, card_id: str, dx: float, dy: float) -> Optional[Card]:
        """Commit a drag gesture given its final pointer offset."""
        with self._lock:
            return self._overlay.drag(card_id, dx, dy)

    def set_position(self, card_id: str, x: float, y: float) -> Optional[Card]:
        with self._lock:
            return self._overlay.set_position(card_id, x, y)

    # =========================================================================
    # AXES AND LAYOUT
    # =========================================================================

    @property
    def x_axis(self) -> AxisAttribute:
        return self._x_axis

    @property
    def y_axis(self) -> AxisAttribute:
        return self._y_axis

    def on_axis_change(self, listener: AxisListener):
        """Register a hook run after either axis mode changes."""
        self._axis_listeners.append(listener)

    def set_x_axis(self, attribute) -> bool:
        return self.set_axes(x=attribute)

    def set_y_axis(self, attribute) -> bool:
        return self.set_axes(y=attribute)

    def set_axes(self, x=None, y=None) -> bool:
        """
        Change one or both axis modes.

        Returns True if anything changed; in that case every axis hook
        (organize among them) has run exactly once.
        """
        with self._lock:
            new_x = AxisAttribute.parse(x) if x is not None else self._x_axis
            new_y = AxisAttribute.parse(y) if y is not None else self._y_axis
            if (new_x, new_y) == (self._x_axis, self._y_axis):
                return False

            self._x_axis, self._y_axis = new_x, new_y
            self._observability.log_audit(
                "board", "axes_changed", event_type=AuditEventType.LAYOUT,
                metadata=(("x", new_x.value), ("y", new_y.value))
            )
            for listener in list(self._axis_listeners):
                listener(new_x, new_y)
            return True

    def organize(self) -> List[Card]:
        """Full layout pass; overwrites every manual placement."""
        with self._lock:
            cards = self._layout.organize(self._records.list(), self._x_axis, self._y_axis)
            self._records.replace_all(cards)
            self._overlay.clear()
            self._observability.log_audit(
                "layout", "organized", event_type=AuditEventType.LAYOUT,
                metadata=(
                    ("x", self._x_axis.value),
                    ("y", self._y_axis.value),
                    ("count", str(len(cards))),
                )
            )
            return cards

    def axis_domain(self, axis: str) -> Tuple[str, ...]:
        with self._lock:
            return domain_for(self._axis_for(axis), self._records.list())

    def axis_ticks(self, axis: str) -> Tuple[Tuple[float, str], ...]:
        with self._lock:
            return self._layout.axis_ticks(self._records.list(), self._axis_for(axis), axis)

    def _axis_for(self, axis: str) -> AxisAttribute:
        if axis == "x":
            return self._x_axis
        if axis == "y":
            return self._y_axis
        raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")

    # =========================================================================
    # SELECTION
    # =========================================================================

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    def select(self, card_id: str) -> Optional[str]:
        """Toggle selection of `card_id`. Returns the new selection."""
        with self._lock:
            if self._selected_id == card_id or card_id not in self._records:
                self._selected_id = None
            else:
                self._selected_id = card_id
            return self._selected_id

    def clear_selection(self):
        with self._lock:
            self._selected_id = None

    def _forget_selection(self, card_id: str):
        if self._selected_id == card_id:
            self._selected_id = None

    # =========================================================================
    # BULK SYNC
    # =========================================================================

    def export_json(self, indent: int = 2) -> str:
        with self._lock:
            return serialize_cards(self._records.list(), indent=indent)

    def import_data(self, data: Any, confirmed: bool = False) -> Result:
        """
        File import of an already-parsed value.

        A non-empty board needs `confirmed=True`; without it nothing is
        read or changed and CONFIRMATION_REQUIRED names the discard count.
        """
        with self._lock:
            refusal = self._confirmation_refusal(confirmed)
            if refusal is not None:
                return refusal
            result = self._sync.import_data(data)
            self._after_import(result)
            return result

    def import_text(self, text: str, confirmed: bool = False) -> Result:
        """File import of raw file contents."""
        with self._lock:
            refusal = self._confirmation_refusal(confirmed)
            if refusal is not None:
                return refusal
            result = self._sync.import_text(text)
            self._after_import(result)
            return result

    def _confirmation_refusal(self, confirmed: bool) -> Optional[Result]:
        count = len(self._records)
        if count == 0 or confirmed:
            return None
        return Result.failure(Error.create(
            ErrorCode.CONFIRMATION_REQUIRED,
            f"Importing will replace all {count} existing cards. "
            "This action cannot be undone.",
            discard_count=str(count)
        ))

    def _after_import(self, result: Result):
        if result.is_success and result.value.replaced:
            self._overlay.clear()

    # =========================================================================
    # FREEFORM BUFFER
    # =========================================================================

    @property
    def buffer(self) -> Optional[FreeformBuffer]:
        return self._buffer

    def open_buffer(self) -> FreeformBuffer:
        """Open (or reopen) the text view, pre-populated with the live cards."""
        with self._lock:
            if self._buffer is not None:
                self._buffer.close()
            self._buffer = FreeformBuffer(
                self._sync,
                initial_text=self.export_json(),
                interval=self._config.sync.debounce_seconds,
                scheduler=self._scheduler,
                lock=self._lock,
                on_applied=lambda outcome: self._overlay.clear()
            )
            return self._buffer

    def close_buffer(self):
        with self._lock:
            if self._buffer is not None:
                self._buffer.close()
                self._buffer = None
