"""
Bulk Sync Layer

RESPONSIBILITY: Validate externally supplied card sets and replace the store
ALLOWED INPUTS: Parsed JSON values (file import) or raw text (freeform buffer)
OUTPUTS: ImportReport / BufferSyncOutcome

POLICY:
=======
1. Per-item validation is collect-all: a bad item never stops the pass
2. If at least one item is accepted, the WHOLE store is replaced by the
   accepted set (replace-all on partial success, never a merge)
3. Zero accepted items leaves the store untouched
4. Format and parse failures never touch the store

Item acceptance: time, actor, place and claims present and truthy.
Missing or falsy id / is_lie / x / y fall back to defaults (fresh id,
False, random position).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple
import json
import logging
import math
import random
import time

from ..contracts.base import Error, ErrorCode, Result
from ..contracts.card import Card, REQUIRED_TEXT_FIELDS, missing_required_fields
from ..contracts.events import (
    AuditEventType, BufferSyncOutcome, BufferSyncStatus, ImportReport, ItemError,
)
from ..layout import LayoutConfig, random_position
from ..observability import ObservabilityEngine
from ..records import RecordStore, generate_card_id
from .buffer import FreeformBuffer, ThreadingScheduler

logger = logging.getLogger("instaplot.sync")


@dataclass
class SyncConfig:
    """Configuration for bulk sync."""
    debounce_seconds: float = 0.5


# =============================================================================
# ITEM VALIDATION (shared by file import and freeform buffer)
# =============================================================================

def _coerce_coordinate(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not value:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _coerce_id(value: Any) -> Optional[str]:
    if isinstance(value, bool) or not value:
        return None
    return str(value)


def validate_items(
    items: Sequence[Any],
    rng: Optional[random.Random] = None,
    layout_config: Optional[LayoutConfig] = None,
    clock: Callable[[], float] = time.time
) -> Tuple[List[Card], List[ItemError]]:
    """
    Split `items` into accepted cards and per-item errors.

    Accepted ids are unique within the result: a repeated id is replaced
    by a freshly minted one.
    """
    rng = rng or random.Random()
    accepted: List[Card] = []
    errors: List[ItemError] = []
    taken = set()

    for number, item in enumerate(items, start=1):
        if not isinstance(item, Mapping):
            errors.append(ItemError(
                item_number=number,
                missing_fields=REQUIRED_TEXT_FIELDS,
                message="Not a card object"
            ))
            continue

        missing = missing_required_fields(item)
        if missing:
            errors.append(ItemError(
                item_number=number,
                missing_fields=tuple(missing),
                message=f"Missing required fields ({', '.join(missing)})"
            ))
            continue

        card_id = _coerce_id(item.get("id"))
        if card_id in taken:
            logger.warning("Item %d repeats card id %s; minting a new id", number, card_id)
            card_id = None
        if card_id is None:
            card_id = generate_card_id(taken, rng, with_suffix=True, clock=clock)
        taken.add(card_id)

        x = _coerce_coordinate(item.get("x"))
        y = _coerce_coordinate(item.get("y"))
        if x is None or y is None:
            rx, ry = random_position(rng, layout_config)
            x = rx if x is None else x
            y = ry if y is None else y

        accepted.append(Card(
            id=card_id,
            time=str(item["time"]),
            actor=str(item["actor"]),
            place=str(item["place"]),
            claims=str(item["claims"]),
            is_lie=bool(item.get("is_lie") or item.get("isLie") or False),
            x=x,
            y=y,
        ))

    return accepted, errors


# =============================================================================
# BULK SYNC ENGINE
# =============================================================================

class BulkSyncEngine:
    """
    Replaces the record store from validated external card sets.

    BOUNDARY ENFORCEMENT:
    - Writes ONLY through RecordStore.replace_all
    - Never runs a layout pass (supplied positions are honored)
    """

    def __init__(
        self,
        store: RecordStore,
        config: Optional[SyncConfig] = None,
        layout_config: Optional[LayoutConfig] = None,
        rng: Optional[random.Random] = None,
        observability: Optional[ObservabilityEngine] = None,
        clock: Callable[[], float] = time.time
    ):
        self._store = store
        self._config = config or SyncConfig()
        self._layout_config = layout_config or LayoutConfig()
        self._rng = rng or random.Random()
        self._observability = observability
        self._clock = clock

    @property
    def config(self) -> SyncConfig:
        return self._config

    # =========================================================================
    # FILE IMPORT
    # =========================================================================

    def import_text(self, text: str) -> Result:
        """Import from the raw contents of a JSON file."""
        try:
            data = json.loads(text)
        except (ValueError, TypeError) as e:
            logger.error("Error importing cards: %s", e)
            self._audit("import_parse_failed", event_type=AuditEventType.ERROR,
                        metadata=(("reason", str(e)),))
            return Result.failure(Error.create(
                ErrorCode.PARSE_FAILED,
                "Error reading JSON file. Please check the file format.",
                reason=str(e)
            ))
        return self.import_data(data)

    def import_data(self, data: Any) -> Result:
        """
        Import an already-parsed JSON value.

        Returns Result.success(ImportReport), or INVALID_FORMAT when the
        top-level value is not an array.
        """
        if not isinstance(data, list):
            self._audit("import_rejected", event_type=AuditEventType.ERROR,
                        metadata=(("type", type(data).__name__),))
            return Result.failure(Error.create(
                ErrorCode.INVALID_FORMAT,
                "Invalid JSON format. Expected an array of cards.",
                received=type(data).__name__
            ))

        report = self._apply(data)
        if report.errors:
            logger.warning("Import completed with %d errors", report.error_count)
        self._audit(
            "import_completed",
            metadata=(
                ("accepted", str(report.accepted_count)),
                ("errors", str(report.error_count)),
                ("replaced", str(report.replaced)),
            )
        )
        return Result.success(report)

    # =========================================================================
    # FREEFORM BUFFER
    # =========================================================================

    def sync_buffer(self, text: str) -> BufferSyncOutcome:
        """
        Opportunistic parse of a draft buffer.

        A draft that is not JSON, not an array, or has no acceptable item
        is skipped without any user-visible error.
        """
        try:
            data = json.loads(text)
        except (ValueError, TypeError):
            logger.debug("Freeform buffer is not valid JSON yet; skipping sync")
            return BufferSyncOutcome(BufferSyncStatus.UNPARSEABLE)

        if not isinstance(data, list):
            return BufferSyncOutcome(BufferSyncStatus.NOT_A_SEQUENCE)

        report = self._apply(data)
        if not report.replaced:
            return BufferSyncOutcome(BufferSyncStatus.NO_VALID_ITEMS, report)

        self._audit("buffer_applied", metadata=(("accepted", str(report.accepted_count)),))
        return BufferSyncOutcome(BufferSyncStatus.APPLIED, report)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _apply(self, items: Sequence[Any]) -> ImportReport:
        accepted, errors = validate_items(
            items, rng=self._rng, layout_config=self._layout_config, clock=self._clock
        )
        if not accepted:
            return ImportReport(accepted=(), errors=tuple(errors), replaced=False)

        discarded = len(self._store)
        self._store.replace_all(accepted)
        return ImportReport(
            accepted=tuple(accepted),
            errors=tuple(errors),
            replaced=True,
            discarded_count=discarded
        )

    def _audit(self, action, event_type=AuditEventType.SYNC, metadata=()):
        if self._observability:
            self._observability.log_audit("sync", action, event_type=event_type, metadata=metadata)


__all__ = [
    "BulkSyncEngine", "SyncConfig", "validate_items",
    "FreeformBuffer", "ThreadingScheduler",
]
