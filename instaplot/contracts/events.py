"""
Event and Report Contracts

Immutable records produced by the layers: audit entries, storage write
results and bulk sync reports.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .base import Error, Timestamp
from .card import Card


# =============================================================================
# AUDIT
# =============================================================================

class AuditEventType(Enum):
    """Explicit audit event types."""
    RECORD = "record"
    LAYOUT = "layout"
    SYNC = "sync"
    STORAGE = "storage"
    ERROR = "error"
    SYSTEM = "system"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: Timestamp
    layer: str  # Which layer generated this
    action: str
    entity_id: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)


# =============================================================================
# STORAGE
# =============================================================================

@dataclass(frozen=True)
class StorageWriteResult:
    """Outcome of one durable-store write. Failures never raise."""
    success: bool
    key: str
    write_timestamp: Timestamp
    bytes_written: int = 0
    error: Optional[Error] = None


# =============================================================================
# BULK SYNC
# =============================================================================

@dataclass(frozen=True)
class ItemError:
    """
    Validation failure of one bulk sync item.

    `item_number` is 1-based, matching how the items appear to a person
    reading the source file.
    """
    item_number: int
    missing_fields: Tuple[str, ...]
    message: str


@dataclass(frozen=True)
class ImportReport:
    """
    Summary of one bulk sync pass.

    `replaced` is True iff the store was swapped for `accepted`, which
    happens whenever at least one item was accepted.
    """
    accepted: Tuple[Card, ...]
    errors: Tuple[ItemError, ...]
    replaced: bool
    discarded_count: int = 0

    @property
    def accepted_count(self) -> int:
        return len(self.accepted)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def fully_imported(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        if self.fully_imported:
            return f"Successfully imported {self.accepted_count} cards"
        lines = [f"Card {e.item_number}: {e.message}" for e in self.errors]
        head = (
            f"Imported {self.accepted_count} cards with {self.error_count} errors"
            if self.replaced
            else f"Nothing imported: all {self.error_count} items were invalid"
        )
        return "\n".join([head] + lines)


class BufferSyncStatus(Enum):
    """What happened when a freeform buffer draft was parsed."""
    APPLIED = "applied"
    UNPARSEABLE = "unparseable"
    NOT_A_SEQUENCE = "not_a_sequence"
    NO_VALID_ITEMS = "no_valid_items"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class BufferSyncOutcome:
    """Result of one debounced buffer parse. Never carries a user-facing error."""
    status: BufferSyncStatus
    report: Optional[ImportReport] = None

    @property
    def applied(self) -> bool:
        return self.status is BufferSyncStatus.APPLIED
