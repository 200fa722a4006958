"""
Contracts Module

Data types shared by every layer of the board. All inter-layer
communication uses these contracts; no layer imports another layer's
implementation details.

DESIGN PRINCIPLES:
==================
1. Records are frozen dataclasses; mutation means replacement
2. Failures are data (Error / Result), not control flow
3. The wire format of a card is defined in exactly one place (card.py)
"""

from .base import (
    AxisAttribute, Error, ErrorCode, Result, Timestamp,
)
from .card import Card, REQUIRED_TEXT_FIELDS, missing_required_fields
from .events import (
    AuditEventType, AuditLogEntry, BufferSyncOutcome, BufferSyncStatus, ImportReport,
    ItemError, StorageWriteResult,
)

__all__ = [
    "AxisAttribute", "Error", "ErrorCode", "Result", "Timestamp",
    "Card", "REQUIRED_TEXT_FIELDS", "missing_required_fields",
    "AuditEventType", "AuditLogEntry", "BufferSyncOutcome", "BufferSyncStatus", "ImportReport",
    "ItemError", "StorageWriteResult",
]
