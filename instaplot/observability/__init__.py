"""
Observability & Audit Layer

RESPONSIBILITY: Audit trail and counters for every board layer
ALLOWED INPUTS: AuditLogEntry records emitted by other layers
OUTPUTS: Read-only views over collected entries

WHAT THIS LAYER MUST NOT DO:
============================
- Modify board behavior
- Filter or interpret events (only record them)
- Block or delay other layer operations

Operational conditions (persistence failures, discarded drafts) are also
emitted on the standard `logging` hierarchy under "instaplot.*" so that a
host process sees them without polling the audit trail.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import hashlib
import itertools
import logging

from ..contracts.base import Timestamp
from ..contracts.events import AuditEventType, AuditLogEntry

logger = logging.getLogger("instaplot.observability")

LAYERS = ("records", "layout", "overlay", "sync", "storage", "board")


# =============================================================================
# LOG COLLECTORS (One per layer)
# =============================================================================

class LogCollector:
    """
    Per-layer, append-only collector of audit entries.
    """

    def __init__(self, layer_name: str):
        self._layer_name = layer_name
        self._entries: List[AuditLogEntry] = []

    def collect(self, entry: AuditLogEntry):
        """Collect an audit entry (append-only)."""
        self._entries.append(entry)

    def get_entries(
        self,
        event_type: Optional[AuditEventType] = None,
        action: Optional[str] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered."""
        entries = self._entries

        if event_type:
            entries = [e for e in entries if e.event_type == event_type]

        if action:
            entries = [e for e in entries if e.action == action]

        return list(entries)

    @property
    def layer_name(self) -> str:
        return self._layer_name

    @property
    def entry_count(self) -> int:
        return len(self._entries)


# =============================================================================
# OBSERVABILITY ENGINE
# =============================================================================

@dataclass
class ObservabilityConfig:
    """Configuration for the audit layer."""
    enabled: bool = True
    max_entries_per_layer: int = 10_000


class ObservabilityEngine:
    """
    Central audit sink shared by every layer of one board.

    BOUNDARY ENFORCEMENT:
    - ONLY observes, never modifies
    - Provides read-only access to collected data
    """

    def __init__(self, config: Optional[ObservabilityConfig] = None):
        self._config = config or ObservabilityConfig()
        self._collectors: Dict[str, LogCollector] = {
            layer: LogCollector(layer) for layer in LAYERS
        }
        self._counters: Dict[str, int] = {}
        self._sequence = itertools.count(1)

    def log_audit(
        self,
        layer: str,
        action: str,
        event_type: AuditEventType = AuditEventType.SYSTEM,
        entity_id: Optional[str] = None,
        metadata: Tuple[Tuple[str, str], ...] = ()
    ) -> Optional[AuditLogEntry]:
        """Record one audit entry for `layer` and bump its action counter."""
        if not self._config.enabled:
            return None

        now = Timestamp.now()
        seq = next(self._sequence)
        entry_hash = hashlib.sha256(
            f"{layer}_{action}|{seq}|{now.to_iso()}".encode()
        ).hexdigest()[:16]

        entry = AuditLogEntry(
            entry_id=f"audit_{entry_hash}",
            event_type=event_type,
            timestamp=now,
            layer=layer,
            action=action,
            entity_id=entity_id,
            metadata=tuple((str(k), str(v)) for k, v in metadata)
        )

        collector = self._collectors.get(layer)
        if collector is None:
            collector = self._collectors[layer] = LogCollector(layer)
        if collector.entry_count < self._config.max_entries_per_layer:
            collector.collect(entry)

        key = f"{layer}.{action}"
        self._counters[key] = self._counters.get(key, 0) + 1
        return entry

    def get_entries(
        self,
        layer: Optional[str] = None,
        event_type: Optional[AuditEventType] = None,
        action: Optional[str] = None
    ) -> List[AuditLogEntry]:
        """Entries for one layer, or for all layers in layer order."""
        if layer is not None:
            collector = self._collectors.get(layer)
            return collector.get_entries(event_type, action) if collector else []
        entries: List[AuditLogEntry] = []
        for collector in self._collectors.values():
            entries.extend(collector.get_entries(event_type, action))
        return entries

    def count(self, layer: str, action: str) -> int:
        return self._counters.get(f"{layer}.{action}", 0)

    def get_counters(self) -> Dict[str, int]:
        """Copy of all action counters."""
        return dict(self._counters)
