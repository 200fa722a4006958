"""
InstaPlot Board Engine

Places attributed statements ("cards": who claimed what, where, when, and
whether it is believed false) on a 2D board and arranges them along two
independently selectable attribute axes.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Card, Error/Result, audit and report records
   - MUST NOT: depend on any other layer

2. STORAGE (storage/)
   - Responsibility: One durable key holding the serialized collection
   - MUST NOT: validate or interpret cards

3. RECORD STORE (records/)
   - Responsibility: Authoritative collection, CRUD, load-or-seed once
   - MUST NOT: lay cards out

4. LAYOUT (layout/)
   - Responsibility: Axis domains and deterministic coordinates
   - MUST NOT: read or write the store

5. MANUAL PLACEMENT (overlay.py)
   - Responsibility: Drag results that hold until the next organize

6. BULK SYNC (sync/)
   - Responsibility: File import and debounced freeform buffer
   - MUST NOT: merge (a sync replaces the whole collection)

7. OBSERVABILITY (observability/)
   - Responsibility: Audit trail for every layer

PlotBoard (engine.py) wires the layers; api/ and cli.py expose it.
"""

from .contracts import AxisAttribute, Card, ErrorCode
from .engine import BoardConfig, EditSession, PlotBoard

__version__ = "0.1.0"

__all__ = [
    "AxisAttribute", "Card", "ErrorCode",
    "BoardConfig", "EditSession", "PlotBoard",
]
