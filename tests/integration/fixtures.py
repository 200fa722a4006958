"""
Integration Test Fixtures

Explicit card payloads for board-level tests. No random generation.
"""

from typing import Any, Dict, List

# =============================================================================
# CARD PAYLOADS
# =============================================================================

HARBOUR_NIGHT: List[Dict[str, Any]] = [
    {
        "id": "h1",
        "time": "2024-02-01T21:00",
        "actor": "Zed",
        "place": "Harbour",
        "claims": "Was loading crates",
        "is_lie": False,
        "x": 120,
        "y": 140,
    },
    {
        "id": "h2",
        "time": "2024-02-01T22:30",
        "actor": "Amy",
        "place": "Warehouse",
        "claims": "Heard an engine",
        "is_lie": True,
        "x": 320,
        "y": 240,
    },
    {
        "id": "h3",
        "time": "2024-02-01T23:15",
        "actor": "Zed",
        "place": "Harbour",
        "claims": "Left before midnight",
        "is_lie": False,
        "x": 420,
        "y": 260,
    },
]

NEW_CARD_FIELDS: Dict[str, Any] = {
    "time": "2024-01-16T08:00",
    "actor": "Bob",
    "place": "Harbour",
    "claims": "Was fishing",
    "is_lie": False,
}
