"""
Card Contract

The unit of record on the board: who claimed what, where, when, and
whether the investigator believes it is false, plus board coordinates.

WIRE FORMAT:
============
    {"id": str, "time": str, "actor": str, "place": str,
     "claims": str, "is_lie": bool, "x": float, "y": float}

`isLie` is accepted as an alias of `is_lie` when reading.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping

REQUIRED_TEXT_FIELDS = ("time", "actor", "place", "claims")
EDITABLE_FIELDS = REQUIRED_TEXT_FIELDS + ("is_lie", "x", "y")


def missing_required_fields(item: Mapping[str, Any]) -> List[str]:
    """Names of required text fields that are absent or falsy in `item`."""
    return [name for name in REQUIRED_TEXT_FIELDS if not item.get(name)]


@dataclass(frozen=True)
class Card:
    """
    Immutable card record.

    The store swaps whole Card values on every change, so a Card handed
    out by `RecordStore.list()` never changes underneath its holder.
    """
    id: str
    time: str
    actor: str
    place: str
    claims: str
    is_lie: bool
    x: float
    y: float

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValueError("Card id must be a non-empty string")

    def value_of(self, attribute: str) -> str:
        """Attribute value used for axis bucketing ("place", "actor", "time")."""
        return getattr(self, attribute)

    def with_position(self, x: float, y: float) -> Card:
        return replace(self, x=float(x), y=float(y))

    def with_changes(self, patch: Mapping[str, Any]) -> Card:
        """
        Apply a partial field change.

        No re-validation happens here: inline edits may leave a text field
        empty until the next create/import.
        """
        unknown = set(patch) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot edit card fields: {', '.join(sorted(unknown))}")
        changes = dict(patch)
        if "is_lie" in changes:
            changes["is_lie"] = bool(changes["is_lie"])
        for axis in ("x", "y"):
            if axis in changes:
                changes[axis] = float(changes[axis])
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "time": self.time,
            "actor": self.actor,
            "place": self.place,
            "claims": self.claims,
            "is_lie": self.is_lie,
            "x": self.x,
            "y": self.y,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> Card:
        """
        Rebuild a card from its stored form.

        Stored data is trusted: this is the durable-store read path, not
        the bulk sync validator.
        """
        is_lie = data.get("is_lie", data.get("isLie", False))
        return Card(
            id=str(data["id"]),
            time=str(data["time"]),
            actor=str(data["actor"]),
            place=str(data["place"]),
            claims=str(data["claims"]),
            is_lie=bool(is_lie),
            x=float(data["x"]),
            y=float(data["y"]),
        )
