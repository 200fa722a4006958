"""
API Mapper
==========

Transforms board state into JSON-ready DTOs for the presentation layer.
The presentation layer draws what it gets: coordinates are final, no
layout logic runs client-side.
"""
from typing import Any, Dict, Optional

from ..contracts.base import Error
from ..contracts.card import Card
from ..contracts.events import AuditLogEntry, BufferSyncOutcome, ImportReport
from ..engine import PlotBoard
from ..sync import FreeformBuffer


def map_card(card: Card, board: Optional[PlotBoard] = None) -> Dict[str, Any]:
    dto = card.to_dict()
    if board is not None:
        dto["manually_placed"] = board.overlay.is_overridden(card.id)
        dto["selected"] = board.selected_id == card.id
    return dto


def map_board(board: PlotBoard) -> Dict[str, Any]:
    """Full board view: cards, axis modes, axis ticks and selection."""
    return {
        "cards": [map_card(card, board) for card in board.cards()],
        "axes": map_axes(board),
        "selected_id": board.selected_id,
    }


def map_axes(board: PlotBoard) -> Dict[str, Any]:
    return {
        "x": board.x_axis.value,
        "y": board.y_axis.value,
        "x_ticks": [{"position": p, "label": label} for p, label in board.axis_ticks("x")],
        "y_ticks": [{"position": p, "label": label} for p, label in board.axis_ticks("y")],
    }


def map_error(error: Error) -> Dict[str, Any]:
    return {
        "code": error.code.name,
        "message": error.message,
        "context": dict(error.context),
    }


def map_report(report: ImportReport) -> Dict[str, Any]:
    return {
        "fully_imported": report.fully_imported,
        "replaced": report.replaced,
        "accepted_count": report.accepted_count,
        "discarded_count": report.discarded_count,
        "errors": [
            {
                "item": e.item_number,
                "missing_fields": list(e.missing_fields),
                "message": e.message,
            }
            for e in report.errors
        ],
        "summary": report.summary(),
    }


def map_buffer(buffer: Optional[FreeformBuffer]) -> Dict[str, Any]:
    if buffer is None:
        return {"open": False, "text": None, "pending": False, "last_status": None}
    return {
        "open": not buffer.closed,
        "text": buffer.text,
        "pending": buffer.pending,
        "last_status": map_outcome(buffer.last_outcome)["status"] if buffer.last_outcome else None,
    }


def map_outcome(outcome: Optional[BufferSyncOutcome]) -> Dict[str, Any]:
    if outcome is None:
        return {"status": None, "accepted_count": 0}
    return {
        "status": outcome.status.value,
        "accepted_count": outcome.report.accepted_count if outcome.report else 0,
    }


def map_audit_entry(entry: AuditLogEntry) -> Dict[str, Any]:
    return {
        "entry_id": entry.entry_id,
        "event_type": entry.event_type.value,
        "timestamp": entry.timestamp.to_iso(),
        "layer": entry.layer,
        "action": entry.action,
        "entity_id": entry.entity_id,
        "metadata": dict(entry.metadata),
    }
