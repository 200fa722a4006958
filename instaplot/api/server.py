"""
InstaPlot Board API Server
==========================

HTTP surface between the board engine and the presentation layer
(card widgets, drag capture, axis selectors, the JSON text view).

Endpoints:
- GET    /health
- GET    /api/v1/board                    -> cards + axes + selection
- GET    /api/v1/cards                    -> cards in insertion order
- POST   /api/v1/cards                    -> create (422 on missing fields)
- PATCH  /api/v1/cards/{id}               -> inline field edit
- PUT    /api/v1/cards/{id}               -> edit modal save
- DELETE /api/v1/cards/{id}
- POST   /api/v1/cards/{id}/drag          -> drag release (dx, dy)
- PUT    /api/v1/cards/{id}/position      -> absolute manual placement
- POST   /api/v1/selection/{id}           -> toggle selection
- GET    /api/v1/axes, PUT /api/v1/axes   -> axis modes (change => organize)
- POST   /api/v1/organize                 -> explicit layout pass
- GET    /api/v1/layout/axes/{axis}       -> axis domain (tick labels)
- POST   /api/v1/import?confirm=          -> file import (raw JSON body)
- GET    /api/v1/export                   -> pretty-printed collection
- GET/POST/PUT/DELETE /api/v1/buffer      -> freeform text view session
- POST   /api/v1/buffer/flush             -> parse the pending draft now
- GET    /api/v1/audit                    -> audit counters and entries

Usage:
    uvicorn instaplot.api.server:app --reload
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..contracts.base import AxisAttribute, Error, ErrorCode
from ..engine import BoardConfig, PlotBoard
from ..storage import StorageConfig
from .mapper import (
    map_audit_entry, map_axes, map_board, map_buffer, map_card, map_error, map_outcome,
    map_report,
)

logger = logging.getLogger("instaplot.api")

# =============================================================================
# INFRASTRUCTURE SETUP
# =============================================================================

# Global Board Instance
board_instance: Optional[PlotBoard] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load (or seed) the board once on startup."""
    global board_instance

    config = BoardConfig(storage=StorageConfig.from_env())
    logger.info("Initializing board (%s storage at %s)",
                config.storage.backend_type, config.storage.storage_dir)
    board_instance = PlotBoard(config)

    yield

    board_instance.close_buffer()
    board_instance = None


app = FastAPI(
    title="InstaPlot Board API",
    version="0.1.0",
    description="Axis-bucketing investigation board",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_board() -> PlotBoard:
    if board_instance is None:
        raise HTTPException(status_code=503, detail="Board not initialized")
    return board_instance


# =============================================================================
# REQUEST MODELS
# =============================================================================

class CardCreateRequest(BaseModel):
    time: str = ""
    actor: str = ""
    place: str = ""
    claims: str = ""
    is_lie: bool = False


class CardPatchRequest(BaseModel):
    time: Optional[str] = None
    actor: Optional[str] = None
    place: Optional[str] = None
    claims: Optional[str] = None
    is_lie: Optional[bool] = None


class CardEditRequest(BaseModel):
    time: str
    actor: str
    place: str
    claims: str
    is_lie: bool


class DragRequest(BaseModel):
    dx: float
    dy: float


class PositionRequest(BaseModel):
    x: float
    y: float


class AxesRequest(BaseModel):
    x: Optional[AxisAttribute] = None
    y: Optional[AxisAttribute] = None


class BufferEditRequest(BaseModel):
    text: str


def _not_found(card_id: str) -> HTTPException:
    error = Error.create(ErrorCode.CARD_NOT_FOUND, f"Card {card_id} not found", card_id=card_id)
    return HTTPException(status_code=404, detail=map_error(error))


# =============================================================================
# ENDPOINTS
# =============================================================================

@app.get("/health")
async def health_check(board: PlotBoard = Depends(get_board)):
    return {"status": "online", "cards": len(board.records)}


@app.get("/api/v1/board")
async def get_board_view(board: PlotBoard = Depends(get_board)):
    return map_board(board)


@app.get("/api/v1/cards")
async def list_cards(board: PlotBoard = Depends(get_board)):
    return {"cards": [map_card(card, board) for card in board.cards()]}


@app.post("/api/v1/cards", status_code=201)
async def create_card(request: CardCreateRequest, board: PlotBoard = Depends(get_board)):
    result = board.create_card(request.model_dump())
    if result.is_failure:
        raise HTTPException(status_code=422, detail=map_error(result.error))
    return map_card(result.value, board)


@app.get("/api/v1/cards/{card_id}")
async def get_card(card_id: str, board: PlotBoard = Depends(get_board)):
    card = board.get_card(card_id)
    if card is None:
        raise _not_found(card_id)
    return map_card(card, board)


@app.patch("/api/v1/cards/{card_id}")
async def patch_card(card_id: str, request: CardPatchRequest, board: PlotBoard = Depends(get_board)):
    """Inline edit: applied immediately, no layout pass."""
    card = board.update_card(card_id, request.model_dump(exclude_unset=True, exclude_none=True))
    if card is None:
        raise _not_found(card_id)
    return map_card(card, board)


@app.put("/api/v1/cards/{card_id}")
async def save_card(card_id: str, request: CardEditRequest, board: PlotBoard = Depends(get_board)):
    """Edit modal save: the staged draft is committed in one write."""
    session = board.begin_edit(card_id)
    if session is None:
        raise _not_found(card_id)
    for field, value in request.model_dump().items():
        session.set(field, value)
    card = session.commit()
    if card is None:
        raise _not_found(card_id)
    return map_card(card, board)


@app.delete("/api/v1/cards/{card_id}")
async def delete_card(card_id: str, board: PlotBoard = Depends(get_board)):
    if not board.delete_card(card_id):
        raise _not_found(card_id)
    return {"deleted": card_id}


@app.post("/api/v1/cards/{card_id}/drag")
async def drag_card(card_id: str, request: DragRequest, board: PlotBoard = Depends(get_board)):
    card = board.drag_end(card_id, request.dx, request.dy)
    if card is None:
        raise _not_found(card_id)
    return map_card(card, board)


@app.put("/api/v1/cards/{card_id}/position")
async def place_card(card_id: str, request: PositionRequest, board: PlotBoard = Depends(get_board)):
    card = board.set_position(card_id, request.x, request.y)
    if card is None:
        raise _not_found(card_id)
    return map_card(card, board)


@app.post("/api/v1/selection/{card_id}")
async def toggle_selection(card_id: str, board: PlotBoard = Depends(get_board)):
    return {"selected_id": board.select(card_id)}


@app.get("/api/v1/axes")
async def get_axes(board: PlotBoard = Depends(get_board)):
    return map_axes(board)


@app.put("/api/v1/axes")
async def set_axes(request: AxesRequest, board: PlotBoard = Depends(get_board)):
    """Changing either axis mode re-lays out every card."""
    changed = board.set_axes(x=request.x, y=request.y)
    view = map_board(board)
    view["organized"] = changed
    return view


@app.post("/api/v1/organize")
async def organize(board: PlotBoard = Depends(get_board)):
    board.organize()
    return map_board(board)


@app.get("/api/v1/layout/axes/{axis}")
async def get_axis_domain(axis: str, board: PlotBoard = Depends(get_board)):
    """Ordered tick labels for the attribute currently bound to `axis`."""
    try:
        domain = board.axis_domain(axis)
    except ValueError as e:
        error = Error.create(ErrorCode.INVALID_AXIS, str(e), axis=axis)
        raise HTTPException(status_code=400, detail=map_error(error))
    attribute = board.x_axis if axis == "x" else board.y_axis
    return {"axis": axis, "attribute": attribute.value, "domain": list(domain)}


@app.post("/api/v1/import")
async def import_cards(request: Request, confirm: bool = False, board: PlotBoard = Depends(get_board)):
    """
    Replace the board from an uploaded JSON file body.

    409 when the board is non-empty and `confirm` is not set: nothing
    is read or changed.
    """
    body = (await request.body()).decode("utf-8", errors="replace")
    result = board.import_text(body, confirmed=confirm)

    if result.is_failure:
        status = 409 if result.error.code == ErrorCode.CONFIRMATION_REQUIRED else 400
        raise HTTPException(status_code=status, detail=map_error(result.error))
    return map_report(result.value)


@app.get("/api/v1/export")
async def export_cards(board: PlotBoard = Depends(get_board)):
    return {"text": board.export_json()}


@app.get("/api/v1/buffer")
async def get_buffer(board: PlotBoard = Depends(get_board)):
    return map_buffer(board.buffer)


@app.post("/api/v1/buffer")
async def open_buffer(board: PlotBoard = Depends(get_board)):
    return map_buffer(board.open_buffer())


@app.put("/api/v1/buffer")
async def edit_buffer(request: BufferEditRequest, board: PlotBoard = Depends(get_board)):
    """Draft edit; synced to the board after the debounce interval."""
    buffer = board.buffer
    if buffer is None or buffer.closed:
        raise HTTPException(status_code=409, detail="Buffer is not open")
    buffer.edit(request.text)
    return map_buffer(buffer)


@app.post("/api/v1/buffer/flush")
async def flush_buffer(board: PlotBoard = Depends(get_board)):
    buffer = board.buffer
    if buffer is None:
        raise HTTPException(status_code=409, detail="Buffer is not open")
    return map_outcome(buffer.flush())


@app.delete("/api/v1/buffer")
async def close_buffer(board: PlotBoard = Depends(get_board)):
    board.close_buffer()
    return map_buffer(None)


@app.get("/api/v1/audit")
async def get_audit(layer: Optional[str] = None, board: PlotBoard = Depends(get_board)):
    """Action counters plus the audit entries of one layer (or all)."""
    entries = board.observability.get_entries(layer=layer)
    return {
        "counters": board.observability.get_counters(),
        "entries": [map_audit_entry(entry) for entry in entries],
    }
