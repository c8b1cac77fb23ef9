"""Placement and demolition endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request

from hamlet.api.schemas import (
    CostsResponse,
    PlacementResult,
    PlaceRequest,
    RemoveRequest,
    RequirementsResponse,
    TileAtResponse,
)
from hamlet.api.serializers import (
    serialize_item,
    serialize_placement_result,
    serialize_requirements,
)
from hamlet.core.isometric import Viewport, screen_to_tile

router = APIRouter()


def _get_session(request: Request, session_id: str):
    mgr = request.app.state.session_manager
    try:
        return mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


def _require_definition(engine, kind: str, item_id: str):
    definition = engine.catalog.definition_of(kind, item_id)
    if definition is None:
        raise HTTPException(status_code=400, detail=f"Unknown item '{kind}:{item_id}'")
    return definition


@router.post("/{session_id}/place", response_model=PlacementResult)
def place_item(session_id: str, req: PlaceRequest, request: Request):
    mgr = request.app.state.session_manager
    session = _get_session(request, session_id)
    engine = session.engine
    _require_definition(engine, req.kind, req.id)

    with session.lock:
        success = engine.place(req.tile_x, req.tile_y, req.kind, req.id, req.flipped)
        if success:
            mgr.mark_dirty(session)
        item = engine.ledger.item_at(req.tile_x, req.tile_y) if success else None
        return serialize_placement_result(engine, success, item)


@router.post("/{session_id}/remove", response_model=PlacementResult)
def remove_item(session_id: str, req: RemoveRequest, request: Request):
    mgr = request.app.state.session_manager
    session = _get_session(request, session_id)
    engine = session.engine

    with session.lock:
        item = engine.ledger.item_at(req.tile_x, req.tile_y)
        success = engine.remove(req.tile_x, req.tile_y)
        if success:
            mgr.mark_dirty(session)
        return serialize_placement_result(engine, success, item if success else None)


@router.get("/{session_id}/requirements", response_model=RequirementsResponse)
def check_requirements(session_id: str, kind: str, id: str, request: Request):
    session = _get_session(request, session_id)
    _require_definition(session.engine, kind, id)
    return serialize_requirements(session.engine.check_requirements(kind, id))


@router.get("/{session_id}/costs", response_model=CostsResponse)
def item_costs(session_id: str, kind: str, id: str, request: Request):
    session = _get_session(request, session_id)
    engine = session.engine
    definition = _require_definition(engine, kind, id)
    return {
        "kind": definition.kind.value,
        "id": definition.id,
        "purchase_cost": engine.item_cost(kind, id),
        "demolition_cost": engine.demolition_cost(kind, id),
        "can_afford": engine.ledger.can_afford(kind, id),
    }


@router.get("/{session_id}/tile-at", response_model=TileAtResponse)
def tile_at(
    session_id: str,
    request: Request,
    sx: float,
    sy: float,
    camera_x: float = 0.0,
    camera_y: float = 0.0,
    zoom: float = Query(1.0, gt=0.0),
    canvas_width: float = 0.0,
    canvas_height: float = 0.0,
):
    """Resolve a canvas point to the tile under it and whatever stands there."""
    session = _get_session(request, session_id)
    engine = session.engine
    view = Viewport(camera_x, camera_y, zoom, canvas_width, canvas_height)
    tx, ty = screen_to_tile(sx, sy, view, engine.config.tile_width, engine.config.tile_height)
    return {
        "tile_x": tx,
        "tile_y": ty,
        "in_bounds": engine.ledger.is_within_bounds(tx, ty),
        "item": serialize_item(engine.ledger.item_at(tx, ty), engine.config),
    }
