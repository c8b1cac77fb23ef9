"""Village session management endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from hamlet.api.schemas import (
    CreateSessionRequest,
    SessionResponse,
    SessionSummary,
    TickRequest,
    TickResponse,
)
from hamlet.api.serializers import serialize_item, serialize_session
from hamlet.core.config import VillageConfig

router = APIRouter()


def _get_session(request: Request, session_id: str):
    mgr = request.app.state.session_manager
    try:
        return mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


@router.post("/sessions", response_model=SessionResponse)
def create_session(req: CreateSessionRequest, request: Request):
    mgr = request.app.state.session_manager

    config = None
    if req.config:
        try:
            config = VillageConfig.from_dict(req.config)
        except TypeError as exc:
            raise HTTPException(status_code=400, detail=f"Invalid config: {exc}")

    try:
        session = mgr.create_session(config=config, name=req.name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return serialize_session(session)


@router.get("/sessions", response_model=list[SessionSummary])
def list_sessions(request: Request):
    mgr = request.app.state.session_manager
    return mgr.list_sessions()


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, request: Request):
    return serialize_session(_get_session(request, session_id))


@router.delete("/sessions/{session_id}")
def delete_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        mgr.delete_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return {"deleted": True}


@router.post("/sessions/{session_id}/tick", response_model=TickResponse)
def tick_session(session_id: str, req: TickRequest, request: Request):
    mgr = request.app.state.session_manager
    try:
        return mgr.tick(session_id, req.delta_ms)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


@router.post("/sessions/{session_id}/reset", response_model=SessionResponse)
def reset_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        session = mgr.reset_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return serialize_session(session)


@router.get("/sessions/{session_id}/items")
def list_items(session_id: str, request: Request):
    session = _get_session(request, session_id)
    engine = session.engine
    return [serialize_item(item, engine.config) for item in engine.placed_items()]


@router.get("/sessions/{session_id}/summary")
def village_summary(session_id: str, request: Request):
    session = _get_session(request, session_id)
    return session.engine.summary()
