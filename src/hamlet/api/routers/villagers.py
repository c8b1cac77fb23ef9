"""Villager endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from hamlet.api.schemas import VillagerResponse
from hamlet.api.serializers import serialize_villager

router = APIRouter()


@router.get("/{session_id}", response_model=list[VillagerResponse])
def list_villagers(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        session = mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    engine = session.engine
    return [serialize_villager(v, engine.config) for v in engine.villagers()]
