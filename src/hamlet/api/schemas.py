"""
Pydantic models for API request/response validation.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Any


# === Villages ===

class CreateSessionRequest(BaseModel):
    config: dict[str, Any] | None = None
    name: str | None = None


class TickRequest(BaseModel):
    delta_ms: float = Field(ge=0.0, le=3_600_000.0)


class SessionSummary(BaseModel):
    id: str
    name: str
    budget: float
    population: int
    item_count: int
    loaded: bool


class SessionResponse(BaseModel):
    id: str
    name: str
    budget: float
    population: int
    unemployed_workers: int
    production_multiplier: float
    item_count: int
    time_cycle: dict[str, Any]
    config: dict[str, Any]


class TickResponse(BaseModel):
    intervals: int
    net_income: float
    deferred_applied: int
    budget: float
    villagers: int


# === Placement ===

class PlaceRequest(BaseModel):
    kind: str
    id: str
    tile_x: int
    tile_y: int
    flipped: bool = False


class RemoveRequest(BaseModel):
    tile_x: int
    tile_y: int


class PlacementResult(BaseModel):
    success: bool
    budget: float
    population: int
    unemployed_workers: int
    production_multiplier: float
    item: dict[str, Any] | None = None


class RequirementStatusResponse(BaseModel):
    met: bool
    current: Any
    required: Any
    label: str


class RequirementsResponse(BaseModel):
    met: bool
    missing: dict[str, RequirementStatusResponse]


class CostsResponse(BaseModel):
    kind: str
    id: str
    purchase_cost: float
    demolition_cost: int
    can_afford: bool


class TileAtResponse(BaseModel):
    tile_x: int
    tile_y: int
    in_bounds: bool
    item: dict[str, Any] | None = None


# === Villagers ===

class VillagerResponse(BaseModel):
    id: int
    current_tile: list[int]
    target_tile: list[int]
    position: list[float]
    world: list[float]
    progress: float
    state: str
    direction: float
    skin_color: str
    shirt_color: str
