"""
Serializers for converting village objects to JSON-safe dicts.

Items and villagers carry their isometric world position alongside
tile coordinates, computed with the village's tile dimensions.
"""

from __future__ import annotations

from typing import Any

from hamlet.core.config import VillageConfig
from hamlet.core.isometric import tile_to_world
from hamlet.core.ledger import PlacedItem, RequirementCheck
from hamlet.core.villagers import Villager


def _world(tx: float, ty: float, config: VillageConfig) -> list[float]:
    wx, wy = tile_to_world(tx, ty, config.tile_width, config.tile_height)
    return [round(wx, 4), round(wy, 4)]


def serialize_session(session) -> dict[str, Any]:
    engine = session.engine
    return {
        "id": session.id,
        "name": session.name,
        "budget": float(engine.budget),
        "population": int(engine.population),
        "unemployed_workers": int(engine.unemployed_workers),
        "production_multiplier": round(float(engine.production_multiplier), 4),
        "item_count": len(engine.ledger),
        "time_cycle": engine.time_cycle_info(),
        "config": session.config.to_dict(),
    }


def serialize_item(item: PlacedItem | None, config: VillageConfig) -> dict[str, Any] | None:
    if item is None:
        return None
    return {**item.to_dict(), "world": _world(item.tile_x, item.tile_y, config)}


def serialize_requirements(check: RequirementCheck) -> dict[str, Any]:
    """Unmet requirements keyed by requirement name."""
    return {
        "met": check.met,
        "missing": {
            kind.value: {
                "met": status.met,
                "current": status.current,
                "required": status.required,
                "label": status.label,
            }
            for kind, status in check.missing.items()
        },
    }


def serialize_placement_result(engine, success: bool, item: PlacedItem | None) -> dict[str, Any]:
    return {
        "success": success,
        "budget": float(engine.budget),
        "population": int(engine.population),
        "unemployed_workers": int(engine.unemployed_workers),
        "production_multiplier": round(float(engine.production_multiplier), 4),
        "item": serialize_item(item, engine.config),
    }


def serialize_villager(villager: Villager, config: VillageConfig) -> dict[str, Any]:
    return {**villager.to_dict(), "world": _world(*villager.position, config)}
