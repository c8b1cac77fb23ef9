"""
Placement ledger for Hamlet.

Owns the placed items and the economy state of a village. Validates
placement and demolition against spatial, affordability and
prerequisite rules, applies them, and hands workforce bookkeeping to
``hamlet.core.workforce``.

Every fallible operation returns a boolean. Rejections (occupied tile,
insufficient funds, unmet requirement, missing removal tool) are part of
normal play and never raise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable

import numpy as np

from hamlet.core import workforce
from hamlet.core.catalog import (
    ItemCatalog,
    ItemKind,
    RequirementKind,
)
from hamlet.core.config import VillageConfig
from hamlet.core.workforce import EconomyState

logger = logging.getLogger(__name__)


@dataclass
class PlacedItem:
    """An item occupying one tile."""

    kind: ItemKind
    id: str
    tile_x: int
    tile_y: int
    flipped: bool = False

    @property
    def tile(self) -> tuple[int, int]:
        return (self.tile_x, self.tile_y)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "id": self.id,
            "tile_x": self.tile_x,
            "tile_y": self.tile_y,
            "flipped": self.flipped,
        }


@dataclass
class RequirementStatus:
    """Outcome of checking one requirement."""

    met: bool
    current: Any
    required: Any
    label: str


@dataclass
class RequirementCheck:
    """Outcome of checking all requirements of an item.

    ``missing`` holds only the unmet requirements, keyed by kind.
    """

    met: bool
    missing: dict[RequirementKind, RequirementStatus]


# ---------------------------------------------------------------------------
# Requirement checkers
# ---------------------------------------------------------------------------

def _check_population(ledger: PlacementLedger, required: Any) -> RequirementStatus:
    current = ledger.economy.population
    return RequirementStatus(current >= required, current, required, "Population")


def _check_budget(ledger: PlacementLedger, required: Any) -> RequirementStatus:
    current = ledger.economy.budget
    return RequirementStatus(current >= required, current, required, "Budget")


def _check_unemployed(ledger: PlacementLedger, required: Any) -> RequirementStatus:
    current = ledger.economy.unemployed_workers
    return RequirementStatus(current >= required, current, required, "Workers")


def _check_has_building(ledger: PlacementLedger, required: Any) -> RequirementStatus:
    present = ledger.has_building(required)
    definition = ledger.catalog.definition_of(ItemKind.BUILDING, required)
    label = definition.name if definition is not None else str(required)
    return RequirementStatus(present, 1 if present else 0, 1, label)


RequirementChecker = Callable[["PlacementLedger", Any], RequirementStatus]

REQUIREMENT_CHECKERS: dict[RequirementKind, RequirementChecker] = {
    RequirementKind.POPULATION: _check_population,
    RequirementKind.BUDGET: _check_budget,
    RequirementKind.UNEMPLOYED_WORKERS: _check_unemployed,
    RequirementKind.HAS_BUILDING: _check_has_building,
}


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------

class PlacementLedger:
    """The set of placed items plus the village economy.

    Attributes:
        config: Village configuration (grid bounds, initial budget).
        catalog: Item definitions used for every lookup.
        economy: Budget and workforce figures, mutated only here and in
            ``hamlet.core.workforce``.
    """

    def __init__(self, config: VillageConfig, catalog: ItemCatalog) -> None:
        self.config = config
        self.catalog = catalog
        self.economy = EconomyState(budget=float(config.initial_budget))
        self._items: list[PlacedItem] = []
        self._by_tile: dict[tuple[int, int], PlacedItem] = {}

    def __len__(self) -> int:
        return len(self._items)

    # ---- Lookups ----

    def placed_items(self) -> list[PlacedItem]:
        """Placed items in placement order (a copy, safe to iterate)."""
        return list(self._items)

    def item_at(self, tx: int, ty: int) -> PlacedItem | None:
        return self._by_tile.get((tx, ty))

    def is_within_bounds(self, tx: int, ty: int) -> bool:
        n = self.config.grid_size
        return -n <= tx <= n and -n <= ty <= n

    def is_occupied(self, tx: int, ty: int) -> bool:
        return (tx, ty) in self._by_tile

    def has_building(self, building_id: str) -> bool:
        return any(
            item.kind is ItemKind.BUILDING and item.id == building_id
            for item in self._items
        )

    def count_buildings(self, building_id: str) -> int:
        return sum(
            1 for item in self._items
            if item.kind is ItemKind.BUILDING and item.id == building_id
        )

    def has_removal_tool(self, tool: str) -> bool:
        """Whether any placed building unlocks demolition with ``tool``."""
        for item in self._items:
            if item.kind is not ItemKind.BUILDING:
                continue
            definition = self.catalog.definition_of(item.kind, item.id)
            if definition is not None and tool in definition.provides_removal_tools:
                return True
        return False

    def _items_near(self, tx: int, ty: int, radius: int = 1) -> Iterable[PlacedItem]:
        for dx in range(-radius, radius + 1):
            for dy in range(-radius, radius + 1):
                item = self._by_tile.get((tx + dx, ty + dy))
                if item is not None:
                    yield item

    # ---- Validation ----

    def is_valid_position(self, tx: int, ty: int, kind: ItemKind | str, item_id: str) -> bool:
        """Whether an item of (kind, id) may occupy tile (tx, ty).

        Adjacency and road proximity use Chebyshev distance, so the
        eight surrounding tiles all count as neighbours.
        """
        if not self.is_within_bounds(tx, ty):
            return False
        if self.is_occupied(tx, ty):
            return False

        definition = self.catalog.definition_of(kind, item_id)
        allows_adjacent = definition.allows_adjacent_same_id if definition else False
        if not allows_adjacent:
            for item in self._items_near(tx, ty):
                if item.kind == kind and item.id == item_id:
                    return False

        if definition is not None and definition.requires_nearby_road:
            if not any(
                item.kind is ItemKind.ROAD for item in self._items_near(tx, ty)
            ):
                return False

        return True

    def item_cost(self, kind: ItemKind | str, item_id: str) -> float:
        definition = self.catalog.definition_of(kind, item_id)
        return definition.purchase_cost if definition is not None else 0.0

    def demolition_cost(self, kind: ItemKind | str, item_id: str) -> int:
        definition = self.catalog.definition_of(kind, item_id)
        return definition.demolition_cost if definition is not None else 0

    def can_afford(self, kind: ItemKind | str, item_id: str) -> bool:
        return self.economy.budget >= self.item_cost(kind, item_id)

    def check_requirements(self, kind: ItemKind | str, item_id: str) -> RequirementCheck:
        """Resolve every requirement of (kind, id) against the current state.

        A requirement kind without a registered checker is reported as
        unmet.
        """
        definition = self.catalog.definition_of(kind, item_id)
        if definition is None or not definition.requirements:
            return RequirementCheck(met=True, missing={})

        missing: dict[RequirementKind, RequirementStatus] = {}
        for req in definition.requirements:
            checker = REQUIREMENT_CHECKERS.get(req.kind)
            if checker is None:
                logger.warning(
                    "No checker for requirement %r on %s:%s, blocking placement",
                    req.kind, definition.kind.value, definition.id,
                )
                missing[req.kind] = RequirementStatus(
                    False, "unknown", req.threshold,
                    str(getattr(req.kind, "value", req.kind)).capitalize(),
                )
                continue
            status = checker(self, req.threshold)
            if not status.met:
                missing[req.kind] = status
        return RequirementCheck(met=not missing, missing=missing)

    # ---- Mutation ----

    def _append(self, item: PlacedItem) -> None:
        self._items.append(item)
        self._by_tile[item.tile] = item

    def _detach(self, item: PlacedItem) -> None:
        self._items.remove(item)
        del self._by_tile[item.tile]

    def place(
        self, tx: int, ty: int, kind: ItemKind | str, item_id: str,
        flipped: bool = False,
    ) -> bool:
        """Buy and place an item. Returns False, changing nothing, on rejection."""
        definition = self.catalog.definition_of(kind, item_id)
        if definition is None:
            return False
        if not self.is_valid_position(tx, ty, definition.kind, item_id):
            return False
        if not self.can_afford(definition.kind, item_id):
            return False
        if not self.check_requirements(definition.kind, item_id).met:
            return False

        workers_required_before = workforce.total_workers_required(self._items, self.catalog)
        self.economy.budget -= definition.purchase_cost
        self._append(PlacedItem(definition.kind, item_id, tx, ty, bool(flipped)))
        workforce.on_placed(self.economy, definition, workers_required_before)
        logger.debug(
            "Placed %s:%s at (%d, %d) for %.0f",
            definition.kind.value, item_id, tx, ty, definition.purchase_cost,
        )
        return True

    def can_remove(self, tx: int, ty: int) -> bool:
        item = self.item_at(tx, ty)
        if item is None:
            return False
        definition = self.catalog.definition_of(item.kind, item.id)
        if definition is not None and definition.removal_tool is not None:
            if not self.has_removal_tool(definition.removal_tool):
                return False
        return self.economy.budget >= self.demolition_cost(item.kind, item.id)

    def remove(self, tx: int, ty: int) -> bool:
        """Demolish the item at (tx, ty), paying its demolition cost."""
        item = self.item_at(tx, ty)
        if item is None or not self.can_remove(tx, ty):
            return False

        self.economy.budget -= self.demolition_cost(item.kind, item.id)
        self._detach(item)

        definition = self.catalog.definition_of(item.kind, item.id)
        workers_required_after = workforce.total_workers_required(self._items, self.catalog)
        if definition is not None:
            workforce.on_removed(self.economy, definition, workers_required_after)
        else:
            workforce.refresh(self.economy, workers_required_after)
        logger.debug("Removed %s:%s at (%d, %d)", item.kind.value, item.id, tx, ty)
        return True

    def place_free(
        self, tx: int, ty: int, kind: ItemKind | str, item_id: str,
        flipped: bool = False,
    ) -> bool:
        """Place without cost or requirement checks (environment events).

        Bounds and occupancy still apply. Workforce figures are untouched,
        so unknown items and items that affect the economy are rejected.
        """
        definition = self.catalog.definition_of(kind, item_id)
        if definition is None or definition.affects_economy:
            return False
        if not self.is_within_bounds(tx, ty) or self.is_occupied(tx, ty):
            return False
        self._append(PlacedItem(definition.kind, item_id, tx, ty, bool(flipped)))
        return True

    def remove_free(self, tx: int, ty: int) -> bool:
        """Remove without cost or workforce changes (environment events).

        Items that affect the economy can only be demolished with ``remove``.
        """
        item = self.item_at(tx, ty)
        if item is None:
            return False
        definition = self.catalog.definition_of(item.kind, item.id)
        if definition is not None and definition.affects_economy:
            return False
        self._detach(item)
        return True

    def add_budget(self, amount: float) -> None:
        self.economy.budget += amount

    def load_items(self, items: Iterable[PlacedItem]) -> int:
        """Replace the placed items, skipping out-of-bounds or overlapping ones.

        Returns the number of items skipped. Economy figures are left for
        the caller to recompute.
        """
        self._items = []
        self._by_tile = {}
        skipped = 0
        for item in items:
            if not self.is_within_bounds(*item.tile) or self.is_occupied(*item.tile):
                skipped += 1
                continue
            self._append(item)
        return skipped

    def reset(self) -> None:
        self._items = []
        self._by_tile = {}
        self.economy = EconomyState(budget=float(self.config.initial_budget))

    # ---- Economy ----

    def workers_required(self) -> int:
        return workforce.total_workers_required(self._items, self.catalog)

    def production_multiplier(self) -> float:
        """Current multiplier, refreshed from the placed items."""
        workforce.refresh(self.economy, self.workers_required())
        return self.economy.production_multiplier

    def gross_income_per_interval(self) -> float:
        total = 0.0
        for item in self._items:
            if item.kind is not ItemKind.BUILDING:
                continue
            definition = self.catalog.definition_of(item.kind, item.id)
            if definition is not None:
                total += definition.income_per_interval
        return total

    def income_per_interval(self) -> float:
        """Income of all buildings scaled by the production multiplier."""
        return self.gross_income_per_interval() * self.production_multiplier()

    def expenses_per_interval(self) -> float:
        total = 0.0
        for item in self._items:
            definition = self.catalog.definition_of(item.kind, item.id)
            if definition is not None:
                total += definition.expense_per_interval
        return total

    # ---- Random lookups ----

    def find_random_empty_tile(
        self, rng: np.random.Generator, max_attempts: int | None = None,
    ) -> tuple[int, int] | None:
        """Sample tiles uniformly until an empty one turns up."""
        n = self.config.grid_size
        attempts = max_attempts if max_attempts is not None else self.config.empty_tile_attempts
        for _ in range(attempts):
            tx, ty = (int(v) for v in rng.integers(-n, n + 1, size=2))
            if not self.is_occupied(tx, ty):
                return (tx, ty)
        return None

    def find_random_item(
        self, rng: np.random.Generator, kind: ItemKind, ids: Iterable[str],
    ) -> PlacedItem | None:
        wanted = set(ids)
        candidates = [i for i in self._items if i.kind is kind and i.id in wanted]
        if not candidates:
            return None
        return candidates[int(rng.integers(len(candidates)))]
