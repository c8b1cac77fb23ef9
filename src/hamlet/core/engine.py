"""
Main village engine.

Owns one village: the placement ledger (items and economy), the road
network view over it, the villager simulation, the economy interval
timer and the day/night cycle. A host drives it by calling ``tick`` with
the elapsed milliseconds since the previous call.

Per tick:
1. Advance the economy timer
2. Extension ``on_tick`` hooks
3. Apply each elapsed economy interval (income, expenses, day/night),
   followed by extension ``on_interval`` hooks
4. Villager update under the current cap
5. Apply deferred mutations queued during the tick
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable

import numpy as np

from hamlet.core import workforce
from hamlet.core.catalog import ItemCatalog, ItemKind, default_catalog
from hamlet.core.clock import DayNightCycle, IntervalTimer
from hamlet.core.config import VillageConfig
from hamlet.core.ledger import PlacedItem, PlacementLedger, RequirementCheck
from hamlet.core.map_generators import generate_map
from hamlet.core.roads import RoadNetwork
from hamlet.core.villagers import Villager, VillagerSimulation, villager_cap
from hamlet.extensions.base import VillageExtension
from hamlet.extensions.registry import ExtensionRegistry

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


@dataclass
class SelectedTool:
    """The item a player is about to place, with its orientation."""

    kind: ItemKind
    id: str
    flipped: bool = False


def build_extensions(config: VillageConfig) -> ExtensionRegistry:
    """Build an ExtensionRegistry from ``config.extensions_enabled``.

    Raises:
        ValueError: If a name does not match a stock extension.
    """
    from hamlet.extensions import EnvironmentExtension

    stock: dict[str, Callable[[], VillageExtension]] = {
        "environment": EnvironmentExtension,
    }
    registry = ExtensionRegistry()
    for name in config.extensions_enabled:
        factory = stock.get(name)
        if factory is None:
            raise ValueError(f"Unknown extension '{name}'")
        if registry.get(name) is None:
            registry.register(factory(), enabled=True)
    return registry


# ---------------------------------------------------------------------------
# Village Engine
# ---------------------------------------------------------------------------
class VillageEngine:
    """
    Simulation of a single village.

    All state is owned by the instance; nothing is shared between
    engines. Randomness comes from one ``numpy.random.Generator`` seeded
    from ``config.random_seed`` and handed to every component.
    """

    def __init__(
        self,
        config: VillageConfig | None = None,
        catalog: ItemCatalog | None = None,
        extensions: ExtensionRegistry | None = None,
        populate_map: bool = True,
    ):
        self.config = config or VillageConfig()
        self.catalog = catalog or default_catalog(self.config.default_demolition_rate)
        self.extensions = extensions if extensions is not None else build_extensions(self.config)
        self._build_state()
        if populate_map:
            self.populate_map()
        self._start_extensions()

    def _build_state(self) -> None:
        self.rng = np.random.default_rng(self.config.random_seed)
        self.ledger = PlacementLedger(self.config, self.catalog)
        self.roads = RoadNetwork(self.ledger)
        self.villager_sim = VillagerSimulation(self.roads, self.config, self.rng)
        self.income_timer = IntervalTimer(
            self.config.income_interval_ms,
            max_catchup=self.config.max_catchup_intervals,
        )
        self.cycle = DayNightCycle(self.config.day_length, self.config.night_length)
        self.selected_tool: SelectedTool | None = None
        self.elapsed_ms: float = 0.0
        self.intervals_elapsed: int = 0
        self._deferred: list[Callable[[], None]] = []

    def _start_extensions(self) -> None:
        self.extensions.start(self)

    def populate_map(self) -> dict[str, int]:
        """Scatter the initial decorations with the configured generator."""
        placed = generate_map(self.config.map_generator, self.ledger, self.config, self.rng)
        logger.debug("Generated %s map: %s", self.config.map_generator, placed)
        return placed

    def reset(self) -> None:
        """Start the village over: fresh economy, new map, no villagers."""
        self._build_state()
        self.populate_map()
        self._start_extensions()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def tick(self, delta_ms: float) -> dict[str, Any]:
        """Advance the village by ``delta_ms`` of simulated time.

        Negative deltas are treated as zero. Returns a summary of what
        happened during the tick.
        """
        delta_ms = max(0.0, float(delta_ms))
        self.elapsed_ms += delta_ms

        intervals = self.income_timer.advance(delta_ms)
        self.extensions.tick(self, delta_ms)

        net = 0.0
        for _ in range(intervals):
            net += self.apply_interval_economy()
            self.extensions.interval(self)

        self.villager_sim.update(delta_ms, self.villager_cap())
        applied = self._flush_deferred()

        return {
            "intervals": intervals,
            "net_income": net,
            "deferred_applied": applied,
            "budget": self.budget,
            "villagers": len(self.villager_sim),
        }

    def apply_interval_economy(self) -> float:
        """Book one interval of income and expenses; advance day/night.

        Returns the net change in budget, which may be negative.
        """
        income = self.ledger.income_per_interval()
        expenses = self.ledger.expenses_per_interval()
        net = income - expenses
        self.ledger.add_budget(net)
        self.cycle.advance()
        self.intervals_elapsed += 1
        return net

    def defer(self, action: Callable[[], None]) -> None:
        """Queue a mutation to run at the end of the current tick."""
        self._deferred.append(action)

    def _flush_deferred(self) -> int:
        pending, self._deferred = self._deferred, []
        for action in pending:
            action()
        return len(pending)

    def villager_cap(self) -> int:
        return villager_cap(self.ledger.economy, self.cycle.is_day)

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------
    def place(
        self, tx: int, ty: int, kind: ItemKind | str, item_id: str,
        flipped: bool = False,
    ) -> bool:
        if not self.ledger.place(tx, ty, kind, item_id, flipped):
            return False
        item = self.ledger.item_at(tx, ty)
        if item is not None:
            self.extensions.item_placed(self, item)
        return True

    def remove(self, tx: int, ty: int) -> bool:
        item = self.ledger.item_at(tx, ty)
        if not self.ledger.remove(tx, ty):
            return False
        if item is not None:
            self.extensions.item_removed(self, item)
        return True

    def place_free(
        self, tx: int, ty: int, kind: ItemKind | str, item_id: str,
        flipped: bool = False,
    ) -> bool:
        return self.ledger.place_free(tx, ty, kind, item_id, flipped)

    def remove_free(self, tx: int, ty: int) -> bool:
        return self.ledger.remove_free(tx, ty)

    def can_remove(self, tx: int, ty: int) -> bool:
        return self.ledger.can_remove(tx, ty)

    def check_requirements(self, kind: ItemKind | str, item_id: str) -> RequirementCheck:
        return self.ledger.check_requirements(kind, item_id)

    def item_cost(self, kind: ItemKind | str, item_id: str) -> float:
        return self.ledger.item_cost(kind, item_id)

    def demolition_cost(self, kind: ItemKind | str, item_id: str) -> int:
        return self.ledger.demolition_cost(kind, item_id)

    def count_buildings(self, building_id: str) -> int:
        return self.ledger.count_buildings(building_id)

    # ---- Tool selection ----

    def select_tool(self, kind: ItemKind | str, item_id: str) -> bool:
        """Select an item to place. Unknown items leave the selection as is."""
        definition = self.catalog.definition_of(kind, item_id)
        if definition is None:
            return False
        self.selected_tool = SelectedTool(definition.kind, item_id)
        return True

    def toggle_rotation(self) -> bool:
        """Flip the selected tool. Returns the new orientation."""
        if self.selected_tool is None:
            return False
        self.selected_tool.flipped = not self.selected_tool.flipped
        return self.selected_tool.flipped

    def clear_tool(self) -> None:
        self.selected_tool = None

    def place_selected(self, tx: int, ty: int) -> bool:
        tool = self.selected_tool
        if tool is None:
            return False
        return self.place(tx, ty, tool.kind, tool.id, tool.flipped)

    # ------------------------------------------------------------------
    # Renderer-facing state
    # ------------------------------------------------------------------
    def placed_items(self) -> list[PlacedItem]:
        return self.ledger.placed_items()

    def villagers(self) -> list[Villager]:
        return self.villager_sim.snapshot()

    @property
    def budget(self) -> float:
        return self.ledger.economy.budget

    @property
    def population(self) -> int:
        return self.ledger.economy.population

    @property
    def unemployed_workers(self) -> int:
        return self.ledger.economy.unemployed_workers

    @property
    def production_multiplier(self) -> float:
        return self.ledger.production_multiplier()

    @property
    def is_day(self) -> bool:
        return self.cycle.is_day

    def time_cycle_info(self) -> dict[str, Any]:
        return self.cycle.info()

    def summary(self) -> dict[str, Any]:
        """Economy and time figures for status displays."""
        # Refresh the multiplier so the economy figures below are current
        self.ledger.production_multiplier()
        economy = self.ledger.economy
        return {
            **economy.to_dict(),
            "income_per_interval": self.ledger.income_per_interval(),
            "expenses_per_interval": self.ledger.expenses_per_interval(),
            "item_count": len(self.ledger),
            "villager_count": len(self.villager_sim),
            "villager_cap": self.villager_cap(),
            "time_cycle": self.time_cycle_info(),
            "elapsed_ms": self.elapsed_ms,
            "intervals_elapsed": self.intervals_elapsed,
            "extensions": self.extensions.metrics(self),
        }

    # ------------------------------------------------------------------
    # Snapshot / restore
    # ------------------------------------------------------------------
    def snapshot(self) -> dict[str, Any]:
        """Persistable state. Villagers are ambient and not included."""
        economy = self.ledger.economy
        return {
            "version": SNAPSHOT_VERSION,
            "placed_items": [item.to_dict() for item in self.ledger.placed_items()],
            "budget": float(economy.budget),
            "population": int(economy.population),
            "unemployed_workers": int(economy.unemployed_workers),
            "cycle_tick": int(self.cycle.tick),
        }

    def restore(self, data: Any) -> bool:
        """Load a snapshot produced by ``snapshot``.

        Malformed, unknown, out-of-bounds or overlapping items are
        dropped. Population is always recomputed from the items; budget,
        unemployed workers and cycle tick fall back to defaults when
        missing or invalid. If the snapshot as a whole is unusable the
        village is reset instead.

        Returns:
            True if the snapshot was loaded, False if the village was reset.
        """
        try:
            items, dropped = self._parse_snapshot(data)
        except ValueError:
            logger.warning("Unusable village snapshot, starting fresh", exc_info=True)
            self.reset()
            return False

        self._build_state()
        dropped += self.ledger.load_items(items)
        if dropped:
            logger.warning("Dropped %d invalid items while restoring", dropped)

        economy = self.ledger.economy
        budget = data.get("budget")
        if _is_number(budget):
            economy.budget = float(budget)
        else:
            logger.warning("Snapshot budget missing or invalid, using initial budget")

        unemployed = data.get("unemployed_workers")
        hint = int(unemployed) if _is_number(unemployed) else None
        workforce.recompute(economy, self.ledger.placed_items(), self.catalog, hint)

        tick = data.get("cycle_tick")
        if _is_number(tick):
            self.cycle.set_tick(int(tick))

        self._start_extensions()
        return True

    def _parse_snapshot(self, data: Any) -> tuple[list[PlacedItem], int]:
        if not isinstance(data, dict):
            raise ValueError("snapshot must be a mapping")
        version = data.get("version", SNAPSHOT_VERSION)
        if not isinstance(version, int) or version > SNAPSHOT_VERSION:
            raise ValueError(f"unsupported snapshot version {version!r}")
        raw_items = data.get("placed_items")
        if not isinstance(raw_items, list):
            raise ValueError("snapshot has no placed_items list")

        items: list[PlacedItem] = []
        dropped = 0
        for raw in raw_items:
            item = self._parse_item(raw)
            if item is None:
                dropped += 1
            else:
                items.append(item)
        return items, dropped

    def _parse_item(self, raw: Any) -> PlacedItem | None:
        if not isinstance(raw, dict):
            return None
        try:
            kind = ItemKind(raw.get("kind"))
        except ValueError:
            return None
        item_id = raw.get("id")
        tx, ty = raw.get("tile_x"), raw.get("tile_y")
        if not isinstance(item_id, str) or not _is_int(tx) or not _is_int(ty):
            return None
        if self.catalog.definition_of(kind, item_id) is None:
            return None
        return PlacedItem(kind, item_id, tx, ty, bool(raw.get("flipped", False)))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(float(value))
    except (OverflowError, TypeError):
        return False
