"""
Environment Extension — slow churn of the village woodland.

Once per event interval a random standing tree disappears and a new
tree grows on a random empty tile. The event only fires when both a
tree and an empty tile exist, so the tree count never changes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from hamlet.core.catalog import ItemKind
from hamlet.core.clock import IntervalTimer
from hamlet.extensions.base import VillageExtension

if TYPE_CHECKING:
    from hamlet.core.engine import VillageEngine

logger = logging.getLogger(__name__)


class EnvironmentExtension(VillageExtension):
    """Periodically relocates one tree to a random empty tile."""

    def __init__(self) -> None:
        self.timer: IntervalTimer | None = None
        self.events_fired: int = 0
        self.last_event: dict[str, Any] | None = None

    @property
    def name(self) -> str:
        return "environment"

    @property
    def description(self) -> str:
        return "Trees fall and regrow elsewhere over time"

    def get_default_config(self) -> dict[str, Any]:
        return {
            "event_interval_ms": 60000.0,
        }

    def _get_config(self, engine: VillageEngine) -> dict[str, Any]:
        defaults = self.get_default_config()
        overrides = engine.config.extensions.get(self.name, {})
        return {**defaults, **overrides}

    # --- Hooks ---

    def _new_timer(self, engine: VillageEngine) -> IntervalTimer:
        cfg = self._get_config(engine)
        return IntervalTimer(
            float(cfg["event_interval_ms"]),
            max_catchup=engine.config.max_catchup_intervals,
        )

    def on_village_start(self, engine: VillageEngine) -> None:
        self.timer = self._new_timer(engine)
        self.events_fired = 0
        self.last_event = None

    def on_tick(self, engine: VillageEngine, delta_ms: float) -> None:
        timer = self.timer
        if timer is None:
            timer = self.timer = self._new_timer(engine)
        for _ in range(timer.advance(delta_ms)):
            self.churn_trees(engine)

    def churn_trees(self, engine: VillageEngine) -> bool:
        """Queue one tree relocation. Returns False if nothing qualifies.

        The relocation is applied at the end of the tick and counted in
        ``events_fired`` only if both tiles are still as they were.
        """
        variants = engine.config.tree_variants
        if not variants:
            return False
        old = engine.ledger.find_random_item(engine.rng, ItemKind.DECORATION, variants)
        if old is None:
            return False
        tile = engine.ledger.find_random_empty_tile(engine.rng)
        if tile is None:
            return False
        new_id = variants[int(engine.rng.integers(len(variants)))]
        old_tile = old.tile

        def apply() -> None:
            # An earlier event in the same tick may have used either tile
            current = engine.ledger.item_at(*old_tile)
            if current is None or current.id != old.id or engine.ledger.is_occupied(*tile):
                return
            if not engine.ledger.place_free(tile[0], tile[1], ItemKind.DECORATION, new_id):
                return
            engine.ledger.remove_free(*old_tile)
            self.events_fired += 1
            self.last_event = {
                "removed": {"id": old.id, "tile": list(old_tile)},
                "planted": {"id": new_id, "tile": list(tile)},
            }
            logger.debug(
                "Tree %s at %s replaced by %s at %s", old.id, old_tile, new_id, tile,
            )

        engine.defer(apply)
        return True

    # --- Metrics ---

    def get_metrics(self, engine: VillageEngine) -> dict[str, Any]:
        variants = set(engine.config.tree_variants)
        return {
            "tree_count": sum(
                1 for item in engine.ledger.placed_items()
                if item.kind is ItemKind.DECORATION and item.id in variants
            ),
            "events_fired": self.events_fired,
            "last_event": self.last_event,
        }
