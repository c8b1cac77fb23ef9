"""
Road network queries for Hamlet.

The road graph is implicit: tiles holding a road item are nodes, and
each node links to its four cardinal neighbours that are roads as well.
Nothing is cached. Every query reads the placement ledger directly, so
building or demolishing a road is visible on the next call.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from hamlet.core import graph_search
from hamlet.core.catalog import ItemKind

if TYPE_CHECKING:
    from hamlet.core.ledger import PlacementLedger

Tile = tuple[int, int]


class RoadNetwork:
    """Pathfinding over the road tiles of a ledger.

    Attributes:
        ledger: Source of truth for placed items.
    """

    # Right, left, down, up.
    DIRECTIONS: list[Tile] = [(1, 0), (-1, 0), (0, 1), (0, -1)]

    def __init__(self, ledger: PlacementLedger) -> None:
        self.ledger = ledger

    # ---- Tile predicates ----

    def is_road_tile(self, tx: int, ty: int) -> bool:
        item = self.ledger.item_at(tx, ty)
        return item is not None and item.kind is ItemKind.ROAD

    def is_position_occupied(self, tx: int, ty: int) -> bool:
        """Whether a non-road item sits on the tile."""
        item = self.ledger.item_at(tx, ty)
        return item is not None and item.kind is not ItemKind.ROAD

    def is_valid_road_tile(self, tx: int, ty: int) -> bool:
        """In bounds, a road, and not shared with any other item."""
        return (
            self.ledger.is_within_bounds(tx, ty)
            and self.is_road_tile(tx, ty)
            and not self.is_position_occupied(tx, ty)
        )

    # ---- Neighbourhood ----

    def adjacent_road_tiles(self, tx: int, ty: int) -> list[Tile]:
        """Valid road tiles among the four cardinal neighbours."""
        result: list[Tile] = []
        for dx, dy in self.DIRECTIONS:
            nx, ny = tx + dx, ty + dy
            if self.is_valid_road_tile(nx, ny):
                result.append((nx, ny))
        return result

    def _neighbors(self, tile: Tile) -> list[Tile]:
        return self.adjacent_road_tiles(*tile)

    def road_tiles(self) -> list[Tile]:
        """All valid road tiles in placement order."""
        return [
            item.tile for item in self.ledger.placed_items()
            if item.kind is ItemKind.ROAD and self.is_valid_road_tile(*item.tile)
        ]

    # ---- Search ----

    def reachable_within(self, tx: int, ty: int, max_hops: int) -> list[Tile]:
        """Road tiles reachable from (tx, ty) in at most ``max_hops`` steps.

        The start tile is excluded. An invalid start or ``max_hops <= 0``
        gives an empty list.
        """
        if not self.is_valid_road_tile(tx, ty):
            return []
        return graph_search.reachable_within((tx, ty), self._neighbors, max_hops)

    def next_step_toward(
        self, from_x: int, from_y: int, target_x: float, target_y: float,
    ) -> Tile | None:
        """Adjacent road tile closest (Euclidean) to the target.

        Greedy, so it can stall behind obstacles. Ties go to the first
        neighbour in ``DIRECTIONS`` order.
        """
        best: Tile | None = None
        best_distance = math.inf
        for nx, ny in self.adjacent_road_tiles(from_x, from_y):
            distance = math.hypot(nx - target_x, ny - target_y)
            if distance < best_distance:
                best_distance = distance
                best = (nx, ny)
        return best

    def snap_to_road_tile(self, x: float, y: float) -> Tile | None:
        """Round a position to a tile and return it if it is a valid road."""
        tx, ty = int(round(x)), int(round(y))
        if self.is_valid_road_tile(tx, ty):
            return (tx, ty)
        return None

    # ---- Random choices ----

    def random_road_tile(self, rng: np.random.Generator) -> Tile | None:
        tiles = self.road_tiles()
        if not tiles:
            return None
        return tiles[int(rng.integers(len(tiles)))]

    def random_adjacent_road_tile(
        self, rng: np.random.Generator, tx: int, ty: int,
    ) -> Tile | None:
        tiles = self.adjacent_road_tiles(tx, ty)
        if not tiles:
            return None
        return tiles[int(rng.integers(len(tiles)))]

    def random_reachable_tile(
        self, rng: np.random.Generator, tx: int, ty: int, max_hops: int,
    ) -> Tile | None:
        tiles = self.reachable_within(tx, ty, max_hops)
        if not tiles:
            return None
        return tiles[int(rng.integers(len(tiles)))]
