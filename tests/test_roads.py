"""Tests for generic graph search and the road network built on it."""

from __future__ import annotations

import numpy as np
import pytest

from hamlet.core import graph_search
from hamlet.core.catalog import default_catalog
from hamlet.core.config import VillageConfig
from hamlet.core.ledger import PlacementLedger
from hamlet.core.roads import RoadNetwork


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _line(n: int):
    return lambda node: [m for m in (node - 1, node + 1) if 0 <= m < n]


def _make_roads(tiles, grid_size: int = 8) -> RoadNetwork:
    config = VillageConfig(grid_size=grid_size, initial_budget=1e6, initial_decorations={})
    ledger = PlacementLedger(config, default_catalog())
    for tx, ty in tiles:
        assert ledger.place(tx, ty, "road", "dirt")
    return RoadNetwork(ledger)


# ---------------------------------------------------------------------------
# Generic BFS
# ---------------------------------------------------------------------------

class TestBreadthFirst:
    def test_depths_on_a_line(self):
        found = graph_search.breadth_first(0, _line(10), 3)
        assert found == [(1, 1), (2, 2), (3, 3)]

    def test_start_excluded(self):
        assert 5 not in graph_search.reachable_within(5, _line(10), 4)

    def test_non_positive_depth_is_empty(self):
        assert graph_search.reachable_within(0, _line(10), 0) == []
        assert graph_search.reachable_within(0, _line(10), -2) == []

    def test_no_duplicates_on_cycles(self):
        ring = lambda node: [(node - 1) % 6, (node + 1) % 6]
        found = graph_search.reachable_within(0, ring, 10)
        assert sorted(found) == [1, 2, 3, 4, 5]
        assert len(found) == len(set(found))

    def test_monotonic_in_depth(self):
        grid = lambda n: [(n[0] + dx, n[1] + dy) for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1))]
        previous: set = set()
        for depth in range(6):
            current = set(graph_search.reachable_within((0, 0), grid, depth))
            assert previous <= current
            previous = current

    def test_depth_bound_respected(self):
        for node, depth in graph_search.breadth_first(5, _line(20), 4):
            assert 1 <= depth <= 4
            assert abs(node - 5) == depth


# ---------------------------------------------------------------------------
# Road network
# ---------------------------------------------------------------------------

class TestRoadNetwork:
    def test_valid_road_tile(self):
        roads = _make_roads([(0, 0)])
        roads.ledger.place_free(1, 0, "decoration", "tree")
        assert roads.is_valid_road_tile(0, 0)
        assert not roads.is_valid_road_tile(1, 0)
        assert not roads.is_valid_road_tile(2, 0)
        assert roads.is_position_occupied(1, 0)

    def test_adjacency_is_cardinal_only(self):
        roads = _make_roads([(0, 0), (1, 0), (1, 1), (0, -1)])
        assert sorted(roads.adjacent_road_tiles(0, 0)) == [(0, -1), (1, 0)]

    def test_reachable_within(self):
        roads = _make_roads([(x, 0) for x in range(6)])
        assert sorted(roads.reachable_within(0, 0, 2)) == [(1, 0), (2, 0)]
        assert sorted(roads.reachable_within(2, 0, 1)) == [(1, 0), (3, 0)]

    def test_reachable_from_non_road_is_empty(self):
        roads = _make_roads([(0, 0), (1, 0)])
        assert roads.reachable_within(5, 5, 3) == []

    def test_reachability_follows_placement(self):
        roads = _make_roads([(0, 0), (1, 0)])
        assert roads.reachable_within(0, 0, 3) == [(1, 0)]
        roads.ledger.place(2, 0, "road", "dirt")
        assert sorted(roads.reachable_within(0, 0, 3)) == [(1, 0), (2, 0)]
        roads.ledger.remove_free(1, 0)
        assert roads.reachable_within(0, 0, 3) == []

    def test_next_step_toward(self):
        roads = _make_roads([(0, 0), (1, 0), (0, 1), (-1, 0)])
        assert roads.next_step_toward(0, 0, 5.0, 0.0) == (1, 0)
        assert roads.next_step_toward(0, 0, 0.0, 4.0) == (0, 1)
        assert roads.next_step_toward(3, 3, 0.0, 0.0) is None

    def test_snap_to_road_tile(self):
        roads = _make_roads([(2, 3)])
        assert roads.snap_to_road_tile(2.4, 2.6) == (2, 3)
        assert roads.snap_to_road_tile(0.0, 0.0) is None

    def test_road_tiles(self):
        roads = _make_roads([(0, 0), (3, 3)])
        roads.ledger.place_free(1, 1, "decoration", "tree")
        assert roads.road_tiles() == [(0, 0), (3, 3)]


class TestRandomRoadChoices:
    def test_no_roads(self):
        roads = _make_roads([])
        rng = np.random.default_rng(0)
        assert roads.random_road_tile(rng) is None
        assert roads.random_adjacent_road_tile(rng, 0, 0) is None
        assert roads.random_reachable_tile(rng, 0, 0, 3) is None

    @pytest.mark.parametrize("seed", range(5))
    def test_choices_are_valid(self, seed):
        tiles = [(x, 0) for x in range(-3, 4)] + [(0, y) for y in range(1, 4)]
        roads = _make_roads(tiles)
        rng = np.random.default_rng(seed)
        assert roads.random_road_tile(rng) in tiles
        step = roads.random_adjacent_road_tile(rng, 0, 0)
        assert step in roads.adjacent_road_tiles(0, 0)
        far = roads.random_reachable_tile(rng, 0, 0, 2)
        assert far in roads.reachable_within(0, 0, 2)
