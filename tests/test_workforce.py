"""Tests for workforce allocation and its invariants."""

from __future__ import annotations

import numpy as np
import pytest

from hamlet.core import workforce
from hamlet.core.catalog import ItemKind, default_catalog
from hamlet.core.config import VillageConfig
from hamlet.core.ledger import PlacementLedger
from hamlet.core.workforce import EconomyState


def _make_ledger(grid_size: int = 6) -> PlacementLedger:
    config = VillageConfig(grid_size=grid_size, initial_budget=1e9, initial_decorations={})
    ledger = PlacementLedger(config, default_catalog())
    for x in range(-grid_size, grid_size + 1):
        assert ledger.place(x, 0, "road", "dirt")
    return ledger


def _assert_invariants(ledger: PlacementLedger) -> None:
    economy = ledger.economy
    catalog = ledger.catalog
    items = ledger.placed_items()
    assert economy.population == workforce.total_population(items, catalog)
    assert 0 <= economy.unemployed_workers <= economy.population
    assert economy.workers_required_total == workforce.total_workers_required(items, catalog)
    assert 0.0 <= economy.production_multiplier <= 1.0


class TestProductionMultiplier:
    def test_no_jobs_means_full_output(self):
        assert workforce.production_multiplier(0, 0, 0) == 1.0

    def test_fully_staffed(self):
        assert workforce.production_multiplier(4, 0, 2) == 1.0

    def test_partially_staffed(self):
        assert workforce.production_multiplier(4, 3, 2) == 0.5

    def test_nobody_working(self):
        assert workforce.production_multiplier(2, 2, 1) == 0.0


class TestAllocation:
    def test_new_residents_start_unemployed(self):
        ledger = _make_ledger()
        ledger.place(1, 1, "building", "house2")
        assert ledger.economy.population == 4
        assert ledger.economy.unemployed_workers == 4

    def test_job_drafts_unemployed(self):
        ledger = _make_ledger()
        ledger.place(1, 1, "building", "house2")
        ledger.place(3, 1, "building", "stonecutter")
        assert ledger.economy.unemployed_workers == 2
        assert ledger.economy.workers_required_total == 2
        assert ledger.economy.production_multiplier == 1.0

    def test_removing_job_frees_workers(self):
        ledger = _make_ledger()
        ledger.place(1, 1, "building", "house2")
        ledger.place(3, 1, "building", "stonecutter")
        ledger.remove(3, 1)
        assert ledger.economy.unemployed_workers == 4
        assert ledger.economy.workers_required_total == 0

    def test_removing_house_shrinks_workforce(self):
        ledger = _make_ledger()
        ledger.place(1, 1, "building", "house1")
        ledger.place(3, 1, "building", "woodcutter")
        ledger.remove(1, 1)
        assert ledger.economy.population == 0
        assert ledger.economy.unemployed_workers == 0
        assert ledger.economy.production_multiplier == 0.0

    def test_clamp(self):
        state = EconomyState(population=3, unemployed_workers=7)
        workforce.clamp_unemployed(state)
        assert state.unemployed_workers == 3

    def test_recompute_without_hint(self):
        ledger = _make_ledger()
        ledger.place(1, 1, "building", "house2")
        ledger.place(3, 1, "building", "stonecutter")
        state = EconomyState()
        workforce.recompute(state, ledger.placed_items(), ledger.catalog)
        assert state.population == 4
        assert state.unemployed_workers == 2

    def test_recompute_clamps_hint(self):
        ledger = _make_ledger()
        ledger.place(1, 1, "building", "house1")
        state = EconomyState()
        workforce.recompute(state, ledger.placed_items(), ledger.catalog, unemployed_hint=99)
        assert state.unemployed_workers == 2


class TestInvariantsUnderRandomPlay:
    BUILDINGS = ["house1", "house2", "woodcutter", "timberman", "stonecutter",
                 "blacksmith", "wheat", "shop", "campfire", "well"]

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_random_place_and_remove(self, seed):
        ledger = _make_ledger()
        rng = np.random.default_rng(seed)
        n = ledger.config.grid_size

        for _ in range(400):
            if rng.random() < 0.65:
                building = self.BUILDINGS[int(rng.integers(len(self.BUILDINGS)))]
                tx = int(rng.integers(-n, n + 1))
                ty = int(rng.choice([-1, 1]))
                ledger.place(tx, ty, "building", building)
            else:
                buildings = [i for i in ledger.placed_items() if i.kind is ItemKind.BUILDING]
                if buildings:
                    target = buildings[int(rng.integers(len(buildings)))]
                    ledger.remove(*target.tile)
            _assert_invariants(ledger)
