"""
Initial map generators for Hamlet.

A generator seeds a fresh ledger with ambient decorations (trees,
rocks, stumps, ...) through free placement. Each generator takes the
ledger, the config and a numpy ``Generator`` so layouts are
reproducible from a seed.
"""

from __future__ import annotations

import logging
from typing import Callable

import numpy as np

from hamlet.core.catalog import ItemKind
from hamlet.core.config import VillageConfig
from hamlet.core.ledger import PlacementLedger

logger = logging.getLogger(__name__)


def scatter_decorations(
    ledger: PlacementLedger, config: VillageConfig, rng: np.random.Generator,
) -> dict[str, int]:
    """Scatter ``config.initial_decorations`` over random empty tiles.

    The ``"tree"`` entry picks uniformly among ``config.tree_variants``
    for each placement. Each decoration type gets ``10 × target``
    attempts, so a crowded grid ends up with fewer items rather than
    looping forever.

    Returns:
        Number of items actually placed per requested decoration entry.
    """
    placed: dict[str, int] = {}
    for decoration_id, target in config.initial_decorations.items():
        count = 0
        for _ in range(max(0, target) * 10):
            if count >= target:
                break
            tile = ledger.find_random_empty_tile(rng)
            if tile is None:
                continue
            item_id = decoration_id
            if decoration_id == "tree" and config.tree_variants:
                item_id = config.tree_variants[int(rng.integers(len(config.tree_variants)))]
            if ledger.place_free(tile[0], tile[1], ItemKind.DECORATION, item_id):
                count += 1
        placed[decoration_id] = count
        if count < target:
            logger.info(
                "Placed only %d of %d %s decorations", count, target, decoration_id,
            )
    return placed


def empty_map(
    ledger: PlacementLedger, config: VillageConfig, rng: np.random.Generator,
) -> dict[str, int]:
    """Leave the grid bare."""
    return {}


MAP_GENERATORS: dict[str, Callable[..., dict[str, int]]] = {
    "scattered": scatter_decorations,
    "empty": empty_map,
}


def generate_map(
    name: str, ledger: PlacementLedger, config: VillageConfig,
    rng: np.random.Generator,
) -> dict[str, int]:
    """Run the named generator.

    Raises:
        ValueError: If ``name`` is not a registered generator.
    """
    if name not in MAP_GENERATORS:
        raise ValueError(
            f"Unknown map generator '{name}'. "
            f"Available: {', '.join(sorted(MAP_GENERATORS))}"
        )
    return MAP_GENERATORS[name](ledger, config, rng)
