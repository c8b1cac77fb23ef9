"""
Master configuration for Hamlet.

ALL tunable parameters live here. Grid geometry, economy pacing, villager
behavior and environment events read their numbers from this object.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class VillageConfig:
    """
    Master configuration for a village.

    Times are in milliseconds of simulated (accumulated delta) time.
    Use ``to_dict()`` / ``from_dict()`` for serialization and comparison.
    """

    # === Identity ===
    village_name: str = "default"
    random_seed: int | None = None

    # === Grid geometry ===
    tile_width: int = 64
    tile_height: int = 32
    grid_size: int = 50  # tiles span [-grid_size, grid_size] on both axes

    # === Economy ===
    initial_budget: float = 10000.0
    income_interval_ms: float = 5000.0
    default_demolition_rate: float = 0.5
    # Upper bound on intervals fired by a single tick after a long pause
    max_catchup_intervals: int = 100

    # === Day / night cycle (measured in income intervals) ===
    day_length: int = 12
    night_length: int = 6

    # === Initial map ===
    map_generator: str = "scattered"
    initial_decorations: dict[str, int] = field(default_factory=lambda: {
        "tree": 60,
        "rocks": 15,
        "boulder": 8,
        "roots": 8,
        "stump": 8,
    })
    # Decoration ids picked at random when a "tree" is requested
    tree_variants: list[str] = field(default_factory=lambda: ["tree", "pine"])
    empty_tile_attempts: int = 1000

    # === Villagers ===
    villager_config: dict[str, Any] = field(default_factory=lambda: {
        "spawn_interval_ms": 3000.0,
        "wander_radius": 5,
        "idle_ms": [2000.0, 5000.0],
        "move_ms": [3000.0, 5000.0],
        "speed": [0.001, 0.0015],  # progress per ms
        "skin_colors": ["#533518", "#C1733C", "#E4AA81", "#E6BEA2"],
        "shirt_colors": ["#4169e1", "#228b22", "#8b0000", "#ff6347", "#9370db", "#E7D236"],
    })

    # === Extensions ===
    extensions_enabled: list[str] = field(default_factory=lambda: ["environment"])
    extensions: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def cycle_length(self) -> int:
        return self.day_length + self.night_length

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        d: dict[str, Any] = {}
        for k, v in self.__dict__.items():
            if k.startswith("_"):
                continue
            d[k] = v
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> VillageConfig:
        """Deserialize from a dict."""
        return cls(**{k: v for k, v in d.items() if not k.startswith("_")})

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    @classmethod
    def from_json(cls, s: str) -> VillageConfig:
        return cls.from_dict(json.loads(s))

    def enable_extension(
        self, name: str,
        config_overrides: dict[str, Any] | None = None,
    ) -> None:
        """Enable an extension and optionally set its configuration."""
        if name not in self.extensions_enabled:
            self.extensions_enabled.append(name)
        if name not in self.extensions:
            self.extensions[name] = {}
        if config_overrides:
            self.extensions[name].update(config_overrides)

    def configure_extension(self, name: str, **kwargs: Any) -> None:
        """Update configuration parameters for a named extension."""
        if name not in self.extensions:
            self.extensions[name] = {}
        self.extensions[name].update(kwargs)

    def diff(self, other: VillageConfig) -> dict[str, tuple[Any, Any]]:
        """Return parameters that differ between two configs."""
        diffs: dict[str, tuple[Any, Any]] = {}
        for k in self.to_dict():
            v1 = getattr(self, k)
            v2 = getattr(other, k)
            if v1 != v2:
                diffs[k] = (v1, v2)
        return diffs
