"""
Ambient villagers for Hamlet.

Villagers are cosmetic agents that wander the road network. Each one
runs a two-state machine:

    IDLE --(idle time elapsed, a road step exists)--> MOVING
    MOVING --(move time elapsed, or nowhere to go)--> IDLE

Movement is tile to tile. ``progress`` runs from 0 to 1 between the
current and target tile; the drawn position is interpolated along the
way. All randomness comes from the injected ``numpy.random.Generator``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

import numpy as np

from hamlet.core.clock import IntervalTimer

if TYPE_CHECKING:
    from hamlet.core.config import VillageConfig
    from hamlet.core.roads import RoadNetwork
    from hamlet.core.workforce import EconomyState

logger = logging.getLogger(__name__)

Tile = tuple[int, int]


class VillagerState(str, Enum):
    IDLE = "idle"
    MOVING = "moving"


@dataclass
class Villager:
    """One wandering villager.

    Attributes:
        id: Spawn sequence number; lower ids are older.
        current_tile: Tile the villager stands on or walks from.
        target_tile: Tile the villager walks to (equals current when idle).
        speed: Progress gained per millisecond.
        idle_duration: Milliseconds to stay idle before moving.
        move_duration: Milliseconds to keep moving before idling.
        direction: Facing angle in radians.
        position: Interpolated tile-space position for drawing.
    """

    id: int
    current_tile: Tile
    target_tile: Tile
    speed: float
    idle_duration: float
    move_duration: float
    skin_color: str = "#E4AA81"
    shirt_color: str = "#4169e1"
    direction: float = 0.0
    state: VillagerState = VillagerState.IDLE
    progress: float = 0.0
    idle_elapsed: float = 0.0
    move_elapsed: float = 0.0
    position: tuple[float, float] = (0.0, 0.0)
    marked_for_removal: bool = False

    def __post_init__(self) -> None:
        self.position = (float(self.current_tile[0]), float(self.current_tile[1]))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "current_tile": list(self.current_tile),
            "target_tile": list(self.target_tile),
            "position": [round(self.position[0], 4), round(self.position[1], 4)],
            "progress": round(self.progress, 4),
            "state": self.state.value,
            "direction": round(self.direction, 4),
            "skin_color": self.skin_color,
            "shirt_color": self.shirt_color,
        }


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def begin_moving(villager: Villager, target: Tile) -> None:
    """IDLE → MOVING toward an adjacent tile."""
    villager.state = VillagerState.MOVING
    villager.target_tile = target
    villager.progress = 0.0
    villager.idle_elapsed = 0.0
    villager.move_elapsed = 0.0


def become_idle(villager: Villager) -> None:
    """MOVING → IDLE, standing on the current tile."""
    villager.state = VillagerState.IDLE
    villager.target_tile = villager.current_tile
    villager.progress = 0.0
    villager.idle_elapsed = 0.0
    villager.move_elapsed = 0.0
    villager.position = (float(villager.current_tile[0]), float(villager.current_tile[1]))


def relocate(villager: Villager, tile: Tile) -> None:
    """Teleport onto ``tile`` and drop any step in progress."""
    villager.current_tile = tile
    villager.target_tile = tile
    villager.progress = 0.0
    villager.position = (float(tile[0]), float(tile[1]))


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

def villager_cap(economy: EconomyState, is_day: bool) -> int:
    """How many villagers may be out: the jobless by day, everyone by night."""
    return economy.unemployed_workers if is_day else economy.population


class VillagerSimulation:
    """Spawns, moves and retires villagers on a road network.

    Attributes:
        roads: Road queries used for every movement decision.
        villagers: Live villagers, oldest first.
    """

    def __init__(
        self, roads: RoadNetwork, config: VillageConfig,
        rng: np.random.Generator,
    ) -> None:
        self.roads = roads
        self.rng = rng
        vc = config.villager_config
        self.wander_radius: int = int(vc.get("wander_radius", 5))
        self._idle_ms: tuple[float, float] = tuple(vc.get("idle_ms", (2000.0, 5000.0)))
        self._move_ms: tuple[float, float] = tuple(vc.get("move_ms", (3000.0, 5000.0)))
        self._speed: tuple[float, float] = tuple(vc.get("speed", (0.001, 0.0015)))
        self._skin_colors: list[str] = list(vc.get("skin_colors", ["#E4AA81"]))
        self._shirt_colors: list[str] = list(vc.get("shirt_colors", ["#4169e1"]))
        self.spawn_timer = IntervalTimer(
            float(vc.get("spawn_interval_ms", 3000.0)),
            max_catchup=config.max_catchup_intervals,
        )
        self.villagers: list[Villager] = []
        self._next_id = 1

    def __len__(self) -> int:
        return len(self.villagers)

    def snapshot(self) -> list[Villager]:
        return list(self.villagers)

    def clear(self) -> None:
        self.villagers = []

    # ---- Spawning ----

    def _uniform(self, bounds: tuple[float, float]) -> float:
        return float(self.rng.uniform(bounds[0], bounds[1]))

    def spawn(self, cap: int) -> Villager | None:
        """Add one villager on a random road tile if the cap allows it."""
        if cap <= 0 or len(self.villagers) >= cap:
            return None
        tile = self.roads.random_road_tile(self.rng)
        if tile is None:
            return None
        villager = Villager(
            id=self._next_id,
            current_tile=tile,
            target_tile=tile,
            speed=self._uniform(self._speed),
            idle_duration=self._uniform(self._idle_ms),
            move_duration=self._uniform(self._move_ms),
            skin_color=self._skin_colors[int(self.rng.integers(len(self._skin_colors)))],
            shirt_color=self._shirt_colors[int(self.rng.integers(len(self._shirt_colors)))],
            direction=self._uniform((0.0, 2 * math.pi)),
        )
        self._next_id += 1
        self.villagers.append(villager)
        return villager

    def trim_to_cap(self, cap: int) -> int:
        """Retire the oldest villagers beyond ``cap``. Returns how many."""
        excess = len(self.villagers) - max(0, cap)
        if excess <= 0:
            return 0
        del self.villagers[:excess]
        logger.debug("Retired %d villagers above cap %d", excess, cap)
        return excess

    # ---- Tick ----

    def update(self, delta_ms: float, cap: int) -> None:
        """Advance every villager by ``delta_ms`` under a population ``cap``."""
        for _ in range(self.spawn_timer.advance(delta_ms)):
            if self.spawn(cap) is None:
                break

        self.trim_to_cap(cap)

        for villager in self.villagers:
            if not self._heal(villager):
                continue
            self._advance_timers(villager, delta_ms)
            if villager.state is VillagerState.MOVING:
                self._walk(villager, delta_ms)
            else:
                villager.position = (
                    float(villager.current_tile[0]), float(villager.current_tile[1]),
                )

        self.villagers = [
            v for v in self.villagers
            if not v.marked_for_removal and self.roads.is_valid_road_tile(*v.current_tile)
        ]

    def _heal(self, villager: Villager) -> bool:
        """Keep the villager on the road; mark it for removal if impossible."""
        if self.roads.is_valid_road_tile(*villager.current_tile):
            if (villager.state is VillagerState.MOVING
                    and not self.roads.is_valid_road_tile(*villager.target_tile)):
                villager.target_tile = villager.current_tile
                villager.progress = 0.0
            return True

        snapped = self.roads.snap_to_road_tile(*villager.position)
        if snapped is None:
            px, py = villager.position
            candidates = self.roads.adjacent_road_tiles(*villager.current_tile)
            if candidates:
                snapped = min(candidates, key=lambda t: math.hypot(t[0] - px, t[1] - py))
        if snapped is None:
            villager.marked_for_removal = True
            return False
        relocate(villager, snapped)
        return True

    def _advance_timers(self, villager: Villager, delta_ms: float) -> None:
        if villager.state is VillagerState.MOVING:
            villager.move_elapsed += delta_ms
            if villager.move_elapsed >= villager.move_duration:
                become_idle(villager)
            return

        villager.idle_elapsed += delta_ms
        if villager.idle_elapsed < villager.idle_duration:
            return
        villager.idle_elapsed = 0.0

        x, y = villager.current_tile
        step: Tile | None = None
        destination = self.roads.random_reachable_tile(self.rng, x, y, self.wander_radius)
        if destination is not None:
            step = self.roads.next_step_toward(x, y, *destination)
        if step is None:
            step = self.roads.random_adjacent_road_tile(self.rng, x, y)
        if step is not None:
            begin_moving(villager, step)

    def _walk(self, villager: Villager, delta_ms: float) -> None:
        if villager.current_tile == villager.target_tile:
            nxt = self.roads.random_adjacent_road_tile(self.rng, *villager.current_tile)
            if nxt is None:
                become_idle(villager)
                return
            villager.target_tile = nxt
            villager.progress = 0.0

        villager.progress += villager.speed * delta_ms
        if villager.progress >= 1.0:
            arrived = villager.target_tile
            relocate(villager, arrived)
            nxt = self.roads.random_adjacent_road_tile(self.rng, *arrived)
            if nxt is None:
                become_idle(villager)
            else:
                villager.target_tile = nxt
            return

        cx, cy = villager.current_tile
        tx, ty = villager.target_tile
        villager.position = (
            cx + (tx - cx) * villager.progress,
            cy + (ty - cy) * villager.progress,
        )
        if tx != cx or ty != cy:
            villager.direction = math.atan2(ty - cy, tx - cx)
