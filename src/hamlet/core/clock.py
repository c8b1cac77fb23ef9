"""
Simulation time for Hamlet.

All periodic work is driven by accumulated delta-time, never by wall
clock polling. A throttled or paused host that delivers one large delta
gets the owed intervals fired in order, with any remainder carried into
the next tick.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class IntervalTimer:
    """Fires once per ``interval_ms`` of accumulated time.

    Attributes:
        interval_ms: Period between firings (> 0).
        elapsed_ms: Time accumulated toward the next firing.
        max_catchup: Most firings a single ``advance`` may return; the
            backlog beyond that is dropped (the remainder is kept).
    """

    interval_ms: float
    elapsed_ms: float = 0.0
    max_catchup: int = 100

    def __post_init__(self) -> None:
        if self.interval_ms <= 0:
            raise ValueError("interval_ms must be positive")

    def advance(self, delta_ms: float) -> int:
        """Accumulate ``delta_ms`` and return how many intervals elapsed."""
        if delta_ms <= 0:
            return 0
        self.elapsed_ms += delta_ms
        fired = int(self.elapsed_ms // self.interval_ms)
        if fired == 0:
            return 0
        self.elapsed_ms -= fired * self.interval_ms
        return min(fired, self.max_catchup)

    def reset(self) -> None:
        self.elapsed_ms = 0.0


@dataclass
class DayNightCycle:
    """Day/night phases counted in economy intervals.

    Ticks ``0 .. day_length - 1`` are day, the rest of the cycle is night.
    """

    day_length: int
    night_length: int
    tick: int = 0

    @property
    def cycle_length(self) -> int:
        return self.day_length + self.night_length

    @property
    def is_day(self) -> bool:
        return self.tick < self.day_length

    def advance(self) -> None:
        self.tick += 1
        if self.tick >= self.cycle_length:
            self.tick = 0

    def set_tick(self, tick: int) -> None:
        self.tick = tick % self.cycle_length if self.cycle_length > 0 else 0

    def info(self) -> dict[str, Any]:
        """Phase summary for displays: progress runs 0 → 1 within a phase."""
        if self.is_day:
            phase_tick, phase_length = self.tick, self.day_length
        else:
            phase_tick, phase_length = self.tick - self.day_length, self.night_length
        return {
            "is_day": self.is_day,
            "progress": phase_tick / phase_length if phase_length else 0.0,
            "tick": self.tick,
            "phase_tick": phase_tick,
            "phase_length": phase_length,
        }
