"""
Base class for village extensions.

All extensions implement this ABC. Default hook implementations are
no-ops so extensions only override what they need.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from hamlet.core.engine import VillageEngine
    from hamlet.core.ledger import PlacedItem


class VillageExtension(ABC):
    """
    Abstract base for optional village extensions.

    Extensions hook into the engine tick to add ambient behaviour
    (environment churn, events) without modifying the core loop.

    Hooks fire in this order each tick:
        on_tick → on_interval (once per elapsed economy interval)

    Extensions must not mutate the ledger from a hook. They queue
    changes with ``engine.defer(...)``; the engine applies them at the
    end of the tick.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this extension."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description."""

    @abstractmethod
    def get_default_config(self) -> dict[str, Any]:
        """
        Return default configuration for this extension.

        Values are overridden by ``config.extensions[name]``.
        """

    # --- Lifecycle hooks (no-op by default) ---

    def on_village_start(self, engine: VillageEngine) -> None:
        """Called once when an engine is built, restored or reset."""

    def on_tick(self, engine: VillageEngine, delta_ms: float) -> None:
        """Called every tick with the elapsed simulated time."""

    def on_interval(self, engine: VillageEngine) -> None:
        """Called after each economy interval has been applied."""

    def on_item_placed(self, engine: VillageEngine, item: PlacedItem) -> None:
        """Called after a paid placement succeeds."""

    def on_item_removed(self, engine: VillageEngine, item: PlacedItem) -> None:
        """Called after a paid demolition succeeds."""

    # --- Metrics ---

    def get_metrics(self, engine: VillageEngine) -> dict[str, Any]:
        """Return extension-specific figures for status displays."""
        return {}
