"""
Extension registry for one village engine.

Holds the registered extensions, tracks which are enabled, and fans the
engine's lifecycle hooks out to the enabled ones in registration order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from hamlet.extensions.base import VillageExtension

if TYPE_CHECKING:
    from hamlet.core.engine import VillageEngine
    from hamlet.core.ledger import PlacedItem


class ExtensionRegistry:
    """
    The extensions attached to a village.

    Usage::

        registry = ExtensionRegistry()
        registry.register(EnvironmentExtension(), enabled=True)
        registry.tick(engine, 16.0)
    """

    def __init__(self) -> None:
        self._extensions: dict[str, VillageExtension] = {}
        self._enabled: set[str] = set()

    def register(self, extension: VillageExtension, enabled: bool = False) -> None:
        """Register an extension, replacing any previous one with its name."""
        self._extensions[extension.name] = extension
        if enabled:
            self._enabled.add(extension.name)
        else:
            self._enabled.discard(extension.name)

    def enable(self, name: str) -> None:
        if name not in self._extensions:
            raise KeyError(f"Extension '{name}' is not registered")
        self._enabled.add(name)

    def disable(self, name: str) -> None:
        if name not in self._extensions:
            raise KeyError(f"Extension '{name}' is not registered")
        self._enabled.discard(name)

    def is_enabled(self, name: str) -> bool:
        return name in self._enabled

    def get(self, name: str) -> VillageExtension | None:
        """Return a registered extension by name, or *None*."""
        return self._extensions.get(name)

    def get_enabled(self) -> list[VillageExtension]:
        """Return all enabled extensions in registration order."""
        return [
            ext for name, ext in self._extensions.items()
            if name in self._enabled
        ]

    @property
    def enabled_names(self) -> list[str]:
        return [ext.name for ext in self.get_enabled()]

    # --- Hook dispatch ---

    def start(self, engine: VillageEngine) -> None:
        for ext in self.get_enabled():
            ext.on_village_start(engine)

    def tick(self, engine: VillageEngine, delta_ms: float) -> None:
        for ext in self.get_enabled():
            ext.on_tick(engine, delta_ms)

    def interval(self, engine: VillageEngine) -> None:
        for ext in self.get_enabled():
            ext.on_interval(engine)

    def item_placed(self, engine: VillageEngine, item: PlacedItem) -> None:
        for ext in self.get_enabled():
            ext.on_item_placed(engine, item)

    def item_removed(self, engine: VillageEngine, item: PlacedItem) -> None:
        for ext in self.get_enabled():
            ext.on_item_removed(engine, item)

    def metrics(self, engine: VillageEngine) -> dict[str, dict[str, Any]]:
        """Metrics of every enabled extension, keyed by extension name."""
        return {ext.name: ext.get_metrics(engine) for ext in self.get_enabled()}
