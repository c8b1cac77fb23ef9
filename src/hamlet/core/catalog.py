"""
Item catalog for Hamlet.

Static, read-only definitions of everything that can be placed on the
grid: buildings, decorations and roads. Definitions are validated once,
when the catalog is built, so the rest of the core never has to check
for optional properties.

Item kinds act as tags on a single definition type. Fields that only
make sense for one kind (population, income and removal tools for
buildings; ``removal_tool`` for decorations) are rejected on the others
at load time.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable


class ItemKind(str, Enum):
    """Top-level classification of placeable items."""

    BUILDING = "building"
    DECORATION = "decoration"
    ROAD = "road"


class RequirementKind(str, Enum):
    """Prerequisites an item may declare before it can be placed."""

    POPULATION = "population"
    BUDGET = "budget"
    UNEMPLOYED_WORKERS = "unemployed_workers"
    HAS_BUILDING = "has_building"


class CatalogError(ValueError):
    """Raised when item data fails validation at catalog-load time."""


@dataclass(frozen=True)
class Requirement:
    """A single prerequisite: a kind plus its threshold.

    ``threshold`` is a number for counting kinds and a building id for
    ``HAS_BUILDING``.
    """

    kind: RequirementKind
    threshold: float | int | str


@dataclass(frozen=True)
class ItemDefinition:
    """Immutable definition of a placeable item.

    Attributes:
        kind: Which item family this definition belongs to.
        id: Identifier unique within the kind.
        name: Display name.
        purchase_cost: Budget debited on placement.
        demolition_refund_rate: Fraction of ``purchase_cost`` charged on
            demolition. Demolition costs money; nothing is refunded.
        income_per_interval: Gross income per economy interval (buildings).
        expense_per_interval: Upkeep per economy interval (buildings, roads).
        population_granted: Residents added while placed (buildings).
        allows_adjacent_same_id: Whether identical items may touch.
        requires_nearby_road: Whether a road must lie within one tile.
        requirements: Ordered prerequisites checked before placement.
        provides_removal_tools: Tools this building unlocks for demolition.
        removal_tool: Tool a building must provide before this
            decoration can be demolished.
        resource: Cosmetic resource tag (e.g. ``"wood"``).
    """

    kind: ItemKind
    id: str
    name: str = ""
    purchase_cost: float = 0.0
    demolition_refund_rate: float = 0.5
    income_per_interval: float = 0.0
    expense_per_interval: float = 0.0
    population_granted: int = 0
    allows_adjacent_same_id: bool = False
    requires_nearby_road: bool = False
    requirements: tuple[Requirement, ...] = ()
    provides_removal_tools: frozenset[str] = field(default_factory=frozenset)
    removal_tool: str | None = None
    resource: str | None = None

    @property
    def key(self) -> tuple[ItemKind, str]:
        return (self.kind, self.id)

    @property
    def worker_requirement(self) -> int:
        """Workers this item permanently employs (0 if none)."""
        for req in self.requirements:
            if req.kind is RequirementKind.UNEMPLOYED_WORKERS:
                return int(req.threshold)
        return 0

    @property
    def affects_economy(self) -> bool:
        """Whether placing or removing this item changes the economy."""
        return bool(
            self.population_granted or self.worker_requirement
            or self.income_per_interval or self.expense_per_interval
        )

    @property
    def demolition_cost(self) -> int:
        if self.purchase_cost <= 0:
            return 0
        return math.floor(self.purchase_cost * self.demolition_refund_rate)


# ---------------------------------------------------------------------------
# Stock item data
# ---------------------------------------------------------------------------

DEFAULT_ITEM_DATA: dict[str, dict[str, dict[str, Any]]] = {
    "building": {
        "house1": {"name": "House", "cost": 300, "population": 2},
        "house2": {"name": "House 2", "cost": 500, "population": 4},
        "woodcutter": {
            "name": "Woodcutter", "cost": 400, "income": 3,
            "requires": {"unemployed_workers": 1},
            "provides_tools": ["wood"],
        },
        "timberman": {
            "name": "Timberman", "cost": 1000, "income": 10,
            "requires": {"unemployed_workers": 2},
            "provides_tools": ["wood"],
        },
        "stonecutter": {
            "name": "Stonecutter", "cost": 800, "income": 6,
            "requires": {"unemployed_workers": 2},
            "provides_tools": ["stone"],
        },
        "blacksmith": {
            "name": "Blacksmith", "cost": 1850, "income": 20, "expense": 2,
            "requires": {"has_building": "stonecutter", "unemployed_workers": 4},
        },
        "wheat": {
            "name": "Wheat", "cost": 100, "income": 5, "allow_adjacent": True,
            "requires": {"unemployed_workers": 1},
        },
        "shop": {
            "name": "Shop", "cost": 650, "income": 7, "allow_adjacent": True,
            "requires": {"population": 4, "unemployed_workers": 1},
        },
        "campfire": {"name": "Campfire", "cost": 50, "allow_adjacent": True},
        "well": {"name": "Well", "cost": 100, "expense": 1, "allow_adjacent": True},
    },
    "decoration": {
        "tree": {
            "name": "Tree", "cost": 20, "allow_adjacent": True,
            "resource": "wood", "removal_tool": "wood",
        },
        "pine": {
            "name": "Pine Tree", "cost": 45, "allow_adjacent": True,
            "resource": "wood", "removal_tool": "wood",
        },
        "stump": {"name": "Stump", "cost": 10, "allow_adjacent": True, "removal_tool": "wood"},
        "roots": {"name": "Roots", "cost": 10, "allow_adjacent": True, "removal_tool": "wood"},
        "rocks": {"name": "Rocks", "cost": 30, "allow_adjacent": True, "removal_tool": "stone"},
        "boulder": {"name": "Boulder", "cost": 60, "allow_adjacent": True, "removal_tool": "stone"},
        "bush": {"name": "Bush", "cost": 15, "allow_adjacent": True},
        "lamp": {"name": "Lamp", "cost": 75, "allow_adjacent": True},
        "bench": {"name": "Bench", "cost": 120, "allow_adjacent": True},
    },
    "road": {
        "dirt": {"name": "Dirt", "cost": 10, "allow_adjacent": True},
        "stone": {"name": "Stone", "cost": 50, "allow_adjacent": True},
    },
}

_BUILDING_ONLY_FIELDS = ("population", "income", "provides_tools")
_KNOWN_FIELDS = {
    "name", "cost", "demolition_rate", "income", "expense", "population",
    "allow_adjacent", "requires_road", "requires", "provides_tools",
    "removal_tool", "resource",
}


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class ItemCatalog:
    """Lookup of item definitions keyed by (kind, id).

    Attributes:
        definitions: Mapping from (kind, id) to ItemDefinition, in load order.
    """

    def __init__(self, definitions: Iterable[ItemDefinition]) -> None:
        self.definitions: dict[tuple[ItemKind, str], ItemDefinition] = {}
        for definition in definitions:
            _validate_definition(definition)
            if definition.key in self.definitions:
                raise CatalogError(
                    f"Duplicate item definition {definition.kind.value}:{definition.id}"
                )
            self.definitions[definition.key] = definition
        self._validate_references()

    def _validate_references(self) -> None:
        building_ids = set(self.ids(ItemKind.BUILDING))
        tools = {t for d in self.definitions.values() for t in d.provides_removal_tools}
        for definition in self.definitions.values():
            for req in definition.requirements:
                if (req.kind is RequirementKind.HAS_BUILDING
                        and req.threshold not in building_ids):
                    raise CatalogError(
                        f"{definition.kind.value}:{definition.id} requires "
                        f"unknown building '{req.threshold}'"
                    )
            if definition.removal_tool is not None and definition.removal_tool not in tools:
                raise CatalogError(
                    f"{definition.kind.value}:{definition.id} needs tool "
                    f"'{definition.removal_tool}' that no building provides"
                )

    def definition_of(self, kind: ItemKind | str, item_id: str) -> ItemDefinition | None:
        """Return the definition for (kind, id), or None if unknown."""
        try:
            kind = ItemKind(kind)
        except ValueError:
            return None
        return self.definitions.get((kind, item_id))

    def ids(self, kind: ItemKind) -> list[str]:
        return [d.id for d in self.definitions.values() if d.kind is kind]

    def tool_providers(self, tool: str) -> list[str]:
        """Building ids that unlock demolition with ``tool``."""
        return [
            d.id for d in self.definitions.values()
            if d.kind is ItemKind.BUILDING and tool in d.provides_removal_tools
        ]

    def __len__(self) -> int:
        return len(self.definitions)

    def __contains__(self, key: tuple[ItemKind | str, str]) -> bool:
        return self.definition_of(*key) is not None

    # ---- Loading ----

    @classmethod
    def from_dict(
        cls, data: dict[str, dict[str, dict[str, Any]]],
        default_demolition_rate: float = 0.5,
    ) -> ItemCatalog:
        """Build a catalog from raw item data grouped by kind.

        Raises:
            CatalogError: On any unknown kind, field or requirement, or a
                value outside its allowed range.
        """
        definitions: list[ItemDefinition] = []
        for kind_name, items in data.items():
            try:
                kind = ItemKind(kind_name)
            except ValueError:
                raise CatalogError(f"Unknown item kind '{kind_name}'") from None
            for item_id, raw in items.items():
                definitions.append(
                    _parse_definition(kind, item_id, raw, default_demolition_rate)
                )
        return cls(definitions)


def default_catalog(default_demolition_rate: float = 0.5) -> ItemCatalog:
    """The stock catalog shipped with the game."""
    return ItemCatalog.from_dict(DEFAULT_ITEM_DATA, default_demolition_rate)


def _parse_definition(
    kind: ItemKind, item_id: str, raw: dict[str, Any],
    default_demolition_rate: float,
) -> ItemDefinition:
    label = f"{kind.value}:{item_id}"
    unknown = set(raw) - _KNOWN_FIELDS
    if unknown:
        raise CatalogError(f"{label} has unknown fields {sorted(unknown)}")
    if kind is not ItemKind.BUILDING:
        for name in _BUILDING_ONLY_FIELDS:
            if raw.get(name):
                raise CatalogError(f"{label}: '{name}' is only valid on buildings")
    if kind is not ItemKind.DECORATION and raw.get("removal_tool"):
        raise CatalogError(f"{label}: 'removal_tool' is only valid on decorations")

    requirements: list[Requirement] = []
    for req_name, threshold in (raw.get("requires") or {}).items():
        try:
            req_kind = RequirementKind(req_name)
        except ValueError:
            raise CatalogError(f"{label} has unknown requirement '{req_name}'") from None
        requirements.append(Requirement(req_kind, threshold))

    return ItemDefinition(
        kind=kind,
        id=item_id,
        name=raw.get("name", item_id),
        purchase_cost=float(raw.get("cost", 0)),
        demolition_refund_rate=float(raw.get("demolition_rate", default_demolition_rate)),
        income_per_interval=float(raw.get("income", 0)),
        expense_per_interval=float(raw.get("expense", 0)),
        population_granted=int(raw.get("population", 0)),
        allows_adjacent_same_id=bool(raw.get("allow_adjacent", False)),
        requires_nearby_road=bool(raw.get("requires_road", kind is ItemKind.BUILDING)),
        requirements=tuple(requirements),
        provides_removal_tools=frozenset(raw.get("provides_tools", ())),
        removal_tool=raw.get("removal_tool"),
        resource=raw.get("resource"),
    )


def _validate_definition(d: ItemDefinition) -> None:
    label = f"{d.kind.value}:{d.id}"
    if not isinstance(d.kind, ItemKind):
        raise CatalogError(f"{label}: kind must be an ItemKind")
    if d.purchase_cost < 0:
        raise CatalogError(f"{label}: negative purchase cost")
    if not 0.0 <= d.demolition_refund_rate <= 1.0:
        raise CatalogError(f"{label}: demolition rate must lie in [0, 1]")
    if d.income_per_interval < 0 or d.expense_per_interval < 0:
        raise CatalogError(f"{label}: income and expense must be non-negative")
    if d.population_granted < 0:
        raise CatalogError(f"{label}: negative population")
    if d.requires_nearby_road and d.kind is not ItemKind.BUILDING:
        raise CatalogError(f"{label}: only buildings may require road access")
    if d.kind is not ItemKind.BUILDING and (
        d.population_granted or d.income_per_interval or d.provides_removal_tools
    ):
        raise CatalogError(f"{label}: building-only fields set on a {d.kind.value}")
    if d.kind is ItemKind.DECORATION and d.expense_per_interval:
        raise CatalogError(f"{label}: decorations carry no upkeep")
    if d.removal_tool is not None and d.kind is not ItemKind.DECORATION:
        raise CatalogError(f"{label}: only decorations declare a removal tool")

    seen: set[RequirementKind] = set()
    for req in d.requirements:
        if not isinstance(req.kind, RequirementKind):
            raise CatalogError(f"{label}: unknown requirement {req.kind!r}")
        if req.kind in seen:
            raise CatalogError(f"{label}: duplicate requirement '{req.kind.value}'")
        seen.add(req.kind)
        if req.kind is RequirementKind.HAS_BUILDING:
            if not isinstance(req.threshold, str) or not req.threshold:
                raise CatalogError(f"{label}: has_building needs a building id")
        elif isinstance(req.threshold, (bool, str)) or req.threshold <= 0:
            raise CatalogError(
                f"{label}: requirement '{req.kind.value}' needs a positive number"
            )
