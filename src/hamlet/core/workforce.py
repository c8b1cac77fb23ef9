"""
Workforce allocation for Hamlet.

Keeps population, unemployed workers, the total worker requirement and
the production multiplier consistent as items are placed and removed.

Workers are not tracked per building. When a house is demolished the
allocator assumes that household's own job slot, if any, leaves with it.
The approximation never breaks the invariants below because every
operation ends with a clamp:

- ``population`` equals the sum of ``population_granted`` over placed items
- ``0 <= unemployed_workers <= population``
- ``workers_required_total`` equals the sum of worker requirements
- ``production_multiplier`` lies in [0, 1]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:
    from hamlet.core.catalog import ItemCatalog, ItemDefinition
    from hamlet.core.ledger import PlacedItem


@dataclass
class EconomyState:
    """Budget and workforce figures of a village.

    Attributes:
        budget: Available money. Expenses may push it negative; rejected
            purchases never do.
        population: Residents granted by placed buildings.
        unemployed_workers: Residents without a job.
        workers_required_total: Jobs declared by placed items.
        production_multiplier: Fraction of income actually produced.
    """

    budget: float = 0.0
    population: int = 0
    unemployed_workers: int = 0
    workers_required_total: int = 0
    production_multiplier: float = 1.0

    @property
    def available_workers(self) -> int:
        """Residents currently employed."""
        return self.population - self.unemployed_workers

    def to_dict(self) -> dict[str, Any]:
        return {
            "budget": float(self.budget),
            "population": int(self.population),
            "unemployed_workers": int(self.unemployed_workers),
            "workers_required_total": int(self.workers_required_total),
            "production_multiplier": float(self.production_multiplier),
        }


def production_multiplier(population: int, unemployed: int, required: int) -> float:
    """Fraction of nominal output the current workforce can sustain."""
    if required <= 0:
        return 1.0
    available = population - unemployed
    if available <= 0:
        return 0.0
    return min(1.0, available / required)


def clamp_unemployed(state: EconomyState) -> None:
    state.population = max(0, state.population)
    state.unemployed_workers = max(0, min(state.population, state.unemployed_workers))


def refresh(state: EconomyState, workers_required: int) -> None:
    """Store the requirement total, clamp, and recompute the multiplier."""
    state.workers_required_total = max(0, workers_required)
    clamp_unemployed(state)
    state.production_multiplier = production_multiplier(
        state.population, state.unemployed_workers, state.workers_required_total,
    )


def on_placed(
    state: EconomyState, definition: ItemDefinition, workers_required_before: int,
) -> None:
    """Reconcile the workforce after ``definition`` was placed.

    New residents fill any job shortage (including the new item's own
    requirement) before being counted as unemployed. An item that
    employs workers drafts them from the unemployed pool.
    """
    own_requirement = definition.worker_requirement
    workers_required_after = workers_required_before + own_requirement
    employed_before = state.available_workers

    granted = definition.population_granted
    if granted > 0:
        state.population += granted
        shortage = max(0, workers_required_after - employed_before)
        assigned = min(granted, shortage)
        state.unemployed_workers += granted - assigned

    if own_requirement > 0:
        state.unemployed_workers = max(0, state.unemployed_workers - own_requirement)

    refresh(state, workers_required_after)


def on_removed(
    state: EconomyState, definition: ItemDefinition, workers_required_after: int,
) -> None:
    """Reconcile the workforce after ``definition`` was removed.

    ``workers_required_after`` is the requirement total of the items
    still placed.
    """
    own_requirement = definition.worker_requirement
    granted = definition.population_granted

    if granted > 0:
        state.population = max(0, state.population - granted)
        leaving_unemployed = max(0, granted - own_requirement)
        state.unemployed_workers = max(0, state.unemployed_workers - leaving_unemployed)

    if own_requirement > 0:
        if state.population > 0:
            state.unemployed_workers = min(
                state.population, state.unemployed_workers + own_requirement,
            )
        # Freed workers go straight back to any jobs still unfilled
        shortage = workers_required_after - state.available_workers
        if shortage > 0:
            redrafted = min(state.unemployed_workers, shortage)
            state.unemployed_workers -= redrafted

    refresh(state, workers_required_after)


def total_workers_required(items: Iterable[PlacedItem], catalog: ItemCatalog) -> int:
    total = 0
    for item in items:
        definition = catalog.definition_of(item.kind, item.id)
        if definition is not None:
            total += definition.worker_requirement
    return total


def total_population(items: Iterable[PlacedItem], catalog: ItemCatalog) -> int:
    total = 0
    for item in items:
        definition = catalog.definition_of(item.kind, item.id)
        if definition is not None:
            total += definition.population_granted
    return total


def recompute(
    state: EconomyState, items: list[PlacedItem], catalog: ItemCatalog,
    unemployed_hint: int | None = None,
) -> None:
    """Rebuild derived workforce figures from the placed items.

    ``unemployed_hint`` is a previously stored unemployed count; it is
    trusted only after clamping. Without it everyone not needed for a
    job is assumed unemployed.
    """
    state.population = total_population(items, catalog)
    required = total_workers_required(items, catalog)
    if unemployed_hint is None:
        state.unemployed_workers = max(0, state.population - required)
    else:
        state.unemployed_workers = unemployed_hint
    refresh(state, required)
