#!/usr/bin/env python3
"""Build a small village, run it for a few in-game days and print results."""

from hamlet.core.config import VillageConfig
from hamlet.core.engine import VillageEngine


def main():
    config = VillageConfig(
        village_name="demo",
        random_seed=42,
        grid_size=12,
        initial_decorations={"tree": 10, "rocks": 4},
    )

    print(f"=== Hamlet: {config.village_name} ===")
    print(f"Grid: [-{config.grid_size}, {config.grid_size}]²")
    print(f"Budget: {config.initial_budget:.0f}")
    print()

    engine = VillageEngine(config)

    plan = [
        (-3, 1, "house1"), (-1, 1, "house2"), (1, 1, "house2"),
        (3, 1, "woodcutter"), (-2, -1, "wheat"), (0, -1, "shop"),
    ]
    # Clear the building site of any scattered decorations
    site = [(x, 0) for x in range(-4, 5)] + [(tx, ty) for tx, ty, _ in plan]
    for tx, ty in site:
        engine.remove_free(tx, ty)

    for tx in range(-4, 5):
        engine.place(tx, 0, "road", "dirt")

    for tx, ty, building in plan:
        ok = engine.place(tx, ty, "building", building)
        print(f"Place {building:<11} at ({tx:3d}, {ty:3d}): {'ok' if ok else 'rejected'}")

    print()
    print(f"{'Int':>4} {'Budget':>9} {'Pop':>4} {'Idle':>4} {'Mult':>5} {'Day':>4} {'Walk':>4}")
    print("-" * 42)
    interval = config.income_interval_ms
    for i in range(config.cycle_length * 2):
        engine.tick(interval)
        info = engine.time_cycle_info()
        print(
            f"{i + 1:4d} {engine.budget:9.1f} {engine.population:4d} "
            f"{engine.unemployed_workers:4d} {engine.production_multiplier:5.2f} "
            f"{'yes' if info['is_day'] else 'no':>4} {len(engine.villagers()):4d}"
        )


if __name__ == "__main__":
    main()
