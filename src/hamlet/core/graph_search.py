"""
Generic graph search over implicit graphs.

Graphs are described only by a neighbour function, so callers never
build an explicit adjacency structure.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Hashable, Iterable, TypeVar

Node = TypeVar("Node", bound=Hashable)


def breadth_first(
    start: Node,
    neighbors: Callable[[Node], Iterable[Node]],
    max_depth: int,
) -> list[tuple[Node, int]]:
    """Breadth-first expansion from ``start`` up to ``max_depth`` hops.

    Args:
        start: Node to expand from. It is never part of the result.
        neighbors: Returns the nodes adjacent to a node.
        max_depth: Maximum hop count (inclusive). Non-positive values
            yield an empty result.

    Returns:
        (node, depth) pairs in discovery order. Each node appears once.
    """
    if max_depth <= 0:
        return []

    visited: set[Node] = {start}
    frontier: deque[tuple[Node, int]] = deque([(start, 0)])
    found: list[tuple[Node, int]] = []

    while frontier:
        node, depth = frontier.popleft()
        if depth >= max_depth:
            continue
        for nxt in neighbors(node):
            if nxt in visited:
                continue
            visited.add(nxt)
            found.append((nxt, depth + 1))
            frontier.append((nxt, depth + 1))

    return found


def reachable_within(
    start: Node,
    neighbors: Callable[[Node], Iterable[Node]],
    max_depth: int,
) -> list[Node]:
    """Nodes within ``max_depth`` hops of ``start``, excluding ``start``."""
    return [node for node, _ in breadth_first(start, neighbors, max_depth)]
