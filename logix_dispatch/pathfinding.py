# logix-dispatch/logix_dispatch/pathfinding.py
"""
Grid Pathfinder for the LogiX grid delivery simulation.

One best-first search over the implicit 4-connected grid graph, shared by
three strategies that differ only in the frontier key:

1. **Dijkstra (uniform cost)**: key = distance from start.
   Shortest path in hop count.

2. **Greedy best-first**: key = Manhattan distance to goal.
   Fast, not optimal; obstacles can lead it astray.

3. **A***: key = distance from start + Manhattan distance to goal.
   Optimal on this grid while usually expanding fewer nodes than Dijkstra.

A cell is marked visited when it is first enqueued, so it never appears in
the frontier twice. Walls are never enqueued. Ties on the primary key are
broken by the smaller distance from start, then by insertion order; the
secondary key keeps A* optimal under enqueue-time marking.
"""

from __future__ import annotations

import heapq
import logging
import time
from dataclasses import dataclass
from typing import Callable, Collection, Dict, List, Optional, Tuple, Union

from . import config
from .models import Algorithm, Position, PathResult
from .utils import get_neighbors, manhattan_distance

logger = logging.getLogger(__name__)


@dataclass
class PathNode:
    """A frontier entry: cell, distance from start, and back-pointer."""
    pos: Position
    distance: int
    parent: Optional["PathNode"] = None


KeyFunction = Callable[[PathNode, Position], int]

PRIORITY_KEYS: Dict[Algorithm, KeyFunction] = {
    Algorithm.DIJKSTRA: lambda node, goal: node.distance,
    Algorithm.GREEDY: lambda node, goal: manhattan_distance(node.pos, goal),
    Algorithm.ASTAR: lambda node, goal: node.distance + manhattan_distance(node.pos, goal),
}


def coerce_algorithm(algorithm: Union[Algorithm, str]) -> Algorithm:
    if isinstance(algorithm, Algorithm):
        return algorithm
    try:
        return Algorithm(str(algorithm).upper())
    except ValueError:
        raise ValueError(
            f"Unknown algorithm {algorithm!r}. Options: {', '.join(a.value for a in Algorithm)}"
        ) from None


def _reconstruct(node: PathNode) -> List[Position]:
    path: List[Position] = []
    curr: Optional[PathNode] = node
    while curr is not None:
        path.append(curr.pos)
        curr = curr.parent
    path.reverse()
    return path


def find_path(
    start: Tuple[int, int],
    end: Tuple[int, int],
    walls: Collection[Position],
    algorithm: Union[Algorithm, str] = Algorithm.DIJKSTRA,
    rows: int = config.GRID_ROWS,
    cols: int = config.GRID_COLS,
) -> Optional[PathResult]:
    """
    Find a route from ``start`` to ``end`` avoiding walls.

    Args:
        start: Starting cell
        end: Goal cell
        walls: Impassable cells
        algorithm: DIJKSTRA, GREEDY or ASTAR (enum or name)
        rows: Grid height
        cols: Grid width

    Returns:
        PathResult with the path (start and end inclusive), expanded node
        count, enqueue order and search time; None when the goal cannot be
        reached (walled off, a wall itself, or outside the grid).
    """
    algo = coerce_algorithm(algorithm)
    key_fn = PRIORITY_KEYS[algo]
    start = Position(*start)
    end = Position(*end)
    wall_set = walls if isinstance(walls, (set, frozenset)) else set(walls)

    started = time.perf_counter()

    if not (0 <= start.row < rows and 0 <= start.col < cols):
        logger.debug("Start %s outside %dx%d grid", start, rows, cols)
        return None
    if not (0 <= end.row < rows and 0 <= end.col < cols):
        logger.debug("Goal %s outside %dx%d grid", end, rows, cols)
        return None

    counter = 0
    root = PathNode(pos=start, distance=0)
    frontier: List[Tuple[int, int, int, PathNode]] = [(key_fn(root, end), 0, counter, root)]
    visited = {start}
    visited_order: List[Position] = [start]
    visited_count = 0

    while frontier:
        _, _, _, current = heapq.heappop(frontier)
        visited_count += 1

        if current.pos == end:
            return PathResult(
                path=_reconstruct(current),
                visited_count=visited_count,
                visited_order=visited_order,
                execution_time_ms=(time.perf_counter() - started) * 1000,
            )

        for neighbor in get_neighbors(current.pos, rows, cols):
            if neighbor in visited or neighbor in wall_set:
                continue
            visited.add(neighbor)
            visited_order.append(neighbor)
            node = PathNode(pos=neighbor, distance=current.distance + 1, parent=current)
            counter += 1
            heapq.heappush(frontier, (key_fn(node, end), node.distance, counter, node))

    logger.debug("%s found no path %s -> %s after %d expansions", algo.value, start, end, visited_count)
    return None


def path_length(
    start: Tuple[int, int],
    end: Tuple[int, int],
    walls: Collection[Position],
    algorithm: Union[Algorithm, str] = Algorithm.ASTAR,
    rows: int = config.GRID_ROWS,
    cols: int = config.GRID_COLS,
) -> Optional[int]:
    """Steps on the route from ``start`` to ``end``, or None if unreachable."""
    result = find_path(start, end, walls, algorithm, rows, cols)
    return result.length if result is not None else None
