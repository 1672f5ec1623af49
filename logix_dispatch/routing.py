# logix-dispatch/logix_dispatch/routing.py
"""
Route Optimizer for multi-stop delivery legs.

When a rider carries several orders it must visit several homes, starting
from its current cell (normally the hotel). Two sequencing policies:

- **Nearest neighbor** (``build_route``): repeatedly head for the closest
  remaining target by Manhattan distance, pathfinding each leg. This is the
  policy the live tick uses. An unreachable leg is skipped and the rider
  stays where it was for the next choice.
- **Exact** (``solve_tsp`` with OPTIMAL): try every permutation of the
  targets and keep the shortest Manhattan tour. Small N only; exposed to
  external tooling through ``optimize_route``.
"""

from __future__ import annotations

import logging
from itertools import permutations
from typing import Collection, List, Sequence, Union

from . import config
from .models import Algorithm, Position, RoutePlan, TspMethod
from .pathfinding import find_path
from .utils import manhattan_distance

logger = logging.getLogger(__name__)


def tour_length(start: Position, points: Sequence[Position]) -> int:
    """Manhattan length of visiting ``points`` in order from ``start`` (open tour)."""
    total = 0
    current = start
    for point in points:
        total += manhattan_distance(current, point)
        current = point
    return total


def nearest_neighbor_order(start: Position, targets: Sequence[Position]) -> List[int]:
    """
    Visiting order of ``targets`` by repeated nearest Manhattan neighbor.

    Ties go to the target listed first.

    Returns:
        Indices into ``targets``
    """
    remaining = list(range(len(targets)))
    order: List[int] = []
    current = start
    while remaining:
        nearest = min(remaining, key=lambda i: manhattan_distance(current, targets[i]))
        remaining.remove(nearest)
        order.append(nearest)
        current = targets[nearest]
    return order


def _optimal_order(start: Position, targets: Sequence[Position]) -> List[int]:
    """Exhaustive search over all visiting orders. O(n!) - callers bound n."""
    best_order: List[int] = list(range(len(targets)))
    best_dist = float('inf')
    for perm in permutations(range(len(targets))):
        dist = tour_length(start, [targets[i] for i in perm])
        if dist < best_dist:
            best_dist = dist
            best_order = list(perm)
    return best_order


def _visit_order(
    start: Position,
    targets: Sequence[Position],
    method: TspMethod,
) -> List[int]:
    if method == TspMethod.NAIVE:
        return list(range(len(targets)))
    if method == TspMethod.GREEDY:
        return nearest_neighbor_order(start, targets)
    if len(targets) > config.MAX_EXACT_TSP_TARGETS:
        logger.warning(
            "OPTIMAL TSP requested for %d targets (max %d); using nearest neighbor",
            len(targets), config.MAX_EXACT_TSP_TARGETS,
        )
        return nearest_neighbor_order(start, targets)
    return _optimal_order(start, targets)


def solve_tsp(
    start: Position,
    points: Sequence[Position],
    method: Union[TspMethod, str] = TspMethod.GREEDY,
) -> List[Position]:
    """
    Order ``points`` into a visiting sequence starting from ``start``.

    Args:
        start: Where the tour begins (not included in the result)
        points: Cells to visit
        method: NAIVE (input order), GREEDY (nearest neighbor) or OPTIMAL

    Returns:
        The points in visiting order
    """
    if not isinstance(method, TspMethod):
        method = TspMethod(str(method).upper())
    order = _visit_order(Position(*start), [Position(*p) for p in points], method)
    return [Position(*points[i]) for i in order]


def _stitch(
    start: Position,
    targets: Sequence[Position],
    order: Sequence[int],
    walls: Collection[Position],
    algorithm: Algorithm,
    rows: int,
    cols: int,
) -> RoutePlan:
    """Pathfind each leg in ``order`` and concatenate, skipping unreachable legs."""
    plan = RoutePlan()
    current = start
    for idx in order:
        leg = find_path(current, targets[idx], walls, algorithm, rows, cols)
        if leg is None:
            logger.debug("Skipping unreachable leg %s -> %s", current, targets[idx])
            plan.skipped.append(idx)
            continue
        # The first cell duplicates the previous leg's last cell
        plan.path.extend(leg.path[1:])
        plan.visit_order.append(idx)
        current = targets[idx]
    return plan


def build_route(
    start: Position,
    targets: Sequence[Position],
    walls: Collection[Position],
    algorithm: Union[Algorithm, str] = Algorithm.DIJKSTRA,
    rows: int = config.GRID_ROWS,
    cols: int = config.GRID_COLS,
) -> RoutePlan:
    """
    Nearest-neighbor multi-stop route used by the live simulation.

    Each step picks the remaining target closest (Manhattan) to the current
    cell, pathfinds to it and appends the leg. If the leg is unreachable the
    target is dropped and the current cell does not advance.

    Args:
        start: Rider's current cell
        targets: Cells to visit (duplicates allowed)
        walls: Impassable cells
        algorithm: Pathfinder strategy for each leg

    Returns:
        RoutePlan with the concatenated path (start excluded), the target
        indices in visiting order, and the skipped target indices
    """
    if not isinstance(algorithm, Algorithm):
        algorithm = Algorithm(str(algorithm).upper())
    start = Position(*start)
    targets = [Position(*t) for t in targets]

    plan = RoutePlan()
    remaining = list(range(len(targets)))
    current = start
    while remaining:
        nearest = min(remaining, key=lambda i: manhattan_distance(current, targets[i]))
        remaining.remove(nearest)
        leg = find_path(current, targets[nearest], walls, algorithm, rows, cols)
        if leg is None:
            logger.debug("Skipping unreachable leg %s -> %s", current, targets[nearest])
            plan.skipped.append(nearest)
            continue
        plan.path.extend(leg.path[1:])
        plan.visit_order.append(nearest)
        current = targets[nearest]
    return plan


def optimize_route(
    start: Position,
    points: Sequence[Position],
    walls: Collection[Position],
    method: Union[TspMethod, str] = TspMethod.OPTIMAL,
    algorithm: Union[Algorithm, str] = Algorithm.ASTAR,
    rows: int = config.GRID_ROWS,
    cols: int = config.GRID_COLS,
) -> RoutePlan:
    """
    Standalone route optimization: choose a visiting order with ``method``,
    then pathfind the legs in that order.

    Unlike ``build_route`` the order is fixed up front from Manhattan
    distances, so OPTIMAL gives the exact shortest Manhattan tour.
    """
    if not isinstance(method, TspMethod):
        method = TspMethod(str(method).upper())
    if not isinstance(algorithm, Algorithm):
        algorithm = Algorithm(str(algorithm).upper())
    start = Position(*start)
    targets = [Position(*p) for p in points]
    order = _visit_order(start, targets, method)
    return _stitch(start, targets, order, walls, algorithm, rows, cols)
