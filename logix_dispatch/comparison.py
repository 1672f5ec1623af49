# logix-dispatch/logix_dispatch/comparison.py
"""
Head-to-head comparison of the three Pathfinder strategies.

``compare_algorithms`` runs DIJKSTRA, GREEDY and ASTAR over the same
multi-waypoint route and returns per-strategy totals. It is pure and
read-only; visualization and benchmark reporting consume its output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Collection, List, Optional, Sequence, Tuple

import pandas as pd

from . import config
from .models import Algorithm, PathResult, Position
from .pathfinding import find_path


@dataclass
class ComparisonResult:
    """One strategy's run over the whole route. ``metrics`` is None if any leg failed."""
    algorithm: Algorithm
    metrics: Optional[PathResult]

    @property
    def found(self) -> bool:
        return self.metrics is not None


def _run_route(
    points: Sequence[Position],
    walls: Collection[Position],
    algorithm: Algorithm,
    rows: int,
    cols: int,
) -> Optional[PathResult]:
    path: List[Position] = []
    visited_order: List[Position] = []
    visited_count = 0
    elapsed_ms = 0.0

    for i, (a, b) in enumerate(zip(points, points[1:])):
        leg = find_path(a, b, walls, algorithm, rows, cols)
        if leg is None:
            return None
        path.extend(leg.path if i == 0 else leg.path[1:])
        visited_order.extend(leg.visited_order)
        visited_count += leg.visited_count
        elapsed_ms += leg.execution_time_ms

    return PathResult(
        path=path,
        visited_count=visited_count,
        visited_order=visited_order,
        execution_time_ms=elapsed_ms,
    )


def compare_algorithms(
    start: Tuple[int, int],
    end: Tuple[int, int],
    walls: Collection[Position],
    waypoints: Sequence[Tuple[int, int]] = (),
    rows: int = config.GRID_ROWS,
    cols: int = config.GRID_COLS,
) -> List[ComparisonResult]:
    """
    Run every strategy over start -> waypoints... -> end.

    Each leg is searched independently; paths are concatenated without
    repeating the shared joint cell, and visited counts, enqueue orders
    and timings are summed over legs.

    Returns:
        One ComparisonResult per strategy in DIJKSTRA, GREEDY, ASTAR order
    """
    points = [Position(*start)] + [Position(*w) for w in waypoints] + [Position(*end)]
    wall_set = frozenset(Position(*w) for w in walls)
    return [
        ComparisonResult(algorithm=algo, metrics=_run_route(points, wall_set, algo, rows, cols))
        for algo in Algorithm
    ]


def build_race_route(
    start: Tuple[int, int],
    stops: Sequence[Tuple[Tuple[int, int], Tuple[int, int]]],
) -> Tuple[Position, List[Position], Position]:
    """
    Turn a rider and an ordered list of (hotel, home) stops into a race route.

    The route is Rider -> Hotel1 -> Home1 -> Hotel2 -> ... -> HomeN; every
    hotel and every home except the last becomes a waypoint.

    Returns:
        (start, waypoints, end)

    Raises:
        ValueError: If ``stops`` is empty
    """
    if not stops:
        raise ValueError("A race route needs at least one (hotel, home) stop")
    waypoints: List[Position] = []
    for i, (hotel, home) in enumerate(stops):
        waypoints.append(Position(*hotel))
        if i < len(stops) - 1:
            waypoints.append(Position(*home))
    return Position(*start), waypoints, Position(*stops[-1][1])


def comparison_frame(results: Sequence[ComparisonResult]) -> pd.DataFrame:
    """
    Tabulate comparison results, one row per strategy.

    Columns: algorithm, found, path_length, visited_count, execution_time_ms.
    Failed strategies get NaN metrics.
    """
    rows = []
    for result in results:
        metrics = result.metrics
        rows.append({
            "algorithm": result.algorithm.value,
            "found": result.found,
            "path_length": metrics.length if metrics else None,
            "visited_count": metrics.visited_count if metrics else None,
            "execution_time_ms": round(metrics.execution_time_ms, 4) if metrics else None,
        })
    return pd.DataFrame(rows, columns=["algorithm", "found", "path_length", "visited_count", "execution_time_ms"])
