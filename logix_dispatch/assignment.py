# logix-dispatch/logix_dispatch/assignment.py
"""
Assignment Solver: minimum-total-cost matching of riders to targets.

Exhaustive backtracking over riders in index order. At each rider every
unused target is tried, and the rider may also be left out while enough
riders remain to cover the remaining targets. A partial assignment whose
cost already meets or exceeds the best complete one is pruned.

The matching always has ``min(riders, targets)`` pairs; extra riders (or
extra targets) stay unmatched. The search is exponential, so it only runs
when both sides have at most ``config.MAX_EXACT_ASSIGNMENT_SIZE`` entries.
Larger pools fall back to a greedy cheapest-pair matching.

Costs must be non-negative for the pruning to be exact.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from . import config
from .models import Position
from .utils import manhattan_distance

logger = logging.getLogger(__name__)


@dataclass
class AssignmentResult:
    """One matched pair and its cost."""
    rider_index: int
    target_index: int
    cost: float


def build_cost_matrix(
    rider_positions: Sequence[Position],
    target_positions: Sequence[Position],
    rider_weights: Optional[Sequence[float]] = None,
) -> List[List[float]]:
    """
    Manhattan cost of each rider reaching each target.

    Args:
        rider_positions: One cell per rider
        target_positions: One cell per target
        rider_weights: Optional per-rider surcharge added to every entry of
            that rider's row (the fairness mode passes weighted earnings)

    Returns:
        cost[i][j] for rider i and target j
    """
    matrix: List[List[float]] = []
    for i, rider_pos in enumerate(rider_positions):
        surcharge = rider_weights[i] if rider_weights is not None else 0.0
        matrix.append([
            manhattan_distance(rider_pos, target_pos) + surcharge
            for target_pos in target_positions
        ])
    return matrix


def total_cost(results: Sequence[AssignmentResult]) -> float:
    return sum(r.cost for r in results)


def _solve_exact(cost: List[List[float]], n: int, m: int) -> List[AssignmentResult]:
    required = min(n, m)
    used = [False] * m
    current = [-1] * n
    best_cost = float('inf')
    best_assignment: List[int] = [-1] * n

    def backtrack(rider_idx: int, matched: int, cost_so_far: float) -> None:
        nonlocal best_cost, best_assignment
        if cost_so_far >= best_cost:
            return  # Pruning

        if rider_idx == n:
            if matched == required:
                best_cost = cost_so_far
                best_assignment = list(current)
            return

        for j in range(m):
            if used[j]:
                continue
            used[j] = True
            current[rider_idx] = j
            backtrack(rider_idx + 1, matched + 1, cost_so_far + cost[rider_idx][j])
            used[j] = False
            current[rider_idx] = -1

        # Leave this rider out only if the riders after it can still cover
        # every target that is left
        if n - rider_idx - 1 >= required - matched:
            backtrack(rider_idx + 1, matched, cost_so_far)

    backtrack(0, 0, 0.0)

    return [
        AssignmentResult(rider_index=i, target_index=j, cost=cost[i][j])
        for i, j in enumerate(best_assignment)
        if j != -1
    ]


def _solve_greedy(cost: List[List[float]], n: int, m: int) -> List[AssignmentResult]:
    """Repeatedly take the cheapest remaining (rider, target) pair."""
    pairs = sorted((cost[i][j], i, j) for i in range(n) for j in range(m))
    rider_used = [False] * n
    target_used = [False] * m
    results: List[AssignmentResult] = []
    for c, i, j in pairs:
        if rider_used[i] or target_used[j]:
            continue
        rider_used[i] = True
        target_used[j] = True
        results.append(AssignmentResult(rider_index=i, target_index=j, cost=c))
        if len(results) == min(n, m):
            break
    results.sort(key=lambda r: r.rider_index)
    return results


def solve_cost_matrix(cost: List[List[float]]) -> List[AssignmentResult]:
    """
    Minimum-cost one-to-one partial matching for an explicit cost matrix.

    Args:
        cost: cost[i][j] >= 0 for rider i and target j (rows may be empty)

    Returns:
        Matched pairs sorted by rider index
    """
    n = len(cost)
    m = len(cost[0]) if n else 0
    if n == 0 or m == 0:
        return []

    if n > config.MAX_EXACT_ASSIGNMENT_SIZE or m > config.MAX_EXACT_ASSIGNMENT_SIZE:
        logger.debug(
            "Assignment %dx%d exceeds exact limit %d; using greedy matching",
            n, m, config.MAX_EXACT_ASSIGNMENT_SIZE,
        )
        return _solve_greedy(cost, n, m)

    return _solve_exact(cost, n, m)


def solve_assignment(
    rider_positions: Sequence[Position],
    target_positions: Sequence[Position],
    rider_weights: Optional[Sequence[float]] = None,
) -> List[AssignmentResult]:
    """
    Match riders to targets minimizing total Manhattan cost.

    Args:
        rider_positions: Current cell of each rider
        target_positions: Cell of each target (hotel, home, ...)
        rider_weights: Optional non-negative per-rider surcharge

    Returns:
        (rider_index, target_index, cost) triples, one per matched rider,
        sorted by rider index. Riders beyond the number of targets get no
        entry.
    """
    cost = build_cost_matrix(rider_positions, target_positions, rider_weights)
    return solve_cost_matrix(cost)
