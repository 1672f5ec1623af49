# logix-dispatch/logix_dispatch/scoring.py
"""
Scoring functions for dispatch decisions.

Lower score = better candidate. Two policies share these helpers:

1. **Efficiency**: a rider's cost for an order is its Manhattan distance
   to the hotel. Nearest rider wins.
2. **Fairness**: the same distance plus a surcharge proportional to the
   rider's cumulative earnings, so riders who have earned less are
   preferred when distances are comparable. The Assignment Solver
   minimizes the total of these costs.

Batching uses ``batch_detour``: how far the new order's home is from the
closest home already in a rider's batch.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from . import config
from .models import DispatchMode, Position, Rider
from .utils import manhattan_distance


def pickup_distance(rider: Rider, hotel_pos: Position) -> int:
    """Manhattan distance from the rider's current cell to the hotel."""
    return manhattan_distance(rider.pos, hotel_pos)


def fairness_surcharge(rider: Rider, weight: Optional[float] = None) -> float:
    """
    Distance-equivalent penalty for a rider's past earnings.

    Args:
        rider: Candidate rider
        weight: Cells charged per unit of earnings (default from config)
    """
    if weight is None:
        weight = config.FAIRNESS_EARNINGS_WEIGHT
    return max(weight, 0.0) * max(rider.earnings, 0.0)


def rider_weights(
    riders: Sequence[Rider],
    mode: DispatchMode,
    weight: Optional[float] = None,
) -> Optional[List[float]]:
    """Per-rider surcharges for the Assignment Solver, or None in efficiency mode."""
    if mode != DispatchMode.FAIRNESS:
        return None
    return [fairness_surcharge(r, weight) for r in riders]


def dispatch_cost(
    rider: Rider,
    hotel_pos: Position,
    mode: DispatchMode = DispatchMode.EFFICIENCY,
    weight: Optional[float] = None,
) -> float:
    """
    Cost for an idle rider to take an order at ``hotel_pos``.

    Efficiency: pickup distance. Fairness: pickup distance plus the
    earnings surcharge.
    """
    cost = float(pickup_distance(rider, hotel_pos))
    if mode == DispatchMode.FAIRNESS:
        cost += fairness_surcharge(rider, weight)
    return cost


def batch_detour(new_home: Position, batch_homes: Iterable[Position]) -> Optional[int]:
    """
    Smallest Manhattan distance from ``new_home`` to any home in a batch.

    Returns:
        The distance, or None for an empty batch
    """
    distances = [manhattan_distance(new_home, home) for home in batch_homes]
    return min(distances) if distances else None


def qualifies_for_batch(detour: Optional[int], threshold: Optional[int] = None) -> bool:
    """True if a batch detour is within the batching threshold."""
    if detour is None:
        return False
    if threshold is None:
        threshold = config.BATCH_DISTANCE_THRESHOLD
    return detour <= threshold
