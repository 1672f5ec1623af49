# logix-dispatch/logix_dispatch/utils.py
"""
Utility functions for the LogiX grid delivery simulation.

Provides grid geometry (Manhattan distance, 4-connected neighbors) and
tick/time conversions.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Tuple

from .models import Position

# Up, down, left, right. Neighbor generation order is part of the
# pathfinding tie-break and must stay fixed.
DIRECTIONS: Tuple[Tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


def manhattan_distance(a: Sequence[int], b: Sequence[int]) -> int:
    """
    Grid distance |drow| + |dcol|.

    This is the admissible heuristic used by the Pathfinder and the cost
    used by every batching, assignment and TSP decision.

    Example:
        >>> manhattan_distance((0, 0), (3, 4))
        7
    """
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def get_neighbors(pos: Position, rows: int, cols: int) -> List[Position]:
    """
    In-bounds 4-connected neighbors of ``pos`` (no diagonals).

    Walls are not filtered here; the caller decides what is passable.
    """
    neighbors: List[Position] = []
    for dr, dc in DIRECTIONS:
        nr, nc = pos[0] + dr, pos[1] + dc
        if 0 <= nr < rows and 0 <= nc < cols:
            neighbors.append(Position(nr, nc))
    return neighbors


def is_contiguous(path: Iterable[Position]) -> bool:
    """True if consecutive cells differ by exactly one step along one axis."""
    cells = list(path)
    return all(manhattan_distance(a, b) == 1 for a, b in zip(cells, cells[1:]))


def ticks_for_path(length: int, speed: float) -> int:
    """
    Ticks needed to drain a path of ``length`` cells at ``speed`` cells per tick,
    starting from an empty movement accumulator.
    """
    if length <= 0:
        return 0
    return math.ceil(length / speed - 1e-9)


def format_time_duration(seconds: float) -> str:
    """
    Format a duration in seconds as a human-readable string.

    Returns:
        Formatted string like "1m 05s" or "45s"
    """
    if seconds < 60:
        return f"{seconds:.0f}s"
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}m {secs:02d}s"


def parse_position(text: str) -> Position:
    """
    Parse "row,col" into a Position.

    Raises:
        ValueError: If the text is not two comma-separated integers
    """
    parts = text.split(",")
    if len(parts) != 2:
        raise ValueError(f"Expected 'row,col', got {text!r}")
    return Position(int(parts[0].strip()), int(parts[1].strip()))
