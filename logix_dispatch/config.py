# logix-dispatch/logix_dispatch/config.py
"""
Configuration parameters for the LogiX grid delivery simulation.

This module centralizes all tunable parameters, making it easy to:
- Resize the grid and change the tick period
- Tune the batching and dispatch heuristics
- Bound the exhaustive solvers to small problem sizes

Values that vary per run (grid size, tick, cooking time, algorithm,
dispatch mode) can be overridden on the ``Simulation`` constructor.
"""

from typing import Final

# =============================================================================
# GRID PARAMETERS
# =============================================================================

GRID_ROWS: int = 20
"""Default number of grid rows."""

GRID_COLS: int = 20
"""Default number of grid columns."""

# =============================================================================
# TIME CONSTANTS
# =============================================================================

TICK_MS: int = 50
"""Simulation tick period in milliseconds. Also the cooking decrement per tick."""

COOKING_TIME_MS: int = 15000
"""Cooking delay of a freshly placed order (15 seconds)."""

# =============================================================================
# RIDER PARAMETERS
# =============================================================================

RIDER_SPEED_MIN: float = 0.5
"""Lower bound for the random speed (cells per tick) of a placed rider."""

RIDER_SPEED_MAX: float = 1.5
"""Upper bound (exclusive) for the random speed of a placed rider."""

EARNINGS_PER_DELIVERY: float = 1.0
"""Earnings credited to a rider for every order it delivers."""

# =============================================================================
# DISPATCH STRATEGY PARAMETERS
# =============================================================================

BATCH_DISTANCE_THRESHOLD: Final[int] = 8
"""
Maximum Manhattan distance between a new order's home and a home already
in a rider's batch for the new order to ride along (smart batching).
"""

DEFAULT_ALGORITHM: str = "DIJKSTRA"
"""Pathfinder strategy used by the live loop: DIJKSTRA, GREEDY or ASTAR."""

DEFAULT_DISPATCH_MODE: str = "efficiency"
"""
Idle-rider selection policy:
- "efficiency": nearest rider to the hotel wins
- "fairness": Assignment Solver over a cost that favors low earners
"""

FAIRNESS_EARNINGS_WEIGHT: float = 0.5
"""
Cells of distance charged per unit of cumulative earnings in fairness mode.
Higher = spread work more evenly, at the cost of longer pickups.
"""

REQUEUE_STRANDED_ORDERS: bool = False
"""
When a rider finishes its route with orders it could not reach, either
drop them (False, legacy behavior) or clear their rider so the per-tick
sweep dispatches them again (True).
"""

# =============================================================================
# SOLVER BOUNDS
# =============================================================================

MAX_EXACT_ASSIGNMENT_SIZE: Final[int] = 8
"""
Largest rider or target count solved by exhaustive backtracking.
Above this the Assignment Solver falls back to greedy cheapest-pair matching.
"""

MAX_EXACT_TSP_TARGETS: Final[int] = 8
"""
Largest target count the permutation TSP solver accepts (8! = 40,320 tours).
Above this OPTIMAL falls back to nearest neighbor.
"""

# =============================================================================
# LOGGING
# =============================================================================

LOG_FORMAT: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
"""Format string used by the CLI when configuring logging."""

EVENT_LOG_SIZE: int = 200
"""Maximum number of advisory messages kept in ``Simulation.event_log``."""
