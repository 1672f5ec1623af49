# logix-dispatch/logix_dispatch/__init__.py

from .models import (
    Algorithm,
    DispatchMode,
    EntityKind,
    Grid,
    Home,
    Hotel,
    Order,
    OrderStatus,
    PathResult,
    Position,
    Rider,
    RiderStatus,
    RoutePlan,
    TspMethod,
)
from .config import (
    GRID_ROWS,
    GRID_COLS,
    TICK_MS,
    COOKING_TIME_MS,
    BATCH_DISTANCE_THRESHOLD,
)
from .pathfinding import find_path
from .routing import build_route, optimize_route, solve_tsp
from .assignment import AssignmentResult, solve_assignment
from .dispatch import DispatchDecision, DispatchEngine, DispatchOutcome
from .world import World
from .simulation import Simulation
from .comparison import ComparisonResult, build_race_route, compare_algorithms, comparison_frame
from .scenarios import SCENARIOS, load_scenario

__version__ = "1.0.0"

__all__ = [
    # Models
    "Algorithm",
    "DispatchMode",
    "EntityKind",
    "Grid",
    "Home",
    "Hotel",
    "Order",
    "OrderStatus",
    "PathResult",
    "Position",
    "Rider",
    "RiderStatus",
    "RoutePlan",
    "TspMethod",
    # Core
    "World",
    "Simulation",
    "DispatchEngine",
    "DispatchDecision",
    "DispatchOutcome",
    "AssignmentResult",
    "ComparisonResult",
    # Functions
    "find_path",
    "build_route",
    "optimize_route",
    "solve_tsp",
    "solve_assignment",
    "compare_algorithms",
    "build_race_route",
    "comparison_frame",
    "load_scenario",
    "SCENARIOS",
    # Config
    "GRID_ROWS",
    "GRID_COLS",
    "TICK_MS",
    "COOKING_TIME_MS",
    "BATCH_DISTANCE_THRESHOLD",
]
