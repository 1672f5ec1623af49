# logix-dispatch/logix_dispatch/models.py
"""
Core domain models for the LogiX grid delivery simulation.

This module defines the fundamental data structures used throughout the simulation:
- Position / Grid: the walled 2D surface riders move on
- Hotel, Home, Rider: the entity variants placed on the grid
- Order: a meal cooked at a hotel and delivered to a home
- PathResult / RoutePlan: outputs of the pathfinding and routing layers

Entities reference each other by id only. The ``World`` aggregate owns
the collections; nothing here holds a live reference to another entity.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, NamedTuple, Optional, Set, Union


class Position(NamedTuple):
    """A grid cell as (row, col). Immutable, compared by value."""
    row: int
    col: int

    def __repr__(self) -> str:
        return f"({self.row},{self.col})"


class Algorithm(Enum):
    """Search strategies understood by the Pathfinder."""
    DIJKSTRA = "DIJKSTRA"  # Uniform cost, key = g
    GREEDY = "GREEDY"      # Greedy best-first, key = h
    ASTAR = "ASTAR"        # A*, key = g + h


class DispatchMode(Enum):
    """Idle-rider selection policy used by the Dispatcher."""
    EFFICIENCY = "efficiency"  # Nearest rider to the hotel wins
    FAIRNESS = "fairness"      # Assignment Solver weighted toward low earners


class TspMethod(Enum):
    """Visiting-order strategies offered by the route-optimization utility."""
    NAIVE = "NAIVE"      # Keep the input order
    GREEDY = "GREEDY"    # Nearest neighbor
    OPTIMAL = "OPTIMAL"  # Exhaustive permutations (small N only)


class EntityKind(Enum):
    """Tag shared by every entity variant."""
    RIDER = "RIDER"
    HOTEL = "HOTEL"
    HOME = "HOME"


class RiderStatus(Enum):
    """
    States of the rider state machine.

    IDLE -> MOVING_TO_HOTEL -> WAITING_FOR_FOOD -> DELIVERING -> RETURNING -> IDLE
    DELIVERING may drop straight to IDLE when no hotel is reachable.
    """
    IDLE = "IDLE"
    MOVING_TO_HOTEL = "MOVING_TO_HOTEL"
    WAITING_FOR_FOOD = "WAITING_FOR_FOOD"
    DELIVERING = "DELIVERING"
    RETURNING = "RETURNING"


class OrderStatus(Enum):
    """Lifecycle states for an order. Only ever moves forward."""
    COOKING = "COOKING"
    READY = "READY"
    DELIVERED = "DELIVERED"


ORDER_STATUS_RANK = {
    OrderStatus.COOKING: 0,
    OrderStatus.READY: 1,
    OrderStatus.DELIVERED: 2,
}


@dataclass
class Grid:
    """
    Static occupancy surface: dimensions plus a set of wall cells.

    Walls may change between ticks through ``toggle_wall``; the tick only
    ever reads them.
    """
    rows: int
    cols: int
    walls: Set[Position] = field(default_factory=set)

    def __post_init__(self) -> None:
        if self.rows < 1 or self.cols < 1:
            raise ValueError(f"Grid dimensions must be >= 1, got {self.rows}x{self.cols}")
        self.walls = {Position(*w) for w in self.walls}
        for wall in self.walls:
            if not self.in_bounds(wall):
                raise ValueError(f"Wall {wall} lies outside a {self.rows}x{self.cols} grid")

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos[0] < self.rows and 0 <= pos[1] < self.cols

    def is_wall(self, pos: Position) -> bool:
        return Position(*pos) in self.walls

    def is_passable(self, pos: Position) -> bool:
        return self.in_bounds(pos) and not self.is_wall(pos)

    def toggle_wall(self, pos: Position) -> bool:
        """Flip a cell between wall and open. Returns True if it is now a wall."""
        pos = Position(*pos)
        if not self.in_bounds(pos):
            raise ValueError(f"Cannot toggle wall at {pos}: outside the grid")
        if pos in self.walls:
            self.walls.discard(pos)
            return False
        self.walls.add(pos)
        return True


@dataclass
class Hotel:
    """A restaurant where orders are cooked and picked up."""
    entity_id: str
    pos: Position
    label: str
    kind: EntityKind = field(default=EntityKind.HOTEL, init=False)


@dataclass
class Home:
    """A customer location where orders are delivered."""
    entity_id: str
    pos: Position
    label: str
    kind: EntityKind = field(default=EntityKind.HOME, init=False)


@dataclass
class Rider:
    """
    A courier moving over the grid.

    Attributes:
        entity_id: Unique identifier
        pos: Current cell
        label: Display label (R1, R2, ...)
        speed: Cells per tick, may be fractional

    Dynamic State:
        status: Current state machine state
        path_queue: Cells still to traverse, excluding the current cell
        assigned_order_ids: Orders carried or awaiting pickup, in assignment order
        target_entity_id: Hotel being approached; cleared once the delivery route is set
        delivery_queue: Planned visiting order of undelivered orders on the delivery leg
        movement_accumulator: Fractional progress toward the next cell

    Stats:
        trip_distance: Cells moved since the rider was last dispatched from IDLE
        total_distance: Cells moved since placement
        earnings: Cumulative earnings (drives fairness dispatch)
        deliveries: Orders delivered
    """
    entity_id: str
    pos: Position
    label: str
    speed: float = 1.0

    status: RiderStatus = RiderStatus.IDLE
    path_queue: List[Position] = field(default_factory=list)
    assigned_order_ids: List[str] = field(default_factory=list)
    target_entity_id: Optional[str] = None
    delivery_queue: List[str] = field(default_factory=list)
    movement_accumulator: float = 0.0

    trip_distance: int = 0
    total_distance: int = 0
    earnings: float = 0.0
    deliveries: int = 0
    kind: EntityKind = field(default=EntityKind.RIDER, init=False)

    def __post_init__(self) -> None:
        if self.speed <= 0:
            raise ValueError(f"Rider speed must be positive, got {self.speed}")

    @property
    def is_moving(self) -> bool:
        return len(self.path_queue) > 0

    def copy(self) -> Rider:
        """Working copy with its own lists, safe to mutate during a tick."""
        return replace(
            self,
            path_queue=list(self.path_queue),
            assigned_order_ids=list(self.assigned_order_ids),
            delivery_queue=list(self.delivery_queue),
        )

    def __repr__(self) -> str:
        return f"Rider({self.label}, {self.status.value}, at={self.pos}, orders={len(self.assigned_order_ids)})"


Entity = Union[Rider, Hotel, Home]


@dataclass
class Order:
    """
    A meal cooked at a hotel and delivered to a home.

    Attributes:
        order_id: Unique identifier
        home_id / hotel_id: Fixed entities, looked up by id when needed
        cooking_time_remaining_ms: Countdown until READY, clamped at zero
        created_at_ms: Simulation clock when the order was placed
        rider_id: Assigned rider, None while queued
        status: COOKING -> READY -> DELIVERED

    Stats (populated at pickup and delivery):
        pickup_time_ms: Simulation clock at pickup
        delivered_at_ms: Simulation clock at delivery
        actual_delivery_ms: Delivery time measured from pickup
        distance_covered: Cells the carrying rider moved from dispatch to delivery
    """
    order_id: str
    home_id: str
    hotel_id: str
    cooking_time_remaining_ms: int
    created_at_ms: int = 0
    rider_id: Optional[str] = None
    status: OrderStatus = OrderStatus.COOKING

    pickup_time_ms: Optional[int] = None
    delivered_at_ms: Optional[int] = None
    actual_delivery_ms: Optional[int] = None
    distance_covered: Optional[int] = None

    @property
    def is_assigned(self) -> bool:
        return self.rider_id is not None

    def __repr__(self) -> str:
        return f"Order({self.order_id}, {self.status.value}, rider={self.rider_id})"


@dataclass
class PathResult:
    """
    Result of a single Pathfinder search.

    Attributes:
        path: Cells from start to end inclusive
        visited_count: Nodes dequeued (expanded) before reaching the goal
        visited_order: Cells in the order they were first enqueued, start first
        execution_time_ms: Wall-clock search time
    """
    path: List[Position]
    visited_count: int
    visited_order: List[Position]
    execution_time_ms: float = 0.0

    @property
    def length(self) -> int:
        """Number of steps (edges) in the path."""
        return max(len(self.path) - 1, 0)


@dataclass
class RoutePlan:
    """
    A multi-stop route produced by the Route Optimizer.

    Attributes:
        path: Concatenated cells to traverse, excluding the start cell
        visit_order: Target indices in the order they are reached
        skipped: Target indices whose leg was unreachable
    """
    path: List[Position] = field(default_factory=list)
    visit_order: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.path)
