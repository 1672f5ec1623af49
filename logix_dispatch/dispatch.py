# logix-dispatch/logix_dispatch/dispatch.py
"""
Dispatch Engine for the LogiX grid delivery simulation.

Matches a new (or still unassigned) order to a rider. The policy is a
greedy, myopic cascade evaluated in priority order:

1. **Smart batching**: a rider already heading to (or waiting at) the
   order's hotel takes the order if one of its batched homes lies within
   ``BATCH_DISTANCE_THRESHOLD`` of the new home. Smallest detour wins.
2. **Idle dispatch**: an IDLE rider is sent to the hotel. Efficiency mode
   picks the nearest rider; fairness mode lets the Assignment Solver pick
   under an earnings-weighted cost. The rider needs a real path to the
   hotel, otherwise the order stays unassigned.
3. **Forced batching**: with no idle rider at all, the first rider en
   route to the hotel takes the order regardless of distance.
4. **Queue**: nobody can take it; the per-tick sweep retries later.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from . import config, scoring
from .assignment import solve_assignment
from .models import (
    Algorithm,
    DispatchMode,
    Order,
    OrderStatus,
    Position,
    Rider,
    RiderStatus,
)
from .orders import pending_orders
from .pathfinding import find_path
from .world import World

logger = logging.getLogger(__name__)

EN_ROUTE_STATUSES = (RiderStatus.MOVING_TO_HOTEL, RiderStatus.WAITING_FOR_FOOD)


class DispatchOutcome(Enum):
    """What the Dispatcher did with an order."""
    BATCHED = "BATCHED"
    DISPATCHED = "DISPATCHED"
    FORCED_BATCH = "FORCED_BATCH"
    QUEUED = "QUEUED"
    UNREACHABLE = "UNREACHABLE"
    INVALID = "INVALID"


@dataclass
class DispatchDecision:
    """
    Result of one dispatch attempt.

    Attributes:
        order_id: Order that was considered
        outcome: What happened
        rider_id: Rider now carrying the order, if any
        message: Advisory text for the event log
    """
    order_id: str
    outcome: DispatchOutcome
    rider_id: Optional[str] = None
    message: str = ""

    @property
    def assigned(self) -> bool:
        return self.outcome in (
            DispatchOutcome.BATCHED,
            DispatchOutcome.DISPATCHED,
            DispatchOutcome.FORCED_BATCH,
        )


def coerce_dispatch_mode(mode: Union[DispatchMode, str]) -> DispatchMode:
    if isinstance(mode, DispatchMode):
        return mode
    try:
        return DispatchMode(str(mode).lower())
    except ValueError:
        raise ValueError(
            f"Unknown dispatch mode {mode!r}. Options: {', '.join(m.value for m in DispatchMode)}"
        ) from None


class DispatchEngine:
    """
    Assigns orders to riders on a ``World``.

    The engine mutates riders and orders directly, so it must only run
    between tick phases (on order creation and in the end-of-tick sweep).

    Attributes:
        algorithm: Pathfinder strategy for the pickup leg
        mode: Idle-rider selection policy
        batch_threshold: Max Manhattan detour for smart batching
        fairness_weight: Cells charged per unit of earnings in fairness mode
    """

    def __init__(
        self,
        algorithm: Algorithm = Algorithm.DIJKSTRA,
        mode: Union[DispatchMode, str] = DispatchMode.EFFICIENCY,
        batch_threshold: Optional[int] = None,
        fairness_weight: Optional[float] = None,
    ) -> None:
        self.algorithm = algorithm
        self.mode = coerce_dispatch_mode(mode)
        self.batch_threshold = (
            config.BATCH_DISTANCE_THRESHOLD if batch_threshold is None else batch_threshold
        )
        self.fairness_weight = (
            config.FAIRNESS_EARNINGS_WEIGHT if fairness_weight is None else fairness_weight
        )

    # ------------------------------------------------------------------
    # Candidate selection
    # ------------------------------------------------------------------

    @staticmethod
    def _en_route_riders(world: World, hotel_id: str) -> List[Rider]:
        return [
            r for r in world.riders.values()
            if r.status in EN_ROUTE_STATUSES and r.target_entity_id == hotel_id
        ]

    def _batch_homes(self, world: World, rider: Rider) -> List[Position]:
        homes: List[Position] = []
        for oid in rider.assigned_order_ids:
            order = world.orders.get(oid)
            home = world.homes.get(order.home_id) if order is not None else None
            if home is not None:
                homes.append(home.pos)
        return homes

    def _find_batch_rider(
        self,
        world: World,
        home_pos: Position,
        en_route: List[Rider],
    ) -> Optional[Tuple[Rider, int]]:
        """En-route rider with the smallest qualifying detour (first listed on ties)."""
        best: Optional[Tuple[Rider, int]] = None
        for rider in en_route:
            detour = scoring.batch_detour(home_pos, self._batch_homes(world, rider))
            if not scoring.qualifies_for_batch(detour, self.batch_threshold):
                continue
            if best is None or detour < best[1]:
                best = (rider, detour)
        return best

    def _select_idle_rider(self, idle: List[Rider], hotel_pos: Position) -> Rider:
        """
        Pick the idle rider to send to ``hotel_pos``.

        Efficiency: lowest Manhattan distance, first listed on ties.
        Fairness: the Assignment Solver's pick for the single hotel target
        under distance plus earnings surcharge.
        """
        if self.mode == DispatchMode.FAIRNESS:
            weights = scoring.rider_weights(idle, self.mode, self.fairness_weight)
            matching = solve_assignment([r.pos for r in idle], [hotel_pos], weights)
            return idle[matching[0].rider_index]
        return min(idle, key=lambda r: scoring.dispatch_cost(r, hotel_pos, self.mode))

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    @staticmethod
    def _attach(rider: Rider, order: Order) -> None:
        rider.assigned_order_ids.append(order.order_id)
        order.rider_id = rider.entity_id

    def _send_idle_rider(
        self,
        world: World,
        rider: Rider,
        order: Order,
        hotel_id: str,
        hotel_pos: Position,
    ) -> bool:
        """Route an IDLE rider to the hotel. False if no path exists."""
        result = find_path(
            rider.pos, hotel_pos, world.grid.walls, self.algorithm, world.grid.rows, world.grid.cols,
        )
        if result is None:
            return False

        rider.status = RiderStatus.MOVING_TO_HOTEL
        rider.target_entity_id = hotel_id
        rider.path_queue = list(result.path[1:])
        rider.movement_accumulator = 0.0
        rider.delivery_queue = []
        rider.assigned_order_ids = []
        rider.trip_distance = 0
        self._attach(rider, order)
        return True

    def dispatch_order(self, world: World, order: Order) -> DispatchDecision:
        """
        Run the dispatch cascade for a single order.

        Args:
            world: Shared simulation state (mutated on success)
            order: An undelivered order with no rider

        Returns:
            DispatchDecision describing the outcome
        """
        if order.rider_id is not None or order.status == OrderStatus.DELIVERED:
            return DispatchDecision(
                order.order_id, DispatchOutcome.INVALID,
                rider_id=order.rider_id,
                message=f"Order {order.order_id} is not awaiting dispatch",
            )

        hotel = world.hotels.get(order.hotel_id)
        home = world.homes.get(order.home_id)
        if hotel is None or home is None:
            logger.warning("Order %s references a missing hotel or home", order.order_id)
            return DispatchDecision(
                order.order_id, DispatchOutcome.INVALID,
                message=f"Order {order.order_id} references a missing hotel or home",
            )

        en_route = self._en_route_riders(world, hotel.entity_id)

        # 1. Smart batching
        batch = self._find_batch_rider(world, home.pos, en_route)
        if batch is not None:
            rider, detour = batch
            self._attach(rider, order)
            logger.debug("Batched %s onto %s (detour %d)", order.order_id, rider.label, detour)
            return DispatchDecision(
                order.order_id, DispatchOutcome.BATCHED, rider.entity_id,
                f"Smart batching: {rider.label} takes order for {home.label} ({detour} cells from its batch)",
            )

        # 2. Idle dispatch
        idle = [r for r in world.riders.values() if r.status == RiderStatus.IDLE]
        if idle:
            rider = self._select_idle_rider(idle, hotel.pos)
            if not self._send_idle_rider(world, rider, order, hotel.entity_id, hotel.pos):
                logger.warning("No path from %s at %s to %s", rider.label, rider.pos, hotel.label)
                return DispatchDecision(
                    order.order_id, DispatchOutcome.UNREACHABLE,
                    message=f"No path for {rider.label} to {hotel.label}",
                )
            logger.info("Dispatched %s to %s for order %s", rider.label, hotel.label, order.order_id)
            return DispatchDecision(
                order.order_id, DispatchOutcome.DISPATCHED, rider.entity_id,
                f"{rider.label} dispatched to {hotel.label} ({self.mode.value})",
            )

        # 3. Forced batching
        if en_route:
            rider = en_route[0]
            self._attach(rider, order)
            logger.debug("Forced batch of %s onto %s", order.order_id, rider.label)
            return DispatchDecision(
                order.order_id, DispatchOutcome.FORCED_BATCH, rider.entity_id,
                f"All riders busy: {rider.label} takes extra order for {home.label}",
            )

        # 4. Queue
        return DispatchDecision(
            order.order_id, DispatchOutcome.QUEUED,
            message=f"No riders available; order for {home.label} queued",
        )

    def dispatch_pending(self, world: World) -> List[DispatchDecision]:
        """Retry every unassigned, undelivered order in placement order."""
        return [self.dispatch_order(world, order) for order in pending_orders(list(world.orders.values()))]
