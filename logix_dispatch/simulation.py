# logix-dispatch/logix_dispatch/simulation.py
"""
Simulation Engine for the LogiX grid delivery simulation.

Discrete-time loop over a ``World``. Each tick runs in phases:

0. Cooking timers advance (COOKING -> READY).
1. Every rider is planned against a snapshot of the orders taken at tick
   start: movement along its path queue, deliveries at homes it enters,
   and at most one state machine transition. Planning works on a copy of
   the rider and records order events instead of applying them.
2. All plans are committed together: riders replaced, pickups and
   deliveries stamped, stranded orders released, path trace updated.
3. The Dispatcher sweeps orders that are still unassigned.

Rider states:
    IDLE -> MOVING_TO_HOTEL -> WAITING_FOR_FOOD -> DELIVERING -> RETURNING -> IDLE

A failure while planning one rider is logged and leaves that rider as it
was; the other riders still advance.
"""

from __future__ import annotations

import logging
import math
import random
import statistics
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Any, Deque, Dict, List, Mapping, Optional, Set, Tuple, Union

from . import config
from .dispatch import DispatchDecision, DispatchEngine, DispatchOutcome, coerce_dispatch_mode
from .models import (
    Algorithm,
    DispatchMode,
    Entity,
    Home,
    Hotel,
    Order,
    OrderStatus,
    Position,
    Rider,
    RiderStatus,
)
from .orders import advance_cooking, create_order, record_delivery, record_pickup, release
from .pathfinding import coerce_algorithm, find_path
from .routing import build_route
from .utils import format_time_duration, manhattan_distance
from .world import World, WorldSnapshot

logger = logging.getLogger(__name__)

# Absorbs float drift from repeatedly adding fractional speeds
MOVE_EPSILON = 1e-9


@dataclass
class RiderPlan:
    """
    Everything one rider intends to change during a tick.

    Attributes:
        rider: Updated working copy of the rider
        cells_entered: Cells moved into this tick, in order
        pickups: Orders picked up at the hotel
        deliveries: (order_id, distance covered) for orders delivered
        released: Stranded orders to hand back to the dispatch queue
        messages: Advisory text for the event log
    """
    rider: Rider
    cells_entered: List[Position] = field(default_factory=list)
    pickups: List[str] = field(default_factory=list)
    deliveries: List[Tuple[str, int]] = field(default_factory=list)
    released: List[str] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)


class Simulation:
    """
    Tick-driven delivery simulation.

    Attributes:
        world: Grid, entities and orders
        engine: Dispatcher used on order creation and in the per-tick sweep
        tick_count: Ticks run so far
        clock_ms: Simulation clock (tick_count * tick_ms)
        path_trace: Every cell any rider has entered
        distance_traveled: Total cells moved by all riders
        event_log: Most recent advisory messages, oldest first
    """

    def __init__(
        self,
        rows: int = config.GRID_ROWS,
        cols: int = config.GRID_COLS,
        tick_ms: int = config.TICK_MS,
        cooking_time_ms: int = config.COOKING_TIME_MS,
        algorithm: Union[Algorithm, str] = config.DEFAULT_ALGORITHM,
        dispatch_mode: Union[DispatchMode, str] = config.DEFAULT_DISPATCH_MODE,
        seed: Optional[int] = None,
        requeue_stranded: Optional[bool] = None,
    ) -> None:
        if tick_ms <= 0:
            raise ValueError(f"Tick length must be positive, got {tick_ms}")
        if cooking_time_ms < 0:
            raise ValueError(f"Cooking time must be non-negative, got {cooking_time_ms}")

        self.rng = random.Random(seed)
        self.world = World(rows, cols, rng=self.rng)
        self.engine = DispatchEngine(coerce_algorithm(algorithm), coerce_dispatch_mode(dispatch_mode))
        self.tick_ms = tick_ms
        self.cooking_time_ms = cooking_time_ms
        self.requeue_stranded = (
            config.REQUEUE_STRANDED_ORDERS if requeue_stranded is None else requeue_stranded
        )

        self.tick_count: int = 0
        self.clock_ms: int = 0
        self.path_trace: Set[Position] = set()
        self.distance_traveled: int = 0
        self.event_log: Deque[str] = deque(maxlen=config.EVENT_LOG_SIZE)

    # ------------------------------------------------------------------
    # Configuration toggles
    # ------------------------------------------------------------------

    @property
    def algorithm(self) -> Algorithm:
        return self.engine.algorithm

    @algorithm.setter
    def algorithm(self, value: Union[Algorithm, str]) -> None:
        self.engine.algorithm = coerce_algorithm(value)

    @property
    def dispatch_mode(self) -> DispatchMode:
        return self.engine.mode

    @dispatch_mode.setter
    def dispatch_mode(self, value: Union[DispatchMode, str]) -> None:
        self.engine.mode = coerce_dispatch_mode(value)

    # ------------------------------------------------------------------
    # World editing (thin pass-throughs)
    # ------------------------------------------------------------------

    def add_rider(self, pos: Tuple[int, int], speed: Optional[float] = None, **kwargs: Any) -> Rider:
        rider = self.world.add_rider(pos, speed=speed, **kwargs)
        logger.info("Placed rider %s at %s (speed %.2f)", rider.label, rider.pos, rider.speed)
        return rider

    def add_hotel(self, pos: Tuple[int, int], **kwargs: Any) -> Hotel:
        return self.world.add_hotel(pos, **kwargs)

    def add_home(self, pos: Tuple[int, int], **kwargs: Any) -> Home:
        return self.world.add_home(pos, **kwargs)

    def remove_entity(self, entity_id: str) -> Entity:
        return self.world.remove_entity(entity_id)

    def toggle_wall(self, pos: Tuple[int, int]) -> bool:
        return self.world.toggle_wall(pos)

    def is_wall(self, pos: Tuple[int, int]) -> bool:
        return self.world.is_wall(pos)

    def get_rider(self, rider_id: str) -> Optional[Rider]:
        return self.world.riders.get(rider_id)

    def get_order(self, order_id: str) -> Optional[Order]:
        return self.world.orders.get(order_id)

    def snapshot(self) -> WorldSnapshot:
        return self.world.snapshot()

    def clear(self) -> None:
        """Empty the world and reset the trace. The clock keeps running."""
        self.world.clear()
        self.path_trace.clear()
        self.distance_traveled = 0
        self._announce("Grid cleared")

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def _announce(self, message: str) -> None:
        self.event_log.append(message)

    def _record_decision(self, decision: DispatchDecision) -> None:
        if decision.message:
            self._announce(decision.message)

    def create_order(self, home_id: str, hotel_id: str) -> Optional[Order]:
        """
        Place an order and dispatch it immediately.

        Returns:
            The new order (possibly still unassigned), or None if the home
            or hotel does not exist
        """
        home = self.world.homes.get(home_id)
        hotel = self.world.hotels.get(hotel_id)
        if home is None or hotel is None:
            logger.warning("Cannot place order: unknown home %r or hotel %r", home_id, hotel_id)
            self._announce("Order rejected: unknown home or hotel")
            return None

        order = create_order(
            home.entity_id, hotel.entity_id,
            created_at_ms=self.clock_ms,
            cooking_time_ms=self.cooking_time_ms,
        )
        self.world.orders[order.order_id] = order
        logger.info("Order %s placed: %s -> %s", order.order_id, hotel.label, home.label)
        self._record_decision(self.engine.dispatch_order(self.world, order))
        return order

    def place_random_order(self) -> Optional[Order]:
        """Order from a random hotel to a random home, if both kinds exist."""
        if not self.world.homes or not self.world.hotels:
            self._announce("Need at least one home and one hotel for auto orders")
            return None
        home = self.rng.choice(list(self.world.homes.values()))
        hotel = self.rng.choice(list(self.world.hotels.values()))
        return self.create_order(home.entity_id, hotel.entity_id)

    def estimate_delivery_seconds(self, order_id: str) -> Optional[int]:
        """
        Rough time until an order reaches its home, in whole seconds.

        Returns:
            0 once delivered; None for an unknown or unassigned order, a
            reference to a removed entity, or a rider that is no longer
            carrying the order
        """
        order = self.world.orders.get(order_id)
        if order is None:
            return None
        if order.status == OrderStatus.DELIVERED:
            return 0
        if order.rider_id is None:
            return None

        rider = self.world.riders.get(order.rider_id)
        hotel = self.world.hotels.get(order.hotel_id)
        home = self.world.homes.get(order.home_id)
        if rider is None or hotel is None or home is None:
            return None

        ms_per_cell = self.tick_ms / rider.speed

        if rider.status == RiderStatus.DELIVERING:
            if order.order_id not in rider.delivery_queue:
                return None
            try:
                cells = rider.path_queue.index(home.pos) + 1
            except ValueError:
                cells = len(rider.path_queue)
            return math.ceil(cells * ms_per_cell / 1000)

        if rider.status not in (RiderStatus.MOVING_TO_HOTEL, RiderStatus.WAITING_FOR_FOOD):
            return None

        arrival_ms = len(rider.path_queue) * ms_per_cell
        cooking_ms = max(
            (o.cooking_time_remaining_ms for o in self.world.orders_for_rider(rider.entity_id)),
            default=0,
        )
        wait_ms = max(0.0, cooking_ms - arrival_ms)
        leg_ms = manhattan_distance(hotel.pos, home.pos) * ms_per_cell
        return math.ceil((arrival_ms + wait_ms + leg_ms) / 1000)

    # ------------------------------------------------------------------
    # Rider planning (phase 1)
    # ------------------------------------------------------------------

    def _deliver_here(self, rider: Rider, plan: RiderPlan) -> None:
        """Deliver every order on the delivery leg whose home is the rider's cell."""
        for oid in list(rider.delivery_queue):
            order = self.world.orders.get(oid)
            home = self.world.homes.get(order.home_id) if order is not None else None
            if home is None or home.pos != rider.pos:
                continue
            rider.delivery_queue.remove(oid)
            rider.earnings += config.EARNINGS_PER_DELIVERY
            rider.deliveries += 1
            plan.deliveries.append((oid, rider.trip_distance))
            plan.messages.append(f"{rider.label} delivered to {home.label}")

    def _move(self, rider: Rider, plan: RiderPlan) -> None:
        rider.movement_accumulator += rider.speed
        while rider.movement_accumulator >= 1 - MOVE_EPSILON and rider.path_queue:
            rider.pos = rider.path_queue.pop(0)
            rider.movement_accumulator = max(rider.movement_accumulator - 1, 0.0)
            rider.trip_distance += 1
            rider.total_distance += 1
            plan.cells_entered.append(rider.pos)
            if rider.status == RiderStatus.DELIVERING:
                self._deliver_here(rider, plan)
        if not rider.path_queue:
            rider.movement_accumulator = 0.0

    def _go_idle(self, rider: Rider) -> None:
        rider.status = RiderStatus.IDLE
        rider.path_queue = []
        rider.assigned_order_ids = []
        rider.delivery_queue = []
        rider.target_entity_id = None
        rider.movement_accumulator = 0.0

    def _start_delivery(
        self,
        rider: Rider,
        plan: RiderPlan,
        assigned: List[Order],
    ) -> None:
        """Pick up every assigned order and route through their homes."""
        routable: List[Order] = []
        targets: List[Position] = []
        for order in assigned:
            home = self.world.homes.get(order.home_id)
            if home is None:
                logger.warning("Order %s: home %s no longer exists", order.order_id, order.home_id)
                continue
            routable.append(order)
            targets.append(home.pos)

        route = build_route(
            rider.pos, targets, self.world.grid.walls, self.algorithm,
            self.world.grid.rows, self.world.grid.cols,
        )
        for idx in route.skipped:
            logger.warning("%s cannot reach home for order %s", rider.label, routable[idx].order_id)

        plan.pickups = [o.order_id for o in assigned]
        rider.delivery_queue = [routable[i].order_id for i in route.visit_order]
        rider.path_queue = list(route.path)
        rider.target_entity_id = None
        rider.status = RiderStatus.DELIVERING
        plan.messages.append(f"{rider.label} picked up {len(assigned)} order(s)")
        # Homes on the hotel cell itself
        self._deliver_here(rider, plan)

    def _return_hotel(self, rider: Rider, orders: Mapping[str, Order]) -> Optional[Hotel]:
        for oid in reversed(rider.assigned_order_ids):
            order = orders.get(oid)
            if order is not None and order.hotel_id in self.world.hotels:
                return self.world.hotels[order.hotel_id]
        return next(iter(self.world.hotels.values()), None)

    def _finish_delivery(
        self,
        rider: Rider,
        plan: RiderPlan,
        orders: Mapping[str, Order],
    ) -> None:
        delivered = {oid for oid, _ in plan.deliveries}
        stranded = [
            oid for oid in rider.assigned_order_ids
            if oid not in delivered and oid in orders and orders[oid].status != OrderStatus.DELIVERED
        ]
        if stranded:
            logger.warning("%s finished its route with %d undelivered order(s)", rider.label, len(stranded))
            if self.requeue_stranded:
                plan.released.extend(stranded)
                plan.messages.append(f"{rider.label}: {len(stranded)} order(s) sent back to dispatch")
            else:
                plan.messages.append(f"{rider.label}: {len(stranded)} order(s) could not be delivered")

        hotel = self._return_hotel(rider, orders)
        result = None
        if hotel is not None:
            result = find_path(
                rider.pos, hotel.pos, self.world.grid.walls, self.algorithm,
                self.world.grid.rows, self.world.grid.cols,
            )
        if result is None:
            logger.warning("%s has no reachable hotel to return to; going idle", rider.label)
            self._go_idle(rider)
            return

        rider.delivery_queue = []
        rider.path_queue = list(result.path[1:])
        rider.status = RiderStatus.RETURNING

    def _plan_rider(self, rider: Rider, orders: Mapping[str, Order]) -> RiderPlan:
        """Advance one rider against the tick-start order snapshot."""
        working = rider.copy()
        plan = RiderPlan(rider=working)

        if working.path_queue:
            self._move(working, plan)
        if working.path_queue:
            return plan

        status = working.status
        if status == RiderStatus.MOVING_TO_HOTEL:
            working.status = RiderStatus.WAITING_FOR_FOOD
            logger.debug("%s arrived at hotel", working.label)
        elif status == RiderStatus.WAITING_FOR_FOOD:
            assigned = [orders[oid] for oid in working.assigned_order_ids if oid in orders]
            if not assigned:
                self._go_idle(working)
            elif all(o.status == OrderStatus.READY for o in assigned):
                self._start_delivery(working, plan, assigned)
        elif status == RiderStatus.DELIVERING:
            self._finish_delivery(working, plan, orders)
        elif status == RiderStatus.RETURNING:
            self._go_idle(working)
            logger.info("%s is idle at %s", working.label, working.pos)
        return plan

    # ------------------------------------------------------------------
    # Commit (phase 2)
    # ------------------------------------------------------------------

    def _commit(self, plans: List[RiderPlan]) -> None:
        for plan in plans:
            rider = plan.rider
            if rider.entity_id not in self.world.riders:
                continue
            self.world.riders[rider.entity_id] = rider
            self.path_trace.update(plan.cells_entered)
            self.distance_traveled += len(plan.cells_entered)

            for oid in plan.pickups:
                record_pickup(self.world.orders[oid], self.clock_ms)
            for oid, distance in plan.deliveries:
                record_delivery(self.world.orders[oid], self.clock_ms, distance)
            for oid in plan.released:
                release(self.world.orders[oid])
            for message in plan.messages:
                self._announce(message)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def tick(self) -> List[DispatchDecision]:
        """
        Advance the simulation by one tick.

        Returns:
            Decisions taken by the end-of-tick dispatch sweep
        """
        self.tick_count += 1
        self.clock_ms += self.tick_ms

        for order in advance_cooking(self.world.orders.values(), self.tick_ms):
            logger.debug("Order %s is ready", order.order_id)

        orders_snapshot = {oid: replace(o) for oid, o in self.world.orders.items()}
        plans: List[RiderPlan] = []
        for rider in list(self.world.riders.values()):
            try:
                plans.append(self._plan_rider(rider, orders_snapshot))
            except Exception:
                logger.exception("Failed to advance rider %s; leaving it unchanged", rider.label)
        self._commit(plans)

        decisions = self.engine.dispatch_pending(self.world)
        for decision in decisions:
            if decision.assigned:
                self._record_decision(decision)
            elif decision.outcome != DispatchOutcome.QUEUED:
                logger.debug("Sweep: %s", decision.message)
        return decisions

    def is_settled(self) -> bool:
        """True when every order is delivered or dropped and every rider is idle."""
        riders_idle = all(r.status == RiderStatus.IDLE for r in self.world.riders.values())
        waiting = any(
            o.rider_id is None and o.status != OrderStatus.DELIVERED
            for o in self.world.orders.values()
        )
        return riders_idle and not waiting

    def run(
        self,
        ticks: int,
        verbose: bool = False,
        auto_order_every: Optional[int] = None,
        until_settled: bool = False,
    ) -> Dict[str, Any]:
        """
        Run a fixed number of ticks.

        Args:
            ticks: Maximum ticks to run
            verbose: Print progress lines
            auto_order_every: Place a random order every N ticks
            until_settled: Stop early once ``is_settled()`` holds (and no
                auto orders are configured)

        Returns:
            Dictionary of KPI results
        """
        if verbose:
            print(f"======== Starting Simulation: {self.algorithm.value} / {self.dispatch_mode.value} ========")

        for _ in range(ticks):
            if auto_order_every and self.tick_count % auto_order_every == 0:
                self.place_random_order()
            self.tick()

            if verbose and self.tick_count % 100 == 0:
                busy = sum(1 for r in self.world.riders.values() if r.status != RiderStatus.IDLE)
                delivered = sum(1 for o in self.world.orders.values() if o.status == OrderStatus.DELIVERED)
                print(f"[{format_time_duration(self.clock_ms / 1000)}] "
                      f"Busy riders: {busy}, "
                      f"Orders: {len(self.world.orders)}, "
                      f"Delivered: {delivered}")

            if until_settled and not auto_order_every and self.is_settled():
                break

        if verbose:
            print("Simulation complete. Calculating results...")
        return self.get_results()

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def get_results(self) -> Dict[str, Any]:
        """
        KPI summary of the run so far.

        Returns:
            Order counts, delivery time stats (seconds), distances and
            per-rider earnings and distance keyed by label
        """
        orders = list(self.world.orders.values())
        riders = list(self.world.riders.values())
        delivered = [o for o in orders if o.status == OrderStatus.DELIVERED]
        times = [o.actual_delivery_ms / 1000 for o in delivered if o.actual_delivery_ms is not None]

        total_orders = len(orders)
        success_rate = len(delivered) / total_orders * 100 if total_orders else 0.0

        return {
            "ticks": self.tick_count,
            "clock_ms": self.clock_ms,
            "total_orders": total_orders,
            "orders_delivered": len(delivered),
            "orders_queued": sum(1 for o in orders if o.rider_id is None and o.status != OrderStatus.DELIVERED),
            "orders_in_progress": sum(1 for o in orders if o.rider_id is not None and o.status != OrderStatus.DELIVERED),
            "delivery_success_rate_pct": round(success_rate, 2),
            "avg_delivery_time_s": round(statistics.mean(times), 2) if times else 0.0,
            "median_delivery_time_s": round(statistics.median(times), 2) if times else 0.0,
            "max_delivery_time_s": round(max(times), 2) if times else 0.0,
            "total_distance_cells": self.distance_traveled,
            "riders_used": sum(1 for r in riders if r.deliveries > 0),
            "total_riders": len(riders),
            "rider_earnings": {r.label: r.earnings for r in riders},
            "rider_distance": {r.label: r.total_distance for r in riders},
            "path_trace_cells": len(self.path_trace),
        }
