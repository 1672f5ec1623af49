# logix-dispatch/logix_dispatch/world.py
"""
World aggregate for the LogiX grid delivery simulation.

The World owns every collection the simulation touches: the grid and its
walls, the riders, hotels and homes, and the orders. Entities live in
id-keyed dicts (insertion ordered) and refer to each other by id only.

Responsibilities:
- Grid editing (``toggle_wall``, ``is_wall``)
- Entity placement and removal with generated ids and sequential labels
- Read-only snapshots for rendering and logging

Only the ``Simulation`` tick and the Dispatcher mutate riders and orders.
"""

from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass, replace
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from . import config
from .models import (
    Entity,
    EntityKind,
    Grid,
    Home,
    Hotel,
    Order,
    OrderStatus,
    Position,
    Rider,
)

logger = logging.getLogger(__name__)

LABEL_PREFIXES: Dict[EntityKind, str] = {
    EntityKind.RIDER: "R",
    EntityKind.HOTEL: "H",
    EntityKind.HOME: "D",
}


@dataclass(frozen=True)
class WorldSnapshot:
    """Detached copies of the world state at one instant."""
    riders: Tuple[Rider, ...]
    hotels: Tuple[Hotel, ...]
    homes: Tuple[Home, ...]
    orders: Tuple[Order, ...]
    walls: FrozenSet[Position]
    rows: int
    cols: int


class World:
    """
    Shared mutable state of one simulation.

    Attributes:
        grid: Dimensions and wall set
        riders / hotels / homes: Entities keyed by id
        orders: Every order ever placed, keyed by id (never deleted)
    """

    def __init__(
        self,
        rows: int = config.GRID_ROWS,
        cols: int = config.GRID_COLS,
        walls: Optional[Iterable[Tuple[int, int]]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.grid = Grid(rows, cols, {Position(*w) for w in (walls or ())})
        self.rng: random.Random = rng if rng is not None else random.Random()
        self.riders: Dict[str, Rider] = {}
        self.hotels: Dict[str, Hotel] = {}
        self.homes: Dict[str, Home] = {}
        self.orders: Dict[str, Order] = {}
        self._label_counts: Dict[EntityKind, int] = {kind: 1 for kind in EntityKind}

    # ------------------------------------------------------------------
    # Grid editing
    # ------------------------------------------------------------------

    @property
    def walls(self) -> FrozenSet[Position]:
        return frozenset(self.grid.walls)

    def is_wall(self, pos: Tuple[int, int]) -> bool:
        return self.grid.is_wall(Position(*pos))

    def toggle_wall(self, pos: Tuple[int, int]) -> bool:
        """
        Flip a cell between wall and open.

        Returns:
            True if the cell is now a wall

        Raises:
            ValueError: If the cell is outside the grid or holds an entity
        """
        pos = Position(*pos)
        if self.entities_at(pos):
            raise ValueError(f"Cannot place a wall on occupied cell {pos}")
        return self.grid.toggle_wall(pos)

    # ------------------------------------------------------------------
    # Entity placement
    # ------------------------------------------------------------------

    def _next_label(self, kind: EntityKind, explicit: Optional[str] = None) -> str:
        """Sequential label for ``kind``. An explicit label still uses up a number."""
        label = explicit or f"{LABEL_PREFIXES[kind]}{self._label_counts[kind]}"
        self._label_counts[kind] += 1
        return label

    def _validate_placement(self, pos: Position) -> None:
        if not self.grid.in_bounds(pos):
            raise ValueError(f"Position {pos} is outside the {self.grid.rows}x{self.grid.cols} grid")
        if self.grid.is_wall(pos):
            raise ValueError(f"Position {pos} is a wall")

    def _new_id(self, entity_id: Optional[str]) -> str:
        if entity_id is None:
            return uuid.uuid4().hex[:12]
        if self.get_entity(entity_id) is not None:
            raise ValueError(f"Entity id {entity_id!r} already exists")
        return entity_id

    def add_rider(
        self,
        pos: Tuple[int, int],
        speed: Optional[float] = None,
        rider_id: Optional[str] = None,
        label: Optional[str] = None,
    ) -> Rider:
        """
        Place an IDLE rider.

        Args:
            pos: Starting cell
            speed: Cells per tick; random in [RIDER_SPEED_MIN, RIDER_SPEED_MAX) if omitted
            rider_id: Explicit id (generated if omitted)
            label: Display label (R1, R2, ... if omitted)
        """
        pos = Position(*pos)
        self._validate_placement(pos)
        if speed is None:
            speed = self.rng.uniform(config.RIDER_SPEED_MIN, config.RIDER_SPEED_MAX)
        rider = Rider(
            entity_id=self._new_id(rider_id),
            pos=pos,
            label=self._next_label(EntityKind.RIDER, label),
            speed=speed,
        )
        self.riders[rider.entity_id] = rider
        return rider

    def add_hotel(
        self,
        pos: Tuple[int, int],
        hotel_id: Optional[str] = None,
        label: Optional[str] = None,
    ) -> Hotel:
        pos = Position(*pos)
        self._validate_placement(pos)
        hotel = Hotel(
            entity_id=self._new_id(hotel_id),
            pos=pos,
            label=self._next_label(EntityKind.HOTEL, label),
        )
        self.hotels[hotel.entity_id] = hotel
        return hotel

    def add_home(
        self,
        pos: Tuple[int, int],
        home_id: Optional[str] = None,
        label: Optional[str] = None,
    ) -> Home:
        pos = Position(*pos)
        self._validate_placement(pos)
        home = Home(
            entity_id=self._new_id(home_id),
            pos=pos,
            label=self._next_label(EntityKind.HOME, label),
        )
        self.homes[home.entity_id] = home
        return home

    def remove_entity(self, entity_id: str) -> Entity:
        """
        Remove a rider, hotel or home.

        Removing a rider releases its undelivered orders back to the
        dispatch queue. Orders referencing a removed hotel or home are kept;
        lookups on them simply miss.

        Raises:
            KeyError: If no entity has this id
        """
        entity = self.get_entity(entity_id)
        if entity is None:
            raise KeyError(entity_id)

        if entity.kind == EntityKind.RIDER:
            del self.riders[entity_id]
            for order in self.orders.values():
                if order.rider_id == entity_id and order.status != OrderStatus.DELIVERED:
                    order.rider_id = None
        elif entity.kind == EntityKind.HOTEL:
            del self.hotels[entity_id]
        else:
            del self.homes[entity_id]
        logger.info("Removed %s %s", entity.kind.value.lower(), entity.label)
        return entity

    def clear(self) -> None:
        """Remove all walls, entities and orders and reset the label counters."""
        self.grid.walls.clear()
        self.riders.clear()
        self.hotels.clear()
        self.homes.clear()
        self.orders.clear()
        self._label_counts = {kind: 1 for kind in EntityKind}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_entity(self, entity_id: str) -> Optional[Entity]:
        return self.riders.get(entity_id) or self.hotels.get(entity_id) or self.homes.get(entity_id)

    def entities_at(self, pos: Tuple[int, int]) -> List[Entity]:
        """Riders first, then hotels, then homes at a cell."""
        pos = Position(*pos)
        found: List[Entity] = []
        for collection in (self.riders, self.hotels, self.homes):
            found.extend(e for e in collection.values() if e.pos == pos)
        return found

    def orders_for_rider(self, rider_id: str) -> List[Order]:
        rider = self.riders.get(rider_id)
        if rider is None:
            return []
        return [self.orders[oid] for oid in rider.assigned_order_ids if oid in self.orders]

    def snapshot(self) -> WorldSnapshot:
        """Detached copies of everything, safe to hand to a renderer."""
        return WorldSnapshot(
            riders=tuple(r.copy() for r in self.riders.values()),
            hotels=tuple(replace(h) for h in self.hotels.values()),
            homes=tuple(replace(h) for h in self.homes.values()),
            orders=tuple(replace(o) for o in self.orders.values()),
            walls=self.walls,
            rows=self.grid.rows,
            cols=self.grid.cols,
        )
