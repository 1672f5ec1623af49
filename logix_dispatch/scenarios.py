# logix-dispatch/logix_dispatch/scenarios.py
"""
Built-in map layouts.

- ``standard``: balanced city with 2 hotels, 3 riders of different speeds
  and 5 homes. The default sandbox.
- ``batching``: 1 rider, 2 hotels, 2 homes close together. Two orders
  from the same hotel ride together.
- ``assignment``: 3 riders in a row, 1 hub, 3 homes. Three hub orders
  spread across the riders.
- ``tsp``: 1 fast rider on a hub with 8 randomly scattered homes, for the
  route-optimization utility.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .models import Order
from .simulation import Simulation

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]


@dataclass(frozen=True)
class Scenario:
    """
    A map layout plus optional opening orders.

    Entity tuples are (id, cell, label); riders add a speed. ``orders``
    are (home_id, hotel_id) pairs placed after the map is built.
    """
    name: str
    description: str
    hotels: Tuple[Tuple[str, Cell, str], ...] = ()
    riders: Tuple[Tuple[str, Cell, str, float], ...] = ()
    homes: Tuple[Tuple[str, Cell, str], ...] = ()
    orders: Tuple[Tuple[str, str], ...] = ()
    random_homes: int = 0


SCENARIOS: Dict[str, Scenario] = {
    "standard": Scenario(
        name="standard",
        description="Standard map: 2 hotels, 3 riders, 5 homes",
        hotels=(("h1", (5, 5), "H1"), ("h2", (15, 15), "H2")),
        riders=(
            ("r1", (2, 2), "R1", 0.8),
            ("r2", (2, 18), "R2", 1.2),
            ("r3", (18, 2), "R3", 1.0),
        ),
        homes=(
            ("d1", (2, 10), "D1"),
            ("d2", (10, 2), "D2"),
            ("d3", (10, 18), "D3"),
            ("d4", (18, 10), "D4"),
            ("d5", (8, 8), "D5"),
        ),
    ),
    "batching": Scenario(
        name="batching",
        description="Smart batching: 1 rider, 2 hotels, 2 neighboring homes",
        hotels=(("h1", (5, 5), "H1"), ("h2", (8, 8), "H2")),
        riders=(("r1", (2, 2), "R1", 1.0),),
        homes=(("d1", (15, 15), "D1"), ("d2", (16, 17), "D2")),
        orders=(("d1", "h1"), ("d2", "h1")),
    ),
    "assignment": Scenario(
        name="assignment",
        description="Multi-rider assignment: 3 riders, 1 hub, 3 homes",
        hotels=(("h1", (10, 10), "HUB"),),
        riders=(
            ("r1", (2, 5), "R1", 1.0),
            ("r2", (2, 10), "R2", 1.0),
            ("r3", (2, 15), "R3", 1.0),
        ),
        homes=(("d1", (15, 5), "D1"), ("d2", (15, 10), "D2"), ("d3", (15, 15), "D3")),
        orders=(("d1", "h1"), ("d2", "h1"), ("d3", "h1")),
    ),
    "tsp": Scenario(
        name="tsp",
        description="Route optimization: 1 fast rider at a hub, 8 scattered homes",
        hotels=(("h1", (10, 10), "HUB"),),
        riders=(("r1", (10, 10), "TSP-R", 2.0),),
        random_homes=8,
    ),
}


def list_scenarios() -> List[str]:
    return list(SCENARIOS)


def load_scenario(sim: Simulation, name: str, place_orders: bool = True) -> List[Order]:
    """
    Clear ``sim`` and build the named layout on it.

    Random homes land in the interior of the grid (one cell in from every
    edge) and are drawn from the simulation's seeded generator.

    Args:
        sim: Simulation to populate
        name: Key in ``SCENARIOS``
        place_orders: Also place the scenario's opening orders

    Returns:
        Orders placed (those whose home or hotel exists)

    Raises:
        KeyError: If the scenario name is unknown
    """
    if name not in SCENARIOS:
        raise KeyError(f"Unknown scenario {name!r}. Options: {', '.join(SCENARIOS)}")
    scenario = SCENARIOS[name]
    sim.clear()

    for hotel_id, cell, label in scenario.hotels:
        sim.add_hotel(cell, hotel_id=hotel_id, label=label)
    for rider_id, cell, label, speed in scenario.riders:
        sim.add_rider(cell, speed=speed, rider_id=rider_id, label=label)
    for home_id, cell, label in scenario.homes:
        sim.add_home(cell, home_id=home_id, label=label)

    rows, cols = sim.world.grid.rows, sim.world.grid.cols
    for i in range(scenario.random_homes):
        cell = (sim.rng.randint(1, rows - 2), sim.rng.randint(1, cols - 2))
        sim.add_home(cell, home_id=f"d{i}", label=str(i + 1))

    placed: List[Order] = []
    if place_orders:
        for home_id, hotel_id in scenario.orders:
            order = sim.create_order(home_id, hotel_id)
            if order is not None:
                placed.append(order)

    logger.info("Loaded scenario %s", name)
    sim.event_log.append(f"Scenario loaded: {scenario.description}")
    return placed
