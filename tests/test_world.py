"""Tests for the World aggregate: grid editing, placement and snapshots."""
from __future__ import annotations

import random

import pytest

from logix_dispatch import config
from logix_dispatch.models import EntityKind, Grid, Position, Rider, RiderStatus
from logix_dispatch.orders import create_order
from logix_dispatch.world import World


def test_sequential_labels_per_kind():
    world = World(rng=random.Random(0))
    assert [world.add_rider((0, i)).label for i in range(3)] == ["R1", "R2", "R3"]
    assert world.add_hotel((5, 5)).label == "H1"
    assert world.add_home((6, 6)).label == "D1"
    assert world.add_home((6, 7)).label == "D2"


def test_explicit_label_uses_up_a_number():
    world = World()
    world.add_rider((0, 0), speed=1.0, label="HUB-R")
    assert world.add_rider((0, 1), speed=1.0).label == "R2"


def test_generated_ids_are_unique_and_explicit_ids_checked():
    world = World()
    a = world.add_home((1, 1))
    b = world.add_home((1, 2))
    assert a.entity_id != b.entity_id
    world.add_hotel((2, 2), hotel_id="h1")
    with pytest.raises(ValueError, match="already exists"):
        world.add_home((3, 3), home_id="h1")


def test_random_speed_within_configured_range():
    world = World(rng=random.Random(11))
    for i in range(20):
        rider = world.add_rider((0, i % 20))
        assert config.RIDER_SPEED_MIN <= rider.speed < config.RIDER_SPEED_MAX


def test_placement_validation():
    world = World(rows=5, cols=5)
    world.toggle_wall((2, 2))
    with pytest.raises(ValueError, match="is a wall"):
        world.add_hotel((2, 2))
    with pytest.raises(ValueError, match="outside"):
        world.add_home((5, 0))
    with pytest.raises(ValueError, match="speed"):
        world.add_rider((0, 0), speed=0)


def test_toggle_wall():
    world = World()
    assert world.toggle_wall((3, 3)) is True
    assert world.is_wall((3, 3))
    assert not world.grid.is_passable((3, 3))
    assert not world.grid.is_passable((-1, 0))
    assert world.toggle_wall((3, 3)) is False
    assert not world.is_wall((3, 3))
    with pytest.raises(ValueError):
        world.toggle_wall((20, 0))


def test_cannot_wall_an_occupied_cell():
    world = World()
    world.add_hotel((4, 4))
    with pytest.raises(ValueError, match="occupied"):
        world.toggle_wall((4, 4))
    assert not world.is_wall((4, 4))


def test_remove_entity():
    world = World()
    hotel = world.add_hotel((1, 1))
    assert world.remove_entity(hotel.entity_id) is hotel
    assert world.get_entity(hotel.entity_id) is None
    with pytest.raises(KeyError):
        world.remove_entity(hotel.entity_id)


def test_removing_rider_releases_its_orders():
    world = World()
    rider = world.add_rider((0, 0), speed=1.0)
    order = create_order("home", "hotel")
    order.rider_id = rider.entity_id
    world.orders[order.order_id] = order
    rider.assigned_order_ids.append(order.order_id)

    world.remove_entity(rider.entity_id)
    assert order.rider_id is None
    assert rider.entity_id not in world.riders


def test_entities_at_and_orders_for_rider():
    world = World()
    rider = world.add_rider((3, 3), speed=1.0)
    hotel = world.add_hotel((3, 3))
    assert world.entities_at((3, 3)) == [rider, hotel]
    assert world.entities_at((0, 0)) == []
    assert world.orders_for_rider("missing") == []


def test_clear_resets_everything():
    world = World()
    world.add_rider((0, 0), speed=1.0)
    world.add_hotel((1, 1))
    world.toggle_wall((5, 5))
    world.clear()
    assert not world.riders and not world.hotels and not world.homes and not world.orders
    assert not world.walls
    assert world.add_rider((0, 0), speed=1.0).label == "R1"


def test_snapshot_is_detached():
    world = World()
    rider = world.add_rider((0, 0), speed=1.0)
    world.toggle_wall((9, 9))
    snap = world.snapshot()

    snap.riders[0].path_queue.append(Position(0, 1))
    assert world.riders[rider.entity_id].path_queue == []
    assert snap.walls == frozenset({Position(9, 9)})
    assert snap.riders[0].kind == EntityKind.RIDER
    assert (snap.rows, snap.cols) == (config.GRID_ROWS, config.GRID_COLS)


def test_grid_and_rider_validation():
    with pytest.raises(ValueError):
        Grid(0, 5)
    with pytest.raises(ValueError):
        Grid(3, 3, {Position(3, 0)})
    with pytest.raises(ValueError):
        Rider("r", Position(0, 0), "R1", speed=-1.0)
    rider = Rider("r", Position(0, 0), "R1")
    assert rider.status == RiderStatus.IDLE
    assert not rider.is_moving
