"""Tests for the Dispatch Engine policy cascade."""
from __future__ import annotations

import pytest

from logix_dispatch.dispatch import DispatchEngine, DispatchOutcome
from logix_dispatch.models import Algorithm, DispatchMode, OrderStatus, Position, RiderStatus
from logix_dispatch.orders import create_order
from logix_dispatch.world import World


def place_order(world, home, hotel):
    order = create_order(home.entity_id, hotel.entity_id)
    world.orders[order.order_id] = order
    return order


@pytest.fixture
def engine():
    return DispatchEngine(Algorithm.ASTAR, DispatchMode.EFFICIENCY)


def test_idle_rider_is_routed_to_hotel(engine):
    world = World()
    rider = world.add_rider((0, 0), speed=1.0)
    hotel = world.add_hotel((0, 5))
    home = world.add_home((0, 10))
    order = place_order(world, home, hotel)

    decision = engine.dispatch_order(world, order)

    assert decision.outcome == DispatchOutcome.DISPATCHED
    assert decision.assigned
    assert decision.rider_id == rider.entity_id
    assert order.rider_id == rider.entity_id
    assert rider.status == RiderStatus.MOVING_TO_HOTEL
    assert rider.target_entity_id == hotel.entity_id
    assert rider.assigned_order_ids == [order.order_id]
    assert len(rider.path_queue) == 5
    assert rider.path_queue[-1] == Position(0, 5)
    assert Position(0, 0) not in rider.path_queue


def test_batching_beats_idle_rider_within_threshold(engine):
    world = World()
    busy = world.add_rider((0, 0), speed=1.0)
    hotel = world.add_hotel((0, 5))
    first_home = world.add_home((10, 10))
    engine.dispatch_order(world, place_order(world, first_home, hotel))

    # Idle rider standing right next to the hotel
    idle = world.add_rider((0, 6), speed=1.0)
    near_home = world.add_home((12, 12))
    order = place_order(world, near_home, hotel)

    decision = engine.dispatch_order(world, order)

    assert decision.outcome == DispatchOutcome.BATCHED
    assert order.rider_id == busy.entity_id
    assert busy.assigned_order_ids[-1] == order.order_id
    assert idle.status == RiderStatus.IDLE


def test_home_beyond_threshold_goes_to_idle_rider(engine):
    world = World()
    busy = world.add_rider((0, 0), speed=1.0)
    hotel = world.add_hotel((0, 5))
    engine.dispatch_order(world, place_order(world, world.add_home((10, 10)), hotel))

    idle = world.add_rider((0, 6), speed=1.0)
    far_home = world.add_home((19, 19))
    order = place_order(world, far_home, hotel)

    decision = engine.dispatch_order(world, order)

    assert decision.outcome == DispatchOutcome.DISPATCHED
    assert order.rider_id == idle.entity_id
    assert len(busy.assigned_order_ids) == 1


def test_smallest_detour_wins_among_batch_candidates(engine):
    world = World()
    a = world.add_rider((0, 0), speed=1.0)
    b = world.add_rider((0, 1), speed=1.0)
    hotel = world.add_hotel((0, 5))
    # b is nearer the hotel and takes the first order; the second home is
    # 9 cells from it, so a is dispatched
    engine.dispatch_order(world, place_order(world, world.add_home((10, 0)), hotel))
    engine.dispatch_order(world, place_order(world, world.add_home((10, 9)), hotel))
    assert {a.status, b.status} == {RiderStatus.MOVING_TO_HOTEL}

    # 6 cells from b's batch, 3 from a's
    order = place_order(world, world.add_home((10, 6)), hotel)
    decision = engine.dispatch_order(world, order)
    assert decision.outcome == DispatchOutcome.BATCHED
    assert order.rider_id == a.entity_id


def test_forced_batch_when_no_idle_rider(engine):
    world = World()
    rider = world.add_rider((0, 0), speed=1.0)
    hotel = world.add_hotel((0, 5))
    engine.dispatch_order(world, place_order(world, world.add_home((0, 10)), hotel))

    order = place_order(world, world.add_home((19, 19)), hotel)
    decision = engine.dispatch_order(world, order)

    assert decision.outcome == DispatchOutcome.FORCED_BATCH
    assert order.rider_id == rider.entity_id
    assert len(rider.assigned_order_ids) == 2


def test_queued_without_riders(engine):
    world = World()
    hotel = world.add_hotel((0, 5))
    order = place_order(world, world.add_home((3, 3)), hotel)

    decision = engine.dispatch_order(world, order)

    assert decision.outcome == DispatchOutcome.QUEUED
    assert not decision.assigned
    assert order.rider_id is None
    assert order.status == OrderStatus.COOKING


def test_queued_when_only_rider_serves_another_hotel(engine):
    world = World()
    world.add_rider((0, 0), speed=1.0)
    hotel_a = world.add_hotel((0, 5))
    hotel_b = world.add_hotel((9, 9))
    engine.dispatch_order(world, place_order(world, world.add_home((0, 10)), hotel_a))

    order = place_order(world, world.add_home((0, 11)), hotel_b)
    assert engine.dispatch_order(world, order).outcome == DispatchOutcome.QUEUED


def test_unreachable_hotel_leaves_order_unassigned(engine):
    world = World()
    rider = world.add_rider((5, 5), speed=1.0)
    for cell in [(4, 5), (6, 5), (5, 4), (5, 6)]:
        world.toggle_wall(cell)
    hotel = world.add_hotel((0, 0))
    order = place_order(world, world.add_home((0, 3)), hotel)

    decision = engine.dispatch_order(world, order)

    assert decision.outcome == DispatchOutcome.UNREACHABLE
    assert order.rider_id is None
    assert rider.status == RiderStatus.IDLE
    assert rider.assigned_order_ids == []


def test_fairness_mode_prefers_low_earner():
    world = World()
    rich = world.add_rider((0, 4), speed=1.0)
    rich.earnings = 10.0
    poor = world.add_rider((0, 7), speed=1.0)
    hotel = world.add_hotel((0, 5))
    home = world.add_home((5, 5))

    efficiency = DispatchEngine(mode=DispatchMode.EFFICIENCY)
    fairness = DispatchEngine(mode="fairness", fairness_weight=0.5)

    order = place_order(world, home, hotel)
    assert fairness.dispatch_order(world, order).rider_id == poor.entity_id

    world.riders[poor.entity_id].status = RiderStatus.IDLE
    other = place_order(world, home, world.add_hotel((0, 3)))
    assert efficiency.dispatch_order(world, other).rider_id == rich.entity_id


def test_invalid_orders(engine):
    world = World()
    world.add_rider((0, 0), speed=1.0)
    hotel = world.add_hotel((0, 5))
    home = world.add_home((0, 8))
    order = place_order(world, home, hotel)

    world.remove_entity(hotel.entity_id)
    assert engine.dispatch_order(world, order).outcome == DispatchOutcome.INVALID

    order.rider_id = "someone"
    assert engine.dispatch_order(world, order).outcome == DispatchOutcome.INVALID


def test_unknown_dispatch_mode():
    with pytest.raises(ValueError, match="Unknown dispatch mode"):
        DispatchEngine(mode="random")


def test_dispatch_pending_runs_in_placement_order(engine):
    world = World()
    hotel = world.add_hotel((0, 5))
    first = place_order(world, world.add_home((19, 0)), hotel)
    second = place_order(world, world.add_home((0, 19)), hotel)
    rider = world.add_rider((0, 0), speed=1.0)

    decisions = engine.dispatch_pending(world)

    assert [d.order_id for d in decisions] == [first.order_id, second.order_id]
    assert decisions[0].outcome == DispatchOutcome.DISPATCHED
    assert decisions[1].outcome == DispatchOutcome.FORCED_BATCH
    assert rider.assigned_order_ids == [first.order_id, second.order_id]
