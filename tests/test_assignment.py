"""Tests for the rider-to-target Assignment Solver."""
from __future__ import annotations

import random
from itertools import permutations

import pytest

from logix_dispatch import config
from logix_dispatch.assignment import (
    AssignmentResult,
    build_cost_matrix,
    solve_assignment,
    solve_cost_matrix,
    total_cost,
)
from logix_dispatch.models import Position


def brute_force_best(cost):
    """Minimum total cost over every one-to-one matching of size min(n, m)."""
    n, m = len(cost), len(cost[0])
    if n <= m:
        return min(sum(cost[i][p[i]] for i in range(n)) for p in permutations(range(m), n))
    return min(sum(cost[p[j]][j] for j in range(m)) for p in permutations(range(n), m))


def random_cells(rng, count):
    return [Position(rng.randrange(20), rng.randrange(20)) for _ in range(count)]


def test_matches_brute_force_up_to_five():
    rng = random.Random(2024)
    for _ in range(150):
        riders = random_cells(rng, rng.randint(1, 5))
        targets = random_cells(rng, rng.randint(1, 5))
        result = solve_assignment(riders, targets)
        cost = build_cost_matrix(riders, targets)

        assert len(result) == min(len(riders), len(targets))
        assert len({r.rider_index for r in result}) == len(result)
        assert len({r.target_index for r in result}) == len(result)
        assert total_cost(result) == pytest.approx(brute_force_best(cost))


def test_weighted_matches_brute_force():
    rng = random.Random(7)
    for _ in range(50):
        riders = random_cells(rng, 4)
        targets = random_cells(rng, 3)
        weights = [rng.choice([0.0, 1.5, 4.0]) for _ in riders]
        result = solve_assignment(riders, targets, weights)
        cost = build_cost_matrix(riders, targets, weights)
        assert total_cost(result) == pytest.approx(brute_force_best(cost))


def test_extra_rider_can_be_left_out_anywhere():
    result = solve_assignment([Position(0, 0), Position(5, 5)], [Position(5, 6)])
    assert result == [AssignmentResult(rider_index=1, target_index=0, cost=1)]


def test_results_sorted_by_rider():
    riders = [Position(0, 0), Position(0, 10), Position(0, 19)]
    targets = [Position(1, 19), Position(1, 0), Position(1, 10)]
    result = solve_assignment(riders, targets)
    assert [(r.rider_index, r.target_index) for r in result] == [(0, 1), (1, 2), (2, 0)]
    assert total_cost(result) == 3


def test_earnings_weight_shifts_choice():
    riders = [Position(0, 4), Position(0, 7)]
    hotel = [Position(0, 5)]
    assert solve_assignment(riders, hotel)[0].rider_index == 0
    assert solve_assignment(riders, hotel, [5.0, 0.0])[0].rider_index == 1


def test_empty_inputs():
    assert solve_assignment([], [Position(0, 0)]) == []
    assert solve_assignment([Position(0, 0)], []) == []
    assert solve_cost_matrix([]) == []


def test_large_pool_uses_greedy_fallback():
    size = config.MAX_EXACT_ASSIGNMENT_SIZE + 2
    cells = [Position(i, i) for i in range(size)]
    result = solve_assignment(cells, list(reversed(cells)))
    assert len(result) == size
    assert total_cost(result) == 0
    assert [r.rider_index for r in result] == list(range(size))
