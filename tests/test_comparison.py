"""Tests for the multi-waypoint algorithm comparison."""
from __future__ import annotations

import pandas as pd
import pytest

from logix_dispatch.comparison import (
    build_race_route,
    compare_algorithms,
    comparison_frame,
)
from logix_dispatch.models import Algorithm, Position
from logix_dispatch.pathfinding import find_path


def test_one_result_per_algorithm_in_order():
    results = compare_algorithms((0, 0), (3, 3), walls=set())
    assert [r.algorithm for r in results] == [Algorithm.DIJKSTRA, Algorithm.GREEDY, Algorithm.ASTAR]
    assert all(r.found for r in results)


def test_waypoint_route_concatenates_legs():
    results = compare_algorithms((0, 0), (5, 5), walls=set(), waypoints=[(0, 5)])
    for result in results:
        path = result.metrics.path
        assert result.metrics.length == 10
        assert len(path) == 11
        assert path[0] == Position(0, 0)
        assert path[5] == Position(0, 5)
        assert path[-1] == Position(5, 5)


def test_visited_counts_summed_over_legs():
    walls = {Position(1, c) for c in range(1, 8)}
    results = compare_algorithms((0, 4), (9, 9), walls, waypoints=[(4, 4)])
    for result in results:
        legs = [
            find_path((0, 4), (4, 4), walls, result.algorithm),
            find_path((4, 4), (9, 9), walls, result.algorithm),
        ]
        assert result.metrics.visited_count == sum(leg.visited_count for leg in legs)
        assert len(result.metrics.visited_order) == sum(len(leg.visited_order) for leg in legs)


def test_unreachable_waypoint_fails_every_algorithm():
    walls = {Position(4, 5), Position(6, 5), Position(5, 4), Position(5, 6)}
    results = compare_algorithms((0, 0), (9, 9), walls, waypoints=[(5, 5)])
    assert not any(r.found for r in results)
    assert all(r.metrics is None for r in results)


def test_build_race_route():
    start, waypoints, end = build_race_route(
        (0, 0), [((1, 1), (2, 2)), ((3, 3), (4, 4))]
    )
    assert start == Position(0, 0)
    assert waypoints == [Position(1, 1), Position(2, 2), Position(3, 3)]
    assert end == Position(4, 4)

    _, single, last = build_race_route((0, 0), [((1, 1), (2, 2))])
    assert single == [Position(1, 1)]
    assert last == Position(2, 2)

    with pytest.raises(ValueError):
        build_race_route((0, 0), [])


def test_comparison_frame():
    frame = comparison_frame(compare_algorithms((0, 0), (2, 2), walls=set()))
    assert list(frame.columns) == ["algorithm", "found", "path_length", "visited_count", "execution_time_ms"]
    assert list(frame["algorithm"]) == ["DIJKSTRA", "GREEDY", "ASTAR"]
    assert list(frame["path_length"]) == [4, 4, 4]


def test_comparison_frame_marks_failed_runs():
    walls = {Position(0, 1), Position(1, 0)}
    frame = comparison_frame(compare_algorithms((5, 5), (0, 0), walls))
    assert not frame["found"].any()
    assert frame["path_length"].isna().all()
