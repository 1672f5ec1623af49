"""Tests for the grid Pathfinder."""
from __future__ import annotations

import random
from collections import deque

import pytest

from logix_dispatch.models import Algorithm, Position
from logix_dispatch.pathfinding import find_path, path_length
from logix_dispatch.utils import get_neighbors, is_contiguous

ALL_ALGORITHMS = list(Algorithm)


def bfs_length(start, end, walls, rows, cols):
    """Reference shortest hop count, or None if unreachable."""
    if start in walls or end in walls:
        return None
    seen = {start}
    queue = deque([(start, 0)])
    while queue:
        pos, dist = queue.popleft()
        if pos == end:
            return dist
        for n in get_neighbors(pos, rows, cols):
            if n not in seen and n not in walls:
                seen.add(n)
                queue.append((n, dist + 1))
    return None


def assert_valid_path(result, start, end, walls):
    assert result.path[0] == start
    assert result.path[-1] == end
    assert is_contiguous(result.path)
    assert not any(cell in walls for cell in result.path)


@pytest.mark.parametrize("algorithm", ALL_ALGORITHMS)
def test_open_grid_straight_line(algorithm):
    result = find_path((0, 0), (0, 3), set(), algorithm)
    assert result is not None
    assert result.length == 3
    assert result.path == [Position(0, 0), Position(0, 1), Position(0, 2), Position(0, 3)]


@pytest.mark.parametrize("algorithm", ALL_ALGORITHMS)
def test_wall_block_forces_detour(algorithm):
    walls = {Position(0, 1), Position(0, 2), Position(1, 1), Position(1, 2)}
    result = find_path((0, 0), (0, 3), walls, algorithm)
    assert result is not None
    assert result.length > 3
    assert_valid_path(result, (0, 0), (0, 3), walls)


@pytest.mark.parametrize("algorithm", [Algorithm.DIJKSTRA, Algorithm.ASTAR])
def test_wall_detour_is_shortest(algorithm):
    walls = {Position(0, 1), Position(0, 2), Position(1, 1), Position(1, 2)}
    assert path_length((0, 0), (0, 3), walls, algorithm) == 7


@pytest.mark.parametrize("algorithm", ALL_ALGORITHMS)
def test_enclosed_goal_not_found(algorithm):
    walls = {Position(4, 5), Position(6, 5), Position(5, 4), Position(5, 6)}
    assert find_path((0, 0), (5, 5), walls, algorithm) is None


@pytest.mark.parametrize("algorithm", ALL_ALGORITHMS)
def test_goal_on_wall_or_outside_grid(algorithm):
    assert find_path((0, 0), (3, 3), {Position(3, 3)}, algorithm) is None
    assert find_path((0, 0), (20, 3), set(), algorithm) is None
    assert find_path((-1, 0), (3, 3), set(), algorithm) is None


def test_start_equals_end():
    result = find_path((4, 4), (4, 4), set())
    assert result.path == [Position(4, 4)]
    assert result.length == 0
    assert result.visited_count == 1


def test_visited_order_starts_at_start():
    result = find_path((2, 2), (2, 6), set(), Algorithm.ASTAR)
    assert result.visited_order[0] == Position(2, 2)
    assert len(set(result.visited_order)) == len(result.visited_order)
    assert result.visited_count <= len(result.visited_order)
    assert result.execution_time_ms >= 0


def test_astar_expands_fewer_nodes_than_dijkstra():
    dijkstra = find_path((10, 10), (10, 15), set(), Algorithm.DIJKSTRA)
    astar = find_path((10, 10), (10, 15), set(), Algorithm.ASTAR)
    assert astar.length == dijkstra.length == 5
    assert astar.visited_count < dijkstra.visited_count


def test_algorithm_accepts_names():
    assert find_path((0, 0), (1, 1), set(), "astar").length == 2
    with pytest.raises(ValueError, match="Unknown algorithm"):
        find_path((0, 0), (1, 1), set(), "BFS")


def test_custom_grid_size():
    assert find_path((0, 0), (4, 4), set(), rows=5, cols=5).length == 8
    assert find_path((0, 0), (5, 5), set(), rows=5, cols=5) is None


def test_random_walls_match_bfs():
    rng = random.Random(1234)
    rows, cols = 10, 10
    for _ in range(60):
        walls = {
            Position(r, c)
            for r in range(rows) for c in range(cols)
            if rng.random() < 0.25
        }
        open_cells = [Position(r, c) for r in range(rows) for c in range(cols) if Position(r, c) not in walls]
        start = rng.choice(open_cells)
        end = rng.choice(open_cells)
        expected = bfs_length(start, end, walls, rows, cols)

        for algorithm in ALL_ALGORITHMS:
            result = find_path(start, end, walls, algorithm, rows, cols)
            if expected is None:
                assert result is None
                continue
            assert result is not None
            assert_valid_path(result, start, end, walls)
            if algorithm != Algorithm.GREEDY:
                assert result.length == expected
            else:
                assert result.length >= expected
