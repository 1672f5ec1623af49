"""Tests for the command-line interface."""
from __future__ import annotations

import main


def test_list_scenarios(capsys):
    assert main.main(["--list-scenarios"]) == 0
    out = capsys.readouterr().out
    assert "standard" in out
    assert "tsp" in out


def test_unknown_scenario_rejected(capsys):
    assert main.main(["--scenario", "nowhere"]) == 1
    assert "Unknown scenario" in capsys.readouterr().out


def test_unknown_algorithm_rejected(capsys):
    assert main.main(["--algorithms", "BFS"]) == 1
    assert "Unknown algorithm" in capsys.readouterr().out


def test_unknown_dispatch_mode_rejected():
    assert main.main(["--dispatch-mode", "random"]) == 1


def test_non_positive_ticks_rejected():
    assert main.main(["--ticks", "0"]) == 1


def test_scenario_run_prints_results(capsys):
    code = main.main(["--scenario", "batching", "--algorithms", "astar", "--ticks", "400"])
    out = capsys.readouterr().out
    assert code == 0
    assert "FINAL RESULTS" in out
    assert "ASTAR" in out
    assert "Orders Delivered" in out


def test_compare_route(capsys):
    assert main.main(["--compare", "0,0", "3,3", "--via", "0,3", "--wall", "1,1"]) == 0
    out = capsys.readouterr().out
    assert "DIJKSTRA" in out
    assert "GREEDY" in out


def test_compare_bad_position(capsys):
    assert main.main(["--compare", "0-0", "3,3"]) == 1
    assert "ERROR" in capsys.readouterr().out


def test_all_runs_failing_exits_with_two(monkeypatch, capsys):
    monkeypatch.setattr(main, "run_simulation_safe", lambda *args, **kwargs: None)
    assert main.main(["--algorithms", "DIJKSTRA"]) == 2
    assert "No simulations completed" in capsys.readouterr().out
