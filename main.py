#!/usr/bin/env python3
# logix-dispatch/main.py
"""
Command-Line Interface for the LogiX grid delivery simulation.

Runs a built-in scenario once per pathfinding algorithm and prints a KPI
comparison table, or races the three algorithms over a single route.

Usage:
    python main.py                                   # Standard map, all algorithms
    python main.py --scenario batching               # Run a demo layout
    python main.py --algorithms ASTAR --auto-orders 40 --ticks 2000
    python main.py --dispatch-mode fairness          # Earnings-aware dispatch
    python main.py --compare 0,0 19,19 --wall 5,5 --wall 5,6

Exit Codes:
    0: Success
    1: Invalid arguments
    2: Simulation error
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from logix_dispatch import config
from logix_dispatch.comparison import compare_algorithms, comparison_frame
from logix_dispatch.models import Algorithm, DispatchMode
from logix_dispatch.scenarios import SCENARIOS, load_scenario
from logix_dispatch.simulation import Simulation
from logix_dispatch.utils import parse_position

logger = logging.getLogger(__name__)

AVAILABLE_ALGORITHMS = [a.value for a in Algorithm]
AVAILABLE_MODES = [m.value for m in DispatchMode]

DISPLAY_METRICS = [
    ("Orders Delivered", "orders_delivered"),
    ("Total Orders", "total_orders"),
    ("Orders Queued", "orders_queued"),
    ("Avg Delivery Time (s)", "avg_delivery_time_s"),
    ("Max Delivery Time (s)", "max_delivery_time_s"),
    ("Total Distance (cells)", "total_distance_cells"),
    ("Riders Used", "riders_used"),
    ("Cells Traced", "path_trace_cells"),
    ("Ticks", "ticks"),
]


def print_header() -> None:
    """Print the CLI header."""
    print("\n" + "=" * 60)
    print("  LOGIX DISPATCH - Grid Delivery Simulation")
    print("  Pathfinding & Dispatch Strategy Comparison")
    print("=" * 60 + "\n")


def print_results_table(results: Dict[str, Dict[str, Any]]) -> None:
    """
    Print a formatted comparison table of results.

    Args:
        results: Dictionary mapping algorithm name to KPI results
    """
    algorithms = list(results.keys())

    print("\n" + "=" * 60)
    print("  FINAL RESULTS COMPARISON")
    print("=" * 60 + "\n")

    header = "| Metric                    |"
    for algo in algorithms:
        header += f" {algo:^12} |"
    print(header)

    separator = "|" + "-" * 27 + "|"
    for _ in algorithms:
        separator += "-" * 14 + "|"
    print(separator)

    for label, key in DISPLAY_METRICS:
        row = f"| {label:<25} |"
        for algo in algorithms:
            row += f" {str(results[algo].get(key, 'N/A')):^12} |"
        print(row)

    print("\n" + "=" * 60 + "\n")


def run_simulation_safe(
    scenario: str,
    algorithm: str,
    dispatch_mode: str,
    ticks: int,
    seed: Optional[int],
    auto_orders: Optional[int],
    verbose: bool = False,
) -> Optional[Dict[str, Any]]:
    """
    Build a fresh simulation, load the scenario and run it.

    Returns:
        Results dictionary or None if the run raised
    """
    try:
        sim = Simulation(algorithm=algorithm, dispatch_mode=dispatch_mode, seed=seed)
        load_scenario(sim, scenario)
        results = sim.run(
            ticks,
            verbose=verbose,
            auto_order_every=auto_orders,
            until_settled=auto_orders is None,
        )
        if verbose:
            for message in list(sim.event_log)[-10:]:
                print(f"  > {message}")
        return results
    except Exception as e:
        print(f"ERROR: Simulation failed for '{algorithm}': {e}")
        logger.exception("Simulation run failed")
        return None


def run_comparison(start: str, end: str, via: List[str], walls: List[str]) -> int:
    """Race all algorithms over one route and print the table."""
    try:
        start_pos = parse_position(start)
        end_pos = parse_position(end)
        waypoints = [parse_position(w) for w in via]
        wall_set = {parse_position(w) for w in walls}
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    frame = comparison_frame(compare_algorithms(start_pos, end_pos, wall_set, waypoints))
    print(frame.to_string(index=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="LogiX grid delivery simulation CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                                  # Standard map, all algorithms
  python main.py --scenario assignment            # Multi-rider demo
  python main.py --algorithms DIJKSTRA ASTAR      # Compare only these
  python main.py --list-scenarios                 # Show available scenarios
        """
    )

    parser.add_argument(
        "--scenario", "-s",
        type=str,
        default="standard",
        help=f"Scenario to load (default: standard). Options: {', '.join(SCENARIOS)}"
    )

    parser.add_argument(
        "--algorithms", "-a",
        nargs="+",
        default=AVAILABLE_ALGORITHMS,
        help=f"Pathfinding algorithms to compare. Options: {', '.join(AVAILABLE_ALGORITHMS)}"
    )

    parser.add_argument(
        "--dispatch-mode", "-m",
        type=str,
        default=config.DEFAULT_DISPATCH_MODE,
        help=f"Idle-rider selection policy. Options: {', '.join(AVAILABLE_MODES)}"
    )

    parser.add_argument(
        "--ticks", "-t",
        type=int,
        default=2000,
        help="Maximum ticks per run (default: 2000)"
    )

    parser.add_argument(
        "--auto-orders",
        type=int,
        default=None,
        metavar="N",
        help="Place a random order every N ticks"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for rider speeds and auto orders (default: 42)"
    )

    parser.add_argument(
        "--compare",
        nargs=2,
        metavar=("START", "END"),
        help="Race all algorithms from START to END (row,col) and exit"
    )

    parser.add_argument(
        "--via",
        action="append",
        default=[],
        metavar="ROW,COL",
        help="Waypoint for --compare (repeatable)"
    )

    parser.add_argument(
        "--wall",
        action="append",
        default=[],
        metavar="ROW,COL",
        help="Wall cell for --compare (repeatable)"
    )

    parser.add_argument(
        "--list-scenarios",
        action="store_true",
        help="List available scenarios and exit"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show detailed simulation progress"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        help="Logging level (default: WARNING, or INFO with --verbose)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    args = build_parser().parse_args(argv)

    level_name = "INFO" if args.verbose and args.log_level == "WARNING" else args.log_level.upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        print(f"ERROR: Unknown log level '{args.log_level}'")
        return 1
    logging.basicConfig(level=level, format=config.LOG_FORMAT)

    if args.list_scenarios:
        print("\nAvailable Scenarios:")
        print("-" * 50)
        for name, scenario in SCENARIOS.items():
            print(f"  {name:12} - {scenario.description}")
        return 0

    if args.compare:
        return run_comparison(args.compare[0], args.compare[1], args.via, args.wall)

    if args.scenario not in SCENARIOS:
        print(f"ERROR: Unknown scenario '{args.scenario}'")
        print(f"Available scenarios: {', '.join(SCENARIOS)}")
        return 1

    algorithms = [a.upper() for a in args.algorithms]
    for algo in algorithms:
        if algo not in AVAILABLE_ALGORITHMS:
            print(f"ERROR: Unknown algorithm '{algo}'")
            print(f"Available algorithms: {', '.join(AVAILABLE_ALGORITHMS)}")
            return 1

    mode = args.dispatch_mode.lower()
    if mode not in AVAILABLE_MODES:
        print(f"ERROR: Unknown dispatch mode '{args.dispatch_mode}'")
        print(f"Available modes: {', '.join(AVAILABLE_MODES)}")
        return 1

    if args.ticks < 1 or (args.auto_orders is not None and args.auto_orders < 1):
        print("ERROR: --ticks and --auto-orders must be positive")
        return 1

    print_header()
    print(f"Scenario: {args.scenario} ({SCENARIOS[args.scenario].description})")
    print(f"Dispatch mode: {mode}")
    print(f"\nRunning algorithms: {', '.join(algorithms)}")
    print("-" * 40)

    all_results: Dict[str, Dict[str, Any]] = {}

    for algo in algorithms:
        print(f"\n[{algo}] Starting simulation...")
        results = run_simulation_safe(
            args.scenario, algo, mode, args.ticks, args.seed, args.auto_orders, verbose=args.verbose,
        )
        if results is None:
            print(f"WARN: Skipping '{algo}' due to error")
            continue
        all_results[algo] = results

    if not all_results:
        print("ERROR: No simulations completed successfully")
        return 2

    print_results_table(all_results)
    return 0


if __name__ == "__main__":
    sys.exit(main())
