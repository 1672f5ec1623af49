# logix-dispatch/benchmark.py
"""
Benchmark script for the LogiX dispatch and routing engine.
Outputs CSV files for statistical analysis with comparison to the Dijkstra baseline.

Two suites:
- Pathfinding: races DIJKSTRA, GREEDY and ASTAR over each scenario's race
  route on a series of seeded random wall maps.
- Simulation: runs every scenario under each algorithm and dispatch mode
  with a steady stream of auto orders and records the KPIs.
"""

import json
import os
import random
import shutil
from datetime import datetime

import pandas as pd

from logix_dispatch import config
from logix_dispatch.comparison import build_race_route, compare_algorithms, comparison_frame
from logix_dispatch.models import Algorithm, DispatchMode
from logix_dispatch.scenarios import SCENARIOS, load_scenario
from logix_dispatch.simulation import Simulation

OUTPUT_DIR = "results"

WALL_DENSITIES = [0.0, 0.1, 0.2, 0.3]
MAPS_PER_DENSITY = 5
SIM_TICKS = 3000
AUTO_ORDER_EVERY = 60
SEED = 7

# KPIs copied from Simulation.get_results() into the CSV
CSV_KPIS = [
    "total_orders",
    "orders_delivered",
    "orders_queued",
    "orders_in_progress",
    "delivery_success_rate_pct",
    "avg_delivery_time_s",
    "median_delivery_time_s",
    "max_delivery_time_s",
    "total_distance_cells",
    "riders_used",
    "total_riders",
    "path_trace_cells",
]


def random_walls(rng: random.Random, density: float, keep_clear: set) -> set:
    """Scatter walls over the default grid, never on ``keep_clear`` cells."""
    walls = set()
    for r in range(config.GRID_ROWS):
        for c in range(config.GRID_COLS):
            if (r, c) not in keep_clear and rng.random() < density:
                walls.add((r, c))
    return walls


def race_route_for(scenario) -> tuple:
    """First rider, then every home served from the first hotel, in listed order."""
    rider_cell = scenario.riders[0][1]
    hotel_cell = scenario.hotels[0][1]
    stops = [(hotel_cell, home[1]) for home in scenario.homes] or [(hotel_cell, hotel_cell)]
    return build_race_route(rider_cell, stops)


def run_pathfinding_suite() -> pd.DataFrame:
    """Race every algorithm on every scenario route and wall density."""
    rng = random.Random(SEED)
    frames = []
    for name, scenario in SCENARIOS.items():
        if not scenario.homes:
            continue
        start, waypoints, end = race_route_for(scenario)
        keep_clear = {tuple(start), tuple(end)} | {tuple(w) for w in waypoints}
        print(f"\n  Route {name}: {len(waypoints) + 1} legs")

        for density in WALL_DENSITIES:
            for map_idx in range(MAPS_PER_DENSITY):
                walls = random_walls(rng, density, keep_clear)
                frame = comparison_frame(compare_algorithms(start, end, walls, waypoints))
                frame.insert(0, "map", map_idx)
                frame.insert(0, "wall_density", density)
                frame.insert(0, "scenario", name)
                frames.append(frame)

    results = pd.concat(frames, ignore_index=True)

    # Compare against Dijkstra on the same map
    baseline = results[results["algorithm"] == Algorithm.DIJKSTRA.value][
        ["scenario", "wall_density", "map", "path_length", "visited_count"]
    ].rename(columns={"path_length": "dijkstra_path_length", "visited_count": "dijkstra_visited"})
    results = results.merge(baseline, on=["scenario", "wall_density", "map"], how="left")
    results["extra_steps_vs_dijkstra"] = results["path_length"] - results["dijkstra_path_length"]
    results["visited_vs_dijkstra_pct"] = (
        (results["visited_count"] - results["dijkstra_visited"]) / results["dijkstra_visited"] * 100
    ).round(2)
    return results


def run_simulation_suite() -> pd.DataFrame:
    """Run each scenario under every algorithm and dispatch mode."""
    rows = []
    for name in SCENARIOS:
        for algo in Algorithm:
            for mode in DispatchMode:
                sim = Simulation(algorithm=algo, dispatch_mode=mode, seed=SEED)
                load_scenario(sim, name)
                results = sim.run(SIM_TICKS, auto_order_every=AUTO_ORDER_EVERY)
                row = {"scenario": name, "algorithm": algo.value, "dispatch_mode": mode.value}
                row.update({kpi: results.get(kpi) for kpi in CSV_KPIS})
                earnings = list(results["rider_earnings"].values())
                row["earnings_spread"] = (max(earnings) - min(earnings)) if earnings else 0.0
                rows.append(row)
                print(f"    ✓ {name:<10} {algo.value:<8} {mode.value:<10} "
                      f"{results['orders_delivered']}/{results['total_orders']} delivered, "
                      f"{results['total_distance_cells']} cells")
    return pd.DataFrame(rows)


def summarize(pathfinding: pd.DataFrame) -> pd.DataFrame:
    """Mean metrics per algorithm and wall density over all maps where a path was found."""
    found = pathfinding[pathfinding["found"]]
    return (
        found.groupby(["algorithm", "wall_density"])
        .agg(
            runs=("path_length", "size"),
            mean_path_length=("path_length", "mean"),
            mean_visited=("visited_count", "mean"),
            mean_extra_steps=("extra_steps_vs_dijkstra", "mean"),
            mean_time_ms=("execution_time_ms", "mean"),
        )
        .round(3)
        .reset_index()
    )


def main():
    """Run the full benchmark suite."""
    print("=" * 60)
    print("LOGIX DISPATCH BENCHMARK SUITE")
    print("=" * 60)

    os.makedirs(OUTPUT_DIR, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    print("\nPATHFINDING RACE")
    pathfinding = run_pathfinding_suite()
    summary = summarize(pathfinding)

    print(f"\n{'='*60}")
    print("SIMULATION RUNS")
    print("=" * 60)
    simulation = run_simulation_suite()

    outputs = {
        "PATHFINDING": pathfinding,
        "PATHFINDING_SUMMARY": summary,
        "SIMULATION": simulation,
    }
    for prefix, frame in outputs.items():
        filename = f"{OUTPUT_DIR}/{prefix}_{timestamp}.csv"
        frame.to_csv(filename, index=False)
        shutil.copy(filename, f"{OUTPUT_DIR}/LATEST_{prefix}.csv")
        print(f"✓ Saved CSV: {filename}")

    json_file = f"{OUTPUT_DIR}/benchmark_{timestamp}.json"
    with open(json_file, "w") as f:
        json.dump({
            "timestamp": timestamp,
            "seed": SEED,
            "summary": summary.to_dict(orient="records"),
            "simulation": simulation.to_dict(orient="records"),
        }, f, indent=2, default=str)
    print(f"✓ Saved JSON: {json_file}")

    print(f"\n{'='*60}")
    print("BENCHMARK COMPLETE")
    print(f"{'='*60}")
    print(summary.to_string(index=False))


if __name__ == "__main__":
    main()
