from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..logging_config import LEVEL_NAMES, setup_logging
from ..sim.core.config import SimulationConfig
from ..sim.core.world import World
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)


_BASIC_HEADER = [
    "tick",
    "population",
    "removed",
    "groups",
    "ally_checks",
    "avg_speed",
    "tick_ms",
]

_DETAILED_HEADER = [
    "tick",
    "population",
    "removed",
    "groups",
    "ally_checks",
    "avg_speed",
    "tick_ms",
    "polarization",
    "max_speed",
    "ally_checks_per_agent",
    "tick_ms_per_agent",
    "avg_group_size",
    "min_group_size",
    "max_group_size",
    "centroid_spread",
    "out_of_bounds",
]


def _format_basic_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        metrics.removed,
        metrics.groups,
        metrics.ally_checks,
        f"{metrics.average_speed:.4f}",
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(world: World, metrics: TickMetrics, tick_ms: float) -> list[object]:
    population = metrics.population
    if population <= 0:
        max_speed = 0.0
        ally_checks_per_agent = 0.0
        tick_ms_per_agent = 0.0
        avg_group_size = 0.0
        min_group_size = 0
        max_group_size = 0
        centroid_spread = 0.0
        out_of_bounds = 0
    else:
        ally_checks_per_agent = metrics.ally_checks / population
        tick_ms_per_agent = tick_ms / population

        agents = world.agents
        max_speed = max(agent.velocity.magnitude() for agent in agents)

        group_sizes: dict[int, int] = {}
        for agent in agents:
            group_sizes[agent.group] = group_sizes.get(agent.group, 0) + 1
        avg_group_size = population / len(group_sizes)
        min_group_size = min(group_sizes.values())
        max_group_size = max(group_sizes.values())

        dimension = world.dimension
        centroid = [0.0] * dimension
        for agent in agents:
            for axis, value in enumerate(agent.position):
                centroid[axis] += value
        centroid = [value / population for value in centroid]
        spread_sum = 0.0
        for agent in agents:
            spread_sum += math.sqrt(sum((value - c) ** 2 for value, c in zip(agent.position, centroid)))
        centroid_spread = spread_sum / population

        out_of_bounds = sum(1 for agent in agents if not world.contains(agent.position))

    return [
        metrics.tick,
        population,
        metrics.removed,
        metrics.groups,
        metrics.ally_checks,
        f"{metrics.average_speed:.4f}",
        f"{tick_ms:.3f}",
        f"{metrics.polarization:.4f}",
        f"{max_speed:.4f}",
        f"{ally_checks_per_agent:.4f}",
        f"{tick_ms_per_agent:.4f}",
        f"{avg_group_size:.4f}",
        min_group_size,
        max_group_size,
        f"{centroid_spread:.4f}",
        out_of_bounds,
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p95": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p95": _percentile(sorted_values, 0.95),
        "p99": _percentile(sorted_values, 0.99),
    }


def _correlation(xs: list[float], ys: list[float]) -> float:
    if len(xs) != len(ys) or len(xs) < 2:
        return 0.0
    mean_x = sum(xs) / len(xs)
    mean_y = sum(ys) / len(ys)
    num = 0.0
    denom_x = 0.0
    denom_y = 0.0
    for x, y in zip(xs, ys):
        dx = x - mean_x
        dy = y - mean_y
        num += dx * dy
        denom_x += dx * dx
        denom_y += dy * dy
    denom = math.sqrt(denom_x * denom_y)
    if denom == 0.0:
        return 0.0
    return float(num / denom)


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 5000,
    config_path: Optional[Path] = None,
    initial_population: Optional[int] = None,
) -> World:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig(initial_population=60)
    if seed is not None:
        config.seed = seed
    if initial_population is not None:
        config.initial_population = initial_population

    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    world = World(config)
    logger.info(
        "Running %d step(s) with %d agent(s) in %d dimension(s), seed %d",
        steps,
        len(world.agents),
        world.dimension,
        config.seed,
    )

    tick_ms_series: list[float] = []
    population_series: list[int] = []
    polarization_series: list[float] = []
    ally_checks_series: list[int] = []
    max_tick_ms = (-1.0, -1)
    min_population = (len(world.agents), 0)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    try:
        for _ in range(steps):
            metrics = world.tick()
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms

            if summary_path:
                tick_ms_series.append(tick_ms)
                population_series.append(metrics.population)
                polarization_series.append(metrics.polarization)
                ally_checks_series.append(metrics.ally_checks)
                if tick_ms > max_tick_ms[0]:
                    max_tick_ms = (tick_ms, metrics.tick)
                if metrics.population < min_population[0]:
                    min_population = (metrics.population, metrics.tick)

            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(world, metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        window = max(1, int(summary_window))
        tail_slice = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "steps": steps,
            "seed": config.seed,
            "dimension": config.dimension,
            "tick_mode": config.tick_mode,
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "tick_ms": _summary_stats(tick_ms_series),
            "population": _summary_stats([float(v) for v in population_series]),
            "polarization": _summary_stats(polarization_series),
            "ally_checks": _summary_stats([float(v) for v in ally_checks_series]),
            "correlations": {
                "tick_ms_vs_ally_checks": _correlation(tick_ms_series, [float(v) for v in ally_checks_series]),
                "tick_ms_vs_population": _correlation(tick_ms_series, [float(v) for v in population_series]),
            },
            "peaks": {
                "tick_ms": {"value": float(max_tick_ms[0]), "tick": max_tick_ms[1]},
                "min_population": {"value": min_population[0], "tick": min_population[1]},
            },
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail_slice]),
                "polarization": _summary_stats(polarization_series[tail_slice]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
        logger.info("Wrote run summary to %s", summary_path)

    return world


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless N-dimensional boids simulation")
    parser.add_argument("--steps", type=int, default=1000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--population", type=int, default=None, help="Override the initial population.")
    parser.add_argument("--config", type=Path, default=None, help="YAML simulation config.")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--summary-window",
        type=int,
        default=5000,
        help="Tail window size (ticks) for summary stats.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default=None, choices=LEVEL_NAMES, help="Defaults to $BOIDS_LOG_LEVEL or INFO.")
    args = parser.parse_args()
    setup_logging(args.log_level)
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        summary_window=args.summary_window,
        config_path=args.config,
        initial_population=args.population,
    )


if __name__ == "__main__":
    main()
