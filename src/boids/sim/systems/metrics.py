from __future__ import annotations

from typing import Tuple

from ..types.metrics import TickMetrics


def create_metrics(
    tick: int,
    removed: int,
    ally_checks: int,
    duration_ms: float,
    stats: Tuple[int, int, float, float],
) -> TickMetrics:
    population, groups, average_speed, polarization = stats
    return TickMetrics(
        tick=tick,
        population=population,
        removed=removed,
        groups=groups,
        ally_checks=ally_checks,
        average_speed=average_speed,
        polarization=polarization,
        tick_duration_ms=duration_ms,
    )
