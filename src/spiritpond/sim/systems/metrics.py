from __future__ import annotations

from typing import Tuple

from ..types.metrics import TickMetrics


def create_metrics(
    tick: int,
    births: int,
    deaths: int,
    eaten: int,
    neighbor_checks: int,
    duration_ms: float,
    stats: Tuple[int, float, int, int],
) -> TickMetrics:
    population, avg_energy, score, food = stats
    return TickMetrics(
        tick=tick,
        population=population,
        births=births,
        deaths=deaths,
        eaten=eaten,
        score=score,
        food=food,
        average_energy=avg_energy,
        neighbor_checks=neighbor_checks,
        tick_duration_ms=duration_ms,
    )
