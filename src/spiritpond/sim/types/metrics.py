from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    births: int
    deaths: int
    eaten: int
    score: int
    food: int
    average_energy: float
    neighbor_checks: int
    tick_duration_ms: float = 0.0
