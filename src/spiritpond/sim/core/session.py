from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class Session:
    """Score and lifetime totals for one play session, owned by a World."""

    score: int = 0
    total_births: int = 0
    total_deaths: int = 0

    def reset(self) -> None:
        self.score = 0
        self.total_births = 0
        self.total_deaths = 0
