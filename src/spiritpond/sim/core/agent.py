from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pygame.math import Vector2

from .species import Species


class AgentState(str, Enum):
    IDLE = "Idle"
    SEEKING_FOOD = "SeekingFood"
    COURTING = "Courting"
    HUNTING = "Hunting"
    FLEEING = "Fleeing"
    TANTRUM = "Tantrum"
    DEAD_FLOATING = "DeadFloating"
    EATEN = "Eaten"
    GONE = "Gone"


class Outcome(str, Enum):
    ALIVE = "alive"
    EATEN = "eaten"
    GONE = "gone"


class DeathReason(str, Enum):
    OLD_AGE = "Old Age"
    STARVED = "Starved"
    SUDDEN_ILLNESS = "Sudden Illness"
    EATEN = "Eaten"


@dataclass(slots=True)
class Agent:
    id: int
    species: Species
    position: Vector2
    velocity: Vector2
    birth_time: float
    lifespan: float
    max_speed: float
    max_force: float
    size: float
    name: str = "Spirit"
    energy: float = 100.0
    state: AgentState = AgentState.IDLE
    acceleration: Vector2 = field(default_factory=Vector2)
    heading: float = 0.0
    generation: int = 0
    is_dead: bool = False
    is_eaten: bool = False
    is_gone: bool = False
    death_reason: DeathReason | None = None
    eaten_by: str | None = None
    death_time: float | None = None
    last_feed_time: float | None = None
    feed_cooldown: float = 0.0
    hunting_cooldown: float = 0.0
    digestion_slowdown: float = 1.0
    reproduction_cooldown: float = 0.0
    offspring_count: int = 0
    courtship_timer: float = 0.0
    hunt_target_id: int | None = None
    courtship_target_id: int | None = None
    rival_target_id: int | None = None
    flee_vector: Vector2 = field(default_factory=Vector2)
    wander_phase: float = 0.0
    stagger_offset: int = 0
    tail_phase: float = 0.0
    phrase: str | None = None
    phrase_timer: float = 0.0
    is_talking: bool = False

    @property
    def is_alive(self) -> bool:
        return not self.is_dead

    def age(self, now: float) -> float:
        end = self.death_time if self.death_time is not None else now
        return max(0.0, end - self.birth_time)

    def is_mature(self, now: float, maturity_age: float) -> bool:
        return now - self.birth_time > maturity_age

    @property
    def death_description(self) -> str | None:
        if self.death_reason is None:
            return None
        if self.death_reason is DeathReason.EATEN and self.eaten_by:
            return f"Eaten by {self.eaten_by}"
        return self.death_reason.value

    def clear_targets(self) -> None:
        self.hunt_target_id = None
        self.courtship_target_id = None
        self.rival_target_id = None
        self.flee_vector.update(0.0, 0.0)
