from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector2


@dataclass(slots=True)
class Food:
    position: Vector2
    velocity: Vector2 = field(default_factory=Vector2)
    settle_acceleration: Vector2 = field(default_factory=lambda: Vector2(0.0, 0.08))
    size: float = 4.0
    eaten: bool = False
    wobble_speed: float = 3.0
    wobble_distance: float = 0.4
    wobble_offset: float = 0.0
