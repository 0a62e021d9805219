from __future__ import annotations

import math

from pygame.math import Vector2

EPSILON = 1e-6


def _safe_normalize(vector: Vector2) -> Vector2:
    return _safe_normalize_xy(vector.x, vector.y)


def _safe_normalize_xy(x: float, y: float) -> Vector2:
    magnitude = math.sqrt(x * x + y * y)
    if magnitude < EPSILON:
        magnitude = EPSILON
    inv = 1.0 / magnitude
    return Vector2(x * inv, y * inv)


def _clamp_length_xy(x: float, y: float, max_length: float) -> Vector2:
    if max_length <= 0:
        return Vector2()
    magnitude_sq = x * x + y * y
    if magnitude_sq <= max_length * max_length:
        return Vector2(x, y)
    inv = max_length / math.sqrt(magnitude_sq)
    return Vector2(x * inv, y * inv)


def _clamp_length(vector: Vector2, max_length: float) -> Vector2:
    return _clamp_length_xy(vector.x, vector.y, max_length)


def _heading_from_velocity(vector: Vector2) -> float:
    if vector.length_squared() < 1e-12:
        return 0.0
    return math.atan2(vector.y, vector.x)


def _wrap_angle(angle: float) -> float:
    while angle < -math.pi:
        angle += 2.0 * math.pi
    while angle > math.pi:
        angle -= 2.0 * math.pi
    return angle


def _ease_angle(current: float, target: float, rate: float) -> float:
    return current + _wrap_angle(target - current) * rate


def _clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))
