from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pygame.math import Vector2

from ..core.agent import Agent
from ..core.config import BehaviorConfig
from ..utils.math2d import EPSILON, _clamp_length_xy, _safe_normalize_xy

if TYPE_CHECKING:
    from ..core.world import World


@dataclass(slots=True)
class Perception:
    """What one agent saw during a neighbor scan."""

    separation: Vector2 = field(default_factory=Vector2)
    separation_count: int = 0
    alignment: Vector2 = field(default_factory=Vector2)
    cohesion: Vector2 = field(default_factory=Vector2)
    flock_count: int = 0
    flee: Vector2 = field(default_factory=Vector2)
    threat_count: int = 0
    prey: Agent | None = None
    prey_dist_sq: float = math.inf
    rival: Agent | None = None
    rival_dist_sq: float = math.inf
    neighbor_checks: int = 0


def is_hungry(agent: Agent, now: float) -> bool:
    if agent.feed_cooldown > 0.0:
        return False
    if agent.last_feed_time is None:
        return True
    return now - agent.last_feed_time > agent.hunting_cooldown


def ate_recently(agent: Agent, now: float, window: float) -> bool:
    return agent.last_feed_time is not None and now - agent.last_feed_time < window


def perceive(world: World, agent: Agent, hungry: bool) -> Perception:
    behavior = world._config.behavior
    perception = Perception()
    scan_radius = max(behavior.neighbor_radius, behavior.flee_range)
    if agent.species.is_predator and hungry:
        scan_radius = max(scan_radius, behavior.hunt_range, behavior.tantrum_range)
    world._grid.collect_neighbors(
        agent.position,
        world._neighbor_cell_offsets,
        scan_radius * scan_radius,
        world._neighbor_agents,
        world._neighbor_offsets,
        world._neighbor_dist_sq,
        exclude_id=agent.id,
    )
    neighbors = world._neighbor_agents
    perception.neighbor_checks = len(neighbors)

    neighbor_radius_sq = behavior.neighbor_radius * behavior.neighbor_radius
    separation_radius = behavior.separation_base + agent.size
    separation_radius_sq = separation_radius * separation_radius
    hunt_range_sq = behavior.hunt_range * behavior.hunt_range
    tantrum_range_sq = behavior.tantrum_range * behavior.tantrum_range
    flee_range_sq = behavior.flee_range * behavior.flee_range
    prey_limit = agent.size * behavior.prey_size_ratio
    is_predator = agent.species.is_predator
    species_id = agent.species.id

    for other, offset, dist_sq in zip(neighbors, world._neighbor_offsets, world._neighbor_dist_sq):
        if other.is_dead:
            continue
        same_species = other.species.id == species_id
        if dist_sq < neighbor_radius_sq:
            if dist_sq < separation_radius_sq:
                # Push away from the neighbor, stronger the closer it is.
                distance = max(math.sqrt(dist_sq), 0.1)
                away = _safe_normalize_xy(-offset.x, -offset.y)
                perception.separation.x += away.x / distance
                perception.separation.y += away.y / distance
                perception.separation_count += 1
            if same_species:
                perception.alignment += other.velocity
                perception.cohesion += other.position
                perception.flock_count += 1

        if is_predator:
            if not hungry:
                continue
            if same_species:
                if dist_sq < tantrum_range_sq and dist_sq < perception.rival_dist_sq:
                    perception.rival = other
                    perception.rival_dist_sq = dist_sq
            elif not other.species.is_predator and other.size < prey_limit:
                if dist_sq < hunt_range_sq and dist_sq < perception.prey_dist_sq:
                    perception.prey = other
                    perception.prey_dist_sq = dist_sq
        elif other.species.is_predator and dist_sq < flee_range_sq:
            away = _safe_normalize_xy(-offset.x, -offset.y)
            perception.flee += away
            perception.threat_count += 1
    return perception


def seek(agent: Agent, target: Vector2, speed: float | None = None, max_force: float | None = None) -> Vector2:
    speed = agent.max_speed if speed is None else speed
    max_force = agent.max_force if max_force is None else max_force
    desired = _safe_normalize_xy(target.x - agent.position.x, target.y - agent.position.y)
    return _clamp_length_xy(
        desired.x * speed - agent.velocity.x,
        desired.y * speed - agent.velocity.y,
        max_force,
    )


def steer_along(agent: Agent, direction: Vector2, speed: float, max_force: float) -> Vector2:
    desired = _safe_normalize_xy(direction.x, direction.y)
    return _clamp_length_xy(
        desired.x * speed - agent.velocity.x,
        desired.y * speed - agent.velocity.y,
        max_force,
    )


def pursue(agent: Agent, prey: Agent, behavior: BehaviorConfig) -> Vector2:
    return seek(
        agent,
        prey.position,
        agent.max_speed * behavior.hunt_speed_factor,
        agent.max_force * behavior.hunt_force_factor,
    )


def flee(agent: Agent, away: Vector2, behavior: BehaviorConfig) -> Vector2:
    return steer_along(
        agent,
        away,
        agent.max_speed * behavior.flee_speed_factor,
        agent.max_force * behavior.flee_force_factor,
    )


def tantrum_orbit(agent: Agent, rival: Agent, behavior: BehaviorConfig) -> Vector2:
    to_rival = _safe_normalize_xy(rival.position.x - agent.position.x, rival.position.y - agent.position.y)
    tangent = Vector2(-to_rival.y, to_rival.x)
    return steer_along(
        agent,
        tangent,
        agent.max_speed * behavior.tantrum_speed_factor,
        agent.max_force * behavior.tantrum_force_factor,
    )


def flocking(agent: Agent, perception: Perception, behavior: BehaviorConfig) -> Vector2:
    force = Vector2()
    if perception.separation_count > 0:
        separation = steer_along(agent, perception.separation, agent.max_speed, agent.max_force * 2.0)
        force += separation * behavior.separation_weight
    if perception.flock_count > 0:
        count = perception.flock_count
        alignment = perception.alignment / count
        if alignment.length_squared() > EPSILON * EPSILON:
            force += steer_along(agent, alignment, agent.max_speed, agent.max_force) * behavior.alignment_weight
        center = perception.cohesion / count
        force += seek(agent, center) * behavior.cohesion_weight
    return force


def wander(agent: Agent, now: float, behavior: BehaviorConfig) -> Vector2:
    """Seek a point that sways smoothly around a circle projected ahead of the agent."""
    ahead = _safe_normalize_xy(agent.velocity.x, agent.velocity.y) * behavior.wander_distance
    t = now + agent.wander_phase
    target = Vector2(
        agent.position.x + ahead.x + math.cos(t) * behavior.wander_sway,
        agent.position.y + ahead.y + math.sin(t) * behavior.wander_radius,
    )
    return seek(agent, target)


def boundary_avoidance(agent: Agent, width: float, height: float, behavior: BehaviorConfig) -> Vector2:
    margin = behavior.boundary_margin
    position = agent.position
    desired: Vector2 | None = None
    if position.x < margin:
        desired = Vector2(agent.max_speed, agent.velocity.y)
    elif position.x > width - margin:
        desired = Vector2(-agent.max_speed, agent.velocity.y)
    if position.y < margin:
        desired = Vector2(agent.velocity.x, agent.max_speed)
    elif position.y > height - margin:
        desired = Vector2(agent.velocity.x, -agent.max_speed)
    if desired is None:
        return Vector2()
    return steer_along(agent, desired, agent.max_speed, agent.max_force * behavior.boundary_force_factor)
