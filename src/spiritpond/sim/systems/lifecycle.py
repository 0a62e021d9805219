from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, List

from pygame.math import Vector2

from ..core.agent import Agent, AgentState, DeathReason, Outcome
from ..utils.math2d import _clamp_value, _ease_angle
from . import feeding

if TYPE_CHECKING:
    from ..core.world import World

logger = logging.getLogger(__name__)

_STRAIGHT_UP = -math.pi / 2.0


def advance_timers(world: World, agent: Agent, dt: float) -> None:
    lifecycle = world._config.lifecycle
    agent.energy = max(0.0, agent.energy - lifecycle.energy_drain_per_second * dt)
    if agent.digestion_slowdown < 1.0:
        agent.digestion_slowdown = min(1.0, agent.digestion_slowdown + lifecycle.digestion_recovery_per_second * dt)
    if agent.feed_cooldown > 0.0:
        agent.feed_cooldown = max(0.0, agent.feed_cooldown - dt)
    if agent.reproduction_cooldown > 0.0:
        agent.reproduction_cooldown = max(0.0, agent.reproduction_cooldown - dt)
    if agent.phrase_timer > 0.0 and not agent.is_talking:
        agent.phrase_timer = max(0.0, agent.phrase_timer - dt)
        if agent.phrase_timer <= 0.0:
            agent.phrase = None


def check_mortality(world: World, agent: Agent) -> bool:
    now = world.now
    if agent.age(now) > agent.lifespan:
        kill(world, agent, DeathReason.OLD_AGE)
    elif agent.energy <= 0.0:
        kill(world, agent, DeathReason.STARVED)
    elif world._rng.chance(world._config.lifecycle.sudden_illness_chance_per_tick):
        kill(world, agent, DeathReason.SUDDEN_ILLNESS)
    return agent.is_dead


def kill(world: World, agent: Agent, reason: DeathReason, eaten_by: str | None = None) -> None:
    if agent.is_dead:
        return
    agent.is_dead = True
    agent.death_reason = reason
    agent.death_time = world.now
    agent.clear_targets()
    agent.acceleration.update(0.0, 0.0)
    if reason is DeathReason.EATEN:
        agent.is_eaten = True
        agent.eaten_by = eaten_by
        agent.state = AgentState.EATEN
    else:
        agent.state = AgentState.DEAD_FLOATING
    logger.debug("%s (%s) died: %s", agent.name, agent.species.id, agent.death_description)


def resolve_hunt(world: World, agent: Agent) -> None:
    if agent.hunt_target_id is None:
        return
    if agent.rival_target_id is not None:
        agent.hunt_target_id = None
        return
    behavior = world._config.behavior
    prey = world.get_agent(agent.hunt_target_id)
    if prey is None or prey.is_dead:
        agent.hunt_target_id = None
        return
    dist_sq = agent.position.distance_squared_to(prey.position)
    if dist_sq > behavior.hunt_give_up_range * behavior.hunt_give_up_range:
        agent.hunt_target_id = None
        return
    strike = agent.size * behavior.strike_size_ratio
    if dist_sq < strike * strike:
        kill(world, prey, DeathReason.EATEN, eaten_by=agent.name)
        feeding.feed(world, agent)
        agent.hunting_cooldown = world._rng.next_range(*world._config.lifecycle.hunting_cooldown_range)
        agent.hunt_target_id = None
        world._eaten_this_tick += 1


def drift_dead(world: World, agent: Agent, frame_scale: float) -> Outcome:
    """Eaten agents leave at once; the rest float up until they clear the top edge."""
    if agent.is_eaten:
        return Outcome.EATEN
    behavior = world._config.behavior
    agent.state = AgentState.DEAD_FLOATING
    agent.velocity.x *= behavior.float_drag ** frame_scale
    blend = min(1.0, behavior.float_drift_blend * frame_scale)
    agent.velocity.y += (-behavior.float_drift_speed - agent.velocity.y) * blend
    agent.heading = _ease_angle(agent.heading, _STRAIGHT_UP, min(1.0, behavior.float_turn_rate * frame_scale))
    agent.position += agent.velocity * frame_scale
    if agent.position.y < -max(behavior.float_exit_margin, agent.size):
        agent.is_gone = True
        agent.state = AgentState.GONE
        return Outcome.GONE
    return Outcome.ALIVE


def prune_targets(world: World, agent: Agent) -> None:
    behavior = world._config.behavior
    lifecycle = world._config.lifecycle
    if agent.courtship_target_id is not None:
        mate = world.get_agent(agent.courtship_target_id)
        give_up = lifecycle.courtship_give_up_range
        if (
            mate is None
            or not can_court(world, mate)
            or agent.energy < lifecycle.courtship_min_energy
            or agent.position.distance_squared_to(mate.position) > give_up * give_up
        ):
            agent.courtship_target_id = None
    if agent.rival_target_id is not None:
        rival = world.get_agent(agent.rival_target_id)
        if (
            rival is None
            or rival.is_dead
            or agent.position.distance_squared_to(rival.position) > behavior.tantrum_range * behavior.tantrum_range
        ):
            agent.rival_target_id = None
    if agent.hunt_target_id is not None:
        prey = world.get_agent(agent.hunt_target_id)
        if prey is None or prey.is_dead:
            agent.hunt_target_id = None


def can_court(world: World, agent: Agent) -> bool:
    lifecycle = world._config.lifecycle
    return (
        not agent.is_dead
        and agent.is_mature(world.now, lifecycle.maturity_age)
        and agent.reproduction_cooldown <= 0.0
        and agent.energy >= lifecycle.courtship_min_energy
    )


def consider_courtship(world: World, agent: Agent, dt: float) -> None:
    lifecycle = world._config.lifecycle
    agent.courtship_timer += dt
    if agent.courtship_timer < lifecycle.courtship_check_interval:
        return
    agent.courtship_timer = 0.0
    if agent.courtship_target_id is not None:
        return
    chance = lifecycle.predator_courtship_chance if agent.species.is_predator else lifecycle.courtship_chance
    if not world._rng.chance(chance):
        return
    if world.population > lifecycle.population_soft_cap or not can_court(world, agent):
        return
    mate = find_mate(world, agent)
    if mate is not None:
        agent.courtship_target_id = mate.id
        logger.debug("%s is courting %s", agent.name, mate.name)


def find_mate(world: World, agent: Agent) -> Agent | None:
    best: Agent | None = None
    best_dist_sq = math.inf
    for other in world._grid.query(agent.position, world._config.lifecycle.courtship_search_radius, agent.id):
        if other.species.id != agent.species.id or not can_court(world, other):
            continue
        dist_sq = agent.position.distance_squared_to(other.position)
        if dist_sq < best_dist_sq:
            best = other
            best_dist_sq = dist_sq
    return best


def reproduce(world: World, first: Agent, second: Agent) -> List[Agent]:
    lifecycle = world._config.lifecycle
    rng = world._rng
    count = rng.next_int(*lifecycle.offspring_range)
    midpoint = (first.position + second.position) / 2.0
    jitter = lifecycle.offspring_jitter
    generation = max(first.generation, second.generation) + 1
    children: List[Agent] = []
    for _ in range(count):
        size = first.size * lifecycle.offspring_size_fraction
        position = Vector2(
            _clamp_value(midpoint.x + rng.next_range(-jitter, jitter), size, world._config.world_width - size),
            _clamp_value(midpoint.y + rng.next_range(-jitter, jitter), size, world._config.world_height - size),
        )
        child = world._spawn_agent(first.species, position, born=True, generation=generation)
        child.size = size
        child.max_speed = first.species.base_speed * lifecycle.offspring_speed_factor
        child.reproduction_cooldown = rng.next_range(*lifecycle.reproduction_cooldown_range)
        children.append(child)

    cooldown = rng.next_range(*lifecycle.reproduction_cooldown_range)
    for parent in (first, second):
        parent.reproduction_cooldown = cooldown
        parent.offspring_count += count
        parent.courtship_target_id = None
    world._record_birth(first, second, children)
    return children
