from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.agent import Agent, AgentState, Outcome
from ..utils.math2d import _clamp_length, _ease_angle, _heading_from_velocity
from . import feeding, lifecycle, steering

if TYPE_CHECKING:
    from ..core.world import World


def update_agent(world: World, agent: Agent, dt: float, frame_scale: float) -> Outcome:
    if not agent.is_dead:
        lifecycle.advance_timers(world, agent, dt)
        lifecycle.check_mortality(world, agent)
    if not agent.is_dead:
        lifecycle.resolve_hunt(world, agent)
    if agent.is_dead:
        return lifecycle.drift_dead(world, agent, frame_scale)

    lifecycle.prune_targets(world, agent)
    lifecycle.consider_courtship(world, agent, dt)
    pursuing = _steer(world, agent)
    _integrate(world, agent, pursuing, frame_scale)
    return Outcome.ALIVE


def _steer(world: World, agent: Agent) -> bool:
    """Accumulate this tick's steering forces. Returns True while chasing a target."""
    config = world._config
    behavior = config.behavior
    now = world.now
    stride = max(1, int(config.flocking_stride))
    scan = (world.tick_count + agent.stagger_offset) % stride == 0
    perception: steering.Perception | None = None
    acceleration = agent.acceleration

    if scan:
        hungry = agent.species.is_predator and steering.is_hungry(agent, now)
        perception = steering.perceive(world, agent, hungry)
        world._neighbor_checks += perception.neighbor_checks
        agent.rival_target_id = perception.rival.id if perception.rival is not None else None
        if perception.rival is not None:
            agent.hunt_target_id = None
        elif perception.prey is not None:
            agent.hunt_target_id = perception.prey.id
        if perception.threat_count > 0 and not steering.ate_recently(agent, now, behavior.recent_meal_seconds):
            agent.flee_vector.update(perception.flee)
        else:
            agent.flee_vector.update(0.0, 0.0)

    rival = world.get_agent(agent.rival_target_id) if agent.rival_target_id is not None else None
    if rival is not None and not rival.is_dead:
        agent.state = AgentState.TANTRUM
        acceleration += steering.tantrum_orbit(agent, rival, behavior)
        return False

    prey = world.get_agent(agent.hunt_target_id) if agent.hunt_target_id is not None else None
    if prey is not None and not prey.is_dead:
        agent.state = AgentState.HUNTING
        acceleration += steering.pursue(agent, prey, behavior)
        _eat_nearby_food(world, agent)
        return True

    if agent.flee_vector.length_squared() > 0.0:
        agent.state = AgentState.FLEEING
        acceleration += steering.flee(agent, agent.flee_vector, behavior)
        _eat_nearby_food(world, agent)
        return False

    if agent.feed_cooldown <= 0.0:
        food, dist_sq = feeding.nearest_food(world, agent)
        if food is not None:
            agent.state = AgentState.SEEKING_FOOD
            feeding.try_eat(world, agent, food, dist_sq)
            acceleration += steering.seek(agent, food.position)
            return True

    mate = world.get_agent(agent.courtship_target_id) if agent.courtship_target_id is not None else None
    if mate is not None:
        agent.state = AgentState.COURTING
        acceleration += steering.seek(agent, mate.position)
        contact = agent.size + mate.size
        if agent.position.distance_squared_to(mate.position) < contact * contact:
            lifecycle.reproduce(world, agent, mate)
        return True

    agent.state = AgentState.IDLE
    if perception is not None:
        acceleration += steering.flocking(agent, perception, behavior)
        acceleration += steering.wander(agent, now, behavior)
        acceleration += steering.boundary_avoidance(agent, config.world_width, config.world_height, behavior)
    return False


def _eat_nearby_food(world: World, agent: Agent) -> None:
    if agent.feed_cooldown > 0.0:
        return
    food, dist_sq = feeding.nearest_food(world, agent)
    if food is not None:
        feeding.try_eat(world, agent, food, dist_sq)


def _integrate(world: World, agent: Agent, pursuing: bool, frame_scale: float) -> None:
    config = world._config
    behavior = config.behavior
    lifecycle_config = config.lifecycle
    agent.velocity += agent.acceleration * frame_scale
    speed_limit = agent.max_speed * (behavior.pursuit_speed_bonus if pursuing else 1.0)
    speed_limit *= max(behavior.min_energy_speed_factor, agent.energy / lifecycle_config.max_energy)
    speed_limit *= agent.digestion_slowdown
    agent.velocity = _clamp_length(agent.velocity, speed_limit)
    agent.position += agent.velocity * frame_scale
    agent.acceleration.update(0.0, 0.0)

    size = agent.size
    damping = behavior.wall_damping
    max_x = config.world_width - size
    max_y = config.world_height - size
    if agent.position.x < size:
        agent.position.x = size
        agent.velocity.x *= -damping
    elif agent.position.x > max_x:
        agent.position.x = max_x
        agent.velocity.x *= -damping
    if agent.position.y < size:
        agent.position.y = size
        agent.velocity.y *= -damping
    elif agent.position.y > max_y:
        agent.position.y = max_y
        agent.velocity.y *= -damping

    if agent.velocity.length_squared() > 1e-12:
        target = _heading_from_velocity(agent.velocity)
        agent.heading = _ease_angle(agent.heading, target, min(1.0, behavior.turn_rate * frame_scale))
    speed_pct = agent.velocity.length() / max(agent.max_speed, 1e-6)
    agent.tail_phase += (0.1 + 0.3 * speed_pct) * frame_scale
