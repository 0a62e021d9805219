from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from pygame.math import Vector2

from ..core.agent import Agent
from ..core.food import Food

if TYPE_CHECKING:
    from ..core.world import World

logger = logging.getLogger(__name__)


def drop_food(world: World, x: float, y: float) -> Food | None:
    config = world._config.food
    if len(world._foods) >= config.max_food:
        logger.debug("Food cap (%d) reached; ignoring drop at (%.1f, %.1f)", config.max_food, x, y)
        return None
    rng = world._rng
    food = Food(
        position=Vector2(x, y),
        settle_acceleration=Vector2(0.0, config.settle_acceleration),
        wobble_speed=rng.next_range(*config.wobble_speed_range),
        wobble_distance=rng.next_range(*config.wobble_distance_range),
        wobble_offset=rng.next_range(0.0, 2.0 * math.pi),
    )
    world._foods.append(food)
    return food


def advance_food(world: World, frame_scale: float) -> int:
    """Move every pellet and drop the ones that were eaten or sank out of the world."""
    config = world._config.food
    height = world._config.world_height
    now = world.now
    drag = config.drag ** frame_scale
    survivors = []
    removed = 0
    for food in world._foods:
        if not food.eaten:
            food.velocity += food.settle_acceleration * frame_scale
            food.velocity *= drag
            food.position += food.velocity * frame_scale
            food.position.x += math.sin(now * food.wobble_speed + food.wobble_offset) * food.wobble_distance * frame_scale
            if food.position.y > height:
                food.eaten = True
        if food.eaten:
            removed += 1
            continue
        survivors.append(food)
    world._foods = survivors
    return removed


def nearest_food(world: World, agent: Agent) -> tuple[Food | None, float]:
    radius = world._config.lifecycle.food_search_radius
    best: Food | None = None
    best_dist_sq = radius * radius
    pos_x = agent.position.x
    pos_y = agent.position.y
    for food in world._foods:
        if food.eaten:
            continue
        dx = food.position.x - pos_x
        dy = food.position.y - pos_y
        dist_sq = dx * dx + dy * dy
        if dist_sq < best_dist_sq:
            best = food
            best_dist_sq = dist_sq
    return best, best_dist_sq


def feed(world: World, agent: Agent) -> bool:
    """Apply one meal. Refused while dead or while the previous meal's cooldown runs."""
    if agent.is_dead or agent.feed_cooldown > 0.0:
        return False
    lifecycle = world._config.lifecycle
    agent.energy = min(lifecycle.max_energy, agent.energy + lifecycle.feed_energy)
    agent.digestion_slowdown = lifecycle.digestion_slowdown
    agent.last_feed_time = world.now
    agent.feed_cooldown = world._rng.next_range(*lifecycle.feed_cooldown_range)
    if agent.size < agent.species.max_size:
        agent.size = min(agent.species.max_size, agent.size + lifecycle.growth_per_meal)
        agent.max_speed = max(
            agent.species.base_speed * lifecycle.min_speed_fraction,
            agent.max_speed - lifecycle.speed_loss_per_meal,
        )
    agent.hunt_target_id = None
    world._add_score(lifecycle.feed_score)
    return True


def try_eat(world: World, agent: Agent, food: Food, dist_sq: float) -> bool:
    eat_distance = agent.size + world._config.lifecycle.eat_margin
    if dist_sq >= eat_distance * eat_distance:
        return False
    if not feed(world, agent):
        return False
    food.eaten = True
    return True
