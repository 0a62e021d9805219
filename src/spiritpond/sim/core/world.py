from __future__ import annotations

import logging
from collections import Counter
from enum import Enum
from time import perf_counter
from typing import Dict, Iterable, List, Sequence

from pygame.math import Vector2

from .agent import Agent, AgentState, Outcome
from .config import SimulationConfig
from .events import BirthEvent, DeathSnapshot, EventQueue, WorldObserver
from .food import Food
from .rng import DeterministicRng
from .session import Session
from .spatial_grid import SpatialGrid
from .species import Species, SpeciesCatalog, default_catalog
from ..systems import behavior, feeding, metrics as metrics_system
from ..systems.naming import NameBroker, TextService
from ..types.metrics import TickMetrics
from ..utils.math2d import _heading_from_velocity
from ...services.fallbacks import fallback_name

logger = logging.getLogger(__name__)


class TimeScale(str, Enum):
    STOPPED = "stopped"
    REALTIME = "realtime"
    NORMAL = "normal"
    FAST = "fast"


DAY_LENGTH_SECONDS: Dict[TimeScale, float | None] = {
    TimeScale.STOPPED: None,
    TimeScale.REALTIME: 24 * 60 * 60.0,
    TimeScale.NORMAL: 5 * 60.0,
    TimeScale.FAST: 60.0,
}


class World:
    def __init__(
        self,
        catalog: Sequence[Species] | None = None,
        config: SimulationConfig | None = None,
        session: Session | None = None,
        text_service: TextService | None = None,
    ):
        self._config = config if config is not None else SimulationConfig()
        if catalog is None:
            catalog = default_catalog()
        self._catalog = catalog if isinstance(catalog, SpeciesCatalog) else SpeciesCatalog(catalog)
        if len(self._catalog) == 0:
            raise ValueError("species catalog is empty")
        self._session = session if session is not None else Session()
        self._rng = DeterministicRng(self._config.seed)
        self._grid = SpatialGrid(self._config.cell_size)
        self._agents: Dict[int, Agent] = {}
        self._foods: List[Food] = []
        self._birth_queue: List[Agent] = []
        self._events = EventQueue(self._config.max_pending_events)
        self._observers: List[WorldObserver] = []
        self._names = NameBroker(text_service)
        self._neighbor_agents: List[Agent] = []
        self._neighbor_offsets: List[Vector2] = []
        self._neighbor_dist_sq: List[float] = []
        self._neighbor_cell_offsets = self._grid.build_neighbor_cell_offsets(self._max_scan_radius())
        self._auto_feed = self._config.auto_feed
        self._auto_feed_timer = 0.0
        self._time_scale = TimeScale.NORMAL
        self._day_phase = 0.0
        self._now = 0.0
        self._tick = 0
        self._next_id = 0
        self._neighbor_checks = 0
        self._eaten_this_tick = 0
        self._births_this_tick = 0
        self._score_dirty = False
        self._population_dirty = False
        self._metrics: TickMetrics | None = None
        self._bootstrap_population()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def catalog(self) -> SpeciesCatalog:
        return self._catalog

    @property
    def session(self) -> Session:
        return self._session

    @property
    def now(self) -> float:
        return self._now

    @property
    def tick_count(self) -> int:
        return self._tick

    @property
    def agents(self) -> List[Agent]:
        return list(self._agents.values())

    @property
    def foods(self) -> List[Food]:
        return list(self._foods)

    @property
    def score(self) -> int:
        return self._session.score

    @property
    def population(self) -> int:
        alive = sum(1 for agent in self._agents.values() if not agent.is_dead)
        return alive + len(self._birth_queue)

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    @property
    def auto_feed(self) -> bool:
        return self._auto_feed

    @property
    def time_scale(self) -> TimeScale:
        return self._time_scale

    @property
    def day_phase(self) -> float:
        return self._day_phase

    @property
    def names(self) -> NameBroker:
        return self._names

    def population_by_species(self) -> Dict[str, int]:
        counts = Counter(agent.species.id for agent in self._agents.values() if not agent.is_dead)
        return dict(counts)

    def get_agent(self, agent_id: int) -> Agent | None:
        return self._agents.get(agent_id)

    def add_observer(self, observer: WorldObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: WorldObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def reset(self) -> None:
        self._names.cancel_all()
        self._agents.clear()
        self._foods.clear()
        self._birth_queue.clear()
        self._events.clear()
        self._grid.clear()
        self._rng.reset()
        self._session.reset()
        self._auto_feed = self._config.auto_feed
        self._auto_feed_timer = 0.0
        self._day_phase = 0.0
        self._now = 0.0
        self._tick = 0
        self._next_id = 0
        self._metrics = None
        self._score_dirty = False
        self._population_dirty = False
        self._bootstrap_population()

    def add_food(self, x: float, y: float) -> Food | None:
        return feeding.drop_food(self, x, y)

    def set_auto_feed(self, enabled: bool) -> None:
        self._auto_feed = bool(enabled)
        self._auto_feed_timer = 0.0

    def set_time_scale(self, scale: TimeScale | str) -> None:
        self._time_scale = TimeScale(scale)

    def add_agent(self, species_id: str, position: Vector2 | None = None) -> Agent | None:
        species = self._catalog.find(species_id)
        if species is None:
            logger.warning("Ignoring request to add unknown species %r", species_id)
            return None
        if position is None:
            position = self._random_position()
        agent = self._spawn_agent(species, Vector2(position), born=False)
        self._population_dirty = True
        return agent

    def request_phrase(self, agent_id: int) -> bool:
        agent = self._agents.get(agent_id)
        if agent is None:
            return False
        return self._names.request_phrase(self, agent)

    def tick(self, dt: float | None = None) -> TickMetrics:
        start = perf_counter()
        config = self._config
        dt = config.time_step if dt is None else dt
        dt = min(max(0.0, dt), config.max_frame_time)
        frame_scale = dt * config.reference_fps
        self._now += dt
        self._neighbor_checks = 0
        self._eaten_this_tick = 0
        self._births_this_tick = 0

        self._names.apply_pending(self)
        self._advance_day(dt)
        self._run_auto_feed(dt)
        self._grid.rebuild(self._agents.values())
        feeding.advance_food(self, frame_scale)

        for agent in self._agents.values():
            outcome = behavior.update_agent(self, agent, dt, frame_scale)
            if outcome is Outcome.GONE:
                agent.is_gone = True

        deaths = self._remove_departed()
        self._foods = [food for food in self._foods if not food.eaten]
        births = self._births_this_tick
        self._apply_births()
        self._flush_events()

        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(
            self._tick,
            births,
            deaths,
            self._eaten_this_tick,
            self._neighbor_checks,
            elapsed_ms,
            self._population_stats(),
        )
        self._metrics = metrics
        self._tick += 1
        return metrics

    def _bootstrap_population(self) -> None:
        species_id = self._config.initial_species_id
        species = self._catalog.get(species_id) if species_id is not None else self._catalog[0]
        for _ in range(self._config.initial_population):
            self._spawn_agent(species, self._random_position(), born=False)

    def _random_position(self) -> Vector2:
        config = self._config
        margin_x = min(config.spawn_margin, config.world_width / 2.0)
        margin_y = min(config.spawn_margin, config.world_height / 2.0)
        return Vector2(
            self._rng.next_range(margin_x, config.world_width - margin_x),
            self._rng.next_range(margin_y, config.world_height - margin_y),
        )

    def _max_scan_radius(self) -> float:
        behavior_config = self._config.behavior
        return max(
            behavior_config.neighbor_radius,
            behavior_config.flee_range,
            behavior_config.hunt_range,
            behavior_config.tantrum_range,
        )

    def _spawn_agent(self, species: Species, position: Vector2, born: bool, generation: int = 0) -> Agent:
        lifecycle = self._config.lifecycle
        rng = self._rng
        velocity = rng.next_unit_circle() * species.base_speed
        agent = Agent(
            id=self._next_id,
            species=species,
            position=position,
            velocity=velocity,
            birth_time=self._now if born else self._now - lifecycle.initial_age,
            lifespan=rng.next_range(species.lifespan_min, species.lifespan_max),
            max_speed=species.base_speed,
            max_force=self._config.behavior.max_force,
            size=species.base_size,
            name=fallback_name(self._next_id),
            heading=_heading_from_velocity(velocity),
            generation=generation,
            wander_phase=rng.next_range(0.0, 1000.0),
            stagger_offset=rng.next_int(0, max(1, int(self._config.flocking_stride)) - 1),
            courtship_timer=rng.next_range(0.0, lifecycle.courtship_check_interval),
        )
        if species.is_predator:
            agent.hunting_cooldown = rng.next_range(*lifecycle.hunting_cooldown_range)
        self._next_id += 1
        if born:
            self._birth_queue.append(agent)
        else:
            self._agents[agent.id] = agent
        self._names.request_name(agent)
        return agent

    def _record_birth(self, first: Agent, second: Agent, children: Iterable[Agent]) -> None:
        baby_names = tuple(child.name for child in children)
        self._births_this_tick += len(baby_names)
        self._session.total_births += len(baby_names)
        self._population_dirty = True
        self._events.push(BirthEvent(first.name, second.name, baby_names, first.species.name))
        logger.debug("%s and %s welcome %d babies", first.name, second.name, len(baby_names))

    def _add_score(self, amount: int) -> None:
        self._session.score += amount
        self._score_dirty = True

    def _remove_departed(self) -> int:
        departed = [agent for agent in self._agents.values() if agent.is_eaten or agent.is_gone]
        for agent in departed:
            del self._agents[agent.id]
            if agent.is_eaten:
                agent.state = AgentState.EATEN
            self._session.total_deaths += 1
            self._events.push(
                DeathSnapshot(
                    name=agent.name,
                    species_id=agent.species.id,
                    species_name=agent.species.name,
                    age=agent.age(self._now),
                    reason=agent.death_description or "",
                )
            )
        if departed:
            self._population_dirty = True
        return len(departed)

    def _apply_births(self) -> None:
        for agent in self._birth_queue:
            self._agents[agent.id] = agent
        self._birth_queue.clear()

    def _flush_events(self) -> None:
        for event in self._events.drain():
            if isinstance(event, BirthEvent):
                self._notify("on_birth", event.parent1_name, event.parent2_name, list(event.baby_names), event.species_name)
            else:
                self._notify("on_death", event)
        if self._score_dirty:
            self._score_dirty = False
            self._notify("on_score_change", self._session.score)
        if self._population_dirty:
            self._population_dirty = False
            self._notify("on_population_change", self.population_by_species())

    def _notify(self, method: str, *args) -> None:
        for observer in list(self._observers):
            callback = getattr(observer, method, None)
            if callback is None:
                continue
            try:
                callback(*args)
            except Exception:
                logger.exception("Observer %r failed in %s", observer, method)

    def _advance_day(self, dt: float) -> None:
        length = DAY_LENGTH_SECONDS[self._time_scale]
        if length:
            self._day_phase = (self._day_phase + dt / length) % 1.0

    def _run_auto_feed(self, dt: float) -> None:
        if not self._auto_feed:
            return
        food_config = self._config.food
        rate = food_config.auto_feed_base_rate + food_config.auto_feed_rate_per_agent * self.population
        if rate <= 0:
            return
        interval = 1.0 / rate
        self._auto_feed_timer += dt
        while self._auto_feed_timer >= interval:
            self._auto_feed_timer -= interval
            margin = food_config.drop_margin
            x = self._rng.next_range(margin, self._config.world_width - margin)
            feeding.drop_food(self, x, food_config.drop_height)

    def _population_stats(self) -> tuple[int, float, int, int]:
        population = 0
        energy_sum = 0.0
        for agent in self._agents.values():
            if agent.is_dead:
                continue
            population += 1
            energy_sum += agent.energy
        avg_energy = energy_sum / population if population else 0.0
        return population, avg_energy, self._session.score, len(self._foods)
