from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Deque, Dict, List, Sequence

from ..services.naming import GenerativeTextService, build_text_service
from ..sim.core.config import SimulationConfig
from ..sim.core.events import DeathSnapshot
from ..sim.core.session import Session
from ..sim.core.species import Species
from ..sim.core.world import TimeScale, World
from ..sim.systems.naming import TextService
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)


class SimulationController:
    """Drives a World from an asyncio loop and relays its events as short messages.

    Name and phrase requests issued by the World run on this loop, so a host
    that wants generated names must tick through the controller.
    """

    def __init__(
        self,
        config: SimulationConfig | None = None,
        catalog: Sequence[Species] | None = None,
        text_service: TextService | None = None,
        session: Session | None = None,
        message_limit: int = 20,
    ):
        self.config = config if config is not None else SimulationConfig()
        self._owned_service: GenerativeTextService | None = None
        if text_service is None:
            text_service = self._owned_service = build_text_service(self.config.naming)
        self.world = World(catalog, self.config, session=session, text_service=text_service)
        self.world.add_observer(self)
        self.running = False
        self.tick = 0
        self.speed_multiplier = 1.0
        self.messages: Deque[str] = deque(maxlen=max(1, message_limit))
        self.last_metrics: TickMetrics | None = None
        self.species_counts: Dict[str, int] = {}
        self._lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._loop())
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def shutdown(self) -> None:
        self.running = False
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None
        self.world.names.cancel_all()
        if self._owned_service is not None:
            await self._owned_service.close()

    async def reset(self) -> None:
        async with self._lock:
            self.world.reset()
            self.tick = 0
            self.last_metrics = None
        self.messages.clear()

    def set_speed(self, multiplier: float) -> float:
        self.speed_multiplier = max(0.1, min(5.0, float(multiplier)))
        return self.speed_multiplier

    async def advance(self, steps: int = 1) -> TickMetrics | None:
        """Run ``steps`` ticks immediately, regardless of ``running``."""
        for _ in range(max(0, steps)):
            await self._step()
            # Let name and phrase tasks make progress between ticks.
            await asyncio.sleep(0)
        return self.last_metrics

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step / self.speed_multiplier)
            if not self.running:
                continue
            await self._step()

    async def _step(self) -> None:
        async with self._lock:
            self.last_metrics = self.world.tick()
            self.tick += 1

    def feed(self, x: float, y: float) -> bool:
        return self.world.add_food(x, y) is not None

    def set_auto_feed(self, enabled: bool) -> None:
        self.world.set_auto_feed(enabled)

    def purchase(self, species_id: str) -> bool:
        return self.world.add_agent(species_id) is not None

    def set_time_scale(self, scale: TimeScale | str) -> None:
        self.world.set_time_scale(scale)

    def talk(self, agent_id: int) -> bool:
        return self.world.request_phrase(agent_id)

    def status(self) -> Dict[str, object]:
        world = self.world
        return {
            "running": self.running,
            "tick": self.tick,
            "score": world.score,
            "population": world.population,
            "species": world.population_by_species(),
            "food": len(world.foods),
            "auto_feed": world.auto_feed,
            "time_scale": world.time_scale.value,
            "day_phase": world.day_phase,
        }

    def recent_messages(self) -> List[str]:
        return list(self.messages)

    # World observer callbacks

    def on_score_change(self, score: int) -> None:
        logger.debug("Score is now %d", score)

    def on_birth(self, parent1_name: str, parent2_name: str, baby_names: List[str], species_name: str) -> None:
        self.messages.append(
            f"New Spirits! {parent1_name} and {parent2_name} welcome {len(baby_names)} {species_name} babies."
        )

    def on_death(self, snapshot: DeathSnapshot) -> None:
        minutes = int(snapshot.age // 60)
        self.messages.append(f"{snapshot.name} the {snapshot.species_name} has passed on ({snapshot.reason}, {minutes}m).")

    def on_population_change(self, counts: Dict[str, int]) -> None:
        self.species_counts = dict(counts)
