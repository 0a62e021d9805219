from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Deque, Optional, Protocol, Set

from ...services.fallbacks import phrases_for
from ..core.agent import Agent
from ..core.species import Species

if TYPE_CHECKING:
    from ..core.world import World

logger = logging.getLogger(__name__)

_PENDING_PHRASE = "..."


class TextService(Protocol):
    async def generate_name(self, species: Species) -> Optional[str]: ...

    async def generate_phrase(self, species: Species, name: str) -> Optional[str]: ...


@dataclass(frozen=True, slots=True)
class TextResult:
    agent_id: int
    kind: str
    text: Optional[str]


class NameBroker:
    """Issues name and phrase requests without blocking the tick.

    Requests run as tasks on the host's event loop. Their results land in a
    deque that the World drains at the start of its next tick, so agents are
    only ever mutated from inside the tick.
    """

    def __init__(self, service: TextService | None = None):
        self._service = service
        self._results: Deque[TextResult] = deque()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    @property
    def queued_results(self) -> int:
        return len(self._results)

    def request_name(self, agent: Agent) -> bool:
        loop = self._running_loop()
        if loop is None:
            return False
        self._spawn(loop, self._fetch_name(agent.id, agent.species))
        return True

    def request_phrase(self, world: World, agent: Agent) -> bool:
        if agent.is_dead or agent.is_talking:
            return False
        loop = self._running_loop()
        if loop is None:
            self._show_phrase(world, agent, None)
            return True
        agent.is_talking = True
        agent.phrase = _PENDING_PHRASE
        self._spawn(loop, self._fetch_phrase(agent.id, agent.species, agent.name))
        return True

    def apply_pending(self, world: World) -> int:
        applied = 0
        while self._results:
            result = self._results.popleft()
            agent = world.get_agent(result.agent_id)
            if agent is None or agent.is_dead:
                logger.debug("Dropping %s result for departed agent %d", result.kind, result.agent_id)
                continue
            if result.kind == "name":
                if result.text:
                    agent.name = result.text
                    applied += 1
            else:
                self._show_phrase(world, agent, result.text)
                applied += 1
        return applied

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        self._results.clear()

    def _running_loop(self) -> asyncio.AbstractEventLoop | None:
        if self._service is None:
            return None
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def _spawn(self, loop: asyncio.AbstractEventLoop, coro) -> None:
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fetch_name(self, agent_id: int, species: Species) -> None:
        try:
            text = await self._service.generate_name(species)
        except Exception as exc:
            logger.warning("Name request for agent %d failed: %r", agent_id, exc)
            return
        if text:
            self._results.append(TextResult(agent_id, "name", text))

    async def _fetch_phrase(self, agent_id: int, species: Species, name: str) -> None:
        try:
            text = await self._service.generate_phrase(species, name)
        except Exception as exc:
            logger.warning("Phrase request for agent %d failed: %r", agent_id, exc)
            text = None
        self._results.append(TextResult(agent_id, "phrase", text))

    @staticmethod
    def _show_phrase(world: World, agent: Agent, text: Optional[str]) -> None:
        if not text:
            text = world._rng.sample_choice(phrases_for(agent.species.personality))
        agent.phrase = text
        agent.phrase_timer = world._config.lifecycle.phrase_display_seconds
        agent.is_talking = False
