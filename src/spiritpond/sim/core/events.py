from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Iterator, List, Protocol, Tuple, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BirthEvent:
    parent1_name: str
    parent2_name: str
    baby_names: Tuple[str, ...]
    species_name: str


@dataclass(frozen=True, slots=True)
class DeathSnapshot:
    name: str
    species_id: str
    species_name: str
    age: float
    reason: str


Event = Union[BirthEvent, DeathSnapshot]


class WorldObserver(Protocol):
    """Callbacks delivered once per tick, after all agents have been updated."""

    def on_score_change(self, score: int) -> None: ...

    def on_birth(self, parent1_name: str, parent2_name: str, baby_names: List[str], species_name: str) -> None: ...

    def on_death(self, snapshot: DeathSnapshot) -> None: ...

    def on_population_change(self, counts: Dict[str, int]) -> None: ...


class EventQueue:
    """Bounded FIFO of birth and death events awaiting the next flush."""

    def __init__(self, capacity: int = 50):
        self._capacity = max(1, int(capacity))
        self._events: Deque[Event] = deque()
        self._dropped = 0

    def __len__(self) -> int:
        return len(self._events)

    @property
    def dropped(self) -> int:
        return self._dropped

    def push(self, event: Event) -> bool:
        if len(self._events) >= self._capacity:
            self._dropped += 1
            logger.debug("Event queue full (%d); dropping %s", self._capacity, type(event).__name__)
            return False
        self._events.append(event)
        return True

    def drain(self) -> Iterator[Event]:
        while self._events:
            yield self._events.popleft()

    def clear(self) -> None:
        self._events.clear()
        self._dropped = 0
