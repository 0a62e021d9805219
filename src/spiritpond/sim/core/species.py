from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Sequence

from .errors import UnknownSpeciesError

_MINUTE = 60.0
_HOUR = 60.0 * _MINUTE

PREDATOR_LIFESPAN = (10 * _MINUTE, 30 * _MINUTE)
PREY_LIFESPAN = (1 * _HOUR, 24 * _HOUR)


@dataclass(frozen=True, slots=True)
class Species:
    id: str
    name: str
    base_speed: float
    base_size: float
    is_predator: bool = False
    personality: str = ""
    lifespan_min: float = PREY_LIFESPAN[0]
    lifespan_max: float = PREY_LIFESPAN[1]
    # Presentation-only fields, carried for collaborators and ignored by the simulation.
    cost: int = 0
    fin_type: str = "simple"
    body_color: str = "#FFFFFF"
    fin_color: str = "#FFFFFF"
    sound_pitch: float = 1.0

    @property
    def max_size(self) -> float:
        return self.base_size * 3.0


def _species(
    id: str,
    name: str,
    cost: int,
    size: float,
    speed: float,
    personality: str,
    body_color: str,
    fin_color: str,
    fin_type: str,
    sound_pitch: float,
    is_predator: bool = False,
) -> Species:
    lifespan = PREDATOR_LIFESPAN if is_predator else PREY_LIFESPAN
    return Species(
        id=id,
        name=name,
        base_speed=speed,
        base_size=size,
        is_predator=is_predator,
        personality=personality,
        lifespan_min=lifespan[0],
        lifespan_max=lifespan[1],
        cost=cost,
        fin_type=fin_type,
        body_color=body_color,
        fin_color=fin_color,
        sound_pitch=sound_pitch,
    )


DEFAULT_SPECIES: List[Species] = [
    _species("basic", "River Spirit", 100, 15, 2.5, "curious and bubbly", "#E86F51", "#F4A261", "simple", 1.0),
    _species("starbit", "Star Bit Guppy", 250, 10, 4.0, "energetic, starlike, and fast", "#FFD93D", "#FFFFFF", "simple", 1.5),
    _species("kodama", "Kodama Tetra", 350, 12, 3.5, "playful, clicking, and mysterious", "#F1FAEE", "#A8DADC", "glow", 1.2),
    _species("forest", "Mossy Carp", 800, 25, 1.8, "slow, wise, and sleepy", "#457B9D", "#1D3557", "flowing", 0.8),
    _species(
        "hunter", "Shadow Hunter", 1200, 30, 3.8, "aggressive, hunting, and sharp", "#2C3E50", "#E74C3C", "fancy", 0.6,
        is_predator=True,
    ),
    _species("sun", "Sky Spirit", 2000, 35, 3.0, "majestic, ancient, and noble", "#FFFFFF", "#48CAE4", "flowing", 1.8),
    _species(
        "lord", "River Lord", 5000, 60, 1.2, "massive, slow, and insatiable", "#4A5568", "#2D3748", "flowing", 0.4,
        is_predator=True,
    ),
    _species("rainbow", "Rainbow Spirit", 0, 45, 3.5, "colorful and radiant", "#FF6B6B", "#845EC2", "flowing", 1.3),
]


class SpeciesCatalog(Sequence[Species]):
    """Ordered, read-only collection of species with lookup by id."""

    def __init__(self, species: Iterable[Species]):
        self._species: List[Species] = list(species)
        self._by_id: Dict[str, Species] = {}
        for entry in self._species:
            if entry.id in self._by_id:
                raise ValueError(f"duplicate species id: {entry.id!r}")
            self._by_id[entry.id] = entry

    def __getitem__(self, index):  # type: ignore[override]
        return self._species[index]

    def __len__(self) -> int:
        return len(self._species)

    def __iter__(self) -> Iterator[Species]:
        return iter(self._species)

    def __contains__(self, species_id: object) -> bool:
        return species_id in self._by_id

    def get(self, species_id: str) -> Species:
        try:
            return self._by_id[species_id]
        except KeyError:
            raise UnknownSpeciesError(species_id) from None

    def find(self, species_id: str) -> Species | None:
        return self._by_id.get(species_id)


def default_catalog() -> SpeciesCatalog:
    return SpeciesCatalog(DEFAULT_SPECIES)
