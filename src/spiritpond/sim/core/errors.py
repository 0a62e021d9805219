from __future__ import annotations


class SpiritPondError(Exception):
    """Base class for errors raised while setting up a simulation."""


class ConfigError(SpiritPondError, ValueError):
    pass


class UnknownSpeciesError(SpiritPondError, KeyError):
    def __init__(self, species_id: str):
        super().__init__(species_id)
        self.species_id = species_id

    def __str__(self) -> str:
        return f"unknown species id: {self.species_id!r}"
