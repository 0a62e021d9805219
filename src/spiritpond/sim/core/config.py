from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Type, TypeVar

import yaml

from .errors import ConfigError
from .species import Species, SpeciesCatalog

T = TypeVar("T")


@dataclass
class BehaviorConfig:
    max_force: float = 0.1
    neighbor_radius: float = 100.0
    separation_base: float = 40.0
    separation_weight: float = 1.5
    alignment_weight: float = 1.0
    cohesion_weight: float = 1.0
    hunt_range: float = 250.0
    hunt_give_up_range: float = 400.0
    hunt_speed_factor: float = 1.2
    hunt_force_factor: float = 1.5
    prey_size_ratio: float = 0.6
    strike_size_ratio: float = 0.8
    flee_range: float = 150.0
    flee_speed_factor: float = 2.0
    flee_force_factor: float = 3.0
    recent_meal_seconds: float = 20.0
    tantrum_range: float = 200.0
    tantrum_speed_factor: float = 1.5
    tantrum_force_factor: float = 2.0
    wander_distance: float = 100.0
    wander_radius: float = 50.0
    wander_sway: float = 20.0
    boundary_margin: float = 100.0
    boundary_force_factor: float = 2.0
    pursuit_speed_bonus: float = 1.5
    min_energy_speed_factor: float = 0.2
    turn_rate: float = 0.08
    wall_damping: float = 0.8
    float_drift_speed: float = 1.5
    float_drift_blend: float = 0.1
    float_drag: float = 0.9
    float_turn_rate: float = 0.02
    float_exit_margin: float = 50.0


@dataclass
class LifecycleConfig:
    max_energy: float = 100.0
    energy_drain_per_second: float = 0.36
    digestion_recovery_per_second: float = 0.12
    sudden_illness_chance_per_tick: float = 1e-7
    feed_energy: float = 30.0
    feed_score: int = 15
    digestion_slowdown: float = 0.5
    feed_cooldown_range: tuple[float, float] = (5.0, 30.0)
    growth_per_meal: float = 0.8
    speed_loss_per_meal: float = 0.02
    min_speed_fraction: float = 0.5
    food_search_radius: float = 300.0
    eat_margin: float = 5.0
    hunting_cooldown_range: tuple[float, float] = (120.0, 180.0)
    courtship_check_interval: float = 1.0
    courtship_chance: float = 0.02
    predator_courtship_chance: float = 0.002
    courtship_search_radius: float = 200.0
    courtship_give_up_range: float = 300.0
    courtship_min_energy: float = 80.0
    maturity_age: float = 60.0
    initial_age: float = 120.0
    population_soft_cap: int = 50
    offspring_range: tuple[int, int] = (1, 3)
    offspring_jitter: float = 5.0
    offspring_size_fraction: float = 0.2
    offspring_speed_factor: float = 1.5
    reproduction_cooldown_range: tuple[float, float] = (300.0, 600.0)
    phrase_display_seconds: float = 5.0


@dataclass
class FoodConfig:
    max_food: int = 200
    drag: float = 0.95
    settle_acceleration: float = 0.08
    drop_height: float = -10.0
    drop_margin: float = 50.0
    wobble_speed_range: tuple[float, float] = (2.0, 5.0)
    wobble_distance_range: tuple[float, float] = (0.2, 0.6)
    auto_feed_base_rate: float = 0.1
    auto_feed_rate_per_agent: float = 0.08


@dataclass
class NamingConfig:
    enabled: bool = False
    endpoint: str = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent"
    api_key: str = ""
    timeout_seconds: float = 5.0
    max_retries: int = 1
    retry_delay_seconds: float = 1.0


@dataclass
class SimulationConfig:
    time_step: float = 1.0 / 60.0
    reference_fps: float = 60.0
    max_frame_time: float = 0.1
    world_width: float = 1200.0
    world_height: float = 800.0
    cell_size: float = 250.0
    flocking_stride: int = 3
    spawn_margin: float = 100.0
    initial_population: int = 5
    initial_species_id: str | None = None
    auto_feed: bool = False
    max_pending_events: int = 50
    seed: int = 42
    config_version: str = "v1"
    behavior: BehaviorConfig = field(default_factory=BehaviorConfig)
    lifecycle: LifecycleConfig = field(default_factory=LifecycleConfig)
    food: FoodConfig = field(default_factory=FoodConfig)
    naming: NamingConfig = field(default_factory=NamingConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


def _build(cls: Type[T], raw: Dict[str, Any] | None, section: str) -> T:
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ConfigError(f"section {section!r} must be a mapping")
    known = {f.name: f for f in fields(cls)}  # type: ignore[arg-type]
    unknown = sorted(set(raw) - set(known))
    if unknown:
        raise ConfigError(f"unknown keys in {section!r}: {', '.join(unknown)}")
    values: Dict[str, Any] = {}
    for key, value in raw.items():
        default = getattr(cls(), key)
        if isinstance(default, tuple):
            values[key] = _pair(value, f"{section}.{key}")
        else:
            values[key] = value
    return cls(**values)


def _pair(value: Any, name: str) -> tuple:
    if isinstance(value, (tuple, list)) and len(value) == 2:
        low, high = value
        if high < low:
            raise ConfigError(f"{name}: upper bound {high} is below lower bound {low}")
        return (low, high)
    raise ConfigError(f"{name} must be a [min, max] pair")


def load_config(raw: dict) -> SimulationConfig:
    if not isinstance(raw, dict):
        raise ConfigError("configuration root must be a mapping")
    sections = {"behavior", "lifecycle", "food", "naming"}
    behavior = _build(BehaviorConfig, raw.get("behavior"), "behavior")
    lifecycle = _build(LifecycleConfig, raw.get("lifecycle"), "lifecycle")
    food = _build(FoodConfig, raw.get("food"), "food")
    naming = _build(NamingConfig, raw.get("naming"), "naming")
    sim_values = {k: v for k, v in raw.items() if k not in sections}
    known = {f.name for f in fields(SimulationConfig)} - sections
    unknown = sorted(set(sim_values) - known)
    if unknown:
        raise ConfigError(f"unknown configuration keys: {', '.join(unknown)}")
    config = SimulationConfig(behavior=behavior, lifecycle=lifecycle, food=food, naming=naming, **sim_values)
    if config.cell_size <= 0 or config.world_width <= 0 or config.world_height <= 0:
        raise ConfigError("world dimensions and cell_size must be positive")
    if config.food.auto_feed_base_rate < 0 or config.food.auto_feed_rate_per_agent < 0:
        raise ConfigError("auto-feed rates must not be negative")
    return config


_SPECIES_REQUIRED = ("id", "name", "base_speed", "base_size")


def species_from_dict(raw: Dict[str, Any]) -> Species:
    missing = [key for key in _SPECIES_REQUIRED if key not in raw]
    if missing:
        raise ConfigError(f"species entry missing {', '.join(missing)}: {raw!r}")
    known = {f.name for f in fields(Species)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"unknown species keys: {', '.join(unknown)}")
    species = Species(**raw)
    if species.lifespan_max < species.lifespan_min:
        raise ConfigError(f"species {species.id!r}: lifespan_max is below lifespan_min")
    return species


def load_species_catalog(path: Path) -> SpeciesCatalog:
    data = yaml.safe_load(Path(path).read_text())
    entries: List[Dict[str, Any]] = data.get("species", []) if isinstance(data, dict) else data
    if not isinstance(entries, list) or not entries:
        raise ConfigError(f"{path}: expected a non-empty species list")
    try:
        return SpeciesCatalog(species_from_dict(entry) for entry in entries)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc
