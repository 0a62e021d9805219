from __future__ import annotations

from pathlib import Path

import pytest
from pytest import approx

from spiritpond.sim.core.config import SimulationConfig, load_config, load_species_catalog, species_from_dict
from spiritpond.sim.core.errors import ConfigError
from spiritpond.sim.core.species import DEFAULT_SPECIES

ROOT = Path(__file__).resolve().parents[2]


def test_load_config_fills_defaults_and_nested_sections():
    config = load_config(
        {
            "seed": 9,
            "world_width": 900,
            "lifecycle": {"courtship_chance": 0.5, "feed_cooldown_range": [1, 2]},
            "food": {"max_food": 10},
        }
    )
    assert config.seed == 9
    assert config.world_width == 900
    assert config.world_height == approx(800.0)
    assert config.lifecycle.courtship_chance == approx(0.5)
    assert config.lifecycle.feed_cooldown_range == (1, 2)
    assert config.lifecycle.energy_drain_per_second == approx(0.36)
    assert config.food.max_food == 10
    assert config.behavior.hunt_range == approx(250.0)


def test_unknown_keys_are_rejected():
    with pytest.raises(ConfigError):
        load_config({"seeed": 1})
    with pytest.raises(ConfigError):
        load_config({"behavior": {"hunt_rnage": 1.0}})


def test_bad_ranges_are_rejected():
    with pytest.raises(ConfigError):
        load_config({"lifecycle": {"reproduction_cooldown_range": [600, 300]}})
    with pytest.raises(ConfigError):
        load_config({"lifecycle": {"offspring_range": 3}})
    with pytest.raises(ValueError):
        load_config({"cell_size": 0})


def test_negative_auto_feed_rates_are_rejected():
    with pytest.raises(ConfigError):
        load_config({"food": {"auto_feed_base_rate": -0.1}})
    with pytest.raises(ConfigError):
        load_config({"food": {"auto_feed_rate_per_agent": -1}})
    assert load_config({"food": {"auto_feed_base_rate": 0}}).food.auto_feed_base_rate == 0


def test_from_yaml_reads_file(tmp_path):
    path = tmp_path / "sim.yaml"
    path.write_text("seed: 77\nauto_feed: true\nnaming:\n  max_retries: 0\n")
    config = SimulationConfig.from_yaml(path)
    assert config.seed == 77
    assert config.auto_feed is True
    assert config.naming.max_retries == 0


def test_species_entries_need_core_fields():
    with pytest.raises(ConfigError):
        species_from_dict({"id": "x", "name": "X", "base_speed": 1.0})
    with pytest.raises(ConfigError):
        species_from_dict({"id": "x", "name": "X", "base_speed": 1.0, "base_size": 2.0, "wings": True})


def test_duplicate_species_ids_are_rejected(tmp_path):
    path = tmp_path / "species.yaml"
    path.write_text(
        "species:\n"
        "  - {id: a, name: A, base_speed: 1, base_size: 2}\n"
        "  - {id: a, name: B, base_speed: 1, base_size: 2}\n"
    )
    with pytest.raises(ConfigError):
        load_species_catalog(path)


@pytest.mark.config_change
def test_bundled_species_catalog_matches_defaults():
    catalog = load_species_catalog(ROOT / "config" / "species.yaml")
    assert [s.id for s in catalog] == [s.id for s in DEFAULT_SPECIES]
    for loaded, default in zip(catalog, DEFAULT_SPECIES):
        assert loaded.base_speed == approx(default.base_speed)
        assert loaded.base_size == approx(default.base_size)
        assert loaded.is_predator == default.is_predator
        assert loaded.lifespan_min == approx(default.lifespan_min)
        assert loaded.lifespan_max == approx(default.lifespan_max)


@pytest.mark.config_change
def test_bundled_simulation_config_loads():
    config = SimulationConfig.from_yaml(ROOT / "config" / "simulation.yaml")
    assert config.initial_species_id == "basic"
    assert config.lifecycle.reproduction_cooldown_range == (300, 600)
