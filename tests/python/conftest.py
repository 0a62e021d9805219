import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
src_root = ROOT / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from spiritpond.sim.core.config import LifecycleConfig, SimulationConfig  # noqa: E402
from spiritpond.sim.core.species import default_catalog  # noqa: E402
from spiritpond.sim.core.world import World  # noqa: E402


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-config-tests",
        action="store_true",
        default=False,
        help="run tests that load the bundled YAML files under config/",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "config_change: marks tests that should only run when files under config/ change",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-config-tests"):
        return

    skip_marker = pytest.mark.skip(
        reason="Run only when configuration is modified (use --run-config-tests)",
    )

    for item in items:
        if "config_change" in item.keywords:
            item.add_marker(skip_marker)


@pytest.fixture
def make_world():
    """Empty pond without random deaths or spontaneous courtship."""

    def build(seed: int = 7, **lifecycle_overrides) -> World:
        lifecycle_values = {"sudden_illness_chance_per_tick": 0.0, "courtship_chance": 0.0}
        lifecycle_values.update(lifecycle_overrides)
        config = SimulationConfig(seed=seed, initial_population=0, lifecycle=LifecycleConfig(**lifecycle_values))
        return World(default_catalog(), config)

    return build
