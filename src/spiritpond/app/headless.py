from __future__ import annotations

import argparse
import csv
import json
import logging
from pathlib import Path
from typing import Optional

from ..sim.core.config import SimulationConfig, load_species_catalog
from ..sim.core.world import World

logger = logging.getLogger(__name__)

_HEADER = [
    "tick",
    "population",
    "births",
    "deaths",
    "eaten",
    "score",
    "food",
    "avg_energy",
    "neighbor_checks",
    "tick_ms",
]


def _format_row(metrics: object, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        metrics.births,
        metrics.deaths,
        metrics.eaten,
        metrics.score,
        metrics.food,
        f"{metrics.average_energy:.4f}",
        metrics.neighbor_checks,
        f"{tick_ms:.3f}",
    ]


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    config_path: Optional[Path] = None,
    catalog_path: Optional[Path] = None,
    auto_feed: Optional[bool] = None,
    summary_path: Optional[Path] = None,
) -> World:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    if auto_feed is not None:
        config.auto_feed = auto_feed
    catalog = load_species_catalog(catalog_path) if catalog_path else None
    world = World(catalog, config)
    logger.info("Running %d ticks with seed %d", steps, config.seed)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_HEADER)

    total_births = 0
    total_deaths = 0
    peak_population = (world.population, 0)
    try:
        for _ in range(steps):
            metrics = world.tick()
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            total_births += metrics.births
            total_deaths += metrics.deaths
            if metrics.population > peak_population[0]:
                peak_population = (metrics.population, metrics.tick)
            if writer:
                writer.writerow(_format_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        summary = {
            "steps": steps,
            "seed": config.seed,
            "final_population": world.population,
            "species": world.population_by_species(),
            "score": world.score,
            "births": total_births,
            "deaths": total_deaths,
            "peak_population": {"value": peak_population[0], "tick": peak_population[1]},
            "simulated_seconds": world.now,
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    logger.info("Finished: population=%d score=%d", world.population, world.score)
    return world


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless spirit pond simulation")
    parser.add_argument("--steps", type=int, default=3600)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument("--config", type=Path, default=None, help="YAML simulation config")
    parser.add_argument("--species", type=Path, default=None, help="YAML species catalog")
    parser.add_argument("--auto-feed", action="store_true", default=None, help="Drop food automatically.")
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    args = parser.parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(name)s %(levelname)s %(message)s")
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        config_path=args.config,
        catalog_path=args.species,
        auto_feed=args.auto_feed,
        summary_path=args.summary,
    )


if __name__ == "__main__":
    main()
