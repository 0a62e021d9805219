import csv
import json
import sys

from spiritpond.app import headless
from spiritpond.app.headless import run_headless


def _read_csv(path):
    with path.open(newline="") as handle:
        return list(csv.reader(handle))


def test_headless_log_header_and_rows(tmp_path):
    log_path = tmp_path / "run.csv"
    run_headless(steps=3, seed=1, log_path=log_path, deterministic_log=True)
    rows = _read_csv(log_path)
    assert len(rows) == 4
    assert rows[0] == [
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
    assert [row[0] for row in rows[1:]] == ["0", "1", "2"]
    assert all(row[-1] == "0.000" for row in rows[1:])


def test_identical_seeds_write_identical_logs(tmp_path):
    first = tmp_path / "a.csv"
    second = tmp_path / "b.csv"
    run_headless(steps=120, seed=5, log_path=first, deterministic_log=True, auto_feed=True)
    run_headless(steps=120, seed=5, log_path=second, deterministic_log=True, auto_feed=True)
    assert first.read_text() == second.read_text()


def test_headless_summary_output(tmp_path):
    summary_path = tmp_path / "summary.json"
    world = run_headless(steps=4, seed=3, log_path=None, summary_path=summary_path)
    payload = json.loads(summary_path.read_text())
    assert payload["steps"] == 4
    assert payload["seed"] == 3
    assert payload["final_population"] == world.population
    assert payload["score"] == world.score
    assert "peak_population" in payload


def test_main_parses_arguments(tmp_path, monkeypatch):
    log_path = tmp_path / "cli.csv"
    monkeypatch.setattr(
        sys,
        "argv",
        ["spiritpond-headless", "--steps", "2", "--seed", "4", "--log", str(log_path), "--deterministic-log", "--log-level", "INFO"],
    )
    headless.main()
    assert len(_read_csv(log_path)) == 3
