from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Generator

import pytest
from typer.testing import CliRunner

from querylab.config import get_settings
from querylab.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep CLI logging at WARNING and restore root handlers afterwards."""
    root = logging.getLogger()
    engine = logging.getLogger("querylab.engine")
    handlers, level, engine_level = list(root.handlers), root.level, engine.level
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    engine.setLevel(engine_level)


def test_list_shows_both_catalogues() -> None:
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert "scenario14" in result.output
    assert "sql_scenario9" in result.output


def test_info_reports_counts() -> None:
    result = runner.invoke(app, ["info"])
    assert result.exit_code == 0
    assert "employees=10" in result.output


def test_run_json_output() -> None:
    result = runner.invoke(app, ["run", "-s", "scenario9", "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload[0]["scenario"] == "scenario9"
    assert payload[0]["rows"][0]["status"] == "Delivered"


def test_run_unknown_scenario_exits_with_usage_error() -> None:
    result = runner.invoke(app, ["run", "-s", "nope"])
    assert result.exit_code == 2


def test_missing_fixture_exits_cleanly(tmp_path: Path) -> None:
    result = runner.invoke(app, ["run", "-s", "scenario1", "--fixture", str(tmp_path / "missing.json")])
    assert result.exit_code == 1


def test_seed_sqlite_is_idempotent(sqlite_path: Path) -> None:
    first = runner.invoke(app, ["seed-sqlite", "--database", str(sqlite_path)])
    second = runner.invoke(app, ["seed-sqlite", "--database", str(sqlite_path)])
    assert first.exit_code == 0 and "Seeded" in first.output
    assert second.exit_code == 0 and "already seeded" in second.output
