from pathlib import Path
from time import sleep

import pytest

from querylab import config
from querylab.orchestrator import available_scenarios
from querylab.utils import profiler
from scripts import generate_data


def test_get_settings_defaults():
    settings = config.get_settings()
    assert settings.fixture_path is None
    assert settings.sqlite_path == Path("practice.db")
    assert settings.sqlite_timeout_seconds > 0
    assert settings.app_env == "development"
    assert settings.log_level == "INFO"
    assert settings.log_json is False
    assert settings.log_engine_level is None


def test_get_settings_reads_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SQLITE_PATH", "/tmp/other.db")
    monkeypatch.setenv("LOG_JSON", "true")
    monkeypatch.setenv("LOG_ENGINE_LEVEL", "WARNING")
    config.get_settings.cache_clear()
    settings = config.get_settings()
    assert settings.sqlite_path == Path("/tmp/other.db")
    assert settings.log_json is True
    assert settings.log_engine_level == "WARNING"


def test_profile_block_measures_time():
    with profiler.profile_block("sleep") as stats:
        sleep(0.05)
    assert stats.duration_seconds >= 0.05
    assert stats.duration_ms == pytest.approx(stats.duration_seconds * 1000)
    assert stats.peak_rss_bytes is not None and stats.peak_rss_bytes > 0
    if stats.cpu_percent is not None:
        assert isinstance(stats.cpu_percent, float)


def test_available_scenarios_contains_known_entries():
    names = available_scenarios()
    assert "scenario1" in names
    assert "scenario31" in names
    assert "manager_direct_reports" in names
    assert "sql_scenario3" in names
    assert available_scenarios("memory")[0] == "scenario1"
    assert all(name.startswith("sql_") for name in available_scenarios("sql"))


def test_generate_data_writes_fixture(tmp_path: Path):
    output = tmp_path / "generated.json"
    generate_data.main(
        output=output,
        seed=123,
        employees=5,
        products=6,
        customers=3,
        orders=4,
        sqlite=None,
    )
    assert output.exists()
    assert '"OrderItems"' in output.read_text(encoding="utf-8")
