from __future__ import annotations

from typing import Any, Dict, List

import pytest

from querylab import orchestrator
from querylab.engine.store import EntityStore
from querylab.exceptions import ScenarioNotFoundError
from querylab.orchestrator import _merge_result, run_scenarios
from querylab.scenarios.abstract import AbstractScenario, ScenarioResult
from querylab.utils.profiler import ProfileStats

# Expected values after orchestrator profiler overrides scenario timing
EXPECTED_DURATION = 2.0
EXPECTED_PEAK_RSS = 123
EXPECTED_CPU = 12.3  # rounded to 1 decimal
EXPECTED_SCENARIO_9_ROWS = 4


class _StaticScenario(AbstractScenario):
    name = "static_rows"
    title = "Static rows"
    description = "returns fixed rows"
    columns = ("n",)

    def fetch(self, store: EntityStore) -> List[Dict[str, Any]]:
        return [{"n": 1, "ignored": True}, {"n": 2}]


class _FailingScenario(_StaticScenario):
    name = "always_fails"

    def fetch(self, store: EntityStore) -> List[Dict[str, Any]]:
        raise RuntimeError("intentional failure")


@pytest.fixture
def stub_registry(monkeypatch: pytest.MonkeyPatch) -> None:
    stubs = {"static_rows": _StaticScenario(), "always_fails": _FailingScenario()}
    monkeypatch.setattr(orchestrator, "_scenario_registry", lambda: stubs)


def test_merge_result_overrides_scenario_timing():
    result = ScenarioResult(scenario="x", title="X", columns=["n"], rows=[{"n": 1}], row_count=1, duration_seconds=1.0)
    stats = ProfileStats(
        label="test",
        start_ts=1.0,
        end_ts=3.0,
        duration_seconds=2.0,
        peak_rss_bytes=123,
        cpu_percent=12.34,
    )

    merged = _merge_result(result, stats)

    assert merged["duration_seconds"] == EXPECTED_DURATION
    assert merged["peak_rss_bytes"] == EXPECTED_PEAK_RSS
    assert merged["cpu_percent"] == EXPECTED_CPU
    assert merged["error"] is None
    assert result["duration_seconds"] == 1.0


def test_execute_restricts_rows_to_columns(sample_store: EntityStore, stub_registry: None) -> None:
    (result,) = run_scenarios(["static_rows"], store=sample_store)
    assert result["rows"] == [{"n": 1}, {"n": 2}]
    assert result["row_count"] == 2
    assert result["columns"] == ["n"]


def test_failure_is_recorded_and_run_continues(sample_store: EntityStore, stub_registry: None) -> None:
    results = run_scenarios(["always_fails", "static_rows"], store=sample_store)
    assert [r["scenario"] for r in results] == ["always_fails", "static_rows"]
    assert results[0]["error"] == "intentional failure"
    assert results[0]["rows"] == []
    assert results[1]["error"] is None


def test_unknown_scenario_raises_before_running(sample_store: EntityStore, stub_registry: None) -> None:
    with pytest.raises(ScenarioNotFoundError):
        run_scenarios(["static_rows", "nope"], store=sample_store)


def test_all_expands_to_in_memory_catalogue(sample_store: EntityStore) -> None:
    results = run_scenarios(["all"], store=sample_store)
    assert [r["scenario"] for r in results] == orchestrator.available_scenarios("memory")
    assert all(r["error"] is None for r in results)


def test_store_is_loaded_when_omitted() -> None:
    (result,) = run_scenarios(["scenario9"])
    assert result["row_count"] == EXPECTED_SCENARIO_9_ROWS
