"""
Orchestrator for running scenarios, profiling execution, and collecting results.

Usage (example from CLI):
    from querylab.orchestrator import run_scenarios

    results = run_scenarios(["scenario9", "scenario14"])
    print(results[0]["rows"])

A failing scenario does not stop the run: its result carries `error` and no
rows, and the remaining scenarios still execute.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from querylab.engine.store import EntityStore
from querylab.exceptions import ScenarioNotFoundError
from querylab.infrastructure.fixtures import load
from querylab.scenarios.abstract import Scenario, ScenarioResult
from querylab.scenarios.catalog import SCENARIOS
from querylab.scenarios.raw_sql import SQL_SCENARIOS
from querylab.utils.logging import get_logger
from querylab.utils.profiler import ProfileStats, profile_block

log = get_logger(__name__)


def _round_float(value: float, decimals: int = 4) -> float:
    """Round a float to specified decimal places for human-readable output."""
    return round(value, decimals)


def _scenario_registry() -> Dict[str, Scenario]:
    """Registry of available scenarios, in-memory first then raw SQL."""
    registry: Dict[str, Scenario] = {}
    for scenario in SCENARIOS + SQL_SCENARIOS:
        registry[scenario.name] = scenario
    return registry


def available_scenarios(kind: str = "all") -> List[str]:
    """
    List registered scenario names in catalogue order.

    Parameters
    ----------
    kind : str
        "memory", "sql" or "all".
    """
    if kind == "memory":
        return [scenario.name for scenario in SCENARIOS]
    if kind == "sql":
        return [scenario.name for scenario in SQL_SCENARIOS]
    return list(_scenario_registry())


def resolve_scenario(name: str) -> Scenario:
    registry = _scenario_registry()
    if name not in registry:
        raise ScenarioNotFoundError(f"Unknown scenario '{name}'. Available: {', '.join(registry)}")
    return registry[name]


def _expand_names(names: Iterable[str]) -> List[str]:
    expanded: List[str] = []
    for name in names:
        if name == "all":
            expanded.extend(available_scenarios("memory"))
        elif name == "sql":
            expanded.extend(available_scenarios("sql"))
        else:
            expanded.append(name)
    return expanded


def _profiled_execute(scenario: Scenario, store: EntityStore) -> ScenarioResult:
    log.info(f"[SCENARIO START] {scenario.name}", extra={"scenario": scenario.name})
    with profile_block(scenario.name) as stats:
        try:
            result = scenario.execute(store)
            log.info(
                f"[SCENARIO SUCCESS] {scenario.name}",
                extra={"scenario": scenario.name, "rows": result["row_count"]},
            )
        except Exception as exc:  # noqa: BLE001 - record the failure and keep running
            log.exception(f"[SCENARIO FAILED] {scenario.name}", extra={"scenario": scenario.name})
            result = ScenarioResult(
                scenario=scenario.name,
                title=scenario.title,
                columns=list(scenario.columns),
                rows=[],
                row_count=0,
                error=str(exc),
            )

    return _merge_result(result, stats)


def _merge_result(result: ScenarioResult, stats: ProfileStats) -> ScenarioResult:
    """Attach profiler measurements to a scenario result."""
    merged = ScenarioResult(**result)
    merged.setdefault("row_count", len(merged.get("rows", [])))
    merged["duration_seconds"] = _round_float(stats.duration_seconds)
    merged["peak_rss_bytes"] = stats.peak_rss_bytes
    merged["cpu_percent"] = _round_float(stats.cpu_percent, 1) if stats.cpu_percent is not None else None
    merged.setdefault("error", None)
    return merged


def run_scenarios(
    scenario_names: Optional[Iterable[str]] = None,
    store: Optional[EntityStore] = None,
) -> List[ScenarioResult]:
    """
    Run one or more scenarios against a loaded store.

    Parameters
    ----------
    scenario_names : iterable[str] | None
        Scenario names to execute. "all" expands to every in-memory scenario,
        "sql" to every raw SQL scenario; None means "all".
    store : EntityStore | None
        Dataset to query. Loaded from the configured fixture when omitted.

    Returns
    -------
    List[ScenarioResult]
        One result per scenario, in request order.

    Raises
    ------
    ScenarioNotFoundError
        If a name is not registered; raised before anything runs.
    """
    names = _expand_names(scenario_names if scenario_names is not None else ["all"])
    scenarios = [resolve_scenario(name) for name in names]
    if store is None:
        store = load()

    results: List[ScenarioResult] = []
    for index, scenario in enumerate(scenarios, start=1):
        log.info(
            f"[RUN {index}/{len(scenarios)}] {scenario.name}",
            extra={"scenario": scenario.name, "run": index, "total_runs": len(scenarios)},
        )
        results.append(_profiled_execute(scenario, store))

    failed = [r["scenario"] for r in results if r.get("error")]
    log.info(
        f"[ORCHESTRATOR COMPLETE] {len(results) - len(failed)}/{len(results)} scenario(s) succeeded",
        extra={"scenarios": names, "failed": failed},
    )
    return results


__all__ = [
    "available_scenarios",
    "resolve_scenario",
    "run_scenarios",
]
