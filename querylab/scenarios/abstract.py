"""
Scenario interfaces and result contracts for querylab.

A scenario is one canned reporting query. Concrete scenarios (in-memory query
pipelines or raw SQL against SQLite) implement the `Scenario` protocol and
return a `ScenarioResult` so the orchestrator and reporter can treat them
uniformly.
"""

from __future__ import annotations

import abc
from typing import Any, Dict, List, Optional, Protocol, Tuple, TypedDict, runtime_checkable

from querylab.engine.store import EntityStore

Row = Dict[str, Any]


class ScenarioResult(TypedDict, total=False):
    """
    Output contract of a scenario run.

    `rows` holds flat dicts keyed by `columns`, with values left in their
    native types (Decimal, datetime, None); formatting is the reporter's job.
    """

    scenario: str
    title: str
    columns: List[str]
    rows: List[Row]
    row_count: int
    duration_seconds: float
    peak_rss_bytes: Optional[int]
    cpu_percent: Optional[float]
    error: Optional[str]


@runtime_checkable
class Scenario(Protocol):
    """
    Common interface all scenarios implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier, e.g. "scenario14".
    title : str
        One-line human summary.
    description : str
        The business question the scenario answers.
    columns : Tuple[str, ...]
        Output column order.
    """

    name: str
    title: str
    description: str
    columns: Tuple[str, ...]

    def execute(self, store: EntityStore) -> ScenarioResult:
        """
        Run the scenario and return its rows.

        Parameters
        ----------
        store : EntityStore
            The loaded dataset.
        """
        ...


class AbstractScenario(abc.ABC):
    """
    ABC helper for class-based implementations.

    Subclasses set the descriptive attributes and implement `fetch`; `execute`
    wraps the rows into a `ScenarioResult` restricted to `columns`.
    """

    name: str
    title: str
    description: str = ""
    columns: Tuple[str, ...] = ()

    @abc.abstractmethod
    def fetch(self, store: EntityStore) -> List[Row]:  # pragma: no cover - interface only
        """Produce the scenario's rows."""
        raise NotImplementedError

    def execute(self, store: EntityStore) -> ScenarioResult:
        rows = [{column: row.get(column) for column in self.columns} for row in self.fetch(store)]
        return ScenarioResult(
            scenario=self.name,
            title=self.title,
            columns=list(self.columns),
            rows=rows,
            row_count=len(rows),
        )


__all__ = [
    "Row",
    "ScenarioResult",
    "Scenario",
    "AbstractScenario",
]
