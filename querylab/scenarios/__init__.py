"""
Scenario package for querylab.

Exposes the scenario contracts plus the two catalogues: in-memory `Query`
pipelines and their raw SQL counterparts.
"""

from querylab.scenarios.abstract import AbstractScenario, Row, Scenario, ScenarioResult
from querylab.scenarios.catalog import SCENARIOS, QueryScenario, scenarios_by_name
from querylab.scenarios.raw_sql import SQL_SCENARIOS, SqlScenario

__all__ = [
    "AbstractScenario",
    "Row",
    "Scenario",
    "ScenarioResult",
    "QueryScenario",
    "SqlScenario",
    "SCENARIOS",
    "SQL_SCENARIOS",
    "scenarios_by_name",
]
