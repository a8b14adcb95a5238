"""
querylab - relational query practice over an in-memory dataset.

This package evaluates canned reporting questions (filters, joins, grouping
with conditional aggregates, top-N per group) against a small company
dataset held in memory, and can answer a subset of them as raw SQL over a
SQLite copy of the same data for comparison.

- Domain models and the keyed entity store
- A composable query pipeline (where, join, left_join, group_by, aggregate,
  having, select, order_by, top_per_group, limit)
- A catalogue of reporting scenarios with profiled execution
- A typer CLI with rich table output
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from querylab.config import Settings, get_settings
from querylab.engine import EntityKind, EntityStore, Query
from querylab.exceptions import FixtureError, InvalidKeyError, QueryError, ScenarioNotFoundError
from querylab.infrastructure.fixtures import load
from querylab.orchestrator import available_scenarios, run_scenarios
from querylab.scenarios.abstract import AbstractScenario, Scenario, ScenarioResult
from querylab.utils.logging import configure_logging, get_logger
from querylab.utils.profiler import ProfileStats, profile_block

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Engine
    "EntityKind",
    "EntityStore",
    "Query",
    "load",
    # Errors
    "QueryError",
    "InvalidKeyError",
    "FixtureError",
    "ScenarioNotFoundError",
    # Orchestration
    "available_scenarios",
    "run_scenarios",
    # Scenario abstractions
    "Scenario",
    "AbstractScenario",
    "ScenarioResult",
    # Logging
    "configure_logging",
    "get_logger",
    # Profiling
    "ProfileStats",
    "profile_block",
]
