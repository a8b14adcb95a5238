"""
Integration tests for the raw SQL path.

These tests seed a temporary SQLite file from the sample dataset and verify
that:
1. Seeding is one-shot and keeps referential integrity
2. Each SQL scenario returns the same rows as its in-memory counterpart
3. The orchestrator runs the SQL catalogue against the configured database
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from querylab.domain.models import Category, Dataset, Department, Product
from querylab.engine.store import EntityKind, EntityStore
from querylab.infrastructure.fixtures import build_store
from querylab.infrastructure.sqlite_factory import ensure_seeded, sqlite_connection, to_minor_units
from querylab.orchestrator import available_scenarios, run_scenarios
from querylab.scenarios.catalog import scenarios_by_name
from querylab.scenarios.raw_sql import SQL_SCENARIOS
from tests.factories import make_employee

pytestmark = pytest.mark.integration

# SQL scenario -> in-memory scenario answering the same question
PARITY = {
    "sql_scenario1": "scenario1",
    "sql_scenario3": "scenario3",
    "sql_scenario9": "scenario9",
    "sql_scenario10": "scenario10",
    "sql_active_employees": None,
    "sql_products_over_1000": "scenario4",
    "sql_customers_from_india": "scenario5",
    "sql_inactive_employees": "scenario6",
    "sql_products_starting_with_m": "scenario7",
    "sql_orders_after_2025": "scenario8",
}
EXPECTED_ACTIVE_EMPLOYEES = 7


def test_seed_once(sample_store: EntityStore, sqlite_path: Path) -> None:
    with sqlite_connection(sqlite_path) as conn:
        inserted = ensure_seeded(conn, sample_store)
        assert inserted == len(sample_store)
        assert ensure_seeded(conn, sample_store) == 0
        (items,) = conn.execute("SELECT COUNT(*) FROM OrderItems;").fetchone()
        (orphans,) = conn.execute(
            "SELECT COUNT(*) FROM Employees e "
            "LEFT JOIN Employees m ON m.EmployeeId = e.ManagerId "
            "WHERE e.ManagerId IS NOT NULL AND m.EmployeeId IS NULL;"
        ).fetchone()
    assert items == len(sample_store.all(EntityKind.ORDER_ITEMS))
    assert orphans == 0


def test_every_sql_scenario_has_a_parity_entry() -> None:
    assert set(PARITY) == {scenario.name for scenario in SQL_SCENARIOS}


@pytest.mark.parametrize("sql_name", [name for name, mem in PARITY.items() if mem is not None])
def test_sql_matches_in_memory(sample_store: EntityStore, sqlite_path: Path, sql_name: str) -> None:
    sql_scenario = next(s for s in SQL_SCENARIOS if s.name == sql_name).with_database(sqlite_path)
    memory_scenario = scenarios_by_name()[PARITY[sql_name]]
    assert sql_scenario.columns == memory_scenario.columns

    sql_rows = sql_scenario.execute(sample_store)["rows"]
    memory_rows = memory_scenario.execute(sample_store)["rows"]

    assert sql_rows == memory_rows


def test_active_employees_sql(sample_store: EntityStore, sqlite_path: Path) -> None:
    scenario = next(s for s in SQL_SCENARIOS if s.name == "sql_active_employees").with_database(sqlite_path)
    rows = scenario.execute(sample_store)["rows"]
    assert len(rows) == EXPECTED_ACTIVE_EMPLOYEES
    assert all(row["is_active"] is True for row in rows)
    names = [row["full_name"] for row in rows]
    assert names == sorted(names)


def test_orchestrator_runs_sql_catalogue(sample_store: EntityStore, sqlite_path: Path) -> None:
    results = run_scenarios(["sql"], store=sample_store)
    assert [r["scenario"] for r in results] == available_scenarios("sql")
    assert all(r["error"] is None for r in results)
    assert sqlite_path.exists()


def _sql(name: str, database: Path):
    return next(s for s in SQL_SCENARIOS if s.name == name).with_database(database)


def test_department_averages_stay_exact(sqlite_path: Path) -> None:
    store = build_store(
        Dataset(
            departments=[
                Department(department_id=1, name="Finance"),
                Department(department_id=2, name="Support"),
                Department(department_id=3, name="Vacant"),
            ],
            employees=[
                make_employee(1, department_id=1, salary="100.10"),
                make_employee(2, department_id=1, salary="100.20"),
                make_employee(3, department_id=1, salary="100"),
                # 301 / 3 does not terminate
                make_employee(4, department_id=2, salary="100"),
                make_employee(5, department_id=2, salary="100"),
                make_employee(6, department_id=2, salary="101"),
            ],
        )
    )

    sql_rows = _sql("sql_scenario3", sqlite_path).execute(store)["rows"]
    memory_rows = scenarios_by_name()["scenario3"].execute(store)["rows"]

    assert sql_rows == memory_rows
    finance, support, vacant = sql_rows
    assert finance["average_salary"] == Decimal("100.10")
    assert finance["max_salary"] == Decimal("100.20")
    assert support["average_salary"] == Decimal(301) / 3
    assert vacant["total_employees"] == 0
    assert vacant["average_salary"] is None


def test_category_match_ignores_case(sqlite_path: Path) -> None:
    store = build_store(
        Dataset(
            categories=[Category(category_id=1, name="electronics")],
            products=[Product(product_id=1, name="Phone", category_id=1, price=Decimal("5999.99"))],
        )
    )

    sql_rows = _sql("sql_scenario1", sqlite_path).execute(store)["rows"]
    memory_rows = scenarios_by_name()["scenario1"].execute(store)["rows"]

    assert sql_rows == memory_rows
    assert [row["product_id"] for row in sql_rows] == [1]


def test_money_beyond_storage_scale_is_rejected() -> None:
    assert to_minor_units(Decimal("12.3456")) == 123456
    with pytest.raises(ValueError, match="decimal places"):
        to_minor_units(Decimal("0.00001"))
