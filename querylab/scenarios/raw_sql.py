"""
Raw SQL variants of a handful of scenarios.

Each scenario is a parameterized SQL text run against the SQLite file from
settings (seeded from the entity store on first use). Column values are
converted back to the same Python types the in-memory scenarios produce
(Decimal, datetime, bool), so both paths can be compared row for row. Money
columns come back in minor units and go through `from_minor_units`.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from querylab.engine.store import EntityStore
from querylab.infrastructure.sqlite_factory import ensure_seeded, from_minor_units, sqlite_connection
from querylab.scenarios.abstract import AbstractScenario, Row
from querylab.utils.logging import get_logger

log = get_logger(__name__)

Converter = Callable[[Any], Any]


def to_datetime(value: Any) -> Optional[datetime]:
    return None if value is None else datetime.fromisoformat(str(value))


def to_bool(value: Any) -> Optional[bool]:
    return None if value is None else bool(value)


class SqlScenario(AbstractScenario):
    """
    A scenario answered by one parameterized SQL statement.

    Parameters
    ----------
    name, title, description : str
        Registry metadata.
    sql : str
        Statement with named `:param` placeholders; its result columns must
        appear in the order of `columns`.
    params : Mapping[str, Any]
        Bound parameter values.
    converters : Mapping[str, Converter]
        Per-column conversion from SQLite storage types.
    database : Path, optional
        SQLite file; defaults to `SQLITE_PATH` from settings.
    """

    def __init__(
        self,
        name: str,
        title: str,
        description: str,
        columns: Tuple[str, ...],
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        converters: Optional[Mapping[str, Converter]] = None,
        database: Optional[Path] = None,
    ) -> None:
        self.name = name
        self.title = title
        self.description = description
        self.columns = columns
        self.sql = sql
        self.params = dict(params or {})
        self.converters = dict(converters or {})
        self.database = database

    def with_database(self, database: Path) -> "SqlScenario":
        return SqlScenario(
            self.name,
            self.title,
            self.description,
            self.columns,
            self.sql,
            self.params,
            self.converters,
            database,
        )

    def _convert(self, raw: Tuple[Any, ...]) -> Row:
        row: Dict[str, Any] = {}
        for column, value in zip(self.columns, raw):
            convert = self.converters.get(column)
            row[column] = convert(value) if convert is not None else value
        return row

    def run_sql(self, conn: sqlite3.Connection) -> List[Row]:
        cursor = conn.execute(self.sql, self.params)
        try:
            return [self._convert(raw) for raw in cursor.fetchall()]
        finally:
            cursor.close()

    def fetch(self, store: EntityStore) -> List[Row]:
        with sqlite_connection(self.database) as conn:
            ensure_seeded(conn, store)
            rows = self.run_sql(conn)
        log.debug(f"{self.name}: {len(rows)} rows", extra={"scenario": self.name, "rows": len(rows)})
        return rows


SQL_SCENARIO_1 = SqlScenario(
    "sql_scenario1",
    "Electronics under 6000 (SQL)",
    "Products in the Electronics category priced below 6000, by price then name.",
    ("product_id", "name", "price"),
    """
    SELECT p.ProductId, p.Name, p.Price
    FROM Products p
    JOIN Categories c ON c.CategoryId = p.CategoryId
    WHERE c.Name = :category COLLATE NOCASE AND p.Price < :max_price
    ORDER BY p.Price ASC, p.Name ASC;
    """,
    params={"category": "Electronics", "max_price": Decimal("6000")},
    converters={"price": from_minor_units},
)

SQL_SCENARIO_3 = SqlScenario(
    "sql_scenario3",
    "Department roll-up (SQL)",
    "Per department: head count, average and highest salary, keeping empty departments.",
    ("department_name", "total_employees", "average_salary", "max_salary"),
    """
    SELECT d.Name AS DepartmentName,
           COUNT(e.EmployeeId) AS TotalEmployees,
           DECIMAL_AVG(e.Salary) AS AverageSalary,
           MAX(e.Salary) AS MaxSalary
    FROM Departments d
    LEFT JOIN Employees e ON e.DepartmentId = d.DepartmentId
    GROUP BY d.DepartmentId, d.Name
    ORDER BY d.Name;
    """,
    converters={"average_salary": from_minor_units, "max_salary": from_minor_units},
)

SQL_SCENARIO_9 = SqlScenario(
    "sql_scenario9",
    "Orders by status (SQL)",
    "Order count and first/last order date per status, busiest status first.",
    ("status", "total_orders", "earliest_order_date", "latest_order_date"),
    """
    SELECT o.Status,
           COUNT(*) AS TotalOrders,
           MIN(o.OrderDate) AS EarliestOrderDate,
           MAX(o.OrderDate) AS LatestOrderDate
    FROM Orders o
    GROUP BY o.Status
    ORDER BY TotalOrders DESC, o.Status ASC;
    """,
    converters={"earliest_order_date": to_datetime, "latest_order_date": to_datetime},
)

SQL_SCENARIO_10 = SqlScenario(
    "sql_scenario10",
    "Repeat customers since 2025 (SQL)",
    "Customers with at least two orders since Jan 1, 2025, most recently active first.",
    ("customer_id", "total_orders", "first_order_date", "last_order_date"),
    """
    SELECT o.CustomerId,
           COUNT(*) AS TotalOrders,
           MIN(o.OrderDate) AS FirstOrderDate,
           MAX(o.OrderDate) AS LastOrderDate
    FROM Orders o
    WHERE o.OrderDate >= :from_date
    GROUP BY o.CustomerId
    HAVING COUNT(*) >= :min_orders
    ORDER BY LastOrderDate DESC, o.CustomerId ASC;
    """,
    params={"from_date": datetime(2025, 1, 1), "min_orders": 2},
    converters={"first_order_date": to_datetime, "last_order_date": to_datetime},
)

SQL_ACTIVE_EMPLOYEES = SqlScenario(
    "sql_active_employees",
    "Active employees (SQL)",
    "Active employees by name.",
    ("employee_id", "full_name", "is_active"),
    "SELECT EmployeeId, FullName, IsActive FROM Employees WHERE IsActive = 1 ORDER BY FullName ASC;",
    converters={"is_active": to_bool},
)

SQL_PRODUCTS_OVER_1000 = SqlScenario(
    "sql_products_over_1000",
    "Products over 1000 (SQL)",
    "Products priced above 1000, most expensive first.",
    ("product_id", "name", "price"),
    "SELECT ProductId, Name, Price FROM Products WHERE Price > :min_price ORDER BY Price DESC;",
    params={"min_price": Decimal("1000")},
    converters={"price": from_minor_units},
)

SQL_CUSTOMERS_FROM_INDIA = SqlScenario(
    "sql_customers_from_india",
    "Customers from India (SQL)",
    "Customers whose country is India, by name.",
    ("customer_id", "name", "country"),
    "SELECT CustomerId, Name, Country FROM Customers WHERE Country = :country ORDER BY Name ASC;",
    params={"country": "India"},
)

SQL_INACTIVE_EMPLOYEES = SqlScenario(
    "sql_inactive_employees",
    "Inactive employees (SQL)",
    "Employees who are no longer active, by name.",
    ("employee_id", "full_name", "is_active"),
    "SELECT EmployeeId, FullName, IsActive FROM Employees WHERE IsActive = 0 ORDER BY FullName ASC;",
    converters={"is_active": to_bool},
)

SQL_PRODUCTS_STARTING_WITH_M = SqlScenario(
    "sql_products_starting_with_m",
    "Products starting with M (SQL)",
    "Products whose name starts with 'M', by name.",
    ("product_id", "name", "price"),
    "SELECT ProductId, Name, Price FROM Products WHERE Name LIKE :prefix ORDER BY Name ASC;",
    params={"prefix": "M%"},
    converters={"price": from_minor_units},
)

SQL_ORDERS_AFTER_2025 = SqlScenario(
    "sql_orders_after_2025",
    "Orders after 2025-01-01 (SQL)",
    "Orders placed after Jan 1, 2025, oldest first.",
    ("order_id", "customer_id", "order_date"),
    "SELECT OrderId, CustomerId, OrderDate FROM Orders WHERE OrderDate > :after ORDER BY OrderDate ASC;",
    params={"after": datetime(2025, 1, 1)},
    converters={"order_date": to_datetime},
)


SQL_SCENARIOS: Tuple[SqlScenario, ...] = (
    SQL_SCENARIO_1,
    SQL_SCENARIO_3,
    SQL_SCENARIO_9,
    SQL_SCENARIO_10,
    SQL_ACTIVE_EMPLOYEES,
    SQL_PRODUCTS_OVER_1000,
    SQL_CUSTOMERS_FROM_INDIA,
    SQL_INACTIVE_EMPLOYEES,
    SQL_PRODUCTS_STARTING_WITH_M,
    SQL_ORDERS_AFTER_2025,
)


__all__ = [
    "SqlScenario",
    "SQL_SCENARIOS",
    "to_datetime",
    "to_bool",
]
