"""
SQLite connection factory and seeding for the raw SQL scenarios.

Provides a retrying connection helper, the table DDL mirroring the domain
models, and a one-shot bulk seed from an `EntityStore`. Money is stored as
an INTEGER count of ten-thousandths so comparisons, MIN/MAX and sums stay
exact; averages go through the `DECIMAL_AVG` aggregate registered on every
connection. Datetimes are stored as ISO text so they compare correctly as
strings.

Opening a connection retries transient "database is locked" failures using
tenacity.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Generator, Optional, Sequence, Tuple

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from querylab.config import get_settings
from querylab.engine.store import EntityKind, EntityStore
from querylab.utils.logging import get_logger

log = get_logger(__name__)


def _adapt_datetime(value: datetime) -> str:
    return value.isoformat(sep=" ")


MONEY_SCALE = 4


def to_minor_units(value: Decimal) -> int:
    scaled = value.scaleb(MONEY_SCALE)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{value} has more than {MONEY_SCALE} decimal places")
    return int(scaled)


def from_minor_units(value: Any) -> Optional[Decimal]:
    """Money column (or `DECIMAL_AVG` text) back to a Decimal amount."""
    return None if value is None else Decimal(value).scaleb(-MONEY_SCALE)


class DecimalAverage:
    """
    SQLite aggregate averaging money columns in Decimal arithmetic.

    The built-in AVG works in floating point. The result is returned as
    text in minor units so `from_minor_units` reads it back unchanged.
    """

    def __init__(self) -> None:
        self.total = Decimal(0)
        self.count = 0

    def step(self, value: Any) -> None:
        if value is None:
            return
        self.total += Decimal(value)
        self.count += 1

    def finalize(self) -> Optional[str]:
        if not self.count:
            return None
        return str(self.total / self.count)


sqlite3.register_adapter(Decimal, to_minor_units)
sqlite3.register_adapter(datetime, _adapt_datetime)

SCHEMA = """
CREATE TABLE IF NOT EXISTS Departments (
    DepartmentId INTEGER PRIMARY KEY,
    Name         TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS Employees (
    EmployeeId   INTEGER PRIMARY KEY,
    FullName     TEXT NOT NULL,
    DepartmentId INTEGER NOT NULL REFERENCES Departments (DepartmentId),
    ManagerId    INTEGER NULL REFERENCES Employees (EmployeeId),
    JoinDate     TEXT NOT NULL,
    IsActive     INTEGER NOT NULL,
    Salary       INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS Categories (
    CategoryId INTEGER PRIMARY KEY,
    Name       TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS Products (
    ProductId  INTEGER PRIMARY KEY,
    Name       TEXT NOT NULL,
    CategoryId INTEGER NOT NULL REFERENCES Categories (CategoryId),
    Price      INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS Customers (
    CustomerId INTEGER PRIMARY KEY,
    Name       TEXT NOT NULL,
    Country    TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS Orders (
    OrderId    INTEGER PRIMARY KEY,
    CustomerId INTEGER NOT NULL REFERENCES Customers (CustomerId),
    OrderDate  TEXT NOT NULL,
    Status     TEXT NOT NULL,
    TotalBill  INTEGER NULL
);
CREATE TABLE IF NOT EXISTS OrderItems (
    OrderId   INTEGER NOT NULL REFERENCES Orders (OrderId),
    ProductId INTEGER NOT NULL REFERENCES Products (ProductId),
    Quantity  INTEGER NOT NULL,
    UnitPrice INTEGER NOT NULL,
    PRIMARY KEY (OrderId, ProductId)
);
"""

# Table name and (column, model field) pairs per kind, parents before children.
TABLES: Dict[EntityKind, Tuple[str, Tuple[Tuple[str, str], ...]]] = {
    EntityKind.DEPARTMENTS: ("Departments", (("DepartmentId", "department_id"), ("Name", "name"))),
    EntityKind.EMPLOYEES: (
        "Employees",
        (
            ("EmployeeId", "employee_id"),
            ("FullName", "full_name"),
            ("DepartmentId", "department_id"),
            ("ManagerId", "manager_id"),
            ("JoinDate", "join_date"),
            ("IsActive", "is_active"),
            ("Salary", "salary"),
        ),
    ),
    EntityKind.CATEGORIES: ("Categories", (("CategoryId", "category_id"), ("Name", "name"))),
    EntityKind.PRODUCTS: (
        "Products",
        (("ProductId", "product_id"), ("Name", "name"), ("CategoryId", "category_id"), ("Price", "price")),
    ),
    EntityKind.CUSTOMERS: ("Customers", (("CustomerId", "customer_id"), ("Name", "name"), ("Country", "country"))),
    EntityKind.ORDERS: (
        "Orders",
        (
            ("OrderId", "order_id"),
            ("CustomerId", "customer_id"),
            ("OrderDate", "order_date"),
            ("Status", "status"),
            ("TotalBill", "total_bill"),
        ),
    ),
    EntityKind.ORDER_ITEMS: (
        "OrderItems",
        (("OrderId", "order_id"), ("ProductId", "product_id"), ("Quantity", "quantity"), ("UnitPrice", "unit_price")),
    ),
}


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
    retry=retry_if_exception_type(sqlite3.OperationalError),
    reraise=True,
)
def get_sync_connection(path: Optional[Path | str] = None) -> sqlite3.Connection:
    """
    Open a SQLite connection with automatic retry.

    Retries up to 3 times with exponential backoff when the file is locked or
    briefly unavailable.

    Parameters
    ----------
    path : Path | str, optional
        Database file. Defaults to `SQLITE_PATH` from settings; ":memory:" is
        accepted for throwaway databases.

    Raises
    ------
    sqlite3.OperationalError
        If the connection fails after all retry attempts.
    """
    settings = get_settings()
    target = str(path) if path is not None else str(settings.sqlite_path)
    conn = sqlite3.connect(target, timeout=settings.sqlite_timeout_seconds)
    conn.execute("PRAGMA foreign_keys = ON;")
    conn.create_aggregate("DECIMAL_AVG", 1, DecimalAverage)
    return conn


@contextmanager
def sqlite_connection(path: Optional[Path | str] = None) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager yielding a connection that is always closed afterwards.

    Example
    -------
        with sqlite_connection("practice.db") as conn:
            conn.execute("SELECT 1")
    """
    conn = get_sync_connection(path)
    try:
        yield conn
    finally:
        conn.close()


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(SCHEMA)
    conn.commit()


def _row_values(record: Any, columns: Sequence[Tuple[str, str]]) -> Tuple[Any, ...]:
    return tuple(getattr(record, attr) for _, attr in columns)


def ensure_seeded(conn: sqlite3.Connection, store: EntityStore) -> int:
    """
    Create the schema and bulk-insert `store` unless Products already has rows.

    Returns
    -------
    int
        Number of rows inserted (0 when the database was already seeded).
    """
    initialize_schema(conn)
    (existing,) = conn.execute("SELECT COUNT(*) FROM Products;").fetchone()
    if existing:
        log.info("SQLite database already seeded", extra={"products": existing})
        return 0

    inserted = 0
    with conn:
        for kind, (table, columns) in TABLES.items():
            names = ", ".join(name for name, _ in columns)
            placeholders = ", ".join("?" for _ in columns)
            rows = [_row_values(record, columns) for record in store.all(kind)]
            conn.executemany(f"INSERT INTO {table} ({names}) VALUES ({placeholders});", rows)
            inserted += len(rows)
    log.info("Seeded SQLite database", extra={"rows_inserted": inserted})
    return inserted


__all__ = [
    "MONEY_SCALE",
    "SCHEMA",
    "DecimalAverage",
    "to_minor_units",
    "from_minor_units",
    "TABLES",
    "get_sync_connection",
    "sqlite_connection",
    "initialize_schema",
    "ensure_seeded",
]
