"""
In-memory reporting scenarios.

Each scenario is a `Query` pipeline over the entity store plus the column
order it reports. Queries are built (and therefore validated) at import time,
so a broken field path fails the moment this module loads rather than halfway
through a run.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Tuple

from querylab.engine import (
    EntityKind,
    EntityStore,
    Query,
    asc,
    average,
    between,
    count,
    date_of,
    days_between,
    desc,
    eq,
    first_by,
    ge,
    gt,
    iequals,
    is_false,
    is_true,
    istartswith,
    lt,
    maximum,
    minimum,
    product_of,
    year_of,
)
from querylab.scenarios.abstract import AbstractScenario, Row

START_2022 = datetime(2022, 1, 1)
START_2023 = datetime(2023, 1, 1)
START_2024 = datetime(2024, 1, 1)
START_2025 = datetime(2025, 1, 1)
START_2026 = datetime(2026, 1, 1)


class QueryScenario(AbstractScenario):
    """A scenario backed by a single in-memory `Query`."""

    def __init__(self, name: str, title: str, description: str, columns: Tuple[str, ...], query: Query) -> None:
        self.name = name
        self.title = title
        self.description = description
        self.columns = columns
        self.query = query

    def fetch(self, store: EntityStore) -> List[Row]:
        return self.query.run(store)


# --- single-table filters ---------------------------------------------------

SCENARIO_1 = QueryScenario(
    "scenario1",
    "Electronics under 6000",
    "Products in the Electronics category priced below 6000, by price then name.",
    ("product_id", "name", "price"),
    Query.from_(EntityKind.PRODUCTS)
    .join(EntityKind.CATEGORIES, on=("category_id", "category_id"))
    .where(iequals("right.name", "Electronics") & lt("left.price", Decimal("6000")))
    .order_by(asc("left.price"), asc("left.name"))
    .select("left.product_id", "left.name", "left.price"),
)

SCENARIO_2 = QueryScenario(
    "scenario2",
    "Active employees joined after 2023-01-01",
    "Active employees who joined after Jan 1, 2023, by join date.",
    ("employee_id", "full_name", "join_date"),
    Query.from_(EntityKind.EMPLOYEES)
    .where(is_true("is_active") & gt("join_date", START_2023))
    .order_by(asc("join_date"))
    .select("employee_id", "full_name", "join_date"),
)

SCENARIO_3 = QueryScenario(
    "scenario3",
    "Department roll-up",
    "Per department: head count, average and highest salary. Departments "
    "without employees are kept with a zero count.",
    ("department_name", "total_employees", "average_salary", "max_salary"),
    Query.from_(EntityKind.DEPARTMENTS)
    .left_join(
        EntityKind.EMPLOYEES,
        on=("department_id", "department_id"),
        total_employees=count(),
        average_salary=average("salary"),
        max_salary=maximum("salary"),
    )
    .extend(department_name="left.name")
    .order_by(asc("department_name")),
)

SCENARIO_4 = QueryScenario(
    "scenario4",
    "Products over 1000",
    "Products priced above 1000, most expensive first.",
    ("product_id", "name", "price"),
    Query.from_(EntityKind.PRODUCTS)
    .where(gt("price", Decimal("1000")))
    .order_by(desc("price"))
    .select("product_id", "name", "price"),
)

SCENARIO_5 = QueryScenario(
    "scenario5",
    "Customers from India",
    "Customers whose country is India, by name.",
    ("customer_id", "name", "country"),
    Query.from_(EntityKind.CUSTOMERS)
    .where(iequals("country", "India"))
    .order_by(asc("name"))
    .select("customer_id", "name", "country"),
)

SCENARIO_6 = QueryScenario(
    "scenario6",
    "Inactive employees",
    "Employees who are no longer active, by name.",
    ("employee_id", "full_name", "is_active"),
    Query.from_(EntityKind.EMPLOYEES)
    .where(is_false("is_active"))
    .order_by(asc("full_name"))
    .select("employee_id", "full_name", "is_active"),
)

SCENARIO_7 = QueryScenario(
    "scenario7",
    "Products starting with M",
    "Products whose name starts with 'M' (any case), by name.",
    ("product_id", "name", "price"),
    Query.from_(EntityKind.PRODUCTS)
    .where(istartswith("name", "M"))
    .order_by(asc("name"))
    .select("product_id", "name", "price"),
)

SCENARIO_8 = QueryScenario(
    "scenario8",
    "Orders after 2025-01-01",
    "Orders placed after Jan 1, 2025, oldest first.",
    ("order_id", "customer_id", "order_date"),
    Query.from_(EntityKind.ORDERS)
    .where(gt("order_date", START_2025))
    .order_by(asc("order_date"))
    .select("order_id", "customer_id", "order_date"),
)

# --- grouping and having ----------------------------------------------------

SCENARIO_9 = QueryScenario(
    "scenario9",
    "Orders by status",
    "Order count and first/last order date per status, busiest status first.",
    ("status", "total_orders", "earliest_order_date", "latest_order_date"),
    Query.from_(EntityKind.ORDERS)
    .group_by("status")
    .aggregate(
        total_orders=count(),
        earliest_order_date=minimum("order_date"),
        latest_order_date=maximum("order_date"),
    )
    .order_by(desc("total_orders"), asc("status")),
)

SCENARIO_10 = QueryScenario(
    "scenario10",
    "Repeat customers since 2025",
    "Customers with at least two orders since Jan 1, 2025, most recently active first.",
    ("customer_id", "total_orders", "first_order_date", "last_order_date"),
    Query.from_(EntityKind.ORDERS)
    .where(ge("order_date", START_2025))
    .group_by("customer_id")
    .aggregate(
        total_orders=count(),
        first_order_date=minimum("order_date"),
        last_order_date=maximum("order_date"),
    )
    .having(ge("total_orders", 2))
    .order_by(desc("last_order_date"), asc("customer_id")),
)

SCENARIO_11 = QueryScenario(
    "scenario11",
    "Hiring years since 2022",
    "Per join year since 2022: head count and top salary, years with two or more hires.",
    ("year", "total_employees", "max_salary"),
    Query.from_(EntityKind.EMPLOYEES)
    .where(ge("join_date", START_2022))
    .group_by(year=year_of("join_date"))
    .aggregate(total_employees=count(), max_salary=maximum("salary"))
    .having(ge("total_employees", 2))
    .order_by(asc("year")),
)

SCENARIO_12 = QueryScenario(
    "scenario12",
    "Active vs inactive by join year",
    "Per join year: active/inactive counts, average active salary and top "
    "inactive salary, for years having both kinds of employee.",
    ("year", "active_count", "inactive_count", "avg_salary_active", "max_salary_inactive"),
    Query.from_(EntityKind.EMPLOYEES)
    .group_by(year=year_of("join_date"))
    .aggregate(
        active_count=count(where=is_true("is_active")),
        inactive_count=count(where=is_false("is_active")),
        avg_salary_active=average("salary", where=is_true("is_active")),
        max_salary_inactive=maximum("salary", where=is_false("is_active")),
    )
    .having(ge("active_count", 1) & ge("inactive_count", 1))
    .order_by(asc("year")),
)

SCENARIO_13 = QueryScenario(
    "scenario13",
    "Price analytics per category",
    "Per category with two or more products: count and min/max/average price.",
    ("category_id", "product_count", "min_price", "max_price", "avg_price"),
    Query.from_(EntityKind.PRODUCTS)
    .group_by("category_id")
    .aggregate(
        product_count=count(),
        min_price=minimum("price"),
        max_price=maximum("price"),
        avg_price=average("price"),
    )
    .having(ge("product_count", 2))
    .order_by(desc("avg_price")),
)

# --- top-N per group ---------------------------------------------------------

SCENARIO_14 = QueryScenario(
    "scenario14",
    "Two most expensive products per category",
    "Top 2 products by price (then name) in each category.",
    ("category_id", "product_id", "name", "price"),
    Query.from_(EntityKind.PRODUCTS)
    .top_per_group(
        "category_id",
        desc("price"),
        asc("name"),
        n=2,
        then_by=(asc("category_id"), desc("price"), asc("name")),
    )
    .select("category_id", "product_id", "name", "price"),
)

SCENARIO_15 = QueryScenario(
    "scenario15",
    "Most recent order per customer",
    "Each customer's latest order.",
    ("customer_id", "order_id", "order_date", "status"),
    Query.from_(EntityKind.ORDERS)
    .top_per_group("customer_id", desc("order_date"), desc("order_id"), then_by=(asc("customer_id"),))
    .select("customer_id", "order_id", "order_date", "status"),
)

SCENARIO_16 = QueryScenario(
    "scenario16",
    "Earliest order per customer",
    "Each customer's first order.",
    ("customer_id", "order_id", "order_date", "status"),
    Query.from_(EntityKind.ORDERS)
    .top_per_group("customer_id", asc("order_date"), asc("order_id"), then_by=(asc("customer_id"),))
    .select("customer_id", "order_id", "order_date", "status"),
)

SCENARIO_17 = QueryScenario(
    "scenario17",
    "Highest bill per customer",
    "Each customer's most expensive order, biggest bills first.",
    ("customer_id", "order_id", "order_date", "total_bill"),
    Query.from_(EntityKind.ORDERS)
    .top_per_group(
        "customer_id",
        desc("total_bill"),
        desc("order_date"),
        then_by=(desc("total_bill"), asc("customer_id")),
    )
    .select("customer_id", "order_id", "order_date", "total_bill"),
)

SCENARIO_18 = QueryScenario(
    "scenario18",
    "First order of each day",
    "The earliest order placed on each calendar day.",
    ("date", "order_id", "customer_id", "order_date", "status"),
    Query.from_(EntityKind.ORDERS)
    .top_per_group(date_of("order_date"), asc("order_date"), asc("order_id"))
    .select("order_id", "customer_id", "order_date", "status", date=date_of("order_date"))
    .order_by(asc("date"), asc("order_id")),
)

SCENARIO_19 = QueryScenario(
    "scenario19",
    "Latest order per status",
    "The most recent order in each status.",
    ("status", "order_id", "customer_id", "order_date"),
    Query.from_(EntityKind.ORDERS)
    .top_per_group("status", desc("order_date"), desc("order_id"), then_by=(asc("status"),))
    .select("status", "order_id", "customer_id", "order_date"),
)

SCENARIO_20 = QueryScenario(
    "scenario20",
    "Customer cohort since 2024",
    "Customers with two or more orders since 2024 spanning at least 30 days, "
    "each represented by their highest bill (ties: most recent).",
    (
        "customer_id",
        "order_id",
        "order_date",
        "total_bill",
        "order_count",
        "first_order_date",
        "last_order_date",
        "avg_bill",
        "max_bill",
        "active_days",
    ),
    Query.from_(EntityKind.ORDERS)
    .where(ge("order_date", START_2024))
    .group_by("customer_id")
    .aggregate(
        order_count=count(),
        first_order_date=minimum("order_date"),
        last_order_date=maximum("order_date"),
        avg_bill=average("total_bill"),
        max_bill=maximum("total_bill"),
        top_order=first_by(desc("total_bill"), desc("order_date")),
    )
    .extend(active_days=days_between("first_order_date", "last_order_date"))
    .having(ge("order_count", 2) & ge("active_days", 30))
    .extend(
        order_id="top_order.order_id",
        order_date="top_order.order_date",
        total_bill="top_order.total_bill",
    )
    .order_by(desc("total_bill"), asc("customer_id")),
)

SCENARIO_21 = QueryScenario(
    "scenario21",
    "Highest bill of each day",
    "The most expensive order placed on each calendar day (ties: latest).",
    ("date", "order_id", "customer_id", "total_bill", "order_date"),
    Query.from_(EntityKind.ORDERS)
    .top_per_group(date_of("order_date"), desc("total_bill"), desc("order_date"))
    .select("order_id", "customer_id", "total_bill", "order_date", date=date_of("order_date"))
    .order_by(asc("date"), desc("total_bill")),
)

SCENARIO_22 = QueryScenario(
    "scenario22",
    "Top earner per department",
    "The highest paid employee of each department (ties: latest join, then lowest id).",
    ("department_id", "employee_id", "full_name", "salary", "join_date"),
    Query.from_(EntityKind.EMPLOYEES)
    .top_per_group(
        "department_id",
        desc("salary"),
        desc("join_date"),
        asc("employee_id"),
        then_by=(asc("department_id"), desc("salary")),
    )
    .select("department_id", "employee_id", "full_name", "salary", "join_date"),
)

SCENARIO_23 = QueryScenario(
    "scenario23",
    "Latest 2025 order per busy status",
    "For statuses with two or more orders since 2025, the most recent one (ties: highest id).",
    ("status", "order_id", "customer_id", "order_date"),
    Query.from_(EntityKind.ORDERS)
    .where(ge("order_date", START_2025))
    .group_by("status")
    .aggregate(total_orders=count(), latest=first_by(desc("order_date"), desc("order_id")))
    .having(ge("total_orders", 2))
    .select(
        "status",
        order_id="latest.order_id",
        customer_id="latest.customer_id",
        order_date="latest.order_date",
    )
    .order_by(asc("status")),
)

SCENARIO_24 = QueryScenario(
    "scenario24",
    "Most expensive product per busy category",
    "Among products priced 500 or more, the priciest product (ties: name) of "
    "each category having at least two such products.",
    ("category_id", "product_id", "name", "price"),
    Query.from_(EntityKind.PRODUCTS)
    .where(ge("price", Decimal("500")))
    .group_by("category_id")
    .aggregate(product_count=count(), top=first_by(desc("price"), asc("name")))
    .having(ge("product_count", 2))
    .select("category_id", product_id="top.product_id", name="top.name", price="top.price")
    .order_by(asc("category_id")),
)

# --- joins -------------------------------------------------------------------

SCENARIO_25 = QueryScenario(
    "scenario25",
    "Products with category",
    "Every product with its category name.",
    ("product_id", "product_name", "category_name", "price"),
    Query.from_(EntityKind.PRODUCTS)
    .join(EntityKind.CATEGORIES, on=("category_id", "category_id"))
    .select("left.product_id", "left.price", product_name="left.name", category_name="right.name")
    .order_by(asc("category_name"), asc("product_name")),
)

SCENARIO_26 = QueryScenario(
    "scenario26",
    "Electronics with category",
    "Products of the Electronics category, most expensive first.",
    ("product_id", "product_name", "category_name", "price"),
    Query.from_(EntityKind.PRODUCTS)
    .join(EntityKind.CATEGORIES, on=("category_id", "category_id"))
    .where(iequals("right.name", "Electronics"))
    .select("left.product_id", "left.price", product_name="left.name", category_name="right.name")
    .order_by(desc("price"), asc("product_name")),
)

SCENARIO_27 = QueryScenario(
    "scenario27",
    "2025 orders with customer",
    "Orders placed in 2025 with the customer's name.",
    ("order_id", "customer_name", "order_date", "status"),
    Query.from_(EntityKind.ORDERS)
    .where(between("order_date", START_2025, START_2026))
    .join(EntityKind.CUSTOMERS, on=("customer_id", "customer_id"))
    .select("left.order_id", "left.order_date", "left.status", customer_name="right.name")
    .order_by(asc("order_date"), asc("customer_name")),
)

SCENARIO_28 = QueryScenario(
    "scenario28",
    "Active employees with department",
    "Active employees with their department name.",
    ("employee_id", "full_name", "department_name", "join_date"),
    Query.from_(EntityKind.EMPLOYEES)
    .where(is_true("is_active"))
    .join(EntityKind.DEPARTMENTS, on=("department_id", "department_id"))
    .select("left.employee_id", "left.full_name", "left.join_date", department_name="right.name")
    .order_by(asc("department_name"), asc("full_name")),
)

SCENARIO_29 = QueryScenario(
    "scenario29",
    "Indian customers' 2025 orders",
    "Orders placed in 2025 by customers from India.",
    ("order_id", "customer_name", "country", "order_date", "status"),
    Query.from_(EntityKind.CUSTOMERS)
    .where(iequals("country", "India"))
    .join(EntityKind.ORDERS, on=("customer_id", "customer_id"))
    .where(between("right.order_date", START_2025, START_2026))
    .select(
        "right.order_id",
        "left.country",
        "right.order_date",
        "right.status",
        customer_name="left.name",
    )
    .order_by(asc("customer_name"), asc("order_date")),
)

SCENARIO_30 = QueryScenario(
    "scenario30",
    "2025 order lines with product",
    "Order lines from 2025 orders with product name and line total.",
    ("order_id", "product_id", "product_name", "quantity", "unit_price", "total_price"),
    Query.from_(EntityKind.ORDER_ITEMS)
    .join(EntityKind.ORDERS, on=("order_id", "order_id"))
    .where(between("right.order_date", START_2025, START_2026))
    .join(EntityKind.PRODUCTS, on=("left.product_id", "product_id"))
    .select(
        "left.left.order_id",
        "right.product_id",
        "left.left.quantity",
        "left.left.unit_price",
        product_name="right.name",
        total_price=product_of("left.left.unit_price", "left.left.quantity"),
    )
    .order_by(asc("order_id"), asc("product_name")),
)

SCENARIO_31 = QueryScenario(
    "scenario31",
    "Delivered orders with customer",
    "Delivered orders with the customer's name, newest first per customer.",
    ("order_id", "customer_name", "order_date", "status"),
    Query.from_(EntityKind.ORDERS)
    .where(eq("status", "Delivered"))
    .join(EntityKind.CUSTOMERS, on=("customer_id", "customer_id"))
    .select("left.order_id", "left.order_date", "left.status", customer_name="right.name")
    .order_by(asc("customer_name"), desc("order_date")),
)

# --- self-referencing manager key ---------------------------------------------

EMPLOYEE_MANAGERS = QueryScenario(
    "employee_managers",
    "Employees with their manager",
    "Employees that report to someone, with the manager's name. Top-level "
    "staff (no manager) are dropped by the inner join.",
    ("employee_id", "full_name", "manager_id", "manager_name"),
    Query.from_(EntityKind.EMPLOYEES)
    .join(EntityKind.EMPLOYEES, on=("manager_id", "employee_id"))
    .select("left.employee_id", "left.full_name", "left.manager_id", manager_name="right.full_name")
    .order_by(asc("manager_name"), asc("full_name")),
)

MANAGER_DIRECT_REPORTS = QueryScenario(
    "manager_direct_reports",
    "Direct reports per manager",
    "Employees with at least one direct report, with active/total report counts.",
    ("employee_id", "full_name", "direct_reports", "active_reports"),
    Query.from_(EntityKind.EMPLOYEES)
    .left_join(
        EntityKind.EMPLOYEES,
        on=("employee_id", "manager_id"),
        direct_reports=count(),
        active_reports=count(where=is_true("is_active")),
    )
    .having(ge("direct_reports", 1))
    .extend(employee_id="left.employee_id", full_name="left.full_name")
    .order_by(desc("direct_reports"), asc("employee_id")),
)


SCENARIOS: Tuple[QueryScenario, ...] = (
    SCENARIO_1,
    SCENARIO_2,
    SCENARIO_3,
    SCENARIO_4,
    SCENARIO_5,
    SCENARIO_6,
    SCENARIO_7,
    SCENARIO_8,
    SCENARIO_9,
    SCENARIO_10,
    SCENARIO_11,
    SCENARIO_12,
    SCENARIO_13,
    SCENARIO_14,
    SCENARIO_15,
    SCENARIO_16,
    SCENARIO_17,
    SCENARIO_18,
    SCENARIO_19,
    SCENARIO_20,
    SCENARIO_21,
    SCENARIO_22,
    SCENARIO_23,
    SCENARIO_24,
    SCENARIO_25,
    SCENARIO_26,
    SCENARIO_27,
    SCENARIO_28,
    SCENARIO_29,
    SCENARIO_30,
    SCENARIO_31,
    EMPLOYEE_MANAGERS,
    MANAGER_DIRECT_REPORTS,
)


def scenarios_by_name() -> Dict[str, QueryScenario]:
    return {scenario.name: scenario for scenario in SCENARIOS}


__all__ = ["QueryScenario", "SCENARIOS", "scenarios_by_name"]
