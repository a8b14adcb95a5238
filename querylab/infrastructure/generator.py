"""
Deterministic synthetic dataset generation.

Builds a referentially consistent `Dataset` from a seeded RNG so the same seed
always yields the same records. Used by `scripts/generate_data.py` to write
fixture files and by the test-suite for property checks over random data.
"""

from __future__ import annotations

import json
import random
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List

from querylab.domain.models import (
    Category,
    Customer,
    Dataset,
    Department,
    Employee,
    Order,
    OrderItem,
    Product,
)

DEPARTMENT_NAMES = ["Engineering", "Sales", "HR", "Finance", "Legal", "Support"]
CATEGORY_NAMES = ["Electronics", "Books", "Furniture", "Toys", "Garden", "Sports"]
COUNTRIES = ["India", "USA", "Italy", "China", "Brazil", "Morocco"]
STATUSES = ["Pending", "Shipped", "Delivered", "Cancelled"]
FIRST_NAMES = ["Asha", "Ben", "Chloe", "Dev", "Elena", "Femi", "Gita", "Hugo", "Ines", "Jon", "Kira", "Liam"]
LAST_NAMES = ["Rao", "Smith", "Moreau", "Iyer", "Costa", "Adeyemi", "Bose", "Klein", "Silva", "Park"]

_EPOCH = datetime(2020, 1, 1)


def _money(rng: random.Random, low: int, high: int) -> Decimal:
    return Decimal(rng.randint(low * 100, high * 100)) / 100


def _timestamp(rng: random.Random, days: int = 6 * 365) -> datetime:
    return _EPOCH + timedelta(days=rng.randint(0, days), minutes=rng.randint(0, 24 * 60 - 1))


def generate_dataset(
    seed: int = 42,
    departments: int = 4,
    employees: int = 30,
    categories: int = 4,
    products: int = 20,
    customers: int = 10,
    orders: int = 40,
    max_items_per_order: int = 4,
) -> Dataset:
    """
    Generate a dataset whose foreign keys all resolve.

    Employees' managers are always earlier employees, so the manager chain is
    acyclic. Every order gets at least one item; item keys are unique per
    (order, product).
    """
    rng = random.Random(seed)

    depts = [
        Department(department_id=i + 1, name=DEPARTMENT_NAMES[i % len(DEPARTMENT_NAMES)])
        for i in range(departments)
    ]
    staff: List[Employee] = []
    for i in range(employees):
        manager = rng.choice([None, rng.randint(1, i)]) if i > 0 else None
        staff.append(
            Employee(
                employee_id=i + 1,
                full_name=f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
                department_id=rng.randint(1, departments),
                manager_id=manager,
                join_date=_timestamp(rng).replace(hour=0, minute=0),
                is_active=rng.random() < 0.7,
                salary=_money(rng, 3000, 12000),
            )
        )

    cats = [
        Category(category_id=i + 1, name=CATEGORY_NAMES[i % len(CATEGORY_NAMES)])
        for i in range(categories)
    ]
    items_catalog = [
        Product(
            product_id=i + 1,
            name=f"Product {i + 1:03d}",
            category_id=rng.randint(1, categories),
            price=_money(rng, 50, 9000),
        )
        for i in range(products)
    ]
    buyers = [
        Customer(customer_id=i + 1, name=f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}", country=rng.choice(COUNTRIES))
        for i in range(customers)
    ]

    order_rows: List[Order] = []
    item_rows: List[OrderItem] = []
    for i in range(orders):
        order_id = i + 1
        order_rows.append(
            Order(
                order_id=order_id,
                customer_id=rng.randint(1, customers),
                order_date=_timestamp(rng),
                status=rng.choice(STATUSES),
            )
        )
        picked = rng.sample(items_catalog, k=rng.randint(1, min(max_items_per_order, len(items_catalog))))
        for product in picked:
            item_rows.append(
                OrderItem(
                    order_id=order_id,
                    product_id=product.product_id,
                    quantity=rng.randint(1, 5),
                    unit_price=product.price,
                )
            )

    return Dataset(
        departments=depts,
        employees=staff,
        categories=cats,
        products=items_catalog,
        customers=buyers,
        orders=order_rows,
        order_items=item_rows,
    )


def dataset_to_json(dataset: Dataset) -> Dict[str, Any]:
    """Serialize with the PascalCase property names the fixture loader reads."""
    return dataset.model_dump(mode="json", by_alias=True, exclude={"orders": {"__all__": {"total_bill"}}})


def write_dataset(dataset: Dataset, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(dataset_to_json(dataset), f, indent=2)
    return path


__all__ = ["generate_dataset", "dataset_to_json", "write_dataset"]
