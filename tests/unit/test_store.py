from __future__ import annotations

from decimal import Decimal

import pytest

from querylab.domain.models import Department, OrderItem
from querylab.engine.store import EntityKind, EntityStore
from querylab.exceptions import FixtureError

EXPECTED_SAMPLE_COUNTS = {
    "departments": 4,
    "employees": 10,
    "categories": 4,
    "products": 12,
    "customers": 6,
    "orders": 13,
    "order_items": 21,
}


def test_sample_store_counts(sample_store: EntityStore) -> None:
    assert sample_store.counts() == EXPECTED_SAMPLE_COUNTS
    assert len(sample_store) == sum(EXPECTED_SAMPLE_COUNTS.values())


def test_all_preserves_load_order(sample_store: EntityStore) -> None:
    ids = [d.department_id for d in sample_store.all(EntityKind.DEPARTMENTS)]
    assert ids == [1, 2, 3, 4]


def test_by_key_hit_and_miss(sample_store: EntityStore) -> None:
    assert sample_store.by_key(EntityKind.EMPLOYEES, 4).full_name == "David Lee"
    assert sample_store.by_key(EntityKind.EMPLOYEES, 999) is None
    assert sample_store.by_key(EntityKind.EMPLOYEES, None) is None


def test_by_key_composite(sample_store: EntityStore) -> None:
    item = sample_store.all(EntityKind.ORDER_ITEMS)[0]
    assert sample_store.by_key(EntityKind.ORDER_ITEMS, (item.order_id, item.product_id)) is item


def test_duplicate_key_rejected() -> None:
    with pytest.raises(FixtureError, match="Duplicate key"):
        EntityStore(
            {
                EntityKind.DEPARTMENTS: [
                    Department(department_id=1, name="A"),
                    Department(department_id=1, name="B"),
                ]
            }
        )


def test_duplicate_composite_key_rejected() -> None:
    line = OrderItem(order_id=1, product_id=2, quantity=1, unit_price=Decimal("1"))
    with pytest.raises(FixtureError):
        EntityStore({EntityKind.ORDER_ITEMS: [line, line]})


def test_missing_kinds_are_empty() -> None:
    store = EntityStore({})
    assert store.all(EntityKind.ORDERS) == ()
    assert len(store) == 0


def test_records_are_frozen(sample_store: EntityStore) -> None:
    employee = sample_store.by_key(EntityKind.EMPLOYEES, 1)
    with pytest.raises(Exception):
        employee.salary = Decimal("1")
