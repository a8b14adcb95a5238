from __future__ import annotations

from pathlib import Path

from querylab.engine.store import EntityKind
from querylab.infrastructure.fixtures import build_store, load
from querylab.infrastructure.generator import dataset_to_json, generate_dataset, write_dataset

EXPECTED_EMPLOYEES = 12
EXPECTED_ORDERS = 15


def test_same_seed_same_dataset() -> None:
    assert generate_dataset(seed=7) == generate_dataset(seed=7)
    assert generate_dataset(seed=7) != generate_dataset(seed=8)


def test_generated_dataset_passes_integrity_checks() -> None:
    store = build_store(generate_dataset(seed=3, employees=EXPECTED_EMPLOYEES, orders=EXPECTED_ORDERS))
    assert len(store.all(EntityKind.EMPLOYEES)) == EXPECTED_EMPLOYEES
    assert len(store.all(EntityKind.ORDERS)) == EXPECTED_ORDERS
    assert all(order.total_bill is not None for order in store.all(EntityKind.ORDERS))
    for employee in store.all(EntityKind.EMPLOYEES):
        if employee.manager_id is not None:
            assert employee.manager_id < employee.employee_id


def test_written_fixture_round_trips_through_loader(tmp_path: Path) -> None:
    dataset = generate_dataset(seed=11)
    path = write_dataset(dataset, tmp_path / "nested" / "generated.json")
    store = load(path)
    assert store.counts() == build_store(dataset).counts()
    assert store.all(EntityKind.ORDER_ITEMS) == tuple(dataset.order_items)


def test_json_uses_pascal_case_and_omits_totals() -> None:
    payload = dataset_to_json(generate_dataset(seed=1, orders=2))
    assert set(payload) == {
        "Departments",
        "Employees",
        "Categories",
        "Products",
        "Customers",
        "Orders",
        "OrderItems",
    }
    assert "TotalBill" not in payload["Orders"][0]
    assert "OrderDate" in payload["Orders"][0]
