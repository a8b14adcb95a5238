from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import pytest

from querylab.config import PACKAGED_FIXTURE, get_settings
from querylab.engine.store import EntityKind
from querylab.exceptions import FixtureError
from querylab.infrastructure.fixtures import candidate_paths, load, resolve_fixture_path

EXPECTED_ORDER_1_TOTAL = Decimal("9400.00")


def _minimal_payload() -> dict:
    return {
        "Departments": [{"DepartmentId": 1, "Name": "Ops"}],
        "Employees": [
            {
                "EmployeeId": 1,
                "FullName": "Ann",
                "DepartmentId": 1,
                "ManagerId": None,
                "JoinDate": "2024-01-01T00:00:00",
                "IsActive": True,
                "Salary": 100.5,
            }
        ],
        "Categories": [{"CategoryId": 1, "Name": "Books"}],
        "Products": [{"ProductId": 1, "Name": "Novel", "CategoryId": 1, "Price": 12.25}],
        "Customers": [{"CustomerId": 1, "Name": "Bo", "Country": "India"}],
        "Orders": [
            {"OrderId": 1, "CustomerId": 1, "OrderDate": "2025-01-02T10:00:00", "Status": "Pending"},
            {"OrderId": 2, "CustomerId": 1, "OrderDate": "2025-01-03T10:00:00", "Status": "Pending"},
        ],
        "OrderItems": [{"OrderId": 1, "ProductId": 1, "Quantity": 2, "UnitPrice": 12.25}],
    }


def _write(tmp_path: Path, payload: dict) -> Path:
    path = tmp_path / "fixture.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_packaged_fixture_derives_totals(sample_store) -> None:
    order = sample_store.by_key(EntityKind.ORDERS, 1)
    assert order.total_bill == EXPECTED_ORDER_1_TOTAL
    for order in sample_store.all(EntityKind.ORDERS):
        items = [i for i in sample_store.all(EntityKind.ORDER_ITEMS) if i.order_id == order.order_id]
        assert order.total_bill == sum((i.unit_price * i.quantity for i in items), Decimal("0"))


def test_load_minimal_fixture(tmp_path: Path) -> None:
    store = load(_write(tmp_path, _minimal_payload()))
    assert store.by_key(EntityKind.EMPLOYEES, 1).salary == Decimal("100.5")
    assert store.by_key(EntityKind.ORDERS, 1).total_bill == Decimal("24.50")
    # no items, no derived total
    assert store.by_key(EntityKind.ORDERS, 2).total_bill is None


def test_keys_are_matched_case_insensitively(tmp_path: Path) -> None:
    payload = _minimal_payload()
    payload["order_items"] = payload.pop("OrderItems")
    payload["customers"] = [{"customerId": 1, "name": "Bo", "COUNTRY": "India"}]
    store = load(_write(tmp_path, payload))
    assert store.by_key(EntityKind.CUSTOMERS, 1).country == "India"
    assert len(store.all(EntityKind.ORDER_ITEMS)) == 1


def test_dangling_foreign_key_fails(tmp_path: Path) -> None:
    payload = _minimal_payload()
    payload["Products"][0]["CategoryId"] = 99
    with pytest.raises(FixtureError, match="category_id=99"):
        load(_write(tmp_path, payload))


def test_dangling_manager_fails(tmp_path: Path) -> None:
    payload = _minimal_payload()
    payload["Employees"][0]["ManagerId"] = 7
    with pytest.raises(FixtureError):
        load(_write(tmp_path, payload))


def test_inconsistent_total_bill_fails(tmp_path: Path) -> None:
    payload = _minimal_payload()
    payload["Orders"][0]["TotalBill"] = 1.0
    with pytest.raises(FixtureError, match="TotalBill"):
        load(_write(tmp_path, payload))


def test_total_bill_on_order_without_items_fails(tmp_path: Path) -> None:
    payload = _minimal_payload()
    # Order 2 has no items, so its only consistent total is zero.
    payload["Orders"][1]["TotalBill"] = 500
    with pytest.raises(FixtureError, match="Order 2 declares TotalBill"):
        load(_write(tmp_path, payload))


def test_zero_total_bill_on_order_without_items_loads(tmp_path: Path) -> None:
    payload = _minimal_payload()
    payload["Orders"][1]["TotalBill"] = 0
    store = load(_write(tmp_path, payload))
    assert store.by_key(EntityKind.ORDERS, 2).total_bill == Decimal(0)


def test_duplicate_order_item_fails(tmp_path: Path) -> None:
    payload = _minimal_payload()
    payload["OrderItems"].append(dict(payload["OrderItems"][0]))
    with pytest.raises(FixtureError, match="Duplicate key"):
        load(_write(tmp_path, payload))


def test_malformed_json_fails(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(FixtureError):
        load(path)


def test_invalid_field_value_fails(tmp_path: Path) -> None:
    payload = _minimal_payload()
    payload["Orders"][0]["OrderDate"] = "yesterday"
    with pytest.raises(FixtureError, match="failed validation"):
        load(_write(tmp_path, payload))


def test_explicit_missing_path_is_not_substituted(tmp_path: Path) -> None:
    with pytest.raises(FixtureError, match="Could not locate"):
        resolve_fixture_path(tmp_path / "nope.json")


def test_configured_path_is_tried_before_packaged(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path, _minimal_payload())
    monkeypatch.setenv("FIXTURE_PATH", str(path))
    get_settings.cache_clear()
    assert candidate_paths() == [path, PACKAGED_FIXTURE]
    assert resolve_fixture_path() == path
    assert load().counts()["orders"] == 2


def test_packaged_fixture_is_default() -> None:
    assert resolve_fixture_path() == PACKAGED_FIXTURE
