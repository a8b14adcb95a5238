"""
JSON fixture loader.

Reads the practice dataset once, derives each order's `total_bill` from its
items and checks the invariants queries rely on (unique keys, foreign keys
that resolve, consistent totals). The result is an immutable `EntityStore`;
nothing is validated again at query time.

Property names are matched case-insensitively and with or without
underscores, so `OrderItems`, `orderItems` and `order_items` all work.
"""

from __future__ import annotations

import json
from collections import defaultdict
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from querylab.config import PACKAGED_FIXTURE, get_settings
from querylab.domain.models import Dataset, Order
from querylab.engine.store import EntityKind, EntityStore
from querylab.exceptions import FixtureError
from querylab.utils.logging import get_logger

log = get_logger(__name__)

# (child kind, FK field, parent kind); optional FKs are skipped when absent.
FOREIGN_KEYS = (
    (EntityKind.EMPLOYEES, "department_id", EntityKind.DEPARTMENTS),
    (EntityKind.EMPLOYEES, "manager_id", EntityKind.EMPLOYEES),
    (EntityKind.PRODUCTS, "category_id", EntityKind.CATEGORIES),
    (EntityKind.ORDERS, "customer_id", EntityKind.CUSTOMERS),
    (EntityKind.ORDER_ITEMS, "order_id", EntityKind.ORDERS),
    (EntityKind.ORDER_ITEMS, "product_id", EntityKind.PRODUCTS),
)


def _canonical(name: str) -> str:
    return name.replace("_", "").casefold()


def _normalize_keys(payload: Any, model: Type[BaseModel]) -> Any:
    if not isinstance(payload, dict):
        return payload
    names = {_canonical(name): name for name in model.model_fields}
    return {names.get(_canonical(key), key): value for key, value in payload.items()}


def _normalize_dataset(payload: Dict[str, Any]) -> Dict[str, Any]:
    root = _normalize_keys(payload, Dataset)
    for kind in EntityKind:
        records = root.get(kind.label)
        if isinstance(records, list):
            root[kind.label] = [_normalize_keys(record, kind.model) for record in records]
    return root


def candidate_paths(path: Optional[Path | str] = None) -> List[Path]:
    """Locations tried in order: explicit path, configured path, packaged sample."""
    candidates: List[Path] = []
    if path is not None:
        candidates.append(Path(path))
    configured = get_settings().fixture_path
    if configured is not None:
        candidates.append(Path(configured))
    candidates.append(PACKAGED_FIXTURE)
    return candidates


def resolve_fixture_path(path: Optional[Path | str] = None) -> Path:
    candidates = candidate_paths(path)
    if path is not None:
        # An explicit path is never substituted.
        candidates = candidates[:1]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    tried = "\n".join(str(c) for c in candidates)
    raise FixtureError(f"Could not locate fixture file\nTried:\n{tried}")


def read_dataset(path: Path) -> Dataset:
    """Parse and validate a fixture file into a `Dataset`."""
    try:
        with path.open("r", encoding="utf-8") as f:
            payload = json.load(f, parse_float=Decimal)
    except (OSError, json.JSONDecodeError) as exc:
        raise FixtureError(f"Cannot read fixture {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise FixtureError(f"Fixture {path} must contain a JSON object at the top level")
    try:
        return Dataset.model_validate(_normalize_dataset(payload))
    except ValidationError as exc:
        raise FixtureError(f"Fixture {path} failed validation: {exc}") from exc


def derive_order_totals(dataset: Dataset) -> Dataset:
    """
    Return a copy of `dataset` with each order's `total_bill` set to the sum
    of its items. A total already present in the fixture must match, and an
    order without items may only declare a total of zero.
    """
    totals: Dict[int, Decimal] = defaultdict(Decimal)
    for item in dataset.order_items:
        totals[item.order_id] += item.line_total

    orders: List[Order] = []
    for order in dataset.orders:
        derived = totals.get(order.order_id)
        if order.total_bill is not None:
            expected = derived if derived is not None else Decimal(0)
            if order.total_bill != expected:
                raise FixtureError(
                    f"Order {order.order_id} declares TotalBill {order.total_bill} "
                    f"but its items sum to {expected}"
                )
        if derived is not None:
            order = order.model_copy(update={"total_bill": derived})
        orders.append(order)
    return dataset.model_copy(update={"orders": orders})


def check_references(store: EntityStore) -> None:
    """Raise `FixtureError` on the first foreign key that does not resolve."""
    for child, fk, parent in FOREIGN_KEYS:
        for record in store.all(child):
            value = getattr(record, fk)
            if value is None:
                continue
            if store.by_key(parent, value) is None:
                raise FixtureError(
                    f"{child.label} {child.key_of(record)!r}: {fk}={value!r} "
                    f"has no matching row in {parent.label}"
                )


def build_store(dataset: Dataset) -> EntityStore:
    """Derive totals, index, and integrity-check a dataset."""
    store = EntityStore.from_dataset(derive_order_totals(dataset))
    check_references(store)
    return store


def load(path: Optional[Path | str] = None) -> EntityStore:
    """
    Load the fixture into an immutable `EntityStore`.

    Parameters
    ----------
    path : Path | str, optional
        Explicit fixture file. Defaults to `FIXTURE_PATH`, then the packaged
        sample dataset.

    Raises
    ------
    FixtureError
        If the file is missing or malformed or breaks a data invariant.
    """
    fixture = resolve_fixture_path(path)
    store = build_store(read_dataset(fixture))
    log.info(f"Loaded fixture {fixture.name}", extra={"fixture": str(fixture), **store.counts()})
    return store


__all__ = [
    "FOREIGN_KEYS",
    "candidate_paths",
    "resolve_fixture_path",
    "read_dataset",
    "derive_order_totals",
    "check_references",
    "build_store",
    "load",
]
