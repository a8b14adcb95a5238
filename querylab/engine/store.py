"""
Immutable in-memory entity store.

Holds one tuple of records per entity kind plus a primary-key index for
`by_key` lookups. The store is built once from a `Dataset` and never mutated
afterwards, so queries can share it freely.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Type

from pydantic import BaseModel

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
from querylab.exceptions import FixtureError


class EntityKind(Enum):
    """
    The seven entity kinds. Each member carries its model class, the key
    field(s) and the `Dataset` attribute it is loaded from.
    """

    DEPARTMENTS = ("departments", Department, ("department_id",))
    EMPLOYEES = ("employees", Employee, ("employee_id",))
    CATEGORIES = ("categories", Category, ("category_id",))
    PRODUCTS = ("products", Product, ("product_id",))
    CUSTOMERS = ("customers", Customer, ("customer_id",))
    ORDERS = ("orders", Order, ("order_id",))
    ORDER_ITEMS = ("order_items", OrderItem, ("order_id", "product_id"))

    def __init__(self, label: str, model: Type[BaseModel], key_fields: Tuple[str, ...]) -> None:
        self.label = label
        self.model = model
        self.key_fields = key_fields

    def key_of(self, record: Any) -> Any:
        """Return the primary key of `record`; composite keys are tuples."""
        if len(self.key_fields) == 1:
            return getattr(record, self.key_fields[0])
        return tuple(getattr(record, name) for name in self.key_fields)


class EntityStore:
    """
    Read-only collections of the seven entity kinds.

    Parameters
    ----------
    collections : Mapping[EntityKind, Iterable]
        Records per kind. Missing kinds are treated as empty.

    Raises
    ------
    FixtureError
        If two records of the same kind share a primary key.
    """

    def __init__(self, collections: Mapping[EntityKind, Iterable[Any]]) -> None:
        self._records: Dict[EntityKind, Tuple[Any, ...]] = {}
        self._index: Dict[EntityKind, Dict[Any, Any]] = {}
        for kind in EntityKind:
            records = tuple(collections.get(kind, ()))
            index: Dict[Any, Any] = {}
            for record in records:
                key = kind.key_of(record)
                if key in index:
                    raise FixtureError(f"Duplicate key {key!r} in {kind.label}")
                index[key] = record
            self._records[kind] = records
            self._index[kind] = index

    @classmethod
    def from_dataset(cls, dataset: Dataset) -> "EntityStore":
        return cls({kind: getattr(dataset, kind.label) for kind in EntityKind})

    def all(self, kind: EntityKind) -> Tuple[Any, ...]:
        """Return every record of `kind` in load order."""
        return self._records[kind]

    def by_key(self, kind: EntityKind, key: Any) -> Optional[Any]:
        """
        Look a record up by primary key.

        Returns None when no record has that key; absence is a normal outcome,
        not an error. Composite keys (OrderItem) are passed as tuples.
        """
        if key is None:
            return None
        return self._index[kind].get(key)

    def counts(self) -> Dict[str, int]:
        return {kind.label: len(records) for kind, records in self._records.items()}

    def __len__(self) -> int:
        return sum(len(records) for records in self._records.values())


__all__ = ["EntityKind", "EntityStore"]
