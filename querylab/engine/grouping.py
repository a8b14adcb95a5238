"""
Grouping, aggregation and having-filters.

Aggregates are small objects with a `compute(rows)` method. Each one can be
restricted to a sub-view of the group with `where=`; when that sub-view is
empty, aggregates without an identity (average, minimum, maximum, first_by)
return None instead of a default, so "no active employees" stays
distinguishable from "zero salary". Absent input values are skipped, as SQL
aggregates skip NULL.

Averages are computed as sum / count over the surviving values, never as a
running mean, so the result does not depend on row order.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from querylab.engine.joins import KeySpec, key_function
from querylab.engine.ordering import SortKey, order_by
from querylab.engine.predicates import Selector, as_selector, selector_name, selector_paths


class Group(NamedTuple):
    key: Tuple[Any, ...]
    names: Tuple[str, ...]
    rows: Tuple[Any, ...]

    def key_fields(self) -> Dict[str, Any]:
        return dict(zip(self.names, self.key))


class Aggregate:
    """
    Base class for aggregates over a sequence of rows.

    Subclasses implement `_compute` over the already-filtered rows.
    """

    label = "aggregate"

    def __init__(self, where: Optional[Callable[[Any], bool]] = None) -> None:
        self.where = where

    @property
    def paths(self) -> Tuple[str, ...]:
        return selector_paths(self.where) if self.where is not None else ()

    def compute(self, rows: Iterable[Any]) -> Any:
        if self.where is not None:
            rows = [row for row in rows if self.where(row)]
        return self._compute(list(rows))

    def _compute(self, rows: List[Any]) -> Any:  # pragma: no cover - interface only
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.label})"


class _SelectorAggregate(Aggregate):
    def __init__(self, selector: Selector, where: Optional[Callable[[Any], bool]] = None) -> None:
        super().__init__(where)
        self.selector = selector
        self._extract = as_selector(selector)
        self.label = selector_name(selector)

    @property
    def paths(self) -> Tuple[str, ...]:
        return selector_paths(self.selector) + super().paths

    def values(self, rows: List[Any]) -> List[Any]:
        return [value for value in map(self._extract, rows) if value is not None]


class Count(Aggregate):
    label = "count"

    def _compute(self, rows: List[Any]) -> int:
        return len(rows)


class Sum(_SelectorAggregate):
    def _compute(self, rows: List[Any]) -> Any:
        values = self.values(rows)
        total: Any = 0
        for value in values:
            total = total + value
        return total


class Average(_SelectorAggregate):
    def _compute(self, rows: List[Any]) -> Any:
        values = self.values(rows)
        if not values:
            return None
        total: Any = 0
        for value in values:
            total = total + value
        return total / len(values)


class Minimum(_SelectorAggregate):
    def _compute(self, rows: List[Any]) -> Any:
        values = self.values(rows)
        return min(values) if values else None


class Maximum(_SelectorAggregate):
    def _compute(self, rows: List[Any]) -> Any:
        values = self.values(rows)
        return max(values) if values else None


class FirstBy(Aggregate):
    """
    The first row of the group under an ordering, e.g. the order with the
    highest bill, ties broken by the most recent date.
    """

    label = "first_by"

    def __init__(self, keys: Sequence[SortKey], where: Optional[Callable[[Any], bool]] = None) -> None:
        super().__init__(where)
        self.keys = tuple(keys)

    @property
    def paths(self) -> Tuple[str, ...]:
        paths: Tuple[str, ...] = ()
        for key in self.keys:
            paths += selector_paths(key.selector)
        return paths + super().paths

    def _compute(self, rows: List[Any]) -> Any:
        if not rows:
            return None
        return order_by(rows, self.keys)[0]


def count(where: Optional[Callable[[Any], bool]] = None) -> Count:
    return Count(where)


def sum_of(selector: Selector, where: Optional[Callable[[Any], bool]] = None) -> Sum:
    return Sum(selector, where)


def average(selector: Selector, where: Optional[Callable[[Any], bool]] = None) -> Average:
    return Average(selector, where)


def minimum(selector: Selector, where: Optional[Callable[[Any], bool]] = None) -> Minimum:
    return Minimum(selector, where)


def maximum(selector: Selector, where: Optional[Callable[[Any], bool]] = None) -> Maximum:
    return Maximum(selector, where)


def first_by(*keys: SortKey, where: Optional[Callable[[Any], bool]] = None) -> FirstBy:
    if not keys:
        raise ValueError("first_by needs at least one sort key")
    return FirstBy(keys, where)


def group_by(
    rows: Iterable[Any],
    key: KeySpec,
    names: Optional[Sequence[str]] = None,
) -> List[Group]:
    """
    Partition `rows` by `key`.

    Every input row lands in exactly one group. Group order is first-seen but
    callers should not rely on it; order the aggregated output explicitly.

    Parameters
    ----------
    rows : Iterable
        Input rows.
    key : KeySpec
        Path, callable, or tuple of them for composite keys.
    names : Sequence[str], optional
        Output names of the key components; defaults to the last path segment.
    """
    parts = key if isinstance(key, tuple) else (key,)
    key_names = tuple(names) if names is not None else tuple(selector_name(part) for part in parts)
    if len(key_names) != len(parts):
        raise ValueError(f"Expected {len(parts)} key names, got {len(key_names)}")

    extract = key_function(tuple(parts))
    buckets: Dict[Tuple[Any, ...], List[Any]] = {}
    for row in rows:
        buckets.setdefault(extract(row), []).append(row)
    return [Group(group_key, key_names, tuple(members)) for group_key, members in buckets.items()]


def aggregate_rows(rows: Iterable[Any], aggregates: Mapping[str, Aggregate]) -> Dict[str, Any]:
    """Evaluate named aggregates over one sequence of rows."""
    materialized = list(rows)
    return {name: agg.compute(materialized) for name, agg in aggregates.items()}


def aggregate(groups: Iterable[Group], aggregates: Mapping[str, Aggregate]) -> List[Dict[str, Any]]:
    """
    Project each group to a flat row: its key fields followed by aggregates.
    """
    output: List[Dict[str, Any]] = []
    for group in groups:
        row = group.key_fields()
        row.update(aggregate_rows(group.rows, aggregates))
        output.append(row)
    return output


def having(rows: Iterable[Dict[str, Any]], predicate: Callable[[Any], bool]) -> List[Dict[str, Any]]:
    """Drop aggregate rows that fail `predicate`."""
    return [row for row in rows if predicate(row)]


__all__ = [
    "Group",
    "Aggregate",
    "Count",
    "Sum",
    "Average",
    "Minimum",
    "Maximum",
    "FirstBy",
    "count",
    "sum_of",
    "average",
    "minimum",
    "maximum",
    "first_by",
    "group_by",
    "aggregate_rows",
    "aggregate",
    "having",
]
