"""
Staged, eagerly evaluated query pipelines.

A `Query` is an immutable chain of stages over one source entity kind:

    Query.from_(EntityKind.ORDERS)
        .where(ge("order_date", datetime(2025, 1, 1)))
        .group_by("customer_id")
        .aggregate(total_orders=count(), last_order=maximum("order_date"))
        .having(ge("total_orders", 2))
        .order_by(desc("last_order"), asc("customer_id"))
        .run(store)

Every builder method validates the new stage against the shape of the rows
flowing into it and raises `InvalidKeyError` / `QueryError` right away, before
any data is touched. `run` then applies the stages in order, materializing a
list after each one; there is no deferred or lazy evaluation.
"""

from __future__ import annotations

import types
import typing
from dataclasses import dataclass, field as dc_field
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from pydantic import BaseModel

from querylab.engine.grouping import (
    Aggregate,
    Count,
    FirstBy,
    aggregate,
    aggregate_rows,
    group_by,
    having,
)
from querylab.engine.joins import KeySpec, join, key_arity, left_join
from querylab.engine.ordering import SortKey, order_by, top_n_per_group
from querylab.engine.predicates import (
    Selector,
    as_selector,
    filter_rows,
    project,
    selector_name,
    selector_paths,
)
from querylab.engine.store import EntityKind, EntityStore
from querylab.exceptions import InvalidKeyError, QueryError
from querylab.utils.logging import get_logger

log = get_logger(__name__)

# --- row shapes ------------------------------------------------------------


class JoinedSchema(NamedTuple):
    left: Any
    right: Any


@dataclass(frozen=True)
class RowSchema:
    """Shape of dict rows produced by aggregation or projection."""

    fields: Dict[str, Any] = dc_field(default_factory=dict)


@dataclass(frozen=True)
class GroupedSchema:
    keys: Dict[str, Any]
    member: Any


_UNHASHABLE_ORIGINS = (list, dict, set)


def _unwrap_optional(annotation: Any) -> Any:
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def lookup(schema: Any, path: str) -> Any:
    """
    Resolve the annotation of `path` within `schema`.

    Returns `typing.Any` once the walk leaves known territory (scalar
    attributes, opaque aggregates). Raises `InvalidKeyError` for a field that
    cannot exist.
    """
    current = schema
    for part in path.split("."):
        current = _step(_unwrap_optional(current), part, path)
    return current


def _step(schema: Any, part: str, path: str) -> Any:
    if schema is Any:
        return Any
    if isinstance(schema, JoinedSchema):
        if part == "left":
            return schema.left
        if part == "right":
            return schema.right
        raise InvalidKeyError(f"Joined rows expose 'left' and 'right', not {part!r} (in {path!r})")
    if isinstance(schema, RowSchema):
        if part not in schema.fields:
            raise InvalidKeyError(
                f"Unknown field {part!r} in {path!r}; available: {', '.join(schema.fields)}"
            )
        return schema.fields[part]
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        if part in schema.model_fields:
            return schema.model_fields[part].annotation
        if isinstance(getattr(schema, part, None), property):
            return Any
        raise InvalidKeyError(f"{schema.__name__} has no field {part!r} (in {path!r})")
    return Any


def _check_paths(schema: Any, selector: Any) -> None:
    for path in selector_paths(selector):
        lookup(schema, path)


def _key_parts(spec: KeySpec) -> Tuple[Any, ...]:
    return spec if isinstance(spec, tuple) else (spec,)


def _validate_join_keys(left_schema: Any, right_schema: Any, left_key: KeySpec, right_key: KeySpec) -> None:
    if key_arity(left_key) != key_arity(right_key):
        raise InvalidKeyError(
            f"Join keys differ in arity: {key_arity(left_key)} vs {key_arity(right_key)}"
        )
    for left_part, right_part in zip(_key_parts(left_key), _key_parts(right_key)):
        if not (isinstance(left_part, str) and isinstance(right_part, str)):
            continue
        left_type = _unwrap_optional(lookup(left_schema, left_part))
        right_type = _unwrap_optional(lookup(right_schema, right_part))
        if Any in (left_type, right_type):
            continue
        if left_type != right_type:
            raise InvalidKeyError(
                f"Join key type mismatch: {left_part!r} is {getattr(left_type, '__name__', left_type)}, "
                f"{right_part!r} is {getattr(right_type, '__name__', right_type)}"
            )


def _validate_group_keys(schema: Any, parts: Sequence[Selector]) -> List[Any]:
    if not parts:
        raise QueryError("group_by needs at least one key")
    annotations: List[Any] = []
    for part in parts:
        if isinstance(part, str):
            annotation = lookup(schema, part)
        else:
            _check_paths(schema, part)
            annotation = Any
        base = _unwrap_optional(annotation)
        if base in _UNHASHABLE_ORIGINS or typing.get_origin(base) in _UNHASHABLE_ORIGINS:
            raise InvalidKeyError(f"Group key {part!r} has unhashable type {base!r}")
        annotations.append(annotation)
    return annotations


def _aggregate_annotation(member: Any, agg: Aggregate) -> Any:
    if isinstance(agg, Count):
        return int
    if isinstance(agg, FirstBy):
        return member
    selector = getattr(agg, "selector", None)
    if isinstance(selector, str):
        return lookup(member, selector)
    return Any


# --- stages ----------------------------------------------------------------


class Stage:
    """One materializing step of a pipeline."""

    name = "stage"

    def apply(self, rows: List[Any], store: EntityStore) -> List[Any]:  # pragma: no cover - interface only
        raise NotImplementedError

    def describe(self) -> str:
        return self.name


class _Where(Stage):
    name = "where"

    def __init__(self, predicate: Callable[[Any], bool]) -> None:
        self.predicate = predicate

    def apply(self, rows: List[Any], store: EntityStore) -> List[Any]:
        return filter_rows(rows, self.predicate)

    def describe(self) -> str:
        return f"where {getattr(self.predicate, 'label', 'callable')}"


class _Join(Stage):
    name = "join"

    def __init__(self, kind: EntityKind, left_key: KeySpec, right_key: KeySpec) -> None:
        self.kind, self.left_key, self.right_key = kind, left_key, right_key

    def apply(self, rows: List[Any], store: EntityStore) -> List[Any]:
        return join(rows, store.all(self.kind), self.left_key, self.right_key)

    def describe(self) -> str:
        return f"join {self.kind.label} on {self.left_key!r} = {self.right_key!r}"


class _LeftJoin(Stage):
    name = "left_join"

    def __init__(self, kind: EntityKind, left_key: KeySpec, right_key: KeySpec, aggregates: Mapping[str, Aggregate]) -> None:
        self.kind, self.left_key, self.right_key = kind, left_key, right_key
        self.aggregates = dict(aggregates)

    def apply(self, rows: List[Any], store: EntityStore) -> List[Any]:
        output = []
        for grouped in left_join(rows, store.all(self.kind), self.left_key, self.right_key):
            row = {"left": grouped.left}
            row.update(aggregate_rows(grouped.matches, self.aggregates))
            output.append(row)
        return output

    def describe(self) -> str:
        return f"left_join {self.kind.label} on {self.left_key!r} = {self.right_key!r}"


class _GroupBy(Stage):
    name = "group_by"

    def __init__(self, parts: Tuple[Selector, ...], names: Tuple[str, ...]) -> None:
        self.parts, self.names = parts, names

    def apply(self, rows: List[Any], store: EntityStore) -> List[Any]:
        return group_by(rows, self.parts, self.names)

    def describe(self) -> str:
        return f"group_by {', '.join(self.names)}"


class _Aggregate(Stage):
    name = "aggregate"

    def __init__(self, aggregates: Mapping[str, Aggregate]) -> None:
        self.aggregates = dict(aggregates)

    def apply(self, rows: List[Any], store: EntityStore) -> List[Any]:
        return aggregate(rows, self.aggregates)

    def describe(self) -> str:
        return f"aggregate {', '.join(self.aggregates)}"


class _Having(Stage):
    name = "having"

    def __init__(self, predicate: Callable[[Any], bool]) -> None:
        self.predicate = predicate

    def apply(self, rows: List[Any], store: EntityStore) -> List[Any]:
        return having(rows, self.predicate)

    def describe(self) -> str:
        return f"having {getattr(self.predicate, 'label', 'callable')}"


class _Project(Stage):
    def __init__(self, fields: Mapping[str, Selector], keep: bool) -> None:
        self.fields = dict(fields)
        self.keep = keep
        self.name = "extend" if keep else "select"

    def apply(self, rows: List[Any], store: EntityStore) -> List[Any]:
        if not self.keep:
            return [project(row, self.fields) for row in rows]
        output = []
        for row in rows:
            extended = dict(row)
            extended.update(project(row, self.fields))
            output.append(extended)
        return output

    def describe(self) -> str:
        return f"{self.name} {', '.join(self.fields)}"


class _OrderBy(Stage):
    name = "order_by"

    def __init__(self, keys: Tuple[SortKey, ...]) -> None:
        self.keys = keys

    def apply(self, rows: List[Any], store: EntityStore) -> List[Any]:
        return order_by(rows, self.keys)


class _TopPerGroup(Stage):
    name = "top_per_group"

    def __init__(self, partition: KeySpec, within: Tuple[SortKey, ...], n: int, then_by: Tuple[SortKey, ...]) -> None:
        self.partition, self.within, self.n, self.then_by = partition, within, n, then_by

    def apply(self, rows: List[Any], store: EntityStore) -> List[Any]:
        return top_n_per_group(rows, self.partition, self.within, self.n, self.then_by)

    def describe(self) -> str:
        return f"top {self.n} per {self.partition!r}"


class _Limit(Stage):
    name = "limit"

    def __init__(self, n: int) -> None:
        self.n = n

    def apply(self, rows: List[Any], store: EntityStore) -> List[Any]:
        return rows[: self.n]


# --- query builder ---------------------------------------------------------

_ROWS, _GROUPED, _AGGREGATED = "rows", "grouped", "aggregated"


class Query:
    """
    Immutable pipeline builder rooted at one entity kind.

    Builder methods return a new `Query`; the receiver is left untouched, so
    a partially built query can be shared and extended in several ways.
    """

    def __init__(
        self,
        source: EntityKind,
        stages: Tuple[Stage, ...] = (),
        schema: Any = None,
        phase: str = _ROWS,
        aggregated: bool = False,
    ) -> None:
        self.source = source
        self.stages = stages
        self.schema = schema if schema is not None else source.model
        self._phase = phase
        self._aggregated = aggregated

    @classmethod
    def from_(cls, source: EntityKind) -> "Query":
        return cls(source)

    def _then(self, stage: Stage, schema: Any = None, phase: Optional[str] = None, aggregated: Optional[bool] = None) -> "Query":
        return Query(
            self.source,
            self.stages + (stage,),
            schema if schema is not None else self.schema,
            phase if phase is not None else self._phase,
            self._aggregated if aggregated is None else aggregated,
        )

    def _require_ungrouped(self, operation: str) -> None:
        if self._phase == _GROUPED:
            raise QueryError(f"{operation} cannot follow group_by; call aggregate first")

    def _require_dict_rows(self, operation: str) -> None:
        if not isinstance(self.schema, RowSchema):
            raise QueryError(f"{operation} needs named rows; aggregate or select first")

    # filter

    def where(self, predicate: Callable[[Any], bool]) -> "Query":
        self._require_ungrouped("where")
        _check_paths(self.schema, predicate)
        return self._then(_Where(predicate))

    # joins

    def join(self, kind: EntityKind, on: Tuple[KeySpec, KeySpec]) -> "Query":
        self._require_ungrouped("join")
        left_key, right_key = on
        _validate_join_keys(self.schema, kind.model, left_key, right_key)
        return self._then(_Join(kind, left_key, right_key), schema=JoinedSchema(self.schema, kind.model))

    def left_join(self, kind: EntityKind, on: Tuple[KeySpec, KeySpec], **aggregates: Aggregate) -> "Query":
        """
        Keep every current row, aggregating its matches in `kind`.

        Produces named rows `{"left": <row>, <aggregate>: <value>, ...}`.
        """
        self._require_ungrouped("left_join")
        left_key, right_key = on
        _validate_join_keys(self.schema, kind.model, left_key, right_key)
        fields: Dict[str, Any] = {"left": self.schema}
        for name, agg in aggregates.items():
            for path in agg.paths:
                lookup(kind.model, path)
            fields[name] = _aggregate_annotation(kind.model, agg)
        return self._then(
            _LeftJoin(kind, left_key, right_key, aggregates),
            schema=RowSchema(fields),
            phase=_AGGREGATED,
            aggregated=True,
        )

    # grouping

    def group_by(self, *keys: Selector, **named: Selector) -> "Query":
        self._require_ungrouped("group_by")
        parts = tuple(keys) + tuple(named.values())
        names = tuple(selector_name(part) for part in keys) + tuple(named)
        if len(set(names)) != len(names):
            raise InvalidKeyError(f"Duplicate group key names: {names}")
        annotations = _validate_group_keys(self.schema, parts)
        key_fields = dict(zip(names, annotations))
        return self._then(
            _GroupBy(parts, names),
            schema=GroupedSchema(key_fields, self.schema),
            phase=_GROUPED,
        )

    def aggregate(self, **aggregates: Aggregate) -> "Query":
        if self._phase != _GROUPED:
            raise QueryError("aggregate must directly follow group_by")
        member = self.schema.member
        fields = dict(self.schema.keys)
        for name, agg in aggregates.items():
            if name in fields:
                raise QueryError(f"Aggregate name {name!r} clashes with a group key")
            for path in agg.paths:
                lookup(member, path)
            fields[name] = _aggregate_annotation(member, agg)
        return self._then(_Aggregate(aggregates), schema=RowSchema(fields), phase=_AGGREGATED, aggregated=True)

    def having(self, predicate: Callable[[Any], bool]) -> "Query":
        self._require_ungrouped("having")
        if not self._aggregated:
            raise QueryError("having requires a preceding aggregate or left_join")
        _check_paths(self.schema, predicate)
        return self._then(_Having(predicate))

    # projection

    def _projection(self, paths: Sequence[str], named: Mapping[str, Selector]) -> Dict[str, Selector]:
        fields: Dict[str, Selector] = {selector_name(path): path for path in paths}
        fields.update(named)
        for selector in fields.values():
            as_selector(selector)
            _check_paths(self.schema, selector)
        return fields

    def _projected_schema(self, fields: Mapping[str, Selector], base: Dict[str, Any]) -> RowSchema:
        out = dict(base)
        for name, selector in fields.items():
            out[name] = lookup(self.schema, selector) if isinstance(selector, str) else Any
        return RowSchema(out)

    def select(self, *paths: str, **named: Selector) -> "Query":
        self._require_ungrouped("select")
        fields = self._projection(paths, named)
        return self._then(_Project(fields, keep=False), schema=self._projected_schema(fields, {}))

    def extend(self, **named: Selector) -> "Query":
        self._require_ungrouped("extend")
        self._require_dict_rows("extend")
        fields = self._projection((), named)
        return self._then(_Project(fields, keep=True), schema=self._projected_schema(fields, self.schema.fields))

    # ordering

    def order_by(self, *keys: SortKey) -> "Query":
        self._require_ungrouped("order_by")
        if not keys:
            raise QueryError("order_by needs at least one key")
        for key in keys:
            _check_paths(self.schema, key.selector)
        return self._then(_OrderBy(tuple(keys)))

    def top_per_group(
        self,
        partition: KeySpec,
        *within: SortKey,
        n: int = 1,
        then_by: Sequence[SortKey] = (),
    ) -> "Query":
        self._require_ungrouped("top_per_group")
        if n < 1:
            raise QueryError(f"top_per_group needs n >= 1, got {n}")
        if not within:
            raise QueryError("top_per_group needs an ordering to pick the top rows")
        for part in _key_parts(partition):
            _check_paths(self.schema, part)
        for key in tuple(within) + tuple(then_by):
            _check_paths(self.schema, key.selector)
        return self._then(_TopPerGroup(partition, tuple(within), n, tuple(then_by)))

    def limit(self, n: int) -> "Query":
        if n < 0:
            raise QueryError(f"limit must be >= 0, got {n}")
        return self._then(_Limit(n))

    # execution

    def describe(self) -> List[str]:
        return [f"from {self.source.label}"] + [stage.describe() for stage in self.stages]

    def run(self, store: EntityStore) -> List[Any]:
        """Evaluate every stage in order, materializing after each one."""
        if self._phase == _GROUPED:
            raise QueryError("Query ends in group_by; call aggregate to produce rows")
        rows: List[Any] = list(store.all(self.source))
        log.debug(f"from {self.source.label}: {len(rows)} rows", extra={"source": self.source.label})
        for stage in self.stages:
            rows = stage.apply(rows, store)
            log.debug(f"{stage.describe()}: {len(rows)} rows", extra={"stage": stage.name, "rows": len(rows)})
        return rows


__all__ = [
    "Query",
    "Stage",
    "JoinedSchema",
    "RowSchema",
    "GroupedSchema",
    "lookup",
]
