"""
Predicate and projection evaluation over single records, joined rows and
aggregate rows.

Fields are addressed by dotted paths. A path segment is looked up as a mapping
key on dict rows and as an attribute everywhere else, so the same path syntax
works for records (`"salary"`), joined rows (`"right.name"`) and aggregate
rows holding records (`"latest.order_id"`).

Absent values are handled null-safely: resolving through a None yields None,
and every comparison against None is False rather than an error.

Usage:
    from querylab.engine.predicates import eq, gt, istartswith

    pred = istartswith("name", "m") & gt("price", 500)
    rows = [p for p in products if pred(p)]
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

Selector = Union[str, Callable[[Any], Any]]


def resolve(row: Any, path: str) -> Any:
    """Follow a dotted `path` through `row`, returning None on any absent hop."""
    value = row
    for part in path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


class Field:
    """
    Callable accessor for a dotted field path.

    Keeps the path around so pipelines can validate it before running.
    """

    __slots__ = ("path",)

    def __init__(self, path: str) -> None:
        self.path = path

    def __call__(self, row: Any) -> Any:
        return resolve(row, self.path)

    def __repr__(self) -> str:
        return f"Field({self.path!r})"


class Computed:
    """
    A projection derived from other fields (e.g. the year of a date).

    `paths` lists the fields it reads, for construction-time validation.
    """

    __slots__ = ("func", "paths", "label")

    def __init__(self, func: Callable[[Any], Any], paths: Tuple[str, ...] = (), label: str = "") -> None:
        self.func = func
        self.paths = paths
        self.label = label or getattr(func, "__name__", "computed")

    def __call__(self, row: Any) -> Any:
        return self.func(row)

    def __repr__(self) -> str:
        return f"Computed({self.label})"


def as_selector(selector: Selector) -> Callable[[Any], Any]:
    """Turn a path string into a `Field`; callables pass through unchanged."""
    if isinstance(selector, str):
        return Field(selector)
    if callable(selector):
        return selector
    raise TypeError(f"Selector must be a field path or callable, got {type(selector).__name__}")


def selector_paths(selector: Any) -> Tuple[str, ...]:
    """Field paths a selector (or predicate) reads; empty for opaque callables."""
    if isinstance(selector, str):
        return (selector,)
    if isinstance(selector, Field):
        return (selector.path,)
    return tuple(getattr(selector, "paths", ()))


def selector_name(selector: Selector) -> str:
    """Default output column name for a selector: the last path segment."""
    if isinstance(selector, str):
        return selector.rsplit(".", 1)[-1]
    if isinstance(selector, Field):
        return selector.path.rsplit(".", 1)[-1]
    if isinstance(selector, Computed):
        return selector.label
    return getattr(selector, "__name__", "value")


# --- projections -----------------------------------------------------------


def field(path: str) -> Field:
    return Field(path)


def year_of(path: str) -> Computed:
    def _year(row: Any) -> Optional[int]:
        value = resolve(row, path)
        return value.year if value is not None else None

    return Computed(_year, (path,), "year")


def date_of(path: str) -> Computed:
    """Calendar day of a datetime field."""

    def _date(row: Any) -> Optional[date]:
        value = resolve(row, path)
        if value is None:
            return None
        return value.date() if isinstance(value, datetime) else value

    return Computed(_date, (path,), "date")


def days_between(start_path: str, end_path: str) -> Computed:
    """Whole days from `start_path` to `end_path`, None if either is absent."""

    def _days(row: Any) -> Optional[float]:
        start, end = resolve(row, start_path), resolve(row, end_path)
        if start is None or end is None:
            return None
        return (end - start).total_seconds() / 86400

    return Computed(_days, (start_path, end_path), "days")


def product_of(left_path: str, right_path: str) -> Computed:
    def _product(row: Any) -> Any:
        left, right = resolve(row, left_path), resolve(row, right_path)
        if left is None or right is None:
            return None
        return left * right

    return Computed(_product, (left_path, right_path), "product")


def project(row: Any, fields: Mapping[str, Selector]) -> Dict[str, Any]:
    """Build a flat output row from named selectors."""
    return {name: as_selector(selector)(row) for name, selector in fields.items()}


# --- predicates ------------------------------------------------------------


class Predicate:
    """
    A pure boolean test over one row.

    Predicates compose with `&`, `|` and `~`; the composed predicate keeps the
    union of field paths read by its parts.
    """

    __slots__ = ("func", "paths", "label")

    def __init__(self, func: Callable[[Any], bool], paths: Iterable[str] = (), label: str = "") -> None:
        self.func = func
        self.paths = tuple(paths)
        self.label = label or getattr(func, "__name__", "predicate")

    def __call__(self, row: Any) -> bool:
        return bool(self.func(row))

    def __and__(self, other: "Predicate") -> "Predicate":
        return all_of(self, other)

    def __or__(self, other: "Predicate") -> "Predicate":
        return any_of(self, other)

    def __invert__(self) -> "Predicate":
        return not_(self)

    def __repr__(self) -> str:
        return f"Predicate({self.label})"


def where(func: Callable[[Any], bool], *paths: str) -> Predicate:
    """Wrap an arbitrary callable as a predicate reading `paths`."""
    return Predicate(func, paths, getattr(func, "__name__", "where"))


def _compare(path: str, op: Callable[[Any], bool], label: str) -> Predicate:
    def _test(row: Any) -> bool:
        value = resolve(row, path)
        if value is None:
            return False
        return op(value)

    return Predicate(_test, (path,), f"{path} {label}")


def eq(path: str, value: Any) -> Predicate:
    return _compare(path, lambda v: v == value, f"== {value!r}")


def ne(path: str, value: Any) -> Predicate:
    return _compare(path, lambda v: v != value, f"!= {value!r}")


def lt(path: str, value: Any) -> Predicate:
    return _compare(path, lambda v: v < value, f"< {value!r}")


def le(path: str, value: Any) -> Predicate:
    return _compare(path, lambda v: v <= value, f"<= {value!r}")


def gt(path: str, value: Any) -> Predicate:
    return _compare(path, lambda v: v > value, f"> {value!r}")


def ge(path: str, value: Any) -> Predicate:
    return _compare(path, lambda v: v >= value, f">= {value!r}")


def between(path: str, low: Any, high: Any) -> Predicate:
    """Half-open range test: `low <= value < high`."""
    return _compare(path, lambda v: low <= v < high, f"in [{low!r}, {high!r})")


def in_(path: str, values: Iterable[Any]) -> Predicate:
    allowed = frozenset(values)
    return _compare(path, lambda v: v in allowed, f"in {sorted(allowed, key=repr)!r}")


def iequals(path: str, text: str) -> Predicate:
    """Case-insensitive string equality."""
    folded = text.casefold()
    return _compare(path, lambda v: str(v).casefold() == folded, f"ieq {text!r}")


def istartswith(path: str, prefix: str) -> Predicate:
    """Case-insensitive prefix match."""
    folded = prefix.casefold()
    return _compare(path, lambda v: str(v).casefold().startswith(folded), f"istartswith {prefix!r}")


def is_true(path: str) -> Predicate:
    return _compare(path, lambda v: v is True, "is true")


def is_false(path: str) -> Predicate:
    return _compare(path, lambda v: v is False, "is false")


def is_present(path: str) -> Predicate:
    return Predicate(lambda row: resolve(row, path) is not None, (path,), f"{path} is present")


def is_absent(path: str) -> Predicate:
    return Predicate(lambda row: resolve(row, path) is None, (path,), f"{path} is absent")


def all_of(*predicates: Predicate) -> Predicate:
    paths = tuple(p for pred in predicates for p in pred.paths)
    return Predicate(
        lambda row: all(pred(row) for pred in predicates),
        paths,
        " AND ".join(pred.label for pred in predicates),
    )


def any_of(*predicates: Predicate) -> Predicate:
    paths = tuple(p for pred in predicates for p in pred.paths)
    return Predicate(
        lambda row: any(pred(row) for pred in predicates),
        paths,
        " OR ".join(pred.label for pred in predicates),
    )


def not_(predicate: Predicate) -> Predicate:
    return Predicate(lambda row: not predicate(row), predicate.paths, f"NOT ({predicate.label})")


def filter_rows(rows: Iterable[Any], predicate: Callable[[Any], bool]) -> list:
    """Materialize the rows satisfying `predicate`, preserving order."""
    return [row for row in rows if predicate(row)]


__all__ = [
    "Selector",
    "Field",
    "Computed",
    "Predicate",
    "resolve",
    "as_selector",
    "selector_paths",
    "selector_name",
    "field",
    "year_of",
    "date_of",
    "days_between",
    "product_of",
    "project",
    "where",
    "eq",
    "ne",
    "lt",
    "le",
    "gt",
    "ge",
    "between",
    "in_",
    "iequals",
    "istartswith",
    "is_true",
    "is_false",
    "is_present",
    "is_absent",
    "all_of",
    "any_of",
    "not_",
    "filter_rows",
]
