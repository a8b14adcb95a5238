"""
Equi-join primitives.

`join` is an inner hash join: the right side is indexed by key once, then the
left side is streamed in order. `left_join` is a group join that keeps every
left element together with the (possibly empty) list of its matches, which is
what the department roll-up needs to report departments without employees.

Rows whose key is absent (None, or a composite key containing None) never
match anything, mirroring SQL NULL semantics for optional foreign keys.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Sequence, Tuple, Union

from querylab.engine.predicates import Selector, as_selector

KeySpec = Union[Selector, Tuple[Selector, ...]]


class JoinedRow(NamedTuple):
    left: Any
    right: Any


class GroupJoinRow(NamedTuple):
    left: Any
    matches: Tuple[Any, ...]


def key_function(spec: KeySpec) -> Callable[[Any], Any]:
    """
    Build a key extractor from a path, a callable, or a tuple of either.

    Composite specs produce tuple keys.
    """
    if isinstance(spec, tuple):
        parts = [as_selector(part) for part in spec]
        return lambda row: tuple(part(row) for part in parts)
    return as_selector(spec)


def key_arity(spec: KeySpec) -> int:
    return len(spec) if isinstance(spec, tuple) else 1


def _is_absent(key: Any) -> bool:
    if key is None:
        return True
    return isinstance(key, tuple) and any(part is None for part in key)


def _index(rows: Iterable[Any], key: Callable[[Any], Any]) -> Dict[Any, List[Any]]:
    index: Dict[Any, List[Any]] = defaultdict(list)
    for row in rows:
        value = key(row)
        if not _is_absent(value):
            index[value].append(row)
    return index


def join(
    left: Sequence[Any],
    right: Sequence[Any],
    left_key: KeySpec,
    right_key: KeySpec,
) -> List[JoinedRow]:
    """
    Inner equi-join of `left` and `right`.

    Parameters
    ----------
    left, right : Sequence
        Input rows.
    left_key, right_key : KeySpec
        Key selectors; a left row matches every right row with an equal key.

    Returns
    -------
    List[JoinedRow]
        One row per matching pair, in left order then right order. Left rows
        without a match are dropped.
    """
    left_fn, right_fn = key_function(left_key), key_function(right_key)
    index = _index(right, right_fn)
    joined: List[JoinedRow] = []
    for row in left:
        value = left_fn(row)
        if _is_absent(value):
            continue
        for match in index.get(value, ()):
            joined.append(JoinedRow(row, match))
    return joined


def left_join(
    left: Sequence[Any],
    right: Sequence[Any],
    left_key: KeySpec,
    right_key: KeySpec,
) -> List[GroupJoinRow]:
    """
    Group join: exactly one output row per left row, with its matches.

    A left row with no match (or with an absent key) is kept with an empty
    `matches` tuple, so aggregates over it fall back to their empty defaults.
    """
    left_fn, right_fn = key_function(left_key), key_function(right_key)
    index = _index(right, right_fn)
    grouped: List[GroupJoinRow] = []
    for row in left:
        value = left_fn(row)
        matches = () if _is_absent(value) else tuple(index.get(value, ()))
        grouped.append(GroupJoinRow(row, matches))
    return grouped


__all__ = [
    "KeySpec",
    "JoinedRow",
    "GroupJoinRow",
    "key_function",
    "key_arity",
    "join",
    "left_join",
]
