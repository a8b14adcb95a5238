"""
Multi-key ordering and top-N-per-group windowing.

Sorting is done one key at a time from the last key to the first, relying on
the stability of `list.sort`: each earlier key only reorders rows the later
keys could not tell apart. Absent values always sort last, whatever the
direction of their key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Sequence

from querylab.engine.joins import KeySpec, key_function
from querylab.engine.predicates import Selector, as_selector


@dataclass(frozen=True)
class SortKey:
    selector: Selector
    descending: bool = False

    def extractor(self) -> Callable[[Any], Any]:
        return as_selector(self.selector)


def asc(selector: Selector) -> SortKey:
    return SortKey(selector, descending=False)


def desc(selector: Selector) -> SortKey:
    return SortKey(selector, descending=True)


def _sort_pass(rows: List[Any], key: SortKey) -> None:
    extract = key.extractor()
    if key.descending:
        # With reverse=True the largest tuple comes first, so absent values
        # must map to the smallest flag to stay at the end.
        rows.sort(key=lambda row: _descending_key(extract(row)), reverse=True)
    else:
        rows.sort(key=lambda row: _ascending_key(extract(row)))


def _ascending_key(value: Any) -> tuple:
    return (1, None) if value is None else (0, value)


def _descending_key(value: Any) -> tuple:
    return (0, None) if value is None else (1, value)


def order_by(rows: Iterable[Any], keys: Sequence[SortKey]) -> List[Any]:
    """
    Return a new list sorted by `keys`, the first key being the primary one.

    The sort is stable: rows equal on every key keep their input order, so
    sorting twice with the same keys yields the same list as sorting once.
    """
    ordered = list(rows)
    for key in reversed(keys):
        _sort_pass(ordered, key)
    return ordered


def top_n_per_group(
    rows: Iterable[Any],
    partition_key: KeySpec,
    within: Sequence[SortKey],
    n: int,
    then_by: Sequence[SortKey] = (),
) -> List[Any]:
    """
    Keep the first `n` rows of each partition under the `within` ordering.

    Parameters
    ----------
    rows : Iterable
        Input rows.
    partition_key : KeySpec
        Selector defining the partitions.
    within : Sequence[SortKey]
        Per-partition ordering, including tie-break keys.
    n : int
        Rows to keep per partition; must be positive.
    then_by : Sequence[SortKey]
        Optional ordering applied to the flattened result.

    Returns
    -------
    List
        Surviving rows, partitions in first-seen order unless `then_by` is given.
    """
    if n < 1:
        raise ValueError(f"n must be positive, got {n}")
    key = key_function(partition_key)
    partitions: dict = {}
    for row in rows:
        partitions.setdefault(key(row), []).append(row)

    kept: List[Any] = []
    for members in partitions.values():
        kept.extend(order_by(members, within)[:n])
    return order_by(kept, then_by) if then_by else kept


__all__ = ["SortKey", "asc", "desc", "order_by", "top_n_per_group"]
