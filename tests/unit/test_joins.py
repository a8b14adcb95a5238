from __future__ import annotations

from querylab.engine.joins import GroupJoinRow, JoinedRow, join, key_arity, left_join

LEFT = [
    {"id": 1, "k": "a"},
    {"id": 2, "k": "b"},
    {"id": 3, "k": None},
    {"id": 4, "k": "a"},
]
RIGHT = [
    {"rid": 10, "k": "a"},
    {"rid": 11, "k": "c"},
    {"rid": 12, "k": "a"},
    {"rid": 13, "k": None},
]


def test_inner_join_order_and_multiplicity() -> None:
    rows = join(LEFT, RIGHT, "k", "k")
    assert [(r.left["id"], r.right["rid"]) for r in rows] == [(1, 10), (1, 12), (4, 10), (4, 12)]
    assert all(isinstance(r, JoinedRow) for r in rows)


def test_inner_join_drops_unmatched_and_absent_keys() -> None:
    ids = {r.left["id"] for r in join(LEFT, RIGHT, "k", "k")}
    assert 2 not in ids
    assert 3 not in ids


def test_composite_keys() -> None:
    left = [{"a": 1, "b": 2}, {"a": 1, "b": 3}, {"a": 1, "b": None}]
    right = [{"x": 1, "y": 2}, {"x": 1, "y": 3}]
    rows = join(left, right, ("a", "b"), ("x", "y"))
    assert [(r.left["b"], r.right["y"]) for r in rows] == [(2, 2), (3, 3)]
    assert key_arity(("a", "b")) == 2
    assert key_arity("a") == 1


def test_callable_keys() -> None:
    rows = join([{"n": 2}], [{"m": 4}], lambda r: r["n"] * 2, "m")
    assert len(rows) == 1


def test_left_join_keeps_every_left_row() -> None:
    rows = left_join(LEFT, RIGHT, "k", "k")
    assert [r.left["id"] for r in rows] == [1, 2, 3, 4]
    assert all(isinstance(r, GroupJoinRow) for r in rows)
    matches = {r.left["id"]: [m["rid"] for m in r.matches] for r in rows}
    assert matches == {1: [10, 12], 2: [], 3: [], 4: [10, 12]}


def test_join_size_bound() -> None:
    rows = join(LEFT, RIGHT, "k", "k")
    assert len(rows) <= len(LEFT) * len(RIGHT)
    assert all(r.left["k"] == r.right["k"] for r in rows)
