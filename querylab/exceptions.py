"""
Exception hierarchy for querylab.

Absent lookups and empty aggregates are data conditions and are represented as
None; the exceptions below are reserved for caller bugs (bad query
construction) and for broken fixtures.
"""

from __future__ import annotations


class QueryError(Exception):
    """A query pipeline was assembled incorrectly."""


class InvalidKeyError(QueryError):
    """A key or field path does not fit the rows it is applied to."""


class FixtureError(Exception):
    """The fixture file could not be read or violates a data invariant."""


class ScenarioNotFoundError(KeyError):
    """No scenario is registered under the requested name."""


__all__ = [
    "QueryError",
    "InvalidKeyError",
    "FixtureError",
    "ScenarioNotFoundError",
]
