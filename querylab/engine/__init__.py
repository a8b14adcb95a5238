"""
In-memory relational query evaluator.

Leaves first: the entity store, predicate/projection evaluation, equi-joins,
grouping and aggregates, ordering and top-N windowing, and the staged `Query`
pipeline that chains them.
"""

from querylab.engine.grouping import (
    Group,
    aggregate,
    aggregate_rows,
    average,
    count,
    first_by,
    group_by,
    having,
    maximum,
    minimum,
    sum_of,
)
from querylab.engine.joins import GroupJoinRow, JoinedRow, join, left_join
from querylab.engine.ordering import SortKey, asc, desc, order_by, top_n_per_group
from querylab.engine.pipeline import Query
from querylab.engine.predicates import (
    Predicate,
    all_of,
    any_of,
    between,
    date_of,
    days_between,
    eq,
    field,
    filter_rows,
    ge,
    gt,
    iequals,
    in_,
    is_absent,
    is_false,
    is_present,
    is_true,
    istartswith,
    le,
    lt,
    ne,
    not_,
    product_of,
    project,
    year_of,
)
from querylab.engine.store import EntityKind, EntityStore

__all__ = [
    # Store
    "EntityKind",
    "EntityStore",
    # Predicates and projections
    "Predicate",
    "all_of",
    "any_of",
    "between",
    "date_of",
    "days_between",
    "eq",
    "field",
    "filter_rows",
    "ge",
    "gt",
    "iequals",
    "in_",
    "is_absent",
    "is_false",
    "is_present",
    "is_true",
    "istartswith",
    "le",
    "lt",
    "ne",
    "not_",
    "product_of",
    "project",
    "year_of",
    # Joins
    "GroupJoinRow",
    "JoinedRow",
    "join",
    "left_join",
    # Grouping
    "Group",
    "aggregate",
    "aggregate_rows",
    "average",
    "count",
    "first_by",
    "group_by",
    "having",
    "maximum",
    "minimum",
    "sum_of",
    # Ordering
    "SortKey",
    "asc",
    "desc",
    "order_by",
    "top_n_per_group",
    # Pipeline
    "Query",
]
