"""
Soft Delete Query Utilities

Per-query escape hatches from the installed global filters.
"""

from typing import Any, TypeVar

S = TypeVar("S")

# Execution option honored by the do_orm_execute hook in query_filters.execution
IGNORE_QUERY_FILTERS = "ignore_query_filters"


def ignore_query_filters(statement: S) -> S:
    """Return ``statement`` (Select or legacy Query) with every global filter disabled"""
    return statement.execution_options(**{IGNORE_QUERY_FILTERS: True})  # type: ignore[attr-defined]


def only_removed(statement: S, entity: Any) -> S:
    """Filter to show only soft-removed rows of ``entity``"""
    return ignore_query_filters(statement).where(entity.is_removed.is_(True))  # type: ignore[attr-defined]
