"""
Query Execution Hook

Applies the filters of a FrozenSchema to ORM SELECT statements through the
Session ``do_orm_execute`` event. Each filtered root type contributes one
``with_loader_criteria`` option, which also covers its subclasses, aliases and
relationship loads.
"""

import logging
from typing import Any, Callable

from sqlalchemy import event
from sqlalchemy.orm import ORMExecuteState

from .schema import FrozenSchema
from .soft_delete import IGNORE_QUERY_FILTERS

logger = logging.getLogger(__name__)

QueryFilterListener = Callable[[ORMExecuteState], None]


def install_query_filters(target: Any, schema: FrozenSchema) -> QueryFilterListener:
    """
    Apply ``schema`` filters to every ORM query run by ``target``.

    ``target`` may be the Session class, a sessionmaker or a single Session.
    Returns the listener so it can be passed to :func:`remove_query_filters`.
    """
    criteria = schema.loader_criteria()

    def _add_query_filters(execute_state: ORMExecuteState) -> None:
        # Relationship and column loads inherit criteria from the originating query
        if (
            not execute_state.is_select
            or execute_state.is_column_load
            or execute_state.is_relationship_load
        ):
            return
        if execute_state.execution_options.get(IGNORE_QUERY_FILTERS, False):
            logger.debug("Global query filters bypassed for this query")
            return
        if criteria:
            execute_state.statement = execute_state.statement.options(*criteria)

    event.listen(target, "do_orm_execute", _add_query_filters)
    logger.info("Installed %d global query filters on %r", len(criteria), target)
    return _add_query_filters


def remove_query_filters(target: Any, listener: QueryFilterListener) -> None:
    event.remove(target, "do_orm_execute", listener)
