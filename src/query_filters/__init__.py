"""
Global soft-delete query filters for SQLAlchemy.
"""

import logging

from .combine import combine
from .exceptions import (
    IncompatiblePredicateError,
    QueryFilterError,
    RootTypeRequiredError,
    SchemaFrozenError,
    UnboundPlaceholderError,
    UnknownEntityTypeError,
)
from .execution import install_query_filters, remove_query_filters
from .predicates import Placeholder, Predicate, always, predicate
from .registrar import GlobalFilterRegistrar
from .removable import Removable, create_removed_filter, is_removable
from .schema import EntityType, EntityTypeBuilder, FrozenSchema, SchemaBuilder
from .soft_delete import IGNORE_QUERY_FILTERS, ignore_query_filters, only_removed

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "IGNORE_QUERY_FILTERS",
    "EntityType",
    "EntityTypeBuilder",
    "FrozenSchema",
    "GlobalFilterRegistrar",
    "IncompatiblePredicateError",
    "Placeholder",
    "Predicate",
    "QueryFilterError",
    "Removable",
    "RootTypeRequiredError",
    "SchemaBuilder",
    "SchemaFrozenError",
    "UnboundPlaceholderError",
    "UnknownEntityTypeError",
    "always",
    "combine",
    "create_removed_filter",
    "ignore_query_filters",
    "install_query_filters",
    "is_removable",
    "only_removed",
    "predicate",
    "remove_query_filters",
]
