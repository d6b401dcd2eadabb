"""
Query Filter Errors

Failures raised while declaring, combining, or installing global query filters.
Ineligible entity types are never an error; they are skipped by the registrar.
"""


class QueryFilterError(Exception):
    """Base class for all query filter errors"""


class IncompatiblePredicateError(QueryFilterError, TypeError):
    """Two predicates over unrelated entity types were combined"""


class UnboundPlaceholderError(QueryFilterError):
    """A predicate body references a placeholder it does not own"""


class SchemaFrozenError(QueryFilterError):
    """A finalized schema was asked to change"""


class UnknownEntityTypeError(QueryFilterError, KeyError):
    """The entity type is not registered on the schema"""


class RootTypeRequiredError(QueryFilterError):
    """Query filters can only be declared on root entity types"""
