"""
Predicate Combination

Joins two independently built predicates into one. Each input owns its own
placeholder, so both bodies are rebound to a single fresh placeholder before
being wrapped in an AND node.
"""

from .exceptions import IncompatiblePredicateError
from .predicates import And, Constant, Expression, Placeholder, Predicate


def common_entity(first: type, second: type) -> type:
    """The more derived of two related entity types"""
    if issubclass(first, second):
        return first
    if issubclass(second, first):
        return second
    raise IncompatiblePredicateError(
        f"Cannot combine a filter over {first.__name__} with a filter over {second.__name__}"
    )


def _is_always_true(body: Expression) -> bool:
    return isinstance(body, Constant) and body.value is True


def combine(first: Predicate, second: Predicate) -> Predicate:
    """
    Return ``first(x) and second(x)`` as a single predicate.

    Raises:
        IncompatiblePredicateError: the predicates are over unrelated types
    """
    entity = common_entity(first.entity, second.entity)
    param = Placeholder(entity, first.param._label)

    bodies = [
        p.body._substitute({p.param: param})
        for p in (first, second)
        if not _is_always_true(p.body)
    ]
    if not bodies:
        return Predicate(param, Constant(True))
    if len(bodies) == 1:
        return Predicate(param, bodies[0])
    return Predicate(param, And(*bodies))
