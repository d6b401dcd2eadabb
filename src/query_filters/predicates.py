"""
Predicate Expressions

A small expression tree for boolean row filters over a single entity type.
Every predicate owns exactly one placeholder standing for the row being tested.
Predicates can be evaluated against instances in memory or compiled into
SQLAlchemy clauses for a mapped class or an alias of it.

Usage:
    from query_filters.predicates import predicate

    named = predicate(User, lambda u: u.user_name != None)
    named(user)                 # in-memory check
    select(User).where(named.to_clause(User))
"""

import operator
from typing import Any, Callable, Dict, Iterable, Optional, Set

from sqlalchemy import and_, false, literal, not_, or_, true

from .exceptions import UnboundPlaceholderError

_OPERATORS: Dict[str, Callable[[Any, Any], Any]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class Expression:
    """Base node. Combine nodes with ``&``, ``|`` and ``~``."""

    def _placeholders(self) -> Set["Placeholder"]:
        raise NotImplementedError

    def _substitute(self, mapping: Dict["Placeholder", "Placeholder"]) -> "Expression":
        raise NotImplementedError

    def _evaluate(self, bindings: Dict["Placeholder", Any]) -> Any:
        raise NotImplementedError

    def _compile(self, targets: Dict["Placeholder", Any]) -> Any:
        raise NotImplementedError

    def __and__(self, other: Any) -> "And":
        return And(self, _coerce(other))

    def __rand__(self, other: Any) -> "And":
        return And(_coerce(other), self)

    def __or__(self, other: Any) -> "Or":
        return Or(self, _coerce(other))

    def __ror__(self, other: Any) -> "Or":
        return Or(_coerce(other), self)

    def __invert__(self) -> "Not":
        return Not(self)

    def __bool__(self) -> bool:
        raise TypeError("Filter expressions have no truth value; use &, | and ~ instead of and, or, not")


class Placeholder(Expression):
    """
    The row a predicate is evaluated against.

    Attribute access yields :class:`Attribute` nodes for attributes that exist
    on the entity type, so ``u.is_removed`` fails early on a typo.
    """

    def __init__(self, entity: type, label: str = "e"):
        self._entity = entity
        self._label = label

    def __getattr__(self, name: str) -> "Attribute":
        if name.startswith("_"):
            raise AttributeError(name)
        if not hasattr(self._entity, name):
            raise AttributeError(f"{self._entity.__name__} has no attribute {name!r}")
        return Attribute(self, name)

    def _placeholders(self) -> Set["Placeholder"]:
        return {self}

    def _substitute(self, mapping: Dict["Placeholder", "Placeholder"]) -> "Placeholder":
        return mapping.get(self, self)

    def _evaluate(self, bindings: Dict["Placeholder", Any]) -> Any:
        return bindings[self]

    def _compile(self, targets: Dict["Placeholder", Any]) -> Any:
        return targets[self]

    def __repr__(self) -> str:
        return self._label


class Attribute(Expression):
    """Attribute of the placeholder row, e.g. ``u.user_name``"""

    def __init__(self, owner: Placeholder, name: str):
        self.owner = owner
        self.name = name

    def __eq__(self, other: Any) -> "Comparison":  # type: ignore[override]
        return Comparison("==", self, _coerce(other))

    def __ne__(self, other: Any) -> "Comparison":  # type: ignore[override]
        return Comparison("!=", self, _coerce(other))

    def __lt__(self, other: Any) -> "Comparison":
        return Comparison("<", self, _coerce(other))

    def __le__(self, other: Any) -> "Comparison":
        return Comparison("<=", self, _coerce(other))

    def __gt__(self, other: Any) -> "Comparison":
        return Comparison(">", self, _coerce(other))

    def __ge__(self, other: Any) -> "Comparison":
        return Comparison(">=", self, _coerce(other))

    def in_(self, values: Iterable[Any]) -> "Comparison":
        return Comparison("in", self, Constant(tuple(values)))

    def _placeholders(self) -> Set[Placeholder]:
        return {self.owner}

    def _substitute(self, mapping: Dict[Placeholder, Placeholder]) -> "Attribute":
        return Attribute(self.owner._substitute(mapping), self.name)

    def _evaluate(self, bindings: Dict[Placeholder, Any]) -> Any:
        return getattr(self.owner._evaluate(bindings), self.name)

    def _compile(self, targets: Dict[Placeholder, Any]) -> Any:
        return getattr(self.owner._compile(targets), self.name)

    def __repr__(self) -> str:
        return f"{self.owner!r}.{self.name}"


class Constant(Expression):
    def __init__(self, value: Any):
        self.value = value

    def _placeholders(self) -> Set[Placeholder]:
        return set()

    def _substitute(self, mapping: Dict[Placeholder, Placeholder]) -> "Constant":
        return self

    def _evaluate(self, bindings: Dict[Placeholder, Any]) -> Any:
        return self.value

    def _compile(self, targets: Dict[Placeholder, Any]) -> Any:
        if self.value is True:
            return true()
        if self.value is False:
            return false()
        return literal(self.value)

    def __repr__(self) -> str:
        return repr(self.value)


class Comparison(Expression):
    """Binary comparison; ``op`` is one of ``== != < <= > >= in``"""

    def __init__(self, op: str, left: Expression, right: Expression):
        if op != "in" and op not in _OPERATORS:
            raise ValueError(f"Unsupported comparison operator: {op}")
        self.op = op
        self.left = left
        self.right = right

    def _placeholders(self) -> Set[Placeholder]:
        return self.left._placeholders() | self.right._placeholders()

    def _substitute(self, mapping: Dict[Placeholder, Placeholder]) -> "Comparison":
        return Comparison(self.op, self.left._substitute(mapping), self.right._substitute(mapping))

    def _evaluate(self, bindings: Dict[Placeholder, Any]) -> Any:
        left = self.left._evaluate(bindings)
        right = self.right._evaluate(bindings)
        if self.op == "in":
            return left in right
        return _OPERATORS[self.op](left, right)

    def _compile(self, targets: Dict[Placeholder, Any]) -> Any:
        left = self.left._compile(targets)
        # Raw constants let SQLAlchemy render "== None" as IS NULL
        if isinstance(self.right, Constant):
            right = self.right.value
        else:
            right = self.right._compile(targets)
        if self.op == "in":
            return left.in_(right)
        return _OPERATORS[self.op](left, right)

    def __repr__(self) -> str:
        return f"{self.left!r} {self.op} {self.right!r}"


class Not(Expression):
    def __init__(self, operand: Expression):
        self.operand = operand

    def _placeholders(self) -> Set[Placeholder]:
        return self.operand._placeholders()

    def _substitute(self, mapping: Dict[Placeholder, Placeholder]) -> "Not":
        return Not(self.operand._substitute(mapping))

    def _evaluate(self, bindings: Dict[Placeholder, Any]) -> bool:
        return not self.operand._evaluate(bindings)

    def _compile(self, targets: Dict[Placeholder, Any]) -> Any:
        return not_(self.operand._compile(targets))

    def __repr__(self) -> str:
        return f"not {self.operand!r}"


class And(Expression):
    def __init__(self, *operands: Expression):
        if len(operands) < 2:
            raise ValueError("And needs at least two operands")
        self.operands = operands

    def _placeholders(self) -> Set[Placeholder]:
        return set().union(*(o._placeholders() for o in self.operands))

    def _substitute(self, mapping: Dict[Placeholder, Placeholder]) -> "And":
        return And(*(o._substitute(mapping) for o in self.operands))

    def _evaluate(self, bindings: Dict[Placeholder, Any]) -> bool:
        return all(o._evaluate(bindings) for o in self.operands)

    def _compile(self, targets: Dict[Placeholder, Any]) -> Any:
        return and_(*(o._compile(targets) for o in self.operands))

    def __repr__(self) -> str:
        return " and ".join(f"({o!r})" for o in self.operands)


class Or(Expression):
    def __init__(self, *operands: Expression):
        if len(operands) < 2:
            raise ValueError("Or needs at least two operands")
        self.operands = operands

    def _placeholders(self) -> Set[Placeholder]:
        return set().union(*(o._placeholders() for o in self.operands))

    def _substitute(self, mapping: Dict[Placeholder, Placeholder]) -> "Or":
        return Or(*(o._substitute(mapping) for o in self.operands))

    def _evaluate(self, bindings: Dict[Placeholder, Any]) -> bool:
        return any(o._evaluate(bindings) for o in self.operands)

    def _compile(self, targets: Dict[Placeholder, Any]) -> Any:
        return or_(*(o._compile(targets) for o in self.operands))

    def __repr__(self) -> str:
        return " or ".join(f"({o!r})" for o in self.operands)


class Predicate:
    """
    ``lambda param: body`` over one entity type.

    The body may only reference ``param``; predicates built independently have
    distinct placeholders and must be joined with :func:`query_filters.combine.combine`.
    """

    def __init__(self, param: Placeholder, body: Expression):
        if not isinstance(body, Expression):
            raise TypeError(f"Predicate body must be a filter expression, got {type(body).__name__}")
        unbound = body._placeholders() - {param}
        if unbound:
            names = ", ".join(sorted(repr(p) for p in unbound))
            raise UnboundPlaceholderError(
                f"Predicate over {param._entity.__name__} references unbound placeholder(s): {names}"
            )
        self.param = param
        self.body = body

    @property
    def entity(self) -> type:
        return self.param._entity

    def __call__(self, instance: Any) -> bool:
        return bool(self.body._evaluate({self.param: instance}))

    def to_clause(self, target: Optional[Any] = None) -> Any:
        """Compile against ``target`` (mapped class or alias); defaults to the entity"""
        return self.body._compile({self.param: self.entity if target is None else target})

    def rebind(self, param: Placeholder) -> "Predicate":
        return Predicate(param, self.body._substitute({self.param: param}))

    def __and__(self, other: "Predicate") -> "Predicate":
        from .combine import combine

        return combine(self, other)

    def __repr__(self) -> str:
        return f"<Predicate {self.entity.__name__}: {self.param!r} => {self.body!r}>"


def _coerce(value: Any) -> Expression:
    if isinstance(value, Expression):
        return value
    return Constant(value)


def predicate(entity: type, criteria: Callable[[Placeholder], Expression], label: Optional[str] = None) -> Predicate:
    """Build a predicate by calling ``criteria`` with a fresh placeholder for ``entity``"""
    if label is None:
        code = getattr(criteria, "__code__", None)
        label = code.co_varnames[0] if code is not None and code.co_argcount else "e"
    param = Placeholder(entity, label)
    body = criteria(param)
    if not isinstance(body, Expression):
        raise TypeError(
            f"Filter for {entity.__name__} returned {type(body).__name__}, not an expression "
            "(use == None / != None rather than is / is not)"
        )
    return Predicate(param, body)


def always(entity: type) -> Predicate:
    """The neutral filter: matches every row"""
    return Predicate(Placeholder(entity), Constant(True))
