"""
Schema Descriptors

Query filter metadata follows a two-phase lifecycle:

- SchemaBuilder collects entity type descriptors and the filters declared on
  them. It is mutable and used once, single-threaded, at startup.
- FrozenSchema is produced by SchemaBuilder.finalize(). Its filter map is
  read-only and is shared by every session that executes queries.

Usage:
    builder = SchemaBuilder.from_registry(Base.registry)
    builder.entity(User).has_query_filter(lambda u: u.user_name != None)
    GlobalFilterRegistrar().apply(builder)
    schema = builder.finalize()
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from sqlalchemy import inspect
from sqlalchemy.orm import Mapper, with_loader_criteria

from .combine import combine
from .exceptions import (
    IncompatiblePredicateError,
    RootTypeRequiredError,
    SchemaFrozenError,
    UnknownEntityTypeError,
)
from .predicates import Expression, Placeholder, Predicate, predicate

logger = logging.getLogger(__name__)

FilterCriteria = Union[Predicate, Callable[[Placeholder], Expression]]


@dataclass(frozen=True)
class EntityType:
    """
    Schema-time description of one persisted type.

    ``base`` is the mapped parent class for inheriting types and None for root
    types. ``is_view`` marks read-only projections (classes declaring
    ``__view__ = True``).
    """

    name: str
    cls: type
    base: Optional[type] = None
    is_view: bool = False

    @property
    def is_root(self) -> bool:
        return self.base is None

    @classmethod
    def from_mapper(cls, mapper: Mapper) -> "EntityType":
        mapped = mapper.class_
        return cls(
            name=mapped.__name__,
            cls=mapped,
            base=mapper.inherits.class_ if mapper.inherits is not None else None,
            is_view=bool(getattr(mapped, "__view__", False)),
        )


class EntityTypeBuilder:
    """Per-type configuration handle returned by :meth:`SchemaBuilder.entity`"""

    def __init__(self, schema: "SchemaBuilder", entity_type: EntityType):
        self.schema = schema
        self.entity_type = entity_type

    def has_query_filter(self, criteria: FilterCriteria) -> "EntityTypeBuilder":
        """Declare a filter; a second declaration is ANDed with the first"""
        self.schema.add_query_filter(self.entity_type.cls, criteria)
        return self


class SchemaBuilder:
    """Mutable collection of entity types and their query filters"""

    def __init__(self, entity_types: Iterable[EntityType] = ()):
        self._entity_types: Dict[type, EntityType] = {}
        self._filters: Dict[type, Predicate] = {}
        self._applied: Set[Any] = set()
        self._frozen = False
        for entity_type in entity_types:
            self.add_entity_type(entity_type)

    @classmethod
    def from_registry(cls, registry: Any) -> "SchemaBuilder":
        """Describe every class mapped by a SQLAlchemy ``registry``"""
        mappers = sorted(registry.mappers, key=lambda m: m.class_.__name__)
        return cls(EntityType.from_mapper(mapper) for mapper in mappers)

    @property
    def is_finalized(self) -> bool:
        return self._frozen

    def _check_mutable(self) -> None:
        if self._frozen:
            raise SchemaFrozenError("Schema has been finalized; query filters can no longer change")

    def add_entity_type(self, entity_type: EntityType) -> EntityType:
        self._check_mutable()
        self._entity_types[entity_type.cls] = entity_type
        return entity_type

    def entity(self, cls: type) -> EntityTypeBuilder:
        """Configuration handle for ``cls``, registering it if needed"""
        entity_type = self._entity_types.get(cls)
        if entity_type is None:
            mapper = inspect(cls, raiseerr=False)
            if isinstance(mapper, Mapper):
                entity_type = self.add_entity_type(EntityType.from_mapper(mapper))
            else:
                entity_type = self.add_entity_type(EntityType(name=cls.__name__, cls=cls))
        return EntityTypeBuilder(self, entity_type)

    def entity_types(self) -> List[EntityType]:
        return list(self._entity_types.values())

    def get_entity_type(self, cls: type) -> EntityType:
        try:
            return self._entity_types[cls]
        except KeyError:
            raise UnknownEntityTypeError(f"{cls.__name__} is not registered on this schema") from None

    def query_filter(self, cls: type) -> Optional[Predicate]:
        return self._filters.get(cls)

    def set_query_filter(self, cls: type, filter_predicate: Predicate) -> None:
        """Install ``filter_predicate`` as the filter of ``cls``, replacing any previous one"""
        self._check_mutable()
        entity_type = self.get_entity_type(cls)
        if not entity_type.is_root:
            raise RootTypeRequiredError(
                f"Cannot declare a query filter on {entity_type.name}; "
                f"declare it on its root type instead (base: {entity_type.base.__name__})"
            )
        if not issubclass(cls, filter_predicate.entity):
            raise IncompatiblePredicateError(
                f"Filter over {filter_predicate.entity.__name__} cannot be installed on {entity_type.name}"
            )
        self._filters[cls] = filter_predicate

    def add_query_filter(self, cls: type, criteria: FilterCriteria) -> Predicate:
        """AND ``criteria`` into the filter of ``cls`` and return the installed result"""
        new = criteria if isinstance(criteria, Predicate) else predicate(cls, criteria)
        existing = self.query_filter(cls)
        installed = new if existing is None else combine(existing, new)
        self.set_query_filter(cls, installed)
        return installed

    def mark_applied(self, key: Any) -> bool:
        """Record that a one-shot configuration step ran; False if it already had"""
        self._check_mutable()
        if key in self._applied:
            return False
        self._applied.add(key)
        return True

    def finalize(self) -> "FrozenSchema":
        self._check_mutable()
        self._frozen = True
        schema = FrozenSchema(self._entity_types.values(), self._filters)
        logger.info(
            "Schema finalized with %d entity types and %d query filters",
            len(self._entity_types),
            len(self._filters),
        )
        return schema


class FrozenSchema:
    """Read-only entity types and filters, safe to share across sessions"""

    def __init__(self, entity_types: Iterable[EntityType], filters: Mapping[type, Predicate]):
        self._entity_types: Mapping[type, EntityType] = MappingProxyType({t.cls: t for t in entity_types})
        self.query_filters: Mapping[type, Predicate] = MappingProxyType(dict(filters))
        self._criteria = tuple(self._build_criteria())

    def _build_criteria(self) -> Iterable[Any]:
        for cls, filter_predicate in self.query_filters.items():
            if not isinstance(inspect(cls, raiseerr=False), Mapper):
                logger.debug("Skipping loader criteria for unmapped type %s", cls.__name__)
                continue
            yield with_loader_criteria(cls, filter_predicate.to_clause(cls), include_aliases=True)

    @property
    def entity_types(self) -> Tuple[EntityType, ...]:
        return tuple(self._entity_types.values())

    def root_of(self, cls: type) -> Optional[type]:
        entity_type = self._entity_types.get(cls)
        if entity_type is None:
            return None
        while entity_type.base is not None:
            parent = self._entity_types.get(entity_type.base)
            if parent is None:
                return entity_type.base
            entity_type = parent
        return entity_type.cls

    def query_filter(self, cls: type) -> Optional[Predicate]:
        """The filter applied to ``cls``; derived types share their root's filter"""
        root = self.root_of(cls)
        return self.query_filters.get(root) if root is not None else None

    def loader_criteria(self) -> Tuple[Any, ...]:
        """``with_loader_criteria`` options, one per filtered root type"""
        return self._criteria

    def __repr__(self) -> str:
        filtered = ", ".join(sorted(cls.__name__ for cls in self.query_filters))
        return f"<FrozenSchema types={len(self._entity_types)} filtered=[{filtered}]>"
