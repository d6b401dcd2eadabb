"""
Schema Builder Tests

Covers entity type discovery, filter declaration and the frozen schema.
"""

import pytest

from query_filters.exceptions import (
    IncompatiblePredicateError,
    SchemaFrozenError,
    UnknownEntityTypeError,
)
from query_filters.models import Base, Setting, User
from query_filters.predicates import predicate
from query_filters.removable import create_removed_filter
from query_filters.schema import EntityType, SchemaBuilder


class Plain:
    """Unmapped class with a removed flag"""

    is_removed = False


class TestDiscovery:
    def test_from_registry_describes_mapped_classes(self):
        builder = SchemaBuilder.from_registry(Base.registry)

        types = {t.name: t for t in builder.entity_types()}

        assert {"User", "Setting"} <= set(types)
        assert types["User"].cls is User
        assert types["User"].is_root
        assert types["Setting"].base is None
        assert not types["Setting"].is_view

    def test_entity_registers_unknown_class(self):
        builder = SchemaBuilder()

        handle = builder.entity(Plain)

        assert handle.entity_type == EntityType(name="Plain", cls=Plain)
        assert builder.get_entity_type(Plain) is handle.entity_type

    def test_unregistered_type_is_rejected(self):
        builder = SchemaBuilder()

        with pytest.raises(UnknownEntityTypeError):
            builder.set_query_filter(User, create_removed_filter(User))


class TestDeclaringFilters:
    def test_declared_filter_is_installed(self):
        builder = SchemaBuilder.from_registry(Base.registry)

        builder.entity(User).has_query_filter(lambda u: u.user_name != None)  # noqa: E711

        installed = builder.query_filter(User)
        assert installed(User(user_name="x", is_removed=False))
        assert not installed(User(user_name=None, is_removed=False))

    def test_second_declaration_merges_with_first(self):
        builder = SchemaBuilder.from_registry(Base.registry)

        (
            builder.entity(User)
            .has_query_filter(lambda u: u.user_name != None)  # noqa: E711
            .has_query_filter(lambda u: u.email != None)  # noqa: E711
        )

        installed = builder.query_filter(User)
        assert installed(User(user_name="x", email="x@example.com", is_removed=False))
        assert not installed(User(user_name="x", email=None, is_removed=False))
        assert not installed(User(user_name=None, email="x@example.com", is_removed=False))

    def test_declaring_a_predicate_object(self):
        builder = SchemaBuilder.from_registry(Base.registry)

        builder.entity(User).has_query_filter(create_removed_filter(User))

        assert not builder.query_filter(User)(User(is_removed=True))

    def test_predicate_over_other_type_is_rejected(self):
        builder = SchemaBuilder.from_registry(Base.registry)
        setting_filter = predicate(Setting, lambda s: s.value != None)  # noqa: E711

        with pytest.raises(IncompatiblePredicateError):
            builder.set_query_filter(User, setting_filter)

    def test_types_without_declaration_have_no_filter(self):
        builder = SchemaBuilder.from_registry(Base.registry)

        assert builder.query_filter(Setting) is None


class TestFinalize:
    def test_finalized_builder_rejects_changes(self):
        builder = SchemaBuilder.from_registry(Base.registry)
        builder.finalize()

        assert builder.is_finalized
        with pytest.raises(SchemaFrozenError):
            builder.entity(User).has_query_filter(lambda u: u.email != None)  # noqa: E711
        with pytest.raises(SchemaFrozenError):
            builder.add_entity_type(EntityType(name="Plain", cls=Plain))
        with pytest.raises(SchemaFrozenError):
            builder.finalize()

    def test_frozen_filter_map_is_read_only(self):
        builder = SchemaBuilder.from_registry(Base.registry)
        builder.entity(User).has_query_filter(create_removed_filter(User))
        schema = builder.finalize()

        with pytest.raises(TypeError):
            schema.query_filters[User] = create_removed_filter(User)  # type: ignore[index]

    def test_frozen_schema_exposes_filters_and_criteria(self):
        builder = SchemaBuilder.from_registry(Base.registry)
        builder.entity(User).has_query_filter(create_removed_filter(User))

        schema = builder.finalize()

        assert schema.query_filter(User) is builder.query_filter(User)
        assert schema.query_filter(Setting) is None
        assert len(schema.loader_criteria()) == 1
        assert "filtered=[User]" in repr(schema)

    def test_unmapped_types_get_no_loader_criteria(self):
        builder = SchemaBuilder()
        builder.entity(Plain).has_query_filter(lambda p: ~p.is_removed)

        schema = builder.finalize()

        assert schema.query_filter(Plain) is not None
        assert schema.loader_criteria() == ()

    def test_unknown_type_has_no_filter(self):
        schema = SchemaBuilder().finalize()

        assert schema.query_filter(User) is None
