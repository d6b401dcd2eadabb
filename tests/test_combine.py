"""
Predicate Combination Tests
"""

import itertools

import pytest
from sqlalchemy import select

from query_filters.combine import combine
from query_filters.exceptions import IncompatiblePredicateError
from query_filters.models import Setting, User
from query_filters.predicates import always, predicate
from query_filters.removable import Removable, create_removed_filter

ROWS = [
    User(user_name=user_name, is_removed=is_removed)
    for user_name, is_removed in itertools.product([None, "x"], [False, True])
]


@pytest.fixture
def named():
    return predicate(User, lambda u: u.user_name != None)  # noqa: E711


@pytest.fixture
def not_removed():
    return create_removed_filter(User)


def test_combined_predicate_is_logical_and(named, not_removed):
    combined = combine(named, not_removed)

    for row in ROWS:
        assert combined(row) == (named(row) and not_removed(row))


def test_combined_predicate_uses_one_placeholder(named, not_removed):
    combined = combine(named, not_removed)

    assert combined.param is not named.param
    assert combined.param is not not_removed.param
    assert repr(combined) == "<Predicate User: u => (u.user_name != None) and (not u.is_removed)>"


def test_combination_order_does_not_change_results(named, not_removed):
    forward = combine(named, not_removed)
    backward = combine(not_removed, named)

    assert [forward(row) for row in ROWS] == [backward(row) for row in ROWS]


def test_combining_with_always_true_keeps_predicate(named):
    combined = combine(named, always(User))

    assert " and " not in repr(combined)
    assert [combined(row) for row in ROWS] == [named(row) for row in ROWS]


def test_and_operator_combines(named, not_removed):
    combined = named & not_removed

    assert [combined(row) for row in ROWS] == [False, False, True, False]


def test_unrelated_types_fail_loudly(named):
    setting_filter = predicate(Setting, lambda s: s.value != None)  # noqa: E711

    with pytest.raises(IncompatiblePredicateError, match="User.*Setting"):
        combine(named, setting_filter)


def test_incompatible_predicate_error_is_type_error(named):
    with pytest.raises(TypeError):
        combine(named, predicate(Setting, lambda s: s.key == "a"))


def test_related_types_combine_over_most_derived(named):
    mixin_filter = create_removed_filter(Removable)

    combined = combine(mixin_filter, named)

    assert combined.entity is User


def test_combined_predicate_compiles_both_conditions(named, not_removed):
    sql = str(select(User).where(combine(named, not_removed).to_clause()))

    assert "users.user_name IS NOT NULL" in sql
    assert "users.is_removed" in sql
