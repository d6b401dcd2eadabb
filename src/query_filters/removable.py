"""
Removable Capability

Mixin marking a mapped class as soft-deletable, and the filter synthesized for
every class that carries it.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import Boolean, Column, DateTime

from .predicates import Placeholder, Predicate


class Removable:
    """Mixin that identifies a class as having soft-removed rows"""

    is_removed = Column(Boolean, default=False, nullable=False, index=True)
    removed_at = Column(DateTime, nullable=True)

    def soft_remove(self) -> None:
        self.is_removed = True
        self.removed_at = datetime.now(timezone.utc)

    def restore(self) -> None:
        self.is_removed = False
        self.removed_at = None


def is_removable(entity: Any) -> bool:
    """Type-level check: does ``entity`` carry the removable flag?"""
    return isinstance(entity, type) and issubclass(entity, Removable)


def create_removed_filter(entity: Any) -> Optional[Predicate]:
    """
    ``e => not e.is_removed`` for removable types.

    Returns None for any other type so callers can skip it.
    """
    if not is_removable(entity):
        return None
    e = Placeholder(entity, "e")
    return Predicate(e, ~e.is_removed)
