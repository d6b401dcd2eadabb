"""
Query Filter Demo Models

Users carry the removable flag and are hidden from queries once removed.
Settings are plain configuration rows and are never filtered.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import declarative_base

from .registrar import GlobalFilterRegistrar
from .removable import Removable
from .schema import FrozenSchema, SchemaBuilder

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Removable, Base):
    """
    Users
    Application accounts; removed users disappear from every query by default
    """

    __tablename__ = "users"

    user_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_name = Column(String(100))
    email = Column(String(255))
    name = Column(String(255))
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (Index("idx_users_user_name", "user_name"),)

    def to_dict(self):
        return {
            "user_id": str(self.user_id),
            "user_name": self.user_name,
            "email": self.email,
            "name": self.name,
            "is_removed": bool(self.is_removed),
            "removed_at": self.removed_at.isoformat() if self.removed_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class Setting(Base):
    """
    Settings
    Key/value configuration, not soft-deletable
    """

    __tablename__ = "settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_dict(self):
        return {
            "key": self.key,
            "value": self.value,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


def build_schema() -> FrozenSchema:
    """Query filters for the demo models"""
    builder = SchemaBuilder.from_registry(Base.registry)

    # Declared by hand; the registrar ANDs the removed-row filter into it
    builder.entity(User).has_query_filter(lambda u: u.user_name != None)  # noqa: E711

    GlobalFilterRegistrar().apply(builder)
    return builder.finalize()
