"""
Demo seed data: one active and one removed user.
"""

import logging

from sqlalchemy.orm import Session

from .models import User
from .soft_delete import ignore_query_filters

logger = logging.getLogger(__name__)

DEMO_USERS = [
    {"user_name": "mennan", "name": "Mennan", "is_removed": False},
    {"user_name": "anil", "name": "Anıl", "is_removed": True},
]


def seed_users(db: Session) -> int:
    """Insert the demo users that are missing; returns how many were added"""
    existing = {name for (name,) in ignore_query_filters(db.query(User.user_name)).all()}

    added = 0
    for data in DEMO_USERS:
        if data["user_name"] in existing:
            continue
        db.add(User(**data))
        added += 1

    db.commit()
    logger.info("Seeded %d demo users", added)
    return added
