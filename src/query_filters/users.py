"""
User Service - Business Logic Layer

User and setting management on top of the global query filters. Ordinary
queries never see removed users; the trash and restore paths bypass the
filters explicitly.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from .models import Setting, User
from .soft_delete import ignore_query_filters, only_removed

logger = logging.getLogger(__name__)


class UserService:
    """Create, list, remove and restore users"""

    @staticmethod
    def create_user(
        db: Session,
        user_name: Optional[str],
        email: Optional[str] = None,
        name: Optional[str] = None,
    ) -> User:
        user = User(user_name=user_name, email=email, name=name, is_removed=False)
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Created user %s", user.user_id)
        return user

    @staticmethod
    def get_user(db: Session, user_id: uuid.UUID) -> Optional[User]:
        """Retrieve a visible user by id"""
        return db.query(User).filter(User.user_id == user_id).first()

    @staticmethod
    def list_users(
        db: Session, include_removed: bool = False, limit: int = 100, offset: int = 0
    ) -> tuple[List[User], int]:
        """
        Get users, optionally including those hidden by the query filters

        Returns:
            Tuple of (users list, total count)
        """
        query = db.query(User)
        if include_removed:
            query = ignore_query_filters(query)

        total = query.count()
        users = query.order_by(User.created_at.desc()).offset(offset).limit(limit).all()
        return users, total

    @staticmethod
    def list_removed_users(db: Session) -> List[User]:
        return only_removed(db.query(User), User).order_by(User.removed_at.desc()).all()

    @staticmethod
    def remove_user(db: Session, user_id: uuid.UUID) -> bool:
        """Soft remove a user"""
        user = UserService.get_user(db, user_id)
        if user is None:
            return False

        user.soft_remove()
        db.commit()
        logger.info("Removed user %s", user_id)
        return True

    @staticmethod
    def restore_user(db: Session, user_id: uuid.UUID) -> Optional[User]:
        """Bring a removed user back; None if no removed user has this id"""
        user = only_removed(db.query(User), User).filter(User.user_id == user_id).first()
        if user is None:
            return None

        user.restore()
        db.commit()
        db.refresh(user)
        logger.info("Restored user %s", user_id)
        return user


class SettingService:
    """Key/value settings; never filtered"""

    @staticmethod
    def get_settings(db: Session) -> List[Setting]:
        return db.query(Setting).order_by(Setting.key).all()

    @staticmethod
    def set_setting(db: Session, key: str, value: Optional[str]) -> Setting:
        setting = db.query(Setting).filter(Setting.key == key).first()
        if setting is None:
            setting = Setting(key=key, value=value)
            db.add(setting)
        else:
            setting.value = value  # type: ignore[assignment]
        db.commit()
        db.refresh(setting)
        return setting
