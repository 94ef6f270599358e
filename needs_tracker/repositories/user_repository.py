"""
User repository - Data access layer for User model.
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from needs_tracker.models import User


class UserRepository:
    """Repository for User data access"""

    @staticmethod
    def get_by_id(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_or_create(db: Session, user_id: str, subscription_type: Optional[str] = None) -> User:
        """
        Get user by id, creating the row on first sight.

        The identity provider owns users; this table only mirrors the id
        and the subscription tier it reports.
        """
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            user = User(id=user_id, subscription_type=subscription_type or "Free")
            db.add(user)
            db.commit()
            db.refresh(user)
        elif subscription_type and user.subscription_type != subscription_type:
            user.subscription_type = subscription_type
            db.commit()
            db.refresh(user)
        return user

    @staticmethod
    def get_all(db: Session) -> List[User]:
        return db.query(User).all()

    @staticmethod
    def update(db: Session, user: User) -> User:
        db.commit()
        db.refresh(user)
        return user
