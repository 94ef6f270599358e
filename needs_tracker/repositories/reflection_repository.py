"""
Reflection repository - Data access layer for Reflection model.
"""
from typing import List, Optional
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import and_

from needs_tracker.models import Reflection


class ReflectionRepository:
    """Repository for Reflection data access"""

    @staticmethod
    def get_for_user(db: Session, user_id: str, reflection_id: int) -> Optional[Reflection]:
        return db.query(Reflection).filter(
            and_(Reflection.id == reflection_id, Reflection.user_id == user_id)
        ).first()

    @staticmethod
    def get_all(
        db: Session,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[Reflection]:
        query = db.query(Reflection).filter(Reflection.user_id == user_id)
        if start:
            query = query.filter(Reflection.date >= start)
        if end:
            query = query.filter(Reflection.date <= end)
        return query.order_by(Reflection.date.desc()).all()

    @staticmethod
    def create(db: Session, reflection: Reflection) -> Reflection:
        db.add(reflection)
        db.commit()
        db.refresh(reflection)
        return reflection

    @staticmethod
    def update(db: Session, reflection: Reflection) -> Reflection:
        db.commit()
        db.refresh(reflection)
        return reflection

    @staticmethod
    def delete(db: Session, reflection: Reflection) -> None:
        db.delete(reflection)
        db.commit()
