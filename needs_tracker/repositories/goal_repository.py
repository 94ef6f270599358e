"""
Goal repository - Data access layer for Goal model.
All lookups are scoped to the owning user.
"""
from typing import List, Optional
from datetime import date
from sqlalchemy.orm import Session
from sqlalchemy import and_

from needs_tracker.models import Goal


class GoalRepository:
    """Repository for Goal data access"""

    @staticmethod
    def get_for_user(db: Session, user_id: str, goal_id: int) -> Optional[Goal]:
        return db.query(Goal).filter(
            and_(Goal.id == goal_id, Goal.user_id == user_id)
        ).first()

    @staticmethod
    def get_all(db: Session, user_id: str, is_completed: Optional[bool] = None) -> List[Goal]:
        query = db.query(Goal).filter(Goal.user_id == user_id)
        if is_completed is not None:
            query = query.filter(Goal.is_completed == is_completed)
        return query.order_by(Goal.created_at.desc(), Goal.id.desc()).all()

    @staticmethod
    def count_completed(db: Session, user_id: str) -> int:
        return db.query(Goal).filter(
            and_(Goal.user_id == user_id, Goal.is_completed == True)
        ).count()

    @staticmethod
    def get_incomplete_ending_on(db: Session, target_date: date) -> List[Goal]:
        """Get incomplete goals of all users whose end date is target_date"""
        return db.query(Goal).filter(
            and_(Goal.end_date == target_date, Goal.is_completed == False)
        ).all()

    @staticmethod
    def create(db: Session, goal: Goal) -> Goal:
        db.add(goal)
        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def update(db: Session, goal: Goal) -> Goal:
        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def delete(db: Session, goal: Goal) -> None:
        db.delete(goal)
        db.commit()
