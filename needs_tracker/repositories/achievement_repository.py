"""
Achievement repository - Data access layer for achievement state and unlocks.
"""
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from needs_tracker.models import Achievement, UnlockedAchievement


class AchievementRepository:
    """Repository for Achievement data access"""

    @staticmethod
    def get_by_user(db: Session, user_id: str) -> Optional[Achievement]:
        return db.query(Achievement).filter(Achievement.user_id == user_id).first()

    @staticmethod
    def get_or_create(db: Session, user_id: str) -> Achievement:
        """
        Get the user's achievement row, creating it if missing.

        A concurrent creator may win the unique user_id race; in that case
        the savepoint is rolled back and the winner's row is returned.
        """
        achievement = db.query(Achievement).filter(Achievement.user_id == user_id).first()
        if achievement:
            return achievement

        try:
            with db.begin_nested():
                achievement = Achievement(user_id=user_id)
                db.add(achievement)
        except IntegrityError:
            achievement = db.query(Achievement).filter(Achievement.user_id == user_id).one()
        return achievement

    @staticmethod
    def get_top(db: Session, limit: int) -> List[Achievement]:
        return db.query(Achievement).order_by(
            Achievement.total_points.desc(), Achievement.id
        ).limit(limit).all()

    @staticmethod
    def update(db: Session, achievement: Achievement) -> Achievement:
        db.commit()
        db.refresh(achievement)
        return achievement


class UnlockedAchievementRepository:
    """Repository for UnlockedAchievement data access (append-only)"""

    @staticmethod
    def get_for_user(db: Session, user_id: str) -> List[UnlockedAchievement]:
        return db.query(UnlockedAchievement).filter(
            UnlockedAchievement.user_id == user_id
        ).order_by(UnlockedAchievement.unlocked_at, UnlockedAchievement.id).all()

    @staticmethod
    def get_ids_for_user(db: Session, user_id: str) -> set:
        rows = db.query(UnlockedAchievement.achievement_id).filter(
            UnlockedAchievement.user_id == user_id
        ).all()
        return {row[0] for row in rows}

    @staticmethod
    def add_if_absent(db: Session, unlocked: UnlockedAchievement) -> bool:
        """
        Insert an unlock unless (user_id, achievement_id) already exists.

        Returns:
            True if the row was inserted
        """
        try:
            with db.begin_nested():
                db.add(unlocked)
        except IntegrityError:
            return False
        return True
