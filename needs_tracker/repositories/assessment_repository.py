"""
Assessment repository - Data access layer for assessment snapshots.
Snapshots are immutable; there is no update method.
"""
from typing import Optional
from sqlalchemy.orm import Session

from needs_tracker.models import AssessmentSnapshot


class AssessmentRepository:
    """Repository for AssessmentSnapshot data access"""

    @staticmethod
    def get_latest(db: Session, user_id: str) -> Optional[AssessmentSnapshot]:
        """Get most recent snapshot (most-recent-wins)"""
        return db.query(AssessmentSnapshot).filter(
            AssessmentSnapshot.user_id == user_id
        ).order_by(
            AssessmentSnapshot.completed_at.desc(),
            AssessmentSnapshot.id.desc()
        ).first()

    @staticmethod
    def add(db: Session, snapshot: AssessmentSnapshot) -> AssessmentSnapshot:
        """Stage a snapshot in the current transaction (caller commits)"""
        db.add(snapshot)
        return snapshot
