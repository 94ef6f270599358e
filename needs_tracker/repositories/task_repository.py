"""
Queued task repository - Data access layer for the outbound task queue.
"""
from datetime import datetime
from typing import List
from sqlalchemy.orm import Session
from sqlalchemy import and_

from needs_tracker.models import QueuedTask
from needs_tracker.constants import TASK_STATUS_PENDING


class QueuedTaskRepository:
    """Repository for QueuedTask data access"""

    @staticmethod
    def get_due(db: Session, now: datetime, limit: int) -> List[QueuedTask]:
        """Get pending tasks whose retry time has come, oldest first"""
        return db.query(QueuedTask).filter(
            and_(
                QueuedTask.status == TASK_STATUS_PENDING,
                QueuedTask.available_at <= now
            )
        ).order_by(QueuedTask.available_at, QueuedTask.id).limit(limit).all()

    @staticmethod
    def create(db: Session, task: QueuedTask) -> QueuedTask:
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    @staticmethod
    def update(db: Session, task: QueuedTask) -> QueuedTask:
        db.commit()
        db.refresh(task)
        return task
