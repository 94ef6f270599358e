"""
Outbound task queue.

Side effects that must not block or fail a user request (achievement
recalculation, push notifications) are stored as rows in queued_tasks and
processed later with at-least-once delivery. A failed task is retried with
linear backoff until it reaches its max attempts, then parked as failed.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional
from sqlalchemy.orm import Session

from needs_tracker.models import QueuedTask
from needs_tracker.repositories.task_repository import QueuedTaskRepository
from needs_tracker.services.achievement_service import AchievementService
from needs_tracker.services.notification_service import NotificationService, PushTransport
from needs_tracker.exceptions import DeliveryException
from needs_tracker.constants import (
    TASK_QUEUE_MAX_ATTEMPTS,
    TASK_QUEUE_RETRY_SECONDS,
    TASK_QUEUE_BATCH_SIZE,
    TASK_RECALCULATE_ACHIEVEMENTS,
    TASK_SEND_NOTIFICATION,
    TASK_STATUS_PENDING,
    TASK_STATUS_DONE,
    TASK_STATUS_FAILED,
)

logger = logging.getLogger("needs_tracker.task_queue")


class TaskQueue:
    """Persistent queue of best-effort side effects"""

    def __init__(
        self,
        db: Session,
        transport: Optional[PushTransport] = None,
        max_attempts: int = TASK_QUEUE_MAX_ATTEMPTS,
        retry_seconds: int = TASK_QUEUE_RETRY_SECONDS
    ):
        self.db = db
        self.transport = transport
        self.max_attempts = max_attempts
        self.retry_seconds = retry_seconds
        self.task_repo = QueuedTaskRepository()
        self.handlers: Dict[str, Callable[[QueuedTask], None]] = {
            TASK_RECALCULATE_ACHIEVEMENTS: self._recalculate_achievements,
            TASK_SEND_NOTIFICATION: self._send_notification,
        }

    def enqueue(self, task_type: str, user_id: Optional[str] = None, payload: Optional[dict] = None) -> QueuedTask:
        task = QueuedTask(
            task_type=task_type,
            user_id=user_id,
            payload=payload or {},
            status=TASK_STATUS_PENDING,
            attempts=0,
            max_attempts=self.max_attempts,
            available_at=datetime.now(),
        )
        task = self.task_repo.create(self.db, task)
        logger.info(f"Queued task {task.id} ({task_type}) for user {user_id}")
        return task

    def enqueue_recalculation(self, user_id: str) -> QueuedTask:
        return self.enqueue(TASK_RECALCULATE_ACHIEVEMENTS, user_id)

    def enqueue_notification(self, user_id: str, title: str, body: str, data: Optional[dict] = None) -> QueuedTask:
        return self.enqueue(TASK_SEND_NOTIFICATION, user_id, {
            "title": title,
            "body": body,
            "data": data or {},
        })

    def process_pending(self, now: Optional[datetime] = None, limit: int = TASK_QUEUE_BATCH_SIZE) -> dict:
        """
        Run every due pending task once.

        Returns:
            Counts of processed, succeeded, retried and failed tasks
        """
        now = now or datetime.now()
        summary = {"processed": 0, "succeeded": 0, "retried": 0, "failed": 0}

        for task in self.task_repo.get_due(self.db, now, limit):
            summary["processed"] += 1
            handler = self.handlers.get(task.task_type)

            if handler is None:
                task.attempts += 1
                task.status = TASK_STATUS_FAILED
                task.last_error = f"Unknown task type: {task.task_type}"
                task.processed_at = now
                self.task_repo.update(self.db, task)
                summary["failed"] += 1
                logger.error(f"Task {task.id} failed: unknown task type {task.task_type}")
                continue

            try:
                handler(task)
            except Exception as e:
                self.db.rollback()
                self._record_failure(task, e, now)
                summary["failed" if task.status == TASK_STATUS_FAILED else "retried"] += 1
                continue

            task.attempts += 1
            task.status = TASK_STATUS_DONE
            task.last_error = None
            task.processed_at = now
            self.task_repo.update(self.db, task)
            summary["succeeded"] += 1

        if summary["processed"]:
            logger.info(
                f"Task queue run: {summary['succeeded']} succeeded, "
                f"{summary['retried']} retried, {summary['failed']} failed"
            )
        return summary

    def _record_failure(self, task: QueuedTask, error: Exception, now: datetime) -> None:
        task.attempts += 1
        task.last_error = str(error)[:500]

        if task.attempts >= task.max_attempts:
            task.status = TASK_STATUS_FAILED
            task.processed_at = now
            logger.error(f"Task {task.id} ({task.task_type}) failed permanently after {task.attempts} attempts: {error}")
        else:
            # Linear backoff: retry_seconds, 2 * retry_seconds, ...
            task.available_at = now + timedelta(seconds=self.retry_seconds * task.attempts)
            logger.error(f"Task {task.id} ({task.task_type}) attempt {task.attempts} failed, retrying: {error}")

        self.task_repo.update(self.db, task)

    def _recalculate_achievements(self, task: QueuedTask) -> None:
        AchievementService(self.db).recalculate(task.user_id)

    def _send_notification(self, task: QueuedTask) -> None:
        service = NotificationService(self.db, self.transport)
        if not service.transport.configured:
            logger.warning(f"Push gateway not configured, dropping notification task {task.id}")
            return

        payload = task.payload or {}
        result = service.send_to_user(
            task.user_id,
            payload.get("title", ""),
            payload.get("body", ""),
            payload.get("data") or {}
        )

        if result.get("success") or "results" not in result:
            if not result.get("success"):
                logger.info(f"Notification task {task.id} skipped: {result.get('error')}")
            return

        errors = "; ".join(r.get("error") or "unknown error" for r in result["results"])
        raise DeliveryException(f"0/{result['total_count']} devices reached ({errors})")


def drain_task_queue(database, transport: Optional[PushTransport] = None) -> dict:
    """Process due tasks in a session of their own"""
    db = database.session()
    try:
        return TaskQueue(db, transport=transport).process_pending()
    finally:
        db.close()
