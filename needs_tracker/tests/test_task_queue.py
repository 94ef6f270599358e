"""
Tests for the outbound task queue.

Tests cover:
1. Successful processing of each task type
2. Retry with linear backoff and the max-attempts failed state
3. Tasks that are not yet due
"""
import pytest
from datetime import datetime, timedelta
from unittest.mock import patch

from needs_tracker.models import Achievement, Notification, QueuedTask, Reflection
from needs_tracker.repositories.notification_repository import DeviceTokenRepository
from needs_tracker.services.task_queue import TaskQueue, drain_task_queue
from needs_tracker.constants import (
    TASK_STATUS_PENDING,
    TASK_STATUS_DONE,
    TASK_STATUS_FAILED,
    NOTIFICATION_GOAL_COMPLETED,
)


@pytest.fixture
def now():
    return datetime(2026, 3, 18, 12, 0)


class TestEnqueue:
    def test_enqueued_task_is_pending(self, db_session, free_user):
        task = TaskQueue(db_session).enqueue_recalculation(free_user.id)

        assert task.status == TASK_STATUS_PENDING
        assert task.attempts == 0
        assert task.max_attempts == 5


class TestProcessPending:
    """Tests for process_pending"""

    def test_recalculation_task(self, db_session, free_user, now):
        db_session.add(Reflection(user_id=free_user.id, mood="neutral", date=now))
        db_session.commit()
        queue = TaskQueue(db_session)
        task = queue.enqueue_recalculation(free_user.id)

        summary = queue.process_pending(now=datetime.now() + timedelta(seconds=1))

        db_session.refresh(task)
        assert summary == {"processed": 1, "succeeded": 1, "retried": 0, "failed": 0}
        assert task.status == TASK_STATUS_DONE
        assert task.attempts == 1
        assert task.processed_at is not None
        assert db_session.query(Achievement).filter(Achievement.user_id == free_user.id).one().reflections_created == 1

    def test_notification_task_sends_and_logs(self, db_session, free_user, fake_transport):
        DeviceTokenRepository.upsert(db_session, free_user.id, "token-1", "ios")
        queue = TaskQueue(db_session, transport=fake_transport)
        queue.enqueue_notification(free_user.id, "Goal Completed! 🎉", "Well done", {"type": NOTIFICATION_GOAL_COMPLETED})

        queue.process_pending(now=datetime.now() + timedelta(seconds=1))

        assert [s["token"] for s in fake_transport.sent] == ["token-1"]
        logged = db_session.query(Notification).one()
        assert logged.title == "Goal Completed! 🎉"
        assert logged.type == NOTIFICATION_GOAL_COMPLETED

    def test_notification_without_devices_completes(self, db_session, free_user, fake_transport):
        queue = TaskQueue(db_session, transport=fake_transport)
        task = queue.enqueue_notification(free_user.id, "Hi", "there")

        queue.process_pending(now=datetime.now() + timedelta(seconds=1))

        db_session.refresh(task)
        assert task.status == TASK_STATUS_DONE
        assert fake_transport.sent == []

    def test_failed_delivery_is_retried(self, db_session, free_user, make_transport):
        transport = make_transport(results={"token-1": {"success": False, "error": "unavailable"}})
        DeviceTokenRepository.upsert(db_session, free_user.id, "token-1")
        queue = TaskQueue(db_session, transport=transport, retry_seconds=60)
        task = queue.enqueue_notification(free_user.id, "Hi", "there")
        run_at = datetime.now() + timedelta(seconds=1)

        summary = queue.process_pending(now=run_at)

        db_session.refresh(task)
        assert summary["retried"] == 1
        assert task.status == TASK_STATUS_PENDING
        assert task.attempts == 1
        assert "unavailable" in task.last_error
        assert task.available_at == run_at + timedelta(seconds=60)

    def test_linear_backoff(self, db_session, free_user):
        queue = TaskQueue(db_session, retry_seconds=30)
        task = queue.enqueue_recalculation(free_user.id)
        run_at = datetime.now() + timedelta(seconds=1)

        with patch("needs_tracker.services.task_queue.AchievementService.recalculate", side_effect=RuntimeError("boom")):
            queue.process_pending(now=run_at)
            db_session.refresh(task)
            first_retry = task.available_at
            queue.process_pending(now=first_retry)
            db_session.refresh(task)

        assert first_retry == run_at + timedelta(seconds=30)
        assert task.available_at == first_retry + timedelta(seconds=60)
        assert task.attempts == 2

    def test_max_attempts_marks_failed(self, db_session, free_user):
        queue = TaskQueue(db_session, max_attempts=2, retry_seconds=0)
        task = queue.enqueue_recalculation(free_user.id)
        run_at = datetime.now() + timedelta(seconds=1)

        with patch("needs_tracker.services.task_queue.AchievementService.recalculate", side_effect=RuntimeError("boom")):
            first = queue.process_pending(now=run_at)
            second = queue.process_pending(now=run_at)
            third = queue.process_pending(now=run_at)

        db_session.refresh(task)
        assert (first["retried"], second["failed"], third["processed"]) == (1, 1, 0)
        assert task.status == TASK_STATUS_FAILED
        assert task.attempts == 2
        assert task.last_error == "boom"

    def test_task_not_due_is_skipped(self, db_session, free_user, now):
        queue = TaskQueue(db_session)
        task = queue.enqueue_recalculation(free_user.id)
        task.available_at = now + timedelta(minutes=5)
        db_session.commit()

        assert queue.process_pending(now=now)["processed"] == 0

    def test_unknown_task_type_fails(self, db_session, free_user):
        queue = TaskQueue(db_session)
        task = queue.enqueue("send_fax", free_user.id)

        summary = queue.process_pending(now=datetime.now() + timedelta(seconds=1))

        db_session.refresh(task)
        assert summary["failed"] == 1
        assert task.status == TASK_STATUS_FAILED


class TestDrainTaskQueue:
    def test_drain_uses_own_session(self, database, db_session, free_user):
        TaskQueue(db_session).enqueue_recalculation(free_user.id)

        summary = drain_task_queue(database)

        assert summary["succeeded"] == 1
        db_session.expire_all()
        assert db_session.query(QueuedTask).one().status == TASK_STATUS_DONE
