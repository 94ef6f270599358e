"""
Background scheduler for reminders and the outbound task queue
Handles:
- Goal end-date reminders (daily)
- Assessment staleness reminders (daily)
- Draining the task queue (every minute)
"""

import logging
from datetime import datetime, date, timedelta
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import or_, and_
from sqlalchemy.orm import Session

from needs_tracker.models import User
from needs_tracker.repositories.goal_repository import GoalRepository
from needs_tracker.repositories.assessment_repository import AssessmentRepository
from needs_tracker.repositories.user_repository import UserRepository
from needs_tracker.services.date_service import DateService
from needs_tracker.services.notification_service import NotificationService, PushTransport
from needs_tracker.services.task_queue import drain_task_queue
from needs_tracker.constants import (
    SCHEDULER_TIMEZONE,
    GOAL_REMINDER_HOUR,
    ASSESSMENT_REMINDER_HOUR,
    ASSESSMENT_STALE_DAYS,
    ASSESSMENT_RECENT_DAYS,
    ASSESSMENT_REMINDER_COOLDOWN_HOURS,
    NOTIFICATION_GOAL_REMINDER,
    NOTIFICATION_ASSESSMENT_REMINDER,
)

logger = logging.getLogger("needs_tracker.scheduler")

# Create scheduler instance
scheduler = AsyncIOScheduler(timezone=SCHEDULER_TIMEZONE)


def send_goal_reminders(db: Session, today: Optional[date] = None,
                        transport: Optional[PushTransport] = None) -> int:
    """Remind owners of incomplete goals ending today; returns notifications sent"""
    today = today or DateService.today()
    goals = GoalRepository.get_incomplete_ending_on(db, today)
    logger.info(f"Found {len(goals)} goals ending today")

    notifications = NotificationService(db, transport)
    sent = 0
    for goal in goals:
        user = UserRepository.get_by_id(db, goal.user_id)
        if not user or not user.goal_reminders_enabled:
            continue

        result = notifications.send_to_user(
            goal.user_id,
            "Goal Reminder",
            f'Have you completed your goal: "{goal.title}"?',
            {"type": NOTIFICATION_GOAL_REMINDER, "goal_id": goal.id, "screen": "/goals"}
        )
        if result.get("success"):
            sent += 1
    return sent


def send_assessment_reminders(db: Session, now: Optional[datetime] = None,
                              transport: Optional[PushTransport] = None) -> int:
    """
    Remind users whose assessment is missing or stale.

    A user qualifies when they never completed an assessment or completed it
    more than ASSESSMENT_STALE_DAYS ago, were not reminded within the cooldown,
    and have no snapshot from the last ASSESSMENT_RECENT_DAYS.
    """
    now = now or DateService.now()
    stale_before = now - timedelta(days=ASSESSMENT_STALE_DAYS)
    reminded_before = now - timedelta(hours=ASSESSMENT_REMINDER_COOLDOWN_HOURS)
    recent_after = now - timedelta(days=ASSESSMENT_RECENT_DAYS)

    users = db.query(User).filter(
        and_(
            User.assessment_reminders_enabled == True,
            or_(
                User.has_completed_assessment == False,
                User.assessment_completed_at == None,
                User.assessment_completed_at < stale_before
            ),
            or_(
                User.assessment_reminder_sent_at == None,
                User.assessment_reminder_sent_at < reminded_before
            )
        )
    ).all()
    logger.info(f"Found {len(users)} users who might need assessment reminders")

    notifications = NotificationService(db, transport)
    sent = 0
    for user in users:
        latest = AssessmentRepository.get_latest(db, user.id)
        if latest and latest.completed_at > recent_after:
            continue

        result = notifications.send_to_user(
            user.id,
            "Complete Your Assessment",
            "It's been a while! Complete your self-actualization assessment to track your progress.",
            {"type": NOTIFICATION_ASSESSMENT_REMINDER, "screen": "/assessment"}
        )
        if result.get("success"):
            user.assessment_reminder_sent_at = now
            UserRepository.update(db, user)
            sent += 1
    return sent


# Jobs stay synchronous; AsyncIOScheduler runs them in its thread pool

def check_goals_ending_today(database, transport: Optional[PushTransport] = None):
    """Job: remind about goals ending today"""
    db = database.session()
    try:
        sent = send_goal_reminders(db, transport=transport)
        logger.info(f"Goal reminders sent: {sent}")
    except Exception as e:
        logger.error(f"Scheduler Error (Goal Reminders): {e}")
    finally:
        db.close()


def check_assessment_reminders(database, transport: Optional[PushTransport] = None):
    """Job: remind users to retake the assessment"""
    db = database.session()
    try:
        sent = send_assessment_reminders(db, transport=transport)
        logger.info(f"Assessment reminders sent: {sent}")
    except Exception as e:
        logger.error(f"Scheduler Error (Assessment Reminders): {e}")
    finally:
        db.close()


def run_task_queue(database, transport: Optional[PushTransport] = None):
    """Job: drain the outbound task queue"""
    try:
        drain_task_queue(database, transport)
    except Exception as e:
        logger.error(f"Scheduler Error (Task Queue): {e}")


def start_scheduler(database, transport: Optional[PushTransport] = None):
    """Start the background scheduler"""
    scheduler.add_job(
        check_goals_ending_today,
        CronTrigger(hour=GOAL_REMINDER_HOUR, minute=0, timezone=SCHEDULER_TIMEZONE),
        args=[database, transport],
        id="goal_reminders",
        replace_existing=True
    )
    scheduler.add_job(
        check_assessment_reminders,
        CronTrigger(hour=ASSESSMENT_REMINDER_HOUR, minute=0, timezone=SCHEDULER_TIMEZONE),
        args=[database, transport],
        id="assessment_reminders",
        replace_existing=True
    )
    scheduler.add_job(
        run_task_queue,
        IntervalTrigger(minutes=1),
        args=[database, transport],
        id="task_queue",
        replace_existing=True
    )

    scheduler.start()
    logger.info("Scheduler started")


def stop_scheduler():
    """Stop the background scheduler"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
