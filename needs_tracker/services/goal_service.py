"""
Goal management service.
Handles level-based improvement goals, optionally anchored to a catalog need,
and the side effects of completing one.
"""
import logging
from datetime import datetime, date
from typing import List, Optional
from sqlalchemy.orm import Session

from needs_tracker.models import Goal, Need, User
from needs_tracker.schemas import GoalCreate, GoalUpdate
from needs_tracker.repositories.goal_repository import GoalRepository
from needs_tracker.repositories.user_repository import UserRepository
from needs_tracker.services.need_catalog_service import NeedCatalogService
from needs_tracker.services.subscription_service import ensure_categories_available
from needs_tracker.services.task_queue import TaskQueue
from needs_tracker.exceptions import ValidationException, GoalNotFoundException
from needs_tracker.constants import (
    LEVEL_MIN,
    LEVEL_MAX,
    USER_NOTES_MAX_LENGTH,
    GOAL_STATUS_ACTIVE,
    GOAL_STATUS_COMPLETED,
    COACHING_OFFER_GOAL_THRESHOLD,
    NOTIFICATION_GOAL_COMPLETED,
)

logger = logging.getLogger("needs_tracker.goals")


def validate_levels(current_level: Optional[int], target_level: Optional[int]) -> None:
    """Both levels must be integers in [1, 7] with target >= current"""
    if current_level is None or target_level is None:
        raise ValidationException("current_level and target_level are required", field="current_level")

    for field, value in (("current_level", current_level), ("target_level", target_level)):
        if isinstance(value, bool) or not isinstance(value, int) or not LEVEL_MIN <= value <= LEVEL_MAX:
            raise ValidationException(f"{field} must be an integer between {LEVEL_MIN} and {LEVEL_MAX}", field=field)

    if target_level < current_level:
        raise ValidationException(
            "target_level must be greater than or equal to current_level", field="target_level"
        )


def validate_dates(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and end_date < start_date:
        raise ValidationException("end_date must be on or after start_date", field="end_date")


def validate_notes(user_notes: Optional[str]) -> None:
    if user_notes and len(user_notes) > USER_NOTES_MAX_LENGTH:
        raise ValidationException(
            f"user_notes must be at most {USER_NOTES_MAX_LENGTH} characters", field="user_notes"
        )


class GoalService:
    """Service for managing improvement goals"""

    def __init__(self, db: Session):
        self.db = db
        self.goal_repo = GoalRepository()
        self.catalog = NeedCatalogService(db)
        self.user_repo = UserRepository()
        self.task_queue = TaskQueue(db)

    def get_goals(self, user: User, status: Optional[str] = None) -> List[Goal]:
        """Get goals newest first, filtered by 'active', 'completed' or neither"""
        if status == GOAL_STATUS_ACTIVE:
            return self.goal_repo.get_all(self.db, user.id, is_completed=False)
        if status == GOAL_STATUS_COMPLETED:
            return self.goal_repo.get_all(self.db, user.id, is_completed=True)
        return self.goal_repo.get_all(self.db, user.id)

    def get_goal(self, user: User, goal_id: int) -> Goal:
        goal = self.goal_repo.get_for_user(self.db, user.id, goal_id)
        if not goal:
            raise GoalNotFoundException(goal_id)
        return goal

    def create_goal(self, user: User, goal_data: GoalCreate) -> Goal:
        """
        Create a goal for a category the user has unlocked.

        Raises:
            ValidationException: invalid levels, notes, dates, need or missing title
            PermissionDeniedException: category locked by the subscription
        """
        ensure_categories_available([goal_data.category], user.subscription_type)
        validate_levels(goal_data.current_level, goal_data.target_level)
        validate_notes(goal_data.user_notes)
        validate_dates(goal_data.start_date, goal_data.end_date)

        goal = Goal(
            user_id=user.id,
            category=goal_data.category,
            current_level=goal_data.current_level,
            target_level=goal_data.target_level,
            user_notes=goal_data.user_notes or "",
            start_date=goal_data.start_date,
            end_date=goal_data.end_date,
            is_completed=False,
        )

        need_key = goal_data.need_key.strip() if goal_data.need_key else None
        if need_key:
            self._apply_need(goal, self._resolve_need(need_key, goal_data.category))

        title = (goal_data.title or "").strip() or goal.need_label
        if not title:
            raise ValidationException("title is required when no need is selected", field="title")
        goal.title = title

        goal = self.goal_repo.create(self.db, goal)
        logger.info(f"Created goal {goal.id} for user {user.id} in {goal.category}")
        return goal

    def update_goal(self, user: User, goal_id: int, goal_update: GoalUpdate) -> Goal:
        """
        Apply a partial update.

        Completing a goal (false -> true) stamps completed_at and, after the
        commit, queues the achievement recalculation and the notification and
        checks the coaching offer. None of those can fail the update.
        """
        goal = self.get_goal(user, goal_id)
        update_data = goal_update.model_dump(exclude_unset=True)

        category = update_data.get("category") or goal.category
        if category != goal.category:
            ensure_categories_available([category], user.subscription_type)

        current_level = update_data.get("current_level", goal.current_level)
        target_level = update_data.get("target_level", goal.target_level)
        validate_levels(current_level, target_level)
        validate_notes(update_data.get("user_notes"))
        validate_dates(
            update_data.get("start_date", goal.start_date),
            update_data.get("end_date", goal.end_date)
        )

        # Resolve everything that can fail before touching the goal
        need = None
        unlink = False
        if "need_key" in update_data:
            need_key = update_data["need_key"].strip() if update_data["need_key"] else None
            if need_key:
                need = self._resolve_need(need_key, category)
            else:
                unlink = True
        elif category != goal.category and goal.need_key:
            # The need key only means something within its category
            need = self._resolve_need(goal.need_key, category)

        title = goal.title
        if "title" in update_data:
            need_label = need.need_label if need else (None if unlink else goal.need_label)
            title = (update_data["title"] or "").strip() or need_label
            if not title:
                raise ValidationException("title is required when no need is selected", field="title")

        if need:
            self._apply_need(goal, need)
        elif unlink:
            self._unlink_need(goal)

        goal.title = title
        goal.category = category
        goal.current_level = current_level
        goal.target_level = target_level
        if "user_notes" in update_data:
            goal.user_notes = update_data["user_notes"] or ""
        for field in ("start_date", "end_date"):
            if field in update_data:
                setattr(goal, field, update_data[field])

        just_completed = False
        if "is_completed" in update_data and update_data["is_completed"] is not None:
            if update_data["is_completed"] and not goal.is_completed:
                goal.is_completed = True
                goal.completed_at = datetime.now()
                just_completed = True
            elif not update_data["is_completed"] and goal.is_completed:
                goal.is_completed = False
                goal.completed_at = None

        goal = self.goal_repo.update(self.db, goal)

        if just_completed:
            logger.info(f"Goal {goal.id} completed by user {user.id}")
            self._on_goal_completed(user, goal)

        return goal

    def delete_goal(self, user: User, goal_id: int) -> None:
        goal = self.get_goal(user, goal_id)
        was_completed = goal.is_completed
        self.goal_repo.delete(self.db, goal)
        logger.info(f"Deleted goal {goal_id} for user {user.id}")

        # Completed goals count towards points
        if was_completed:
            try:
                self.task_queue.enqueue_recalculation(user.id)
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to queue achievement recalculation after deleting goal {goal_id}: {e}")

    def _resolve_need(self, need_key: str, category: str) -> Need:
        need = self.catalog.find_need(need_key, category)
        if not need:
            raise ValidationException(
                f'Need "{need_key}" not found in category "{category}" or is inactive', field="need_key"
            )
        return need

    @staticmethod
    def _apply_need(goal: Goal, need: Need) -> None:
        goal.need_key = need.need_key
        goal.need_label = need.need_label
        goal.need_order = need.need_order
        goal.need_id = need.id

    @staticmethod
    def _unlink_need(goal: Goal) -> None:
        goal.need_key = None
        goal.need_label = None
        goal.need_order = None
        goal.need_id = None

    def _on_goal_completed(self, user: User, goal: Goal) -> None:
        """Best-effort side effects; each one is isolated from the others"""
        try:
            self.task_queue.enqueue_recalculation(user.id)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to queue achievement recalculation for goal {goal.id}: {e}")

        try:
            self._check_coaching_offer(user)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update coaching offer for user {user.id}: {e}")

        try:
            self.task_queue.enqueue_notification(
                user.id,
                "Goal Completed! 🎉",
                f'Congratulations! You\'ve completed your goal: "{goal.title}"',
                {"type": NOTIFICATION_GOAL_COMPLETED, "goal_id": goal.id, "screen": "/goals"}
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to queue completion notification for goal {goal.id}: {e}")

    def _check_coaching_offer(self, user: User) -> None:
        """One-time flag once enough goals are completed"""
        if user.coaching_offer_eligible:
            return
        completed = self.goal_repo.count_completed(self.db, user.id)
        if completed >= COACHING_OFFER_GOAL_THRESHOLD:
            user.coaching_offer_eligible = True
            user.coaching_offer_triggered_at = datetime.now()
            self.user_repo.update(self.db, user)
            logger.info(f"User {user.id} is now eligible for the coaching offer ({completed} goals completed)")
