"""
Achievement calculation service.
Recomputes points, badge tier, focus streak and streak milestones from a
user's full history. State is derived wholesale; running it twice changes nothing.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session

from needs_tracker.models import Achievement, UnlockedAchievement, AssessmentSnapshot, Goal, Reflection
from needs_tracker.repositories.achievement_repository import (
    AchievementRepository, UnlockedAchievementRepository
)
from needs_tracker.repositories.user_repository import UserRepository
from needs_tracker.services.date_service import DateService
from needs_tracker.exceptions import UserNotFoundException
from needs_tracker.constants import (
    POINTS_ASSESSMENT_COMPLETED,
    POINTS_GOAL_COMPLETED,
    POINTS_REFLECTION_CREATED,
    POINTS_DAILY_ACTIVITY,
    POINTS_STREAK_BONUS,
    BADGE_LEVELS,
    FOCUS_STREAK_ACHIEVEMENTS,
    STREAK_ACHIEVEMENT_PREFIX,
    LEADERBOARD_DEFAULT_LIMIT,
    LEADERBOARD_MAX_LIMIT,
)

logger = logging.getLogger("needs_tracker.achievements")


def get_badge_level(points: int) -> dict:
    """Highest badge whose threshold is <= points"""
    badge = BADGE_LEVELS[0]
    for level in BADGE_LEVELS:
        if points >= level["points_required"]:
            badge = level
    return badge


def get_next_badge_progress(points: int) -> dict:
    """Progress towards the next badge tier"""
    current = get_badge_level(points)
    next_badge = next(
        (level for level in BADGE_LEVELS if level["level"] == current["level"] + 1),
        None
    )

    if next_badge is None:
        return {
            "next_badge_level": None,
            "next_badge_name": None,
            "points_required": None,
            "points_to_next": 0,
            "current_points": points,
            "progress_percentage": 100,
        }

    span = next_badge["points_required"] - current["points_required"]
    earned = points - current["points_required"]
    progress = min(100, round(earned / span * 100)) if span > 0 else 100

    return {
        "next_badge_level": next_badge["level"],
        "next_badge_name": next_badge["name"],
        "points_required": next_badge["points_required"],
        "points_to_next": max(0, next_badge["points_required"] - points),
        "current_points": points,
        "progress_percentage": progress,
    }


def calculate_focus_streak(activity_dates: Iterable[date], today: date) -> int:
    """
    Count consecutive active days ending today or yesterday.

    A streak whose latest day is older than yesterday is broken and counts 0.
    """
    dates = sorted(set(activity_dates), reverse=True)
    if not dates:
        return 0

    if dates[0] not in (today, today - timedelta(days=1)):
        return 0

    streak = 1
    for previous, current in zip(dates, dates[1:]):
        if previous - current == timedelta(days=1):
            streak += 1
        else:
            break
    return streak


def get_unlocked_streak_achievements(streak: int) -> List[dict]:
    """Streak milestones reached by a streak length"""
    return [
        {
            "achievement_id": f"{STREAK_ACHIEVEMENT_PREFIX}{milestone['days']}",
            "achievement_name": milestone["name"],
            "badge_type": milestone["badge_type"],
        }
        for milestone in FOCUS_STREAK_ACHIEVEMENTS
        if streak >= milestone["days"]
    ]


def calculate_points(assessments: int, goals: int, reflections: int, days_active: int, streak: int) -> int:
    return (
        assessments * POINTS_ASSESSMENT_COMPLETED
        + goals * POINTS_GOAL_COMPLETED
        + reflections * POINTS_REFLECTION_CREATED
        + days_active * POINTS_DAILY_ACTIVITY
        + streak * POINTS_STREAK_BONUS
    )


class AchievementService:
    """Service for achievement recalculation and queries"""

    def __init__(self, db: Session):
        self.db = db
        self.achievement_repo = AchievementRepository()
        self.unlocked_repo = UnlockedAchievementRepository()
        self.user_repo = UserRepository()
        self.date_service = DateService()

    def recalculate(self, user_id: str, today: Optional[date] = None) -> Achievement:
        """
        Rebuild the user's achievement state from their history.

        Args:
            user_id: User to recalculate
            today: Reference date for the streak (defaults to local today)

        Returns:
            Updated Achievement row
        """
        if not self.user_repo.get_by_id(self.db, user_id):
            raise UserNotFoundException(user_id)

        today = today or self.date_service.today()

        snapshot_dates = [
            row[0] for row in self.db.query(AssessmentSnapshot.completed_at).filter(
                AssessmentSnapshot.user_id == user_id
            ).all()
        ]
        goal_dates = [
            completed_at or updated_at
            for completed_at, updated_at in self.db.query(Goal.completed_at, Goal.updated_at).filter(
                Goal.user_id == user_id,
                Goal.is_completed == True
            ).all()
        ]
        reflection_dates = [
            row[0] for row in self.db.query(Reflection.date).filter(
                Reflection.user_id == user_id
            ).all()
        ]

        activity_dates = self.date_service.distinct_dates_desc(
            snapshot_dates + goal_dates + reflection_dates
        )
        streak = calculate_focus_streak(activity_dates, today)
        points = calculate_points(
            len(snapshot_dates), len(goal_dates), len(reflection_dates), len(activity_dates), streak
        )
        badge = get_badge_level(points)

        achievement = self.achievement_repo.get_or_create(self.db, user_id)
        achievement.total_points = points
        achievement.current_badge_level = badge["level"]
        achievement.current_badge_name = badge["name"]
        achievement.focus_streak = streak
        achievement.last_activity_date = activity_dates[0] if activity_dates else None
        achievement.assessments_completed = len(snapshot_dates)
        achievement.goals_completed = len(goal_dates)
        achievement.reflections_created = len(reflection_dates)
        achievement.days_active = len(activity_dates)

        unlocked_ids = self.unlocked_repo.get_ids_for_user(self.db, user_id)
        new_unlocks = 0
        for milestone in get_unlocked_streak_achievements(streak):
            if milestone["achievement_id"] in unlocked_ids:
                continue
            inserted = self.unlocked_repo.add_if_absent(self.db, UnlockedAchievement(
                user_id=user_id,
                unlocked_at=datetime.now(),
                **milestone
            ))
            if inserted:
                new_unlocks += 1

        achievement = self.achievement_repo.update(self.db, achievement)
        logger.info(
            f"Recalculated achievements for user {user_id}: {points} points, "
            f"{badge['name']}, streak {streak}, {new_unlocks} new unlocks"
        )
        return achievement

    def get_achievements(self, user_id: str) -> dict:
        """Current state plus unlocks and next-badge progress; computed on first access"""
        achievement = self.achievement_repo.get_by_user(self.db, user_id)
        if not achievement:
            achievement = self.recalculate(user_id)

        return {
            "user_id": user_id,
            "total_points": achievement.total_points,
            "current_badge_level": achievement.current_badge_level,
            "current_badge_name": achievement.current_badge_name,
            "focus_streak": achievement.focus_streak,
            "last_activity_date": achievement.last_activity_date,
            "assessments_completed": achievement.assessments_completed,
            "goals_completed": achievement.goals_completed,
            "reflections_created": achievement.reflections_created,
            "days_active": achievement.days_active,
            "unlocked_achievements": self.unlocked_repo.get_for_user(self.db, user_id),
            "next_badge": get_next_badge_progress(achievement.total_points),
        }

    def get_streak(self, user_id: str) -> dict:
        achievement = self.achievement_repo.get_by_user(self.db, user_id)
        if not achievement:
            achievement = self.recalculate(user_id)

        streak_unlocks = [
            unlocked for unlocked in self.unlocked_repo.get_for_user(self.db, user_id)
            if unlocked.achievement_id.startswith(STREAK_ACHIEVEMENT_PREFIX)
        ]
        return {
            "focus_streak": achievement.focus_streak,
            "last_activity_date": achievement.last_activity_date,
            "streak_achievements": streak_unlocks,
        }

    def get_leaderboard(self, limit: int = LEADERBOARD_DEFAULT_LIMIT) -> List[dict]:
        """Top users by points, ranked from 1"""
        limit = max(1, min(limit, LEADERBOARD_MAX_LIMIT))
        return [
            {
                "rank": index + 1,
                "user_id": achievement.user_id,
                "total_points": achievement.total_points,
                "current_badge_level": achievement.current_badge_level,
                "current_badge_name": achievement.current_badge_name,
                "focus_streak": achievement.focus_streak,
            }
            for index, achievement in enumerate(self.achievement_repo.get_top(self.db, limit))
        ]
