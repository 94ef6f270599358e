from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Float, Date, Text, JSON,
    ForeignKey, UniqueConstraint, Index
)
from datetime import datetime

from needs_tracker.database import Base


class User(Base):
    __tablename__ = "users"

    # Opaque id supplied by the identity provider
    id = Column(String, primary_key=True, index=True)
    subscription_type = Column(String, default="Free")

    has_completed_assessment = Column(Boolean, default=False)
    assessment_completed_at = Column(DateTime, nullable=True)

    # One-time flag, set after enough completed goals
    coaching_offer_eligible = Column(Boolean, default=False)
    coaching_offer_triggered_at = Column(DateTime, nullable=True)

    # Notification preferences
    goal_reminders_enabled = Column(Boolean, default=True)
    assessment_reminders_enabled = Column(Boolean, default=True)
    assessment_reminder_sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.now)


class Need(Base):
    __tablename__ = "needs"
    __table_args__ = (
        Index("ix_needs_category_need_key", "category", "need_key"),
    )

    # Also the question reference that learning content is attached to
    id = Column(Integer, primary_key=True, index=True)
    need_key = Column(String, nullable=False)  # unique within a category only
    need_label = Column(String, nullable=False)
    category = Column(String, nullable=False)
    need_order = Column(Integer, default=0)
    statement = Column(String, nullable=True)  # primary Likert statement

    quality_prompt = Column(String, nullable=True)
    quality_scale = Column(JSON, default=list)  # 7 options, worst first
    volume_prompt = Column(String, nullable=True)
    volume_scale = Column(JSON, default=list)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)


class LearningContent(Base):
    __tablename__ = "learning_contents"

    id = Column(Integer, primary_key=True, index=True)
    need_id = Column(Integer, ForeignKey("needs.id"), nullable=False, unique=True, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    learning_type = Column(String, default="general")  # health, vitality, general
    thumbnail_url = Column(String, nullable=True)
    read_time_minutes = Column(Integer, default=5)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)


class AssessmentSnapshot(Base):
    __tablename__ = "assessment_snapshots"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    completed_at = Column(DateTime, nullable=False, default=datetime.now)

    # [{need_id, need_key, need_label, category, main_score, quality_score, volume_score}]
    responses = Column(JSON, default=list)
    category_scores = Column(JSON, default=dict)  # category -> average
    need_scores = Column(JSON, default=dict)  # need_key -> {score, need_label, category}
    overall_score = Column(Float, default=0.0)  # average of category averages

    created_at = Column(DateTime, default=datetime.now)


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    category = Column(String, nullable=False)

    # Denormalized need metadata, kept as last-known-good
    need_key = Column(String, nullable=True)
    need_label = Column(String, nullable=True)
    need_order = Column(Integer, nullable=True)
    need_id = Column(Integer, nullable=True)

    current_level = Column(Integer, nullable=False, default=1)  # 1-7
    target_level = Column(Integer, nullable=False, default=7)  # 1-7
    user_notes = Column(String, default="")

    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    is_completed = Column(Boolean, default=False)
    completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class Reflection(Base):
    __tablename__ = "reflections"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    mood = Column(String, nullable=False)
    note = Column(String, nullable=True)
    date = Column(DateTime, nullable=False, default=datetime.now)
    need_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.now)


class Achievement(Base):
    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, unique=True, index=True)

    total_points = Column(Integer, default=0)
    current_badge_level = Column(Integer, default=1)
    current_badge_name = Column(String, default="Bronze")
    focus_streak = Column(Integer, default=0)
    last_activity_date = Column(Date, nullable=True)

    # Recomputed wholesale on every recalculation
    assessments_completed = Column(Integer, default=0)
    goals_completed = Column(Integer, default=0)
    reflections_created = Column(Integer, default=0)
    days_active = Column(Integer, default=0)

    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class UnlockedAchievement(Base):
    __tablename__ = "unlocked_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_unlocked_achievement"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    achievement_id = Column(String, nullable=False)  # e.g. "streak_7"
    achievement_name = Column(String, nullable=False)
    badge_type = Column(String, default="bronze")
    unlocked_at = Column(DateTime, default=datetime.now)


class DeviceToken(Base):
    __tablename__ = "device_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    token = Column(String, nullable=False, unique=True)
    platform = Column(String, nullable=True)  # ios, android, web
    created_at = Column(DateTime, default=datetime.now)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    body = Column(String, nullable=False)
    type = Column(String, default="general")
    data = Column(JSON, default=dict)
    message_id = Column(String, nullable=True)  # first gateway message id
    is_read = Column(Boolean, default=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.now)


class QueuedTask(Base):
    __tablename__ = "queued_tasks"
    __table_args__ = (
        Index("ix_queued_tasks_status_available", "status", "available_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    task_type = Column(String, nullable=False)
    user_id = Column(String, nullable=True)
    payload = Column(JSON, default=dict)

    status = Column(String, default="pending")  # pending, done, failed
    attempts = Column(Integer, default=0)
    max_attempts = Column(Integer, default=5)
    last_error = Column(String, nullable=True)

    available_at = Column(DateTime, default=datetime.now)
    created_at = Column(DateTime, default=datetime.now)
    processed_at = Column(DateTime, nullable=True)
