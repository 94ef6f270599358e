from pydantic import BaseModel, Field, StrictBool
from datetime import datetime, date
from typing import Any, Dict, List, Optional


# ===== ASSESSMENT =====

class AssessmentResponseItem(BaseModel):
    # Ratings stay loosely typed: invalid ones drop the response instead of failing the request
    question_id: Optional[int] = None
    need_key: Optional[str] = None
    category: Optional[str] = None
    selected_option: Any = None
    quality_response: Any = None
    volume_response: Any = None


class AssessmentSubmit(BaseModel):
    responses: List[AssessmentResponseItem] = Field(default_factory=list)


class NeedScore(BaseModel):
    score: float
    need_label: Optional[str] = None
    category: Optional[str] = None


class AssessmentResult(BaseModel):
    assessment_id: int
    category_scores: Dict[str, float]
    need_scores: Dict[str, NeedScore]
    overall_score: float
    completed_at: datetime


# ===== NEED CATALOG =====

class NeedSummary(BaseModel):
    need_key: str
    need_label: str
    need_order: int
    category: str
    question_id: int


class QuestionResponse(BaseModel):
    id: int
    need_key: str
    need_label: str
    category: str
    need_order: int
    statement: Optional[str] = None
    quality_prompt: Optional[str] = None
    quality_scale: List[str] = Field(default_factory=list)
    volume_prompt: Optional[str] = None
    volume_scale: List[str] = Field(default_factory=list)

    class Config:
        from_attributes = True


# ===== GOALS =====

class GoalCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    category: str
    need_key: Optional[str] = None
    current_level: int = Field(..., ge=1, le=7)
    target_level: int = Field(..., ge=1, le=7)
    user_notes: Optional[str] = Field(default="", max_length=500)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class GoalUpdate(BaseModel):
    # Only fields present in the request body are applied; need_key=None unlinks the need
    title: Optional[str] = Field(None, max_length=200)
    category: Optional[str] = None
    need_key: Optional[str] = None
    current_level: Optional[int] = Field(None, ge=1, le=7)
    target_level: Optional[int] = Field(None, ge=1, le=7)
    user_notes: Optional[str] = Field(None, max_length=500)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_completed: Optional[bool] = None


class GoalResponse(BaseModel):
    id: int
    user_id: str
    title: str
    category: str
    need_key: Optional[str] = None
    need_label: Optional[str] = None
    need_order: Optional[int] = None
    need_id: Optional[int] = None
    current_level: int
    target_level: int
    user_notes: Optional[str] = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_completed: bool
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===== REFLECTIONS =====

class ReflectionCreate(BaseModel):
    mood: str
    note: Optional[str] = Field(None, max_length=300)
    date: Optional[datetime] = None
    need_id: Optional[int] = None


class ReflectionUpdate(BaseModel):
    mood: Optional[str] = None
    note: Optional[str] = Field(None, max_length=300)
    date: Optional[datetime] = None
    need_id: Optional[int] = None


class ReflectionResponse(BaseModel):
    id: int
    user_id: str
    mood: str
    note: Optional[str] = None
    date: datetime
    need_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


# ===== ACHIEVEMENTS =====

class UnlockedAchievementResponse(BaseModel):
    achievement_id: str
    achievement_name: str
    badge_type: str
    unlocked_at: datetime

    class Config:
        from_attributes = True


class BadgeProgress(BaseModel):
    next_badge_level: Optional[int] = None
    next_badge_name: Optional[str] = None
    points_required: Optional[int] = None
    points_to_next: int
    current_points: int
    progress_percentage: int


class AchievementResponse(BaseModel):
    user_id: str
    total_points: int
    current_badge_level: int
    current_badge_name: str
    focus_streak: int
    last_activity_date: Optional[date] = None
    assessments_completed: int
    goals_completed: int
    reflections_created: int
    days_active: int
    unlocked_achievements: List[UnlockedAchievementResponse] = Field(default_factory=list)
    next_badge: BadgeProgress


class StreakResponse(BaseModel):
    focus_streak: int
    last_activity_date: Optional[date] = None
    streak_achievements: List[UnlockedAchievementResponse] = Field(default_factory=list)


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    total_points: int
    current_badge_level: int
    current_badge_name: str
    focus_streak: int


# ===== SUBSCRIPTION =====

class SubscriptionResponse(BaseModel):
    subscription_type: str
    available_categories: List[str]
    pricing: int


# ===== NOTIFICATIONS =====

class DeviceTokenRegister(BaseModel):
    token: str = Field(..., min_length=1)
    platform: Optional[str] = None


class DeviceTokenResponse(BaseModel):
    id: int
    token: str
    platform: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class DeviceTokenRemove(BaseModel):
    token: str = Field(..., min_length=1)


class NotificationSettingsUpdate(BaseModel):
    goal_reminders_enabled: Optional[StrictBool] = None
    assessment_reminders_enabled: Optional[StrictBool] = None


class NotificationSettingsResponse(BaseModel):
    goal_reminders_enabled: bool
    assessment_reminders_enabled: bool
    has_device_token: bool


class NotificationResponse(BaseModel):
    id: int
    title: str
    body: str
    type: str
    data: Optional[Dict[str, Any]] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
