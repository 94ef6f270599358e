"""
Application constants and environment-driven configuration.
"""
import os

# ===== ENVIRONMENT =====

DATABASE_URL = os.getenv("NEEDS_TRACKER_DATABASE_URL", "sqlite:///./needs_tracker.db")
API_KEY = os.getenv("NEEDS_TRACKER_API_KEY", "your-secret-key-change-me")

DEFAULT_LOG_DIRECTORY_PROD = "/var/log/needs_tracker"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"

CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "NEEDS_TRACKER_CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
    ).split(",")
    if origin.strip()
]

PUSH_GATEWAY_URL = os.getenv("NEEDS_TRACKER_PUSH_GATEWAY_URL", "")
PUSH_GATEWAY_TOKEN = os.getenv("NEEDS_TRACKER_PUSH_GATEWAY_TOKEN", "")
PUSH_GATEWAY_TIMEOUT_SECONDS = float(os.getenv("NEEDS_TRACKER_PUSH_GATEWAY_TIMEOUT", "10"))

SCHEDULER_ENABLED = os.getenv("NEEDS_TRACKER_SCHEDULER_ENABLED", "true").lower() == "true"
SCHEDULER_TIMEZONE = "UTC"
GOAL_REMINDER_HOUR = 9
ASSESSMENT_REMINDER_HOUR = 10

TASK_QUEUE_MAX_ATTEMPTS = int(os.getenv("NEEDS_TRACKER_TASK_MAX_ATTEMPTS", "5"))
TASK_QUEUE_RETRY_SECONDS = int(os.getenv("NEEDS_TRACKER_TASK_RETRY_SECONDS", "60"))
TASK_QUEUE_BATCH_SIZE = 50

# ===== CATEGORIES & SUBSCRIPTIONS =====

CATEGORY_SURVIVAL = "Survival"
CATEGORY_SAFETY = "Safety"
CATEGORY_SOCIAL = "Social"
CATEGORY_SELF = "Self"
CATEGORY_META = "Meta-Needs"

# Bottom to top of the pyramid
VALID_CATEGORIES = [
    CATEGORY_SURVIVAL,
    CATEGORY_SAFETY,
    CATEGORY_SOCIAL,
    CATEGORY_SELF,
    CATEGORY_META,
]

SUBSCRIPTION_FREE = "Free"
DEFAULT_SUBSCRIPTION = SUBSCRIPTION_FREE

SUBSCRIPTION_CATEGORIES = {
    "Free": [CATEGORY_SURVIVAL, CATEGORY_SAFETY],
    "Premium": [CATEGORY_SURVIVAL, CATEGORY_SAFETY, CATEGORY_SOCIAL, CATEGORY_SELF],
    "Plus": [CATEGORY_SURVIVAL, CATEGORY_SAFETY, CATEGORY_SOCIAL, CATEGORY_SELF],  # alias for Premium
    "Coach": list(VALID_CATEGORIES),
    "Pro": list(VALID_CATEGORIES),  # alias for Coach
}

SUBSCRIPTION_PRICING = {
    "Free": 0,
    "Premium": 19,
    "Plus": 19,
    "Coach": 39,
    "Pro": 39,
}

# ===== SCORING =====

SCORE_MIN = 1
SCORE_MAX = 7
LEVEL_MIN = 1
LEVEL_MAX = 7

LOWEST_CATEGORIES_COUNT = 2
LOWEST_NEEDS_COUNT = 3

USER_NOTES_MAX_LENGTH = 500
REFLECTION_NOTE_MAX_LENGTH = 300

QUESTIONS_DEFAULT_LIMIT = 100
QUESTIONS_MAX_LIMIT = 200

# Used for catalog entries without a customized sub-question scale
DEFAULT_QUALITY_SCALE = [
    "1 = Extremely poor",
    "2 = Very poor",
    "3 = Poor",
    "4 = Below average",
    "5 = Average",
    "6 = Good",
    "7 = Excellent",
]

DEFAULT_VOLUME_SCALE = [
    "1 = Never",
    "2 = Very rarely",
    "3 = Rarely",
    "4 = Sometimes",
    "5 = Often",
    "6 = Very often",
    "7 = Always",
]

# ===== GOALS =====

GOAL_STATUS_ACTIVE = "active"
GOAL_STATUS_COMPLETED = "completed"
COACHING_OFFER_GOAL_THRESHOLD = 3

# ===== REFLECTIONS =====

VALID_MOODS = ["angry", "anxious", "sad", "stressed", "neutral", "happy"]

# ===== LEARNING CONTENT =====

# ===== ACHIEVEMENTS =====

POINTS_ASSESSMENT_COMPLETED = 100
POINTS_GOAL_COMPLETED = 200
POINTS_REFLECTION_CREATED = 50
POINTS_DAILY_ACTIVITY = 25
POINTS_STREAK_BONUS = 10

BADGE_LEVELS = [
    {"level": 1, "name": "Bronze", "points_required": 0},
    {"level": 2, "name": "Silver", "points_required": 1000},
    {"level": 3, "name": "Gold", "points_required": 3000},
    {"level": 4, "name": "Platinum", "points_required": 6000},
    {"level": 5, "name": "Diamond", "points_required": 10000},
]

FOCUS_STREAK_ACHIEVEMENTS = [
    {"days": 3, "name": "Getting Started", "badge_type": "bronze"},
    {"days": 7, "name": "Week Warrior", "badge_type": "silver"},
    {"days": 14, "name": "Two Week Champion", "badge_type": "silver"},
    {"days": 30, "name": "Monthly Master", "badge_type": "gold"},
    {"days": 60, "name": "Two Month Hero", "badge_type": "gold"},
    {"days": 90, "name": "Quarter Champion", "badge_type": "platinum"},
    {"days": 180, "name": "Half Year Hero", "badge_type": "platinum"},
    {"days": 365, "name": "Year Legend", "badge_type": "diamond"},
]

STREAK_ACHIEVEMENT_PREFIX = "streak_"

LEADERBOARD_DEFAULT_LIMIT = 10
LEADERBOARD_MAX_LIMIT = 100

# ===== NOTIFICATIONS =====

NOTIFICATION_GOAL_COMPLETED = "goal_completed"
NOTIFICATION_GOAL_REMINDER = "goal_reminder"
NOTIFICATION_ASSESSMENT_REMINDER = "assessment_reminder"
NOTIFICATION_GENERAL = "general"

ASSESSMENT_STALE_DAYS = 3
ASSESSMENT_RECENT_DAYS = 2
ASSESSMENT_REMINDER_COOLDOWN_HOURS = 24

# ===== TASK QUEUE =====

TASK_RECALCULATE_ACHIEVEMENTS = "recalculate_achievements"
TASK_SEND_NOTIFICATION = "send_notification"

TASK_STATUS_PENDING = "pending"
TASK_STATUS_DONE = "done"
TASK_STATUS_FAILED = "failed"

# ===== REPORT PRESENTATION =====

PERFORMANCE_BANDS = [
    {"label": "Dysfunctional", "sub_labels": ["Neurotic", "Psychotic"], "range": [1, 1.5], "color": "#E63946"},
    {"label": "Extremes", "sub_labels": ["Too much", "Too Little"], "range": [1.5, 2.5], "color": "#DC3545"},
    {"label": "Not getting by", "sub_labels": ["Cravings", "Dissatisfaction"], "range": [2.5, 3.5], "color": "#F1C40F"},
    {"label": "Doing OK", "sub_labels": ["Getting By", "Normal Concerns"], "range": [3.5, 4.5], "color": "#FFC107"},
    {"label": "Getting by well", "sub_labels": ["Feeling Good"], "range": [4.5, 5.5], "color": "#90EE90"},
    {"label": "Doing Good", "sub_labels": ["Thriving"], "range": [5.5, 6.5], "color": "#2ECC71"},
    {"label": "Optimizing", "sub_labels": ["Super-Thriving"], "range": [6.5, 7], "color": "#27AE60"},
    {"label": "Maximizing", "sub_labels": ["At ones very best"], "range": [7, 7], "color": "#1E8449"},
]

CATEGORY_DESCRIPTIONS = {
    CATEGORY_SURVIVAL: "Physical needs, health, energy, rest, and nutrition.",
    CATEGORY_SAFETY: "Stability, financial security, and sense of control.",
    CATEGORY_SOCIAL: "Belonging, love, connection, and relationships.",
    CATEGORY_SELF: "Confidence, respect, and personal achievement.",
    CATEGORY_META: "Purpose, creativity, contribution, and self-actualization.",
}

# Fixed pyramid labels, independent of the live catalog
PYRAMID_NEEDS = {
    CATEGORY_META: [
        "Cognitive needs: to know, understand, learn",
        "Contribution needs: to make a difference",
        "Conative needs: to choose your unique way of life",
        "Love needs: to care and extend yourself to others",
        "Truth needs: to know what is true, real, and authentic",
        "Aesthetic needs: to see, enjoy, and create beauty",
        "Expressive needs: to be and express your best self",
    ],
    CATEGORY_SELF: [
        "Importance of your voice and opinion",
        "Honor and Dignity from colleagues",
        "Sense of Respect for Achievements",
        "Sense of Human dignity / Value as Person",
    ],
    CATEGORY_SOCIAL: [
        "Group Acceptance / Connection",
        "Bonding with Partner / Lover",
        "Bonding with Significant People",
        "Love / Affection",
        "Social connection: Friends / companions",
    ],
    CATEGORY_SAFETY: [
        "Sense of Control: Personal Power / efficacy",
        "Sense of Order / Structure",
        "Stability in Life",
        "Career / Job Safety",
        "Physical / Personal Safety",
    ],
    CATEGORY_SURVIVAL: [
        "Money",
        "Sex",
        "Exercise",
        "Vitality",
        "Weight Management",
        "Food",
        "Sleep",
    ],
}

NEED_REPORT_PROMPT = "Which one of your needs would you like to develop more skills in?"
