from needs_tracker.routes.assessment import router as assessment_router
from needs_tracker.routes.goals import router as goals_router
from needs_tracker.routes.reflections import router as reflections_router
from needs_tracker.routes.achievements import router as achievements_router
from needs_tracker.routes.account import router as account_router

__all__ = [
    "assessment_router",
    "goals_router",
    "reflections_router",
    "achievements_router",
    "account_router",
]
