"""
Achievement HTTP routes.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from needs_tracker.auth import get_current_user, verify_api_key
from needs_tracker.database import get_db
from needs_tracker.models import User
from needs_tracker.schemas import AchievementResponse, StreakResponse, LeaderboardEntry
from needs_tracker.services.achievement_service import AchievementService
from needs_tracker.constants import LEADERBOARD_DEFAULT_LIMIT, LEADERBOARD_MAX_LIMIT

router = APIRouter(prefix="/api/achievements", tags=["achievements"])


@router.get("", response_model=AchievementResponse)
async def get_achievements(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Points, badge, streak and unlocked achievements"""
    return AchievementService(db).get_achievements(user.id)


@router.get("/streak", response_model=StreakResponse)
async def get_streak(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return AchievementService(db).get_streak(user.id)


@router.get("/leaderboard", response_model=List[LeaderboardEntry], dependencies=[Depends(verify_api_key)])
async def get_leaderboard(
    limit: int = Query(LEADERBOARD_DEFAULT_LIMIT, ge=1, le=LEADERBOARD_MAX_LIMIT),
    db: Session = Depends(get_db)
):
    return AchievementService(db).get_leaderboard(limit)
