"""
Goal HTTP routes.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional

from needs_tracker.auth import get_current_user
from needs_tracker.database import get_db
from needs_tracker.models import User
from needs_tracker.schemas import GoalCreate, GoalUpdate, GoalResponse
from needs_tracker.services.goal_service import GoalService
from needs_tracker.services.task_queue import drain_task_queue

router = APIRouter(prefix="/api/goals", tags=["goals"])


@router.get("", response_model=List[GoalResponse])
async def get_goals(
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(active|completed)$"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get goals, newest first"""
    return GoalService(db).get_goals(user, status_filter)


@router.post("", response_model=GoalResponse, status_code=status.HTTP_201_CREATED)
async def create_goal(
    goal: GoalCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return GoalService(db).create_goal(user, goal)


@router.get("/{goal_id}", response_model=GoalResponse)
async def get_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return GoalService(db).get_goal(user, goal_id)


@router.put("/{goal_id}", response_model=GoalResponse)
async def update_goal(
    goal_id: int,
    goal_update: GoalUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Partially update a goal; completing it queues achievements and a notification"""
    goal = GoalService(db).update_goal(user, goal_id, goal_update)
    if goal_update.is_completed:
        background_tasks.add_task(drain_task_queue, request.app.state.database, request.app.state.push_transport)
    return goal


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    GoalService(db).delete_goal(user, goal_id)
