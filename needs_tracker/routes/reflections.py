"""
Reflection HTTP routes.
"""
from datetime import datetime
from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional

from needs_tracker.auth import get_current_user
from needs_tracker.database import get_db
from needs_tracker.models import User
from needs_tracker.schemas import ReflectionCreate, ReflectionUpdate, ReflectionResponse
from needs_tracker.services.reflection_service import ReflectionService
from needs_tracker.services.task_queue import drain_task_queue

router = APIRouter(prefix="/api/reflections", tags=["reflections"])


@router.get("", response_model=List[ReflectionResponse])
async def get_reflections(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get reflections, newest first, optionally within a date range"""
    return ReflectionService(db).list_reflections(user, start, end)


@router.post("", response_model=ReflectionResponse, status_code=status.HTTP_201_CREATED)
async def create_reflection(
    reflection: ReflectionCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    created = ReflectionService(db).create_reflection(user, reflection)
    background_tasks.add_task(drain_task_queue, request.app.state.database, request.app.state.push_transport)
    return created


@router.put("/{reflection_id}", response_model=ReflectionResponse)
async def update_reflection(
    reflection_id: int,
    reflection: ReflectionUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return ReflectionService(db).update_reflection(user, reflection_id, reflection)


@router.delete("/{reflection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reflection(
    reflection_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    ReflectionService(db).delete_reflection(user, reflection_id)
