"""
Assessment and need catalog HTTP routes.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import List, Optional

from needs_tracker.auth import get_current_user, verify_api_key
from needs_tracker.database import get_db
from needs_tracker.models import User
from needs_tracker.schemas import AssessmentSubmit, AssessmentResult, NeedSummary, QuestionResponse
from needs_tracker.services.need_catalog_service import NeedCatalogService
from needs_tracker.services.report_service import ReportService
from needs_tracker.services.scoring_service import ScoringService
from needs_tracker.services.task_queue import drain_task_queue
from needs_tracker.constants import QUESTIONS_DEFAULT_LIMIT, QUESTIONS_MAX_LIMIT

router = APIRouter(tags=["assessment"])


@router.post("/api/assessment/submit", response_model=AssessmentResult)
async def submit_assessment(
    submission: AssessmentSubmit,
    request: Request,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Score and store a completed assessment"""
    snapshot = ScoringService(db).submit_assessment(user.id, submission.responses)
    background_tasks.add_task(drain_task_queue, request.app.state.database, request.app.state.push_transport)
    return {
        "assessment_id": snapshot.id,
        "category_scores": snapshot.category_scores,
        "need_scores": snapshot.need_scores,
        "overall_score": snapshot.overall_score,
        "completed_at": snapshot.completed_at,
    }


@router.get("/api/assessment/latest")
async def get_latest_assessment(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Report for the most recent assessment"""
    return ReportService(db).get_latest_report(user.id)


@router.get("/api/assessment/needs-report")
async def get_needs_report(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Weakest needs with learning content and recommendations"""
    return ReportService(db).get_need_report(user.id)


@router.get("/api/needs/{category}", response_model=List[NeedSummary], dependencies=[Depends(verify_api_key)])
async def get_needs_by_category(category: str, db: Session = Depends(get_db)):
    """Needs of a category in catalog order"""
    return NeedCatalogService(db).get_needs_by_category(category)


@router.get("/api/questions", response_model=List[QuestionResponse])
async def get_questions(
    categories: Optional[str] = Query(None, description="Comma-separated categories"),
    limit: int = Query(QUESTIONS_DEFAULT_LIMIT, ge=1, le=QUESTIONS_MAX_LIMIT),
    page: int = Query(1, ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Questionnaire for the caller's unlocked categories"""
    selected = [c.strip() for c in categories.split(",") if c.strip()] if categories else None
    return NeedCatalogService(db).get_questions(user.subscription_type, selected, limit, page)
