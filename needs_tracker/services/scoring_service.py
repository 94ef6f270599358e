"""
Assessment scoring service.
Turns raw 1-7 ratings into category averages, need averages and an overall score,
and persists the result as an immutable snapshot.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime
from typing import Any, List, Optional
from sqlalchemy.orm import Session

from needs_tracker.models import AssessmentSnapshot, Need
from needs_tracker.schemas import AssessmentResponseItem
from needs_tracker.repositories.assessment_repository import AssessmentRepository
from needs_tracker.repositories.need_repository import NeedRepository
from needs_tracker.repositories.user_repository import UserRepository
from needs_tracker.services.subscription_service import ensure_categories_available
from needs_tracker.services.task_queue import TaskQueue
from needs_tracker.exceptions import ValidationException, UserNotFoundException
from needs_tracker.constants import SCORE_MIN, SCORE_MAX

logger = logging.getLogger("needs_tracker.scoring")


def round_score(value: float) -> float:
    """Round half-up to 2 decimal places"""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def parse_rating(value: Any) -> Optional[int]:
    """
    Parse a rating into an int within [1, 7].

    Integral numbers and numeric strings are accepted; booleans,
    fractions and anything out of range yield None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            return None
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    elif not isinstance(value, int):
        return None

    if SCORE_MIN <= value <= SCORE_MAX:
        return value
    return None


def mean(values: List[float]) -> float:
    return round_score(sum(values) / len(values))


class ScoringService:
    """Service for assessment submission and aggregation"""

    def __init__(self, db: Session):
        self.db = db
        self.assessment_repo = AssessmentRepository()
        self.need_repo = NeedRepository()
        self.user_repo = UserRepository()
        self.task_queue = TaskQueue(db)

    def submit_assessment(self, user_id: str, responses: List[AssessmentResponseItem]) -> AssessmentSnapshot:
        """
        Score a submission and store it as the user's newest snapshot.

        The snapshot and the user's completion flag are written in one
        transaction; any failure rolls both back.

        Raises:
            ValidationException: empty submission, unknown category, or nothing valid left
            PermissionDeniedException: a category is not unlocked by the user's tier
        """
        user = self.user_repo.get_by_id(self.db, user_id)
        if not user:
            raise UserNotFoundException(user_id)

        if not responses:
            raise ValidationException("Responses are required", field="responses")

        resolved = [(item, self._resolve_need(item)) for item in responses]

        # Gate every referenced category before anything is dropped
        categories = [
            need.category if need else item.category
            for item, need in resolved
            if (need.category if need else item.category)
        ]
        ensure_categories_available(categories, user.subscription_type)

        valid_responses = []
        for item, need in resolved:
            scored = self._score_response(item, need)
            if scored is not None:
                valid_responses.append(scored)

        if not valid_responses:
            raise ValidationException("No valid responses", field="responses")

        category_scores = self.aggregate_categories(valid_responses)
        need_scores = self.aggregate_needs(valid_responses)
        overall_score = self.overall(category_scores)

        completed_at = datetime.now()
        snapshot = AssessmentSnapshot(
            user_id=user_id,
            completed_at=completed_at,
            responses=valid_responses,
            category_scores=category_scores,
            need_scores=need_scores,
            overall_score=overall_score,
        )

        try:
            self.assessment_repo.add(self.db, snapshot)
            user.has_completed_assessment = True
            user.assessment_completed_at = completed_at
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(f"Failed to save assessment for user {user_id}", exc_info=True)
            raise

        self.db.refresh(snapshot)
        logger.info(
            f"Assessment {snapshot.id} saved for user {user_id}: "
            f"{len(valid_responses)}/{len(responses)} responses, overall {overall_score}"
        )

        try:
            self.task_queue.enqueue_recalculation(user_id)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to queue achievement recalculation for user {user_id}: {e}")

        return snapshot

    def _resolve_need(self, item: AssessmentResponseItem) -> Optional[Need]:
        """Resolve a response to an active catalog entry by id or compound key"""
        if item.question_id is not None:
            need = self.need_repo.get_active_by_id(self.db, item.question_id)
            if need:
                return need
        if item.need_key and item.category:
            return self.need_repo.find_active(self.db, item.need_key.strip(), item.category)
        return None

    @staticmethod
    def _score_response(item: AssessmentResponseItem, need: Optional[Need]) -> Optional[dict]:
        """Build the stored response, or None if it must be dropped"""
        if need is None:
            return None

        main_score = parse_rating(item.selected_option)
        if main_score is None:
            return None

        scored = {
            "need_id": need.id,
            "need_key": need.need_key,
            "need_label": need.need_label,
            "category": need.category,
            "main_score": main_score,
        }

        # Sub-scores are optional, but a present invalid one drops the whole response
        for field, key in (("quality_response", "quality_score"), ("volume_response", "volume_score")):
            raw = getattr(item, field)
            if raw is None:
                continue
            sub_score = parse_rating(raw)
            if sub_score is None:
                return None
            scored[key] = sub_score

        return scored

    @staticmethod
    def aggregate_categories(responses: List[dict]) -> dict:
        """Mean main score per category, in first-seen order"""
        buckets = {}
        for response in responses:
            buckets.setdefault(response["category"], []).append(response["main_score"])
        return {category: mean(scores) for category, scores in buckets.items()}

    @staticmethod
    def aggregate_needs(responses: List[dict]) -> dict:
        """Mean main score per need_key; label and category come from the first response"""
        buckets = {}
        for response in responses:
            entry = buckets.setdefault(response["need_key"], {
                "scores": [],
                "need_label": response["need_label"],
                "category": response["category"],
            })
            entry["scores"].append(response["main_score"])

        return {
            need_key: {
                "score": mean(entry["scores"]),
                "need_label": entry["need_label"],
                "category": entry["category"],
            }
            for need_key, entry in buckets.items()
        }

    @staticmethod
    def overall(category_scores: dict) -> float:
        """Average of category averages, not of raw responses"""
        if not category_scores:
            return 0.0
        return mean(list(category_scores.values()))
