"""
Assessment reporting service.
Builds the latest-assessment report and the weakest-needs report from the
newest snapshot. Reports are read-only views; nothing here writes.
"""
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional
from sqlalchemy.orm import Session

from needs_tracker.models import AssessmentSnapshot
from needs_tracker.repositories.assessment_repository import AssessmentRepository
from needs_tracker.repositories.need_repository import NeedRepository, LearningContentRepository
from needs_tracker.exceptions import AssessmentNotFoundException
from needs_tracker.constants import (
    LOWEST_CATEGORIES_COUNT,
    LOWEST_NEEDS_COUNT,
    PERFORMANCE_BANDS,
    CATEGORY_DESCRIPTIONS,
    PYRAMID_NEEDS,
    NEED_REPORT_PROMPT,
)


@dataclass
class NeedRef:
    """A snapshot need a pyramid label was matched to"""
    need_key: str
    need_label: str
    category: Optional[str]
    score: float


class NeedMatcher(ABC):
    """Strategy for matching fixed pyramid labels to snapshot need scores"""

    def __init__(self, need_scores: dict):
        # Insertion order of need_scores is the match priority
        self.need_scores = need_scores or {}

    def refs(self) -> List[NeedRef]:
        return [
            NeedRef(
                need_key=key,
                need_label=data.get("need_label") or key,
                category=data.get("category"),
                score=data.get("score", 0),
            )
            for key, data in self.need_scores.items()
        ]

    @abstractmethod
    def resolve_need(self, label: str) -> Optional[NeedRef]:
        """Return the need the pyramid label refers to, or None"""


class SubstringNeedMatcher(NeedMatcher):
    """
    Case-insensitive, bidirectional substring match.

    A need matches when its label contains the pyramid label's text before
    any ':' or when the pyramid label contains the need's label.
    The first match in snapshot order wins.
    """

    def resolve_need(self, label: str) -> Optional[NeedRef]:
        pyramid_label = label.lower()
        head = pyramid_label.split(":")[0].strip()
        for ref in self.refs():
            score_label = ref.need_label.lower()
            if head in score_label or score_label in pyramid_label:
                return ref
        return None


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


class ExactKeyNeedMatcher(NeedMatcher):
    """Match when the slugified pyramid label equals the need key"""

    def resolve_need(self, label: str) -> Optional[NeedRef]:
        wanted = slugify(label)
        for ref in self.refs():
            if ref.need_key == wanted:
                return ref
        return None


class ReportService:
    """Service for assessment reports"""

    def __init__(self, db: Session, matcher_class: type = SubstringNeedMatcher):
        self.db = db
        self.matcher_class = matcher_class
        self.assessment_repo = AssessmentRepository()
        self.need_repo = NeedRepository()
        self.content_repo = LearningContentRepository()

    def _get_latest_snapshot(self, user_id: str) -> AssessmentSnapshot:
        snapshot = self.assessment_repo.get_latest(self.db, user_id)
        if not snapshot:
            raise AssessmentNotFoundException(user_id)
        return snapshot

    def get_latest_report(self, user_id: str) -> dict:
        """
        Full report of the newest snapshot.

        Raises:
            AssessmentNotFoundException: user has no snapshot
        """
        snapshot = self._get_latest_snapshot(user_id)
        category_scores = snapshot.category_scores or {}
        need_scores = snapshot.need_scores or {}

        # sorted() is stable, so ties keep their stored order
        lowest_categories = [
            category for category, _ in sorted(category_scores.items(), key=lambda item: item[1])
        ][:LOWEST_CATEGORIES_COUNT]

        return {
            "assessment_id": snapshot.id,
            "category_scores": category_scores,
            "need_scores": need_scores,
            "overall_score": snapshot.overall_score,
            "lowest_categories": lowest_categories,
            "completed_at": snapshot.completed_at,
            "chart_meta": {
                "performance_bands": PERFORMANCE_BANDS,
                "category_descriptions": CATEGORY_DESCRIPTIONS,
            },
            "responses": snapshot.responses or [],
            "pyramid_structure": self.build_pyramid(need_scores),
        }

    def build_pyramid(self, need_scores: dict) -> dict:
        """Attach scores and question ids to the fixed pyramid labels"""
        matcher = self.matcher_class(need_scores)
        pyramid_scores = {}

        for category, labels in PYRAMID_NEEDS.items():
            entries = []
            for label in labels:
                ref = matcher.resolve_need(label)
                question_id = None
                if ref:
                    need = self.need_repo.find_active(self.db, ref.need_key, ref.category or category)
                    question_id = need.id if need else None
                entries.append({
                    "label": label,
                    "need_key": ref.need_key if ref else None,
                    "score": ref.score if ref else 0,
                    "question_id": question_id,
                })
            pyramid_scores[category] = entries

        return {
            "needs": PYRAMID_NEEDS,
            "need_scores": pyramid_scores,
            "category_order": list(PYRAMID_NEEDS.keys()),
        }

    def get_need_report(self, user_id: str) -> dict:
        """
        Weakest-needs report with linked learning content and recommendations.

        Raises:
            AssessmentNotFoundException: user has no snapshot
        """
        snapshot = self._get_latest_snapshot(user_id)

        need_list = []
        for need_key, data in (snapshot.need_scores or {}).items():
            category = data.get("category")
            need = self.need_repo.find_active(self.db, need_key, category) if category else None
            need_list.append({
                "need_key": need_key,
                "need_label": data.get("need_label") or need_key,
                "category": category,
                "score": data.get("score", 0),
                "question_id": need.id if need else None,
            })

        need_list.sort(key=lambda n: n["score"])
        lowest_needs = need_list[:LOWEST_NEEDS_COUNT]
        primary_need = lowest_needs[0] if lowest_needs else None

        learning_by_need = {}
        for need in lowest_needs:
            content = None
            if need["question_id"] is not None:
                content = self.content_repo.get_active_for_need(self.db, need["question_id"])
            learning_by_need[need["need_key"]] = self._serialize_content(content) if content else None

        return {
            "need_scores": need_list,
            "lowest_needs": lowest_needs,
            "primary_need": primary_need,
            "learning_by_need": learning_by_need,
            "recommendations": self.build_recommendations(primary_need),
            "suggested_prompt": NEED_REPORT_PROMPT,
            "completed_at": snapshot.completed_at,
        }

    @staticmethod
    def build_recommendations(primary_need: Optional[dict]) -> List[dict]:
        if not primary_need:
            return []
        label = primary_need["need_label"]
        return [
            {"type": "learn", "need_key": primary_need["need_key"], "message": f"Explore Learn & Grow content for {label}"},
            {"type": "goal", "need_key": primary_need["need_key"], "message": f"Set a goal to improve {label}"},
            {"type": "coach", "need_key": primary_need["need_key"], "message": f"Ask your coach about {label}"},
        ]

    @staticmethod
    def _serialize_content(content) -> dict:
        return {
            "id": content.id,
            "title": content.title,
            "content": content.content,
            "learning_type": content.learning_type,
            "thumbnail_url": content.thumbnail_url,
            "read_time_minutes": content.read_time_minutes,
        }
