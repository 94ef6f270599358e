"""
Need catalog service.
Read access to the admin-curated need catalog plus catalog seeding.
"""
import json
import logging
from pathlib import Path
from typing import List, Optional
from sqlalchemy.orm import Session

from needs_tracker.models import Need, LearningContent
from needs_tracker.repositories.need_repository import NeedRepository
from needs_tracker.services.subscription_service import (
    available_categories, ensure_categories_available, validate_category_name
)
from needs_tracker.exceptions import NotFoundException
from needs_tracker.constants import (
    DEFAULT_QUALITY_SCALE,
    DEFAULT_VOLUME_SCALE,
    QUESTIONS_DEFAULT_LIMIT,
)

logger = logging.getLogger("needs_tracker.catalog")

CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "needs_catalog.json"


class NeedCatalogService:
    """Service for need catalog lookups"""

    def __init__(self, db: Session):
        self.db = db
        self.need_repo = NeedRepository()

    def get_needs_by_category(self, category: str) -> List[dict]:
        """
        Get de-duplicated needs for a category.

        Duplicate need_keys collapse to the first entry in catalog order.
        Result is sorted by need_order, then label.

        Raises:
            ValidationException: category is not one of the fixed values
        """
        validate_category_name(category)

        unique = {}
        for need in self.need_repo.get_active_by_category(self.db, category):
            if need.need_key and need.need_key not in unique:
                unique[need.need_key] = {
                    "need_key": need.need_key,
                    "need_label": need.need_label,
                    "need_order": need.need_order or 0,
                    "category": need.category,
                    "question_id": need.id,
                }

        return sorted(
            unique.values(),
            key=lambda n: (n["need_order"], n["need_label"] or "")
        )

    def get_questions(
        self,
        subscription_type: str,
        categories: Optional[List[str]] = None,
        limit: int = QUESTIONS_DEFAULT_LIMIT,
        page: int = 1
    ) -> List[Need]:
        """
        Get the questionnaire for the requested categories.

        Without categories every category of the tier is used. Each entry
        carries the main statement and both sub-question scales.

        Raises:
            ValidationException: unknown category name
            PermissionDeniedException: a category is locked by the subscription
            NotFoundException: nothing active in the requested categories
        """
        if categories:
            ensure_categories_available(categories, subscription_type)
        else:
            categories = available_categories(subscription_type)

        questions = self.need_repo.get_active_in_categories(
            self.db, list(categories), (page - 1) * limit, limit
        )
        if not questions:
            raise NotFoundException("No questions found")
        return questions

    def find_need(self, need_key: str, category: str) -> Optional[Need]:
        """Resolve a need by its compound key"""
        if not need_key:
            return None
        return self.need_repo.find_active(self.db, need_key.strip(), category)


def load_catalog_entries(path: Path = CATALOG_PATH) -> List[dict]:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def seed_catalog(db: Session, entries: Optional[List[dict]] = None) -> int:
    """
    Insert catalog entries that are not present yet.

    Existing (need_key, category) pairs are left untouched.

    Returns:
        Number of needs inserted
    """
    if entries is None:
        entries = load_catalog_entries()

    inserted = 0
    for entry in entries:
        exists = db.query(Need).filter(
            Need.need_key == entry["need_key"],
            Need.category == entry["category"]
        ).first()
        if exists:
            continue

        db.add(Need(
            need_key=entry["need_key"],
            need_label=entry["need_label"],
            category=entry["category"],
            need_order=entry.get("need_order", 0),
            statement=entry.get("statement"),
            quality_prompt=entry.get("quality_prompt"),
            quality_scale=entry.get("quality_scale") or list(DEFAULT_QUALITY_SCALE),
            volume_prompt=entry.get("volume_prompt"),
            volume_scale=entry.get("volume_scale") or list(DEFAULT_VOLUME_SCALE),
            is_active=True,
        ))
        inserted += 1

    db.commit()
    logger.info(f"Seeded {inserted} needs ({len(entries) - inserted} already present)")
    return inserted


def learning_template(need_label: str) -> dict:
    """Default learning piece for a need"""
    return {
        "title": f"{need_label}: Why it matters and how to improve",
        "content": (
            f"This learning piece explains the importance of {need_label} for self-actualization, "
            f"with simple steps to improve.\n\n"
            f"Quick actions:\n"
            f"- Understand what good {need_label.lower()} looks like\n"
            f"- Identify one small change to try this week\n"
            f"- Track how it impacts your energy and wellbeing"
        ),
        "learning_type": "general",
        "read_time_minutes": 4,
    }


def seed_learning_content(db: Session) -> int:
    """
    Create one learning item for every active need that has none.

    Returns:
        Number of learning items inserted
    """
    covered = {row[0] for row in db.query(LearningContent.need_id).all()}
    needs = db.query(Need).filter(Need.is_active == True).order_by(Need.need_order, Need.id).all()

    inserted = 0
    for need in needs:
        if need.id in covered:
            continue
        db.add(LearningContent(need_id=need.id, is_active=True, **learning_template(need.need_label)))
        inserted += 1

    db.commit()
    logger.info(f"Seeded {inserted} learning items ({len(needs) - inserted} needs already covered)")
    return inserted
