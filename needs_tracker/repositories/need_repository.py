"""
Need repository - Data access layer for the need catalog and linked content.
Needs are always looked up by (need_key, category); need_key alone is not unique.
"""
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_

from needs_tracker.models import Need, LearningContent


class NeedRepository:
    """Repository for Need data access"""

    @staticmethod
    def get_by_id(db: Session, need_id: int) -> Optional[Need]:
        return db.query(Need).filter(Need.id == need_id).first()

    @staticmethod
    def get_active_by_id(db: Session, need_id: int) -> Optional[Need]:
        return db.query(Need).filter(
            and_(Need.id == need_id, Need.is_active == True)
        ).first()

    @staticmethod
    def find_active(db: Session, need_key: str, category: str) -> Optional[Need]:
        """Get the first active catalog entry matching the compound key"""
        return db.query(Need).filter(
            and_(
                Need.need_key == need_key,
                Need.category == category,
                Need.is_active == True
            )
        ).order_by(Need.need_order, Need.id).first()

    @staticmethod
    def get_active_by_category(db: Session, category: str) -> List[Need]:
        """Get active needs in a category in catalog order (duplicates included)"""
        return db.query(Need).filter(
            and_(Need.category == category, Need.is_active == True)
        ).order_by(Need.need_order, Need.id).all()

    @staticmethod
    def get_active_in_categories(db: Session, categories: List[str], offset: int, limit: int) -> List[Need]:
        """Get a page of active needs across categories in catalog order"""
        return db.query(Need).filter(
            and_(Need.category.in_(categories), Need.is_active == True)
        ).order_by(Need.need_order, Need.id).offset(offset).limit(limit).all()

    @staticmethod
    def count(db: Session) -> int:
        return db.query(Need).count()

    @staticmethod
    def create(db: Session, need: Need) -> Need:
        db.add(need)
        db.commit()
        db.refresh(need)
        return need


class LearningContentRepository:
    """Repository for LearningContent data access"""

    @staticmethod
    def get_active_for_need(db: Session, need_id: int) -> Optional[LearningContent]:
        return db.query(LearningContent).filter(
            and_(
                LearningContent.need_id == need_id,
                LearningContent.is_active == True
            )
        ).first()

    @staticmethod
    def create(db: Session, content: LearningContent) -> LearningContent:
        db.add(content)
        db.commit()
        db.refresh(content)
        return content
