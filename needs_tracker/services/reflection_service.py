"""
Reflection journal service.
"""
import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from needs_tracker.models import Reflection, User
from needs_tracker.schemas import ReflectionCreate, ReflectionUpdate
from needs_tracker.repositories.reflection_repository import ReflectionRepository
from needs_tracker.repositories.need_repository import NeedRepository
from needs_tracker.services.date_service import DateService
from needs_tracker.services.task_queue import TaskQueue
from needs_tracker.exceptions import ValidationException, ReflectionNotFoundException
from needs_tracker.constants import VALID_MOODS, REFLECTION_NOTE_MAX_LENGTH

logger = logging.getLogger("needs_tracker.reflections")


class ReflectionService:
    """Service for mood reflections"""

    def __init__(self, db: Session):
        self.db = db
        self.reflection_repo = ReflectionRepository()
        self.need_repo = NeedRepository()
        self.task_queue = TaskQueue(db)

    def _validate(self, mood: Optional[str], note: Optional[str], need_id: Optional[int]) -> None:
        if mood is not None and mood not in VALID_MOODS:
            raise ValidationException(f"Invalid mood. Allowed: {', '.join(VALID_MOODS)}", field="mood")
        if note and len(note) > REFLECTION_NOTE_MAX_LENGTH:
            raise ValidationException(
                f"Note must be at most {REFLECTION_NOTE_MAX_LENGTH} characters", field="note"
            )
        if need_id is not None and not self.need_repo.get_by_id(self.db, need_id):
            raise ValidationException(f"Need {need_id} not found", field="need_id")

    def _queue_recalculation(self, user_id: str) -> None:
        try:
            self.task_queue.enqueue_recalculation(user_id)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to queue achievement recalculation for user {user_id}: {e}")

    def list_reflections(
        self,
        user: User,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[Reflection]:
        return self.reflection_repo.get_all(self.db, user.id, start, end)

    def create_reflection(self, user: User, data: ReflectionCreate) -> Reflection:
        """Create a reflection and queue an achievement recalculation"""
        if not data.mood:
            raise ValidationException("Mood is required", field="mood")
        self._validate(data.mood, data.note, data.need_id)

        reflection = self.reflection_repo.create(self.db, Reflection(
            user_id=user.id,
            mood=data.mood,
            note=data.note.strip() if data.note else None,
            date=DateService.to_local_datetime(data.date) or datetime.now(),
            need_id=data.need_id,
        ))
        logger.info(f"Created reflection {reflection.id} for user {user.id}")
        self._queue_recalculation(user.id)
        return reflection

    def update_reflection(self, user: User, reflection_id: int, data: ReflectionUpdate) -> Reflection:
        reflection = self.reflection_repo.get_for_user(self.db, user.id, reflection_id)
        if not reflection:
            raise ReflectionNotFoundException(reflection_id)

        update_data = data.model_dump(exclude_unset=True)
        self._validate(update_data.get("mood"), update_data.get("note"), update_data.get("need_id"))

        for field, value in update_data.items():
            if field in ("mood", "date") and value is None:
                continue
            if field == "date":
                value = DateService.to_local_datetime(value)
            setattr(reflection, field, value)

        return self.reflection_repo.update(self.db, reflection)

    def delete_reflection(self, user: User, reflection_id: int) -> None:
        reflection = self.reflection_repo.get_for_user(self.db, user.id, reflection_id)
        if not reflection:
            raise ReflectionNotFoundException(reflection_id)
        self.reflection_repo.delete(self.db, reflection)
        self._queue_recalculation(user.id)
