"""
Tests for ReflectionService.
"""
import pytest
from datetime import datetime, timezone

from needs_tracker.models import QueuedTask, Reflection
from needs_tracker.schemas import ReflectionCreate, ReflectionUpdate
from needs_tracker.services.reflection_service import ReflectionService
from needs_tracker.exceptions import ValidationException, ReflectionNotFoundException
from needs_tracker.constants import TASK_RECALCULATE_ACHIEVEMENTS


class TestCreateReflection:
    def test_create_queues_recalculation(self, db_session, free_user):
        reflection = ReflectionService(db_session).create_reflection(
            free_user, ReflectionCreate(mood="happy", note="  good day  ")
        )

        assert reflection.mood == "happy"
        assert reflection.note == "good day"
        assert reflection.date is not None
        assert [t.task_type for t in db_session.query(QueuedTask).all()] == [TASK_RECALCULATE_ACHIEVEMENTS]

    def test_invalid_mood(self, db_session, free_user):
        with pytest.raises(ValidationException):
            ReflectionService(db_session).create_reflection(free_user, ReflectionCreate(mood="ecstatic"))

    def test_unknown_need(self, db_session, catalog, free_user):
        with pytest.raises(ValidationException):
            ReflectionService(db_session).create_reflection(free_user, ReflectionCreate(mood="sad", need_id=9999))

    def test_linked_need(self, db_session, find_need, free_user):
        sleep = find_need("sleep", "Survival")

        reflection = ReflectionService(db_session).create_reflection(
            free_user, ReflectionCreate(mood="stressed", need_id=sleep.id)
        )

        assert reflection.need_id == sleep.id

    def test_aware_date_stored_as_local_naive(self, db_session, free_user):
        aware = datetime(2026, 3, 18, 12, 0, tzinfo=timezone.utc)

        reflection = ReflectionService(db_session).create_reflection(
            free_user, ReflectionCreate(mood="neutral", date=aware)
        )

        assert reflection.date == aware.astimezone().replace(tzinfo=None)


class TestListUpdateDelete:
    def test_list_in_range_newest_first(self, db_session, free_user):
        service = ReflectionService(db_session)
        for day in (1, 5, 10):
            service.create_reflection(free_user, ReflectionCreate(mood="happy", date=datetime(2026, 3, day, 8)))

        result = service.list_reflections(free_user, start=datetime(2026, 3, 2), end=datetime(2026, 3, 31))

        assert [r.date.day for r in result] == [10, 5]

    def test_update(self, db_session, free_user):
        service = ReflectionService(db_session)
        reflection = service.create_reflection(free_user, ReflectionCreate(mood="sad"))

        updated = service.update_reflection(free_user, reflection.id, ReflectionUpdate(mood="happy", note="better"))

        assert (updated.mood, updated.note) == ("happy", "better")

    def test_update_rejects_invalid_mood(self, db_session, free_user):
        service = ReflectionService(db_session)
        reflection = service.create_reflection(free_user, ReflectionCreate(mood="sad"))

        with pytest.raises(ValidationException):
            service.update_reflection(free_user, reflection.id, ReflectionUpdate(mood="meh"))

    def test_foreign_reflection(self, db_session, free_user, premium_user):
        service = ReflectionService(db_session)
        reflection = service.create_reflection(free_user, ReflectionCreate(mood="sad"))

        with pytest.raises(ReflectionNotFoundException):
            service.delete_reflection(premium_user, reflection.id)

    def test_delete(self, db_session, free_user):
        service = ReflectionService(db_session)
        reflection = service.create_reflection(free_user, ReflectionCreate(mood="sad"))

        service.delete_reflection(free_user, reflection.id)

        assert db_session.query(Reflection).count() == 0
