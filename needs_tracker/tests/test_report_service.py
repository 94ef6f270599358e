"""
Tests for ReportService and the need matching strategies.
"""
import pytest
from datetime import datetime

from needs_tracker.models import AssessmentSnapshot, LearningContent
from needs_tracker.repositories.need_repository import LearningContentRepository
from needs_tracker.services.report_service import (
    ReportService, SubstringNeedMatcher, ExactKeyNeedMatcher, slugify
)
from needs_tracker.exceptions import AssessmentNotFoundException
from needs_tracker.constants import PERFORMANCE_BANDS, PYRAMID_NEEDS


def add_snapshot(db, user_id, need_scores, category_scores=None, completed_at=None):
    snapshot = AssessmentSnapshot(
        user_id=user_id,
        completed_at=completed_at or datetime(2026, 3, 18, 9, 0),
        responses=[],
        category_scores=category_scores or {},
        need_scores=need_scores,
        overall_score=0.0,
    )
    db.add(snapshot)
    db.commit()
    db.refresh(snapshot)
    return snapshot


class TestSubstringNeedMatcher:
    """Tests for the default bidirectional substring matcher"""

    def test_need_label_contains_pyramid_head(self):
        matcher = SubstringNeedMatcher({
            "connection": {"score": 4, "need_label": "Social connection with friends", "category": "Social"},
        })

        ref = matcher.resolve_need("Social connection: Friends / companions")

        assert ref.need_key == "connection"
        assert ref.score == 4

    def test_pyramid_label_contains_need_label(self):
        matcher = SubstringNeedMatcher({"sleep": {"score": 2, "need_label": "Sleep", "category": "Survival"}})

        assert matcher.resolve_need("Sleep").need_key == "sleep"

    def test_case_insensitive(self):
        matcher = SubstringNeedMatcher({"food": {"score": 3, "need_label": "FOOD", "category": "Survival"}})

        assert matcher.resolve_need("Food").need_key == "food"

    def test_first_match_in_snapshot_order_wins(self):
        matcher = SubstringNeedMatcher({
            "love-a": {"score": 1, "need_label": "Love", "category": "Social"},
            "love-b": {"score": 7, "need_label": "Love", "category": "Social"},
        })

        assert matcher.resolve_need("Love / Affection").need_key == "love-a"

    def test_missing_label_falls_back_to_key(self):
        matcher = SubstringNeedMatcher({"money": {"score": 5}})

        assert matcher.resolve_need("Money").need_key == "money"

    def test_no_match(self):
        matcher = SubstringNeedMatcher({"sleep": {"score": 2, "need_label": "Sleep"}})

        assert matcher.resolve_need("Exercise") is None


class TestExactKeyNeedMatcher:
    def test_matches_slugified_label(self):
        matcher = ExactKeyNeedMatcher({"weight-management": {"score": 3, "need_label": "Weight"}})

        assert matcher.resolve_need("Weight Management").need_key == "weight-management"

    def test_does_not_match_substrings(self):
        matcher = ExactKeyNeedMatcher({"sleep": {"score": 3, "need_label": "Sleep"}})

        assert matcher.resolve_need("Sleep quality") is None

    def test_slugify(self):
        assert slugify("Sense of Order / Structure") == "sense-of-order-structure"


class TestLatestReport:
    """Tests for get_latest_report"""

    def test_no_snapshot_raises(self, db_session, free_user):
        with pytest.raises(AssessmentNotFoundException):
            ReportService(db_session).get_latest_report(free_user.id)

    def test_most_recent_snapshot_wins(self, db_session, catalog, free_user):
        add_snapshot(db_session, free_user.id, {}, {"Survival": 2.0}, datetime(2026, 3, 1))
        latest = add_snapshot(db_session, free_user.id, {}, {"Survival": 6.0}, datetime(2026, 3, 10))

        report = ReportService(db_session).get_latest_report(free_user.id)

        assert report["assessment_id"] == latest.id
        assert report["category_scores"] == {"Survival": 6.0}

    def test_lowest_categories_are_two_smallest(self, db_session, catalog, coach_user):
        add_snapshot(db_session, coach_user.id, {}, {
            "Survival": 5.0, "Safety": 2.0, "Social": 3.0, "Self": 2.0, "Meta-Needs": 6.0,
        })

        report = ReportService(db_session).get_latest_report(coach_user.id)

        # Ties keep stored order
        assert report["lowest_categories"] == ["Safety", "Self"]

    def test_static_chart_meta(self, db_session, catalog, free_user):
        add_snapshot(db_session, free_user.id, {})

        report = ReportService(db_session).get_latest_report(free_user.id)

        assert len(report["chart_meta"]["performance_bands"]) == 8
        assert report["chart_meta"]["performance_bands"] == PERFORMANCE_BANDS
        assert set(report["chart_meta"]["category_descriptions"]) == set(PYRAMID_NEEDS)

    def test_pyramid_scores_and_question_ids(self, db_session, find_need, free_user):
        add_snapshot(db_session, free_user.id, {
            "sleep": {"score": 2.5, "need_label": "Sleep", "category": "Survival"},
            "exercise": {"score": 6.0, "need_label": "Exercise", "category": "Survival"},
        })

        pyramid = ReportService(db_session).get_latest_report(free_user.id)["pyramid_structure"]
        survival = {entry["label"]: entry for entry in pyramid["need_scores"]["Survival"]}

        assert survival["Sleep"]["score"] == 2.5
        assert survival["Sleep"]["question_id"] == find_need("sleep", "Survival").id
        assert survival["Exercise"]["score"] == 6.0
        assert survival["Money"] == {"label": "Money", "need_key": None, "score": 0, "question_id": None}
        assert pyramid["category_order"] == ["Meta-Needs", "Self", "Social", "Safety", "Survival"]

    def test_matcher_is_injectable(self, db_session, catalog, free_user):
        add_snapshot(db_session, free_user.id, {
            "sleep": {"score": 2.5, "need_label": "Sleep", "category": "Survival"},
        })

        class NeverMatcher(SubstringNeedMatcher):
            def resolve_need(self, label):
                return None

        pyramid = ReportService(db_session, matcher_class=NeverMatcher).get_latest_report(free_user.id)["pyramid_structure"]

        assert all(entry["score"] == 0 for entry in pyramid["need_scores"]["Survival"])


class TestNeedReport:
    """Tests for get_need_report"""

    def test_lowest_needs_and_primary(self, db_session, catalog, free_user):
        add_snapshot(db_session, free_user.id, {
            "sleep": {"score": 5.0, "need_label": "Sleep", "category": "Survival"},
            "nutrition": {"score": 2.0, "need_label": "Nutrition", "category": "Survival"},
            "exercise": {"score": 3.0, "need_label": "Exercise", "category": "Survival"},
            "stability": {"score": 1.0, "need_label": "Stability", "category": "Safety"},
        })

        report = ReportService(db_session).get_need_report(free_user.id)

        assert [n["need_key"] for n in report["need_scores"]] == ["stability", "nutrition", "exercise", "sleep"]
        assert [n["need_key"] for n in report["lowest_needs"]] == ["stability", "nutrition", "exercise"]
        assert report["primary_need"]["need_key"] == "stability"

    def test_three_recommendations_for_primary_need(self, db_session, catalog, free_user):
        add_snapshot(db_session, free_user.id, {
            "stability": {"score": 1.0, "need_label": "Stability", "category": "Safety"},
        })

        recommendations = ReportService(db_session).get_need_report(free_user.id)["recommendations"]

        assert [r["type"] for r in recommendations] == ["learn", "goal", "coach"]
        assert recommendations[0]["message"] == "Explore Learn & Grow content for Stability"
        assert recommendations[1]["message"] == "Set a goal to improve Stability"
        assert recommendations[2]["message"] == "Ask your coach about Stability"

    def test_no_need_data_means_no_recommendations(self, db_session, catalog, free_user):
        add_snapshot(db_session, free_user.id, {})

        report = ReportService(db_session).get_need_report(free_user.id)

        assert report["lowest_needs"] == []
        assert report["primary_need"] is None
        assert report["recommendations"] == []

    def test_learning_content_or_explicit_none(self, db_session, find_need, free_user):
        sleep = find_need("sleep", "Survival")
        LearningContentRepository.create(db_session, LearningContent(
            need_id=sleep.id, title="Better sleep", content="...", learning_type="health"
        ))
        add_snapshot(db_session, free_user.id, {
            "sleep": {"score": 2.0, "need_label": "Sleep", "category": "Survival"},
            "nutrition": {"score": 3.0, "need_label": "Nutrition", "category": "Survival"},
        })

        learning = ReportService(db_session).get_need_report(free_user.id)["learning_by_need"]

        assert learning["sleep"]["title"] == "Better sleep"
        assert "nutrition" in learning
        assert learning["nutrition"] is None

    def test_inactive_content_is_ignored(self, db_session, find_need, free_user):
        sleep = find_need("sleep", "Survival")
        LearningContentRepository.create(db_session, LearningContent(
            need_id=sleep.id, title="Old", content="...", is_active=False
        ))
        add_snapshot(db_session, free_user.id, {
            "sleep": {"score": 2.0, "need_label": "Sleep", "category": "Survival"},
        })

        assert ReportService(db_session).get_need_report(free_user.id)["learning_by_need"] == {"sleep": None}
