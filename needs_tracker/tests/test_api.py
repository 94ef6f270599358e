"""
HTTP surface tests through FastAPI's TestClient.
"""
import pytest
from fastapi.testclient import TestClient

from needs_tracker.main import create_app
from needs_tracker.models import Achievement
from needs_tracker.constants import API_KEY


@pytest.fixture
def client(database, catalog, fake_transport):
    app = create_app(database=database, push_transport=fake_transport, scheduler_enabled=False)
    return TestClient(app)


def headers(user_id="api-user", tier="Free"):
    return {"X-API-Key": API_KEY, "X-User-Id": user_id, "X-Subscription-Tier": tier}


def submit(client, responses, **kwargs):
    return client.post("/api/assessment/submit", json={"responses": responses}, headers=headers(**kwargs))


class TestAuth:
    def test_health_needs_no_auth(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "active"

    def test_missing_api_key(self, client):
        response = client.get("/api/goals", headers={"X-User-Id": "u1"})

        assert response.status_code == 401

    def test_missing_user_id(self, client):
        response = client.get("/api/goals", headers={"X-API-Key": API_KEY})

        assert response.status_code == 401

    def test_tier_header_updates_subscription(self, client):
        client.get("/api/subscription", headers=headers(tier="Free"))

        response = client.get("/api/subscription", headers=headers(tier="Coach"))

        assert response.json()["subscription_type"] == "Coach"
        assert len(response.json()["available_categories"]) == 5


class TestNeedsEndpoint:
    def test_needs_by_category(self, client):
        response = client.get("/api/needs/Safety", headers=headers())

        assert response.status_code == 200
        assert response.json()[0]["need_key"] == "physical-safety"

    def test_invalid_category(self, client):
        response = client.get("/api/needs/Spiritual", headers=headers())

        assert response.status_code == 400
        assert response.json()["field"] == "category"


class TestQuestionsEndpoint:
    def test_free_tier_questionnaire(self, client):
        response = client.get("/api/questions", headers=headers())

        assert response.status_code == 200
        body = response.json()
        assert {q["category"] for q in body} == {"Survival", "Safety"}
        assert len(body[0]["quality_scale"]) == 7
        assert body[0]["volume_prompt"]

    def test_selected_categories(self, client):
        response = client.get("/api/questions?categories=Social, Self", headers=headers(tier="Premium"))

        assert response.status_code == 200
        assert {q["category"] for q in response.json()} == {"Social", "Self"}

    def test_locked_category(self, client):
        response = client.get("/api/questions?categories=Meta-Needs", headers=headers())

        assert response.status_code == 403

    def test_unknown_category(self, client):
        response = client.get("/api/questions?categories=Spiritual", headers=headers(tier="Coach"))

        assert response.status_code == 400

    def test_page_past_the_end(self, client):
        response = client.get("/api/questions?limit=200&page=2", headers=headers())

        assert response.status_code == 404


class TestAssessmentEndpoints:
    def test_submit_and_read_reports(self, client):
        response = submit(client, [
            {"need_key": "sleep", "category": "Survival", "selected_option": 6},
            {"need_key": "nutrition", "category": "Survival", "selected_option": 4},
            {"need_key": "stability", "category": "Safety", "selected_option": 2},
            {"need_key": "physical-safety", "category": "Safety", "selected_option": 2},
        ])

        assert response.status_code == 200
        body = response.json()
        assert body["category_scores"] == {"Survival": 5.0, "Safety": 2.0}
        assert body["overall_score"] == 3.5

        latest = client.get("/api/assessment/latest", headers=headers()).json()
        assert latest["assessment_id"] == body["assessment_id"]
        assert latest["lowest_categories"] == ["Safety", "Survival"]

        report = client.get("/api/assessment/needs-report", headers=headers()).json()
        assert report["primary_need"]["score"] == 2.0
        assert len(report["recommendations"]) == 3

    def test_submit_drains_recalculation(self, client, db_session):
        submit(client, [{"need_key": "sleep", "category": "Survival", "selected_option": 5}])

        achievement = db_session.query(Achievement).filter(Achievement.user_id == "api-user").one()
        assert achievement.assessments_completed == 1

    def test_locked_category_forbidden(self, client):
        response = submit(client, [{"need_key": "belonging", "category": "Social", "selected_option": 5}])

        assert response.status_code == 403

    def test_no_valid_responses(self, client):
        response = submit(client, [{"need_key": "sleep", "category": "Survival", "selected_option": "seven"}])

        assert response.status_code == 400

    def test_latest_without_assessment(self, client):
        response = client.get("/api/assessment/latest", headers=headers())

        assert response.status_code == 404


class TestGoalEndpoints:
    def test_goal_lifecycle(self, client, fake_transport):
        client.post("/api/notifications/tokens", json={"token": "device-1", "platform": "ios"}, headers=headers())

        created = client.post("/api/goals", json={
            "category": "Survival", "need_key": "sleep", "current_level": 2, "target_level": 5
        }, headers=headers())
        assert created.status_code == 201
        goal_id = created.json()["id"]
        assert created.json()["title"] == "Sleep"

        completed = client.put(f"/api/goals/{goal_id}", json={"is_completed": True}, headers=headers())
        assert completed.status_code == 200
        assert completed.json()["completed_at"] is not None

        # Background drain delivered the notification
        assert [s["title"] for s in fake_transport.sent] == ["Goal Completed! 🎉"]
        achievements = client.get("/api/achievements", headers=headers()).json()
        assert achievements["goals_completed"] == 1

        assert client.get("/api/goals?status=completed", headers=headers()).json()[0]["id"] == goal_id
        assert client.delete(f"/api/goals/{goal_id}", headers=headers()).status_code == 204
        assert client.get(f"/api/goals/{goal_id}", headers=headers()).status_code == 404

    def test_target_below_current_rejected(self, client):
        response = client.post("/api/goals", json={
            "category": "Survival", "need_key": "sleep", "current_level": 6, "target_level": 2
        }, headers=headers())

        assert response.status_code == 400

    def test_out_of_range_level_rejected(self, client):
        response = client.post("/api/goals", json={
            "category": "Survival", "need_key": "sleep", "current_level": 0, "target_level": 2
        }, headers=headers())

        assert response.status_code == 422

    def test_goal_of_other_user_not_found(self, client):
        created = client.post("/api/goals", json={
            "category": "Survival", "title": "Walk", "current_level": 2, "target_level": 5
        }, headers=headers()).json()

        response = client.get(f"/api/goals/{created['id']}", headers=headers(user_id="someone-else"))

        assert response.status_code == 404


class TestOtherEndpoints:
    def test_reflection_and_streak(self, client):
        created = client.post("/api/reflections", json={"mood": "happy", "note": "ok"}, headers=headers())
        assert created.status_code == 201

        streak = client.get("/api/achievements/streak", headers=headers()).json()
        assert streak["focus_streak"] == 1

        assert len(client.get("/api/reflections", headers=headers()).json()) == 1

    def test_invalid_mood(self, client):
        response = client.post("/api/reflections", json={"mood": "meh"}, headers=headers())

        assert response.status_code == 400

    def test_leaderboard(self, client):
        client.post("/api/reflections", json={"mood": "happy"}, headers=headers(user_id="a"))
        client.post("/api/reflections", json={"mood": "happy"}, headers=headers(user_id="b"))
        client.post("/api/reflections", json={"mood": "sad"}, headers=headers(user_id="b"))

        board = client.get("/api/achievements/leaderboard?limit=5", headers=headers()).json()

        assert [entry["user_id"] for entry in board] == ["b", "a"]

    def test_notifications_list_and_read(self, client):
        client.post("/api/notifications/tokens", json={"token": "device-1"}, headers=headers())
        goal = client.post("/api/goals", json={
            "category": "Safety", "title": "Budget", "current_level": 2, "target_level": 5
        }, headers=headers()).json()
        client.put(f"/api/goals/{goal['id']}", json={"is_completed": True}, headers=headers())

        notifications = client.get("/api/notifications", headers=headers()).json()
        assert len(notifications) == 1

        read = client.post(f"/api/notifications/{notifications[0]['id']}/read", headers=headers())
        assert read.json()["is_read"] is True
        assert client.get("/api/notifications?unread_only=true", headers=headers()).json() == []


class TestNotificationEndpoints:
    def test_settings_round_trip(self, client):
        assert client.get("/api/notifications/settings", headers=headers()).json() == {
            "goal_reminders_enabled": True,
            "assessment_reminders_enabled": True,
            "has_device_token": False,
        }

        response = client.patch(
            "/api/notifications/settings", json={"assessment_reminders_enabled": False}, headers=headers()
        )

        assert response.status_code == 200
        assert response.json()["assessment_reminders_enabled"] is False
        assert response.json()["goal_reminders_enabled"] is True

    def test_settings_require_booleans(self, client):
        response = client.patch(
            "/api/notifications/settings", json={"goal_reminders_enabled": "no"}, headers=headers()
        )

        assert response.status_code == 422

    def test_remove_token(self, client):
        client.post("/api/notifications/tokens", json={"token": "device-1"}, headers=headers())

        response = client.request("DELETE", "/api/notifications/tokens", json={"token": "device-1"}, headers=headers())

        assert response.json() == {"removed": 1}
        assert client.get("/api/notifications/settings", headers=headers()).json()["has_device_token"] is False

    def test_read_all(self, client):
        client.post("/api/notifications/tokens", json={"token": "device-1"}, headers=headers())
        for title in ("Budget", "Savings"):
            goal = client.post("/api/goals", json={
                "category": "Safety", "title": title, "current_level": 2, "target_level": 5
            }, headers=headers()).json()
            client.put(f"/api/goals/{goal['id']}", json={"is_completed": True}, headers=headers())

        response = client.post("/api/notifications/read-all", headers=headers())

        assert response.json() == {"updated_count": 2}
        assert client.get("/api/notifications?unread_only=true", headers=headers()).json() == []
