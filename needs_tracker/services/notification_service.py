"""
Push notification service.
Sends notifications to every device token of a user through the push gateway
and keeps a log of what was delivered.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional
import httpx
from sqlalchemy.orm import Session

from needs_tracker.models import Notification, DeviceToken, User
from needs_tracker.repositories.notification_repository import (
    DeviceTokenRepository, NotificationRepository
)
from needs_tracker.repositories.user_repository import UserRepository
from needs_tracker.exceptions import NotificationNotFoundException
from needs_tracker.constants import (
    PUSH_GATEWAY_URL,
    PUSH_GATEWAY_TOKEN,
    PUSH_GATEWAY_TIMEOUT_SECONDS,
    NOTIFICATION_GENERAL,
)

logger = logging.getLogger("needs_tracker.notifications")

# Gateway error codes meaning the token will never work again
INVALID_TOKEN_CODES = {
    "invalid-registration-token",
    "registration-token-not-registered",
}


class PushTransport:
    """HTTP client for the push gateway"""

    def __init__(
        self,
        url: str = PUSH_GATEWAY_URL,
        token: str = PUSH_GATEWAY_TOKEN,
        timeout: float = PUSH_GATEWAY_TIMEOUT_SECONDS
    ):
        self.url = url
        self.token = token
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.url)

    def send(self, device_token: str, title: str, body: str, data: Optional[Dict] = None) -> dict:
        """
        Send one notification to one device.

        Returns:
            {"success": True, "message_id": ...} or
            {"success": False, "error": ..., "invalid_token": bool}
        """
        if not self.configured:
            return {"success": False, "error": "push gateway not configured", "invalid_token": False}

        payload = {
            "token": device_token,
            "notification": {"title": title, "body": body},
            # Gateway data payloads only carry strings
            "data": {key: str(value) for key, value in (data or {}).items()},
        }
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = httpx.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        except httpx.RequestError as e:
            logger.error(f"Request error while sending push notification: {e}")
            return {"success": False, "error": str(e), "invalid_token": False}

        if response.is_success:
            body_json = self._json(response)
            return {"success": True, "message_id": body_json.get("message_id") or body_json.get("name")}

        error = self._json(response)
        code = str(error.get("code", "")).split("/")[-1]
        logger.error(f"Push gateway error: {response.status_code} - {error.get('error') or response.text}")
        return {
            "success": False,
            "error": error.get("error") or f"HTTP {response.status_code}",
            "invalid_token": code in INVALID_TOKEN_CODES,
        }

    @staticmethod
    def _json(response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}


class NotificationService:
    """Service for device tokens, push delivery and the notification log"""

    def __init__(self, db: Session, transport: Optional[PushTransport] = None):
        self.db = db
        self.transport = transport or PushTransport()
        self.token_repo = DeviceTokenRepository()
        self.notification_repo = NotificationRepository()
        self.user_repo = UserRepository()

    def register_token(self, user_id: str, token: str, platform: Optional[str] = None) -> DeviceToken:
        return self.token_repo.upsert(self.db, user_id, token.strip(), platform)

    def remove_token(self, user_id: str, token: str) -> int:
        """Detach a device token from the user, e.g. on logout"""
        removed = self.token_repo.delete_user_token(self.db, user_id, token.strip())
        if removed:
            logger.info(f"Removed device token for user {user_id}")
        return removed

    def get_settings(self, user: User) -> dict:
        return {
            "goal_reminders_enabled": bool(user.goal_reminders_enabled),
            "assessment_reminders_enabled": bool(user.assessment_reminders_enabled),
            "has_device_token": bool(self.token_repo.get_tokens(self.db, user.id)),
        }

    def update_settings(self, user: User, settings: dict) -> dict:
        """Apply the reminder preferences present in settings; None leaves one unchanged"""
        for field in ("goal_reminders_enabled", "assessment_reminders_enabled"):
            if settings.get(field) is not None:
                setattr(user, field, settings[field])
        self.user_repo.update(self.db, user)
        return self.get_settings(user)

    def send_to_user(self, user_id: str, title: str, body: str, data: Optional[Dict] = None) -> dict:
        """
        Send a notification to all of a user's devices.

        Goal notifications are skipped when the user disabled goal reminders,
        assessment notifications when they disabled assessment reminders.

        Returns:
            {"success", "results", "success_count", "total_count"} or
            {"success": False, "error": ...} when nothing was attempted
        """
        data = data or {}
        user = self.user_repo.get_by_id(self.db, user_id)
        if not user:
            return {"success": False, "error": "User not found"}

        notification_type = data.get("type", NOTIFICATION_GENERAL)
        if "goal" in notification_type and not user.goal_reminders_enabled:
            return {"success": False, "error": "User disabled goal reminders", "skipped": True}
        if "assessment" in notification_type and not user.assessment_reminders_enabled:
            return {"success": False, "error": "User disabled assessment reminders", "skipped": True}

        tokens = self.token_repo.get_tokens(self.db, user_id)
        if not tokens:
            return {"success": False, "error": "No device token found for user", "skipped": True}

        results = []
        for token in tokens:
            result = self.transport.send(token, title, body, data)
            if result.get("invalid_token"):
                self.token_repo.delete_token(self.db, token)
                logger.info(f"Removed invalid device token for user {user_id}")
            results.append(result)

        success_count = len([r for r in results if r["success"]])

        if success_count > 0:
            first_success = next((r for r in results if r["success"] and r.get("message_id")), None)
            self.notification_repo.create(self.db, Notification(
                user_id=user_id,
                title=title,
                body=body,
                type=notification_type,
                data=data,
                message_id=first_success["message_id"] if first_success else None,
            ))

        return {
            "success": success_count > 0,
            "results": results,
            "success_count": success_count,
            "total_count": len(tokens),
        }

    def list_notifications(self, user_id: str, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        return self.notification_repo.get_all(self.db, user_id, unread_only, limit)

    def mark_as_read(self, user_id: str, notification_id: int) -> Notification:
        notification = self.notification_repo.get_for_user(self.db, user_id, notification_id)
        if not notification:
            raise NotificationNotFoundException(notification_id)

        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now()
            notification = self.notification_repo.update(self.db, notification)
        return notification

    def mark_all_as_read(self, user_id: str) -> int:
        updated = self.notification_repo.mark_all_read(self.db, user_id, datetime.now())
        logger.info(f"Marked {updated} notifications as read for user {user_id}")
        return updated
