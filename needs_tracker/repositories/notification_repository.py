"""
Notification repository - Data access layer for device tokens and sent notifications.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_

from needs_tracker.models import DeviceToken, Notification


class DeviceTokenRepository:
    """Repository for DeviceToken data access"""

    @staticmethod
    def get_tokens(db: Session, user_id: str) -> List[str]:
        rows = db.query(DeviceToken.token).filter(
            DeviceToken.user_id == user_id
        ).order_by(DeviceToken.id).all()
        return [row[0] for row in rows]

    @staticmethod
    def upsert(db: Session, user_id: str, token: str, platform: Optional[str] = None) -> DeviceToken:
        """Attach a token to a user, moving it if another user had it"""
        device = db.query(DeviceToken).filter(DeviceToken.token == token).first()
        if device:
            device.user_id = user_id
            device.platform = platform or device.platform
        else:
            device = DeviceToken(user_id=user_id, token=token, platform=platform)
            db.add(device)
        db.commit()
        db.refresh(device)
        return device

    @staticmethod
    def delete_user_token(db: Session, user_id: str, token: str) -> int:
        deleted = db.query(DeviceToken).filter(
            and_(DeviceToken.user_id == user_id, DeviceToken.token == token)
        ).delete()
        db.commit()
        return deleted

    @staticmethod
    def delete_token(db: Session, token: str) -> int:
        deleted = db.query(DeviceToken).filter(DeviceToken.token == token).delete()
        db.commit()
        return deleted


class NotificationRepository:
    """Repository for Notification data access"""

    @staticmethod
    def get_for_user(db: Session, user_id: str, notification_id: int) -> Optional[Notification]:
        return db.query(Notification).filter(
            and_(Notification.id == notification_id, Notification.user_id == user_id)
        ).first()

    @staticmethod
    def get_all(db: Session, user_id: str, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        query = db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read == False)
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    @staticmethod
    def mark_all_read(db: Session, user_id: str, read_at: datetime) -> int:
        updated = db.query(Notification).filter(
            and_(Notification.user_id == user_id, Notification.is_read == False)
        ).update({Notification.is_read: True, Notification.read_at: read_at}, synchronize_session=False)
        db.commit()
        return updated

    @staticmethod
    def create(db: Session, notification: Notification) -> Notification:
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification

    @staticmethod
    def update(db: Session, notification: Notification) -> Notification:
        db.commit()
        db.refresh(notification)
        return notification
