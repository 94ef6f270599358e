"""
Subscription and notification HTTP routes.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from needs_tracker.auth import get_current_user
from needs_tracker.database import get_db
from needs_tracker.models import User
from needs_tracker.schemas import (
    SubscriptionResponse,
    DeviceTokenRegister, DeviceTokenResponse, DeviceTokenRemove,
    NotificationSettingsUpdate, NotificationSettingsResponse,
    NotificationResponse
)
from needs_tracker.services.notification_service import NotificationService
from needs_tracker.services.subscription_service import get_subscription_info

router = APIRouter(prefix="/api", tags=["account"])


@router.get("/subscription", response_model=SubscriptionResponse)
async def get_subscription(user: User = Depends(get_current_user)):
    """Tier, unlocked categories and price"""
    return get_subscription_info(user.subscription_type)


@router.post("/notifications/tokens", response_model=DeviceTokenResponse, status_code=status.HTTP_201_CREATED)
async def register_device_token(
    device: DeviceTokenRegister,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return NotificationService(db).register_token(user.id, device.token, device.platform)


@router.delete("/notifications/tokens")
async def remove_device_token(
    device: DeviceTokenRemove,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Detach a device token, on logout or uninstall"""
    return {"removed": NotificationService(db).remove_token(user.id, device.token)}


@router.get("/notifications/settings", response_model=NotificationSettingsResponse)
async def get_notification_settings(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return NotificationService(db).get_settings(user)


@router.patch("/notifications/settings", response_model=NotificationSettingsResponse)
async def update_notification_settings(
    settings: NotificationSettingsUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Turn goal or assessment reminders on or off"""
    return NotificationService(db).update_settings(user, settings.model_dump(exclude_unset=True))


@router.get("/notifications", response_model=List[NotificationResponse])
async def get_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return NotificationService(db).list_notifications(user.id, unread_only, limit)


@router.post("/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return NotificationService(db).mark_as_read(user.id, notification_id)


@router.post("/notifications/read-all")
async def mark_all_notifications_read(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return {"updated_count": NotificationService(db).mark_all_as_read(user.id)}
