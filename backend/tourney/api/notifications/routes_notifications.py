"""Notification API routes for the current user."""
from typing import List, Optional

from fastapi import APIRouter, Depends

from tourney.api.deps import (
    CurrentUser,
    get_current_user,
    get_delivery_service,
    get_notification_service,
    get_settings,
)
from tourney.api.notifications.schemas import NotificationResponse, UnreadCountResponse
from tourney.domain.notifications.services import NotificationService
from tourney.services.notification_service import NotificationDeliveryService
from tourney.settings import Settings

router = APIRouter()


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    limit: Optional[int] = None,
    type: Optional[str] = None,
    current_user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
    settings: Settings = Depends(get_settings),
):
    """Personal and broadcast notifications for the current user, newest first."""
    if limit is None or limit < 1 or limit > 100:
        limit = settings.notification_list_limit
    views = await service.list_for_user(current_user.id, limit=limit, type=type)
    return [NotificationResponse.from_view(n) for n in views]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Return unread notification count for the current user."""
    return UnreadCountResponse(count=await service.unread_count(current_user.id))


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    delivery: NotificationDeliveryService = Depends(get_delivery_service),
):
    """Mark a notification as read (own personal notification or any broadcast)."""
    view = await delivery.mark_read(notification_id, current_user.id)
    return NotificationResponse.from_view(view)


@router.post("/read-all")
async def mark_all_notifications_read(
    current_user: CurrentUser = Depends(get_current_user),
    delivery: NotificationDeliveryService = Depends(get_delivery_service),
):
    """Mark all notifications as read for the current user."""
    count = await delivery.mark_all_read(current_user.id)
    return {"ok": True, "updated": count}


@router.post("/hide")
async def hide_notifications(
    current_user: CurrentUser = Depends(get_current_user),
    delivery: NotificationDeliveryService = Depends(get_delivery_service),
):
    """Hide the badge on the user's open sessions. Nothing is deleted or marked read."""
    await delivery.hide(current_user.id)
    return {"ok": True, "message": "Notifications hidden for current session"}
