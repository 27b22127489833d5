"""Admin notification routes: create, delete, account cleanup."""
import logging

from fastapi import APIRouter, Depends, status

from tourney.api.deps import CurrentUser, get_delivery_service, require_admin
from tourney.api.notifications.schemas import (
    NotificationCreateRequest,
    NotificationCreateResponse,
    NotificationResponse,
    PurgeResponse,
    RoomNotificationRequest,
)
from tourney.domain.notifications.models import NotificationDraft
from tourney.services.notification_service import NotificationDeliveryService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/notifications", response_model=NotificationCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(
    request: NotificationCreateRequest,
    admin: CurrentUser = Depends(require_admin),
    delivery: NotificationDeliveryService = Depends(get_delivery_service),
):
    """Broadcast to all users, send to one user, or send to several users."""
    if request.recipient_ids:
        created = await delivery.deliver_to_recipients(
            request.title,
            request.message,
            request.recipient_ids,
            type=request.type or "personal",
            related_id=request.related_id,
        )
    else:
        draft = NotificationDraft(
            title=request.title,
            message=request.message,
            type=request.type or ("broadcast" if request.recipient_id is None else "personal"),
            recipient_id=request.recipient_id,
            related_id=request.related_id,
        )
        created = [await delivery.deliver(draft)]
    logger.info("Admin %s created %s notification(s)", admin.id, len(created))
    return NotificationCreateResponse(
        notifications_created=len(created),
        notifications=[NotificationResponse.from_view(n) for n in created],
    )


@router.post(
    "/tournaments/{tournament_id}/room-notification",
    response_model=NotificationCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_room_notification(
    tournament_id: str,
    request: RoomNotificationRequest,
    admin: CurrentUser = Depends(require_admin),
    delivery: NotificationDeliveryService = Depends(get_delivery_service),
):
    """Notify every registered user that a tournament's room info changed."""
    created = await delivery.deliver_to_recipients(
        request.title,
        request.message,
        request.recipient_ids,
        type="tournament",
        related_id=tournament_id,
    )
    logger.info("Admin %s sent room info for tournament %s to %s users", admin.id, tournament_id, len(created))
    return NotificationCreateResponse(
        notifications_created=len(created),
        notifications=[NotificationResponse.from_view(n) for n in created],
    )


@router.delete("/notifications/{notification_id}")
async def delete_notification(
    notification_id: str,
    admin: CurrentUser = Depends(require_admin),
    delivery: NotificationDeliveryService = Depends(get_delivery_service),
):
    """Delete a notification by id."""
    await delivery.delete(notification_id)
    return {"ok": True}


@router.delete("/users/{user_id}/notifications", response_model=PurgeResponse)
async def purge_user_notifications(
    user_id: str,
    admin: CurrentUser = Depends(require_admin),
    delivery: NotificationDeliveryService = Depends(get_delivery_service),
):
    """Account cleanup: the user's personal notifications and broadcast read markers.

    Broadcast notifications stay. Best effort: store failures report zero.
    """
    deleted, markers = await delivery.purge_user(user_id)
    logger.info("Admin %s purged notifications for user %s", admin.id, user_id)
    return PurgeResponse(deleted=deleted, read_markers_deleted=markers)
