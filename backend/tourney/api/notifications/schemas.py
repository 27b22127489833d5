"""Notification request/response contracts.

``NotificationResponse.from_view`` is the only place the public shape of a
notification is defined; routes never hand domain or ORM objects to the client.
"""
from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, Field

from tourney.domain.notifications.models import Notification

UserId = Annotated[str, Field(min_length=1)]


class NotificationResponse(BaseModel):
    """Notification as seen by one user (broadcast read state already reconciled)."""

    id: str
    type: str
    title: str
    message: str
    recipient_id: Optional[str] = None
    related_id: Optional[str] = None
    is_broadcast: bool
    is_read: bool
    created_at: datetime
    timestamp: int  # ms since epoch for client compatibility

    @classmethod
    def from_view(cls, notification: Notification) -> "NotificationResponse":
        return cls(
            id=notification.id,
            type=notification.type,
            title=notification.title,
            message=notification.message,
            recipient_id=notification.recipient_id,
            related_id=notification.related_id,
            is_broadcast=notification.is_broadcast,
            is_read=notification.is_read,
            created_at=notification.created_at,
            timestamp=int((notification.created_at - datetime(1970, 1, 1)).total_seconds() * 1000),
        )


class UnreadCountResponse(BaseModel):
    count: int


class NotificationCreateRequest(BaseModel):
    """Create a broadcast (no recipient), a personal notification, or one per recipient."""

    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1)
    type: Optional[str] = None
    recipient_id: Optional[str] = Field(default=None, min_length=1)  # omit for a broadcast
    recipient_ids: list[UserId] = Field(default_factory=list)
    related_id: Optional[str] = None


class NotificationCreateResponse(BaseModel):
    success: bool = True
    notifications_created: int
    notifications: list[NotificationResponse]


class RoomNotificationRequest(BaseModel):
    """Tournament room info changed; the registration layer supplies the registered user ids."""

    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1)
    recipient_ids: list[UserId] = Field(min_length=1)


class PurgeResponse(BaseModel):
    deleted: int
    read_markers_deleted: int
