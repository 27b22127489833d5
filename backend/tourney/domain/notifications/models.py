"""Notification domain models."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from tourney.domain.common.types import generate_id


class NotificationDraft(BaseModel):
    """Fields supplied by the trigger site; id, timestamp and read flag are assigned by the store."""

    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1)
    type: str = "personal"  # tournament, broadcast, personal, ...
    recipient_id: Optional[str] = Field(default=None, min_length=1)  # None means broadcast to all users
    related_id: Optional[str] = None  # e.g. tournament id; opaque here


class Notification(BaseModel):
    """Notification domain model."""

    id: str
    title: str
    message: str
    type: str
    recipient_id: Optional[str] = None
    related_id: Optional[str] = None
    is_read: bool = False  # only meaningful for personal notifications
    created_at: datetime

    @property
    def is_broadcast(self) -> bool:
        return self.recipient_id is None

    def is_owned_by(self, user_id: str) -> bool:
        return self.recipient_id is not None and self.recipient_id == user_id

    def is_visible_to(self, user_id: str) -> bool:
        return self.is_broadcast or self.recipient_id == user_id

    @classmethod
    def create(cls, draft: NotificationDraft, created_at: datetime) -> "Notification":
        """Create a new notification from a draft."""
        return cls(
            id=generate_id(),
            title=draft.title,
            message=draft.message,
            type=draft.type,
            recipient_id=draft.recipient_id,
            related_id=draft.related_id,
            is_read=False,
            created_at=created_at,
        )


class ReadMarker(BaseModel):
    """Per-user read record for a broadcast notification."""

    user_id: str
    notification_id: str
    read_at: datetime
