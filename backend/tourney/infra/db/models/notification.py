"""Notification database models."""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, UniqueConstraint

from tourney.domain.common.types import utcnow
from tourney.domain.notifications.models import Notification as NotificationEntity
from tourney.domain.notifications.models import ReadMarker as ReadMarkerEntity
from tourney.infra.db.base import Base


class NotificationModel(Base):
    """Personal (recipient_id set) or broadcast (recipient_id NULL) notification."""

    __tablename__ = "notifications"

    id = Column(String, primary_key=True)
    recipient_id = Column(String, nullable=True)  # NULL = broadcast to all users
    type = Column(String, nullable=False)  # tournament, broadcast, personal, ...
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    related_id = Column(String, nullable=True)  # e.g. tournament id
    is_read = Column(Boolean, default=False, nullable=False)  # personal notifications only
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_notifications_recipient_created", "recipient_id", "created_at"),
        Index("ix_notifications_created_at", "created_at"),
    )

    def to_entity(self) -> NotificationEntity:
        """Convert to domain entity."""
        return NotificationEntity(
            id=self.id,
            title=self.title,
            message=self.message,
            type=self.type,
            recipient_id=self.recipient_id,
            related_id=self.related_id,
            is_read=bool(self.is_read),
            created_at=self.created_at,
        )

    @classmethod
    def from_entity(cls, entity: NotificationEntity) -> "NotificationModel":
        """Create from domain entity."""
        return cls(
            id=entity.id,
            recipient_id=entity.recipient_id,
            type=entity.type,
            title=entity.title,
            message=entity.message,
            related_id=entity.related_id,
            is_read=entity.is_read,
            created_at=entity.created_at,
        )


class NotificationReadModel(Base):
    """Which users have read which broadcast notifications."""

    __tablename__ = "notification_reads"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    notification_id = Column(
        String, ForeignKey("notifications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    read_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "notification_id", name="uq_notification_reads_user_notification"),
    )

    def to_entity(self) -> ReadMarkerEntity:
        return ReadMarkerEntity(
            user_id=self.user_id,
            notification_id=self.notification_id,
            read_at=self.read_at,
        )
