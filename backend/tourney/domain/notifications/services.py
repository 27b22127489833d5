"""Notification domain services.

Two channels share one table: personal notifications (``recipient_id`` set) carry
their own ``is_read`` flag, broadcast notifications (``recipient_id`` is None) are
read per user through ReadMarkers. The stored ``is_read`` of a broadcast is never
used for anything; every list or count shown to a user goes through
``ReadStateReconciler``.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional, Protocol

from tourney.domain.common.errors import (
    AuthorizationError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from tourney.domain.notifications.models import Notification, NotificationDraft

logger = logging.getLogger(__name__)


class NotificationStore(Protocol):
    """Notification store protocol."""

    async def create(self, draft: NotificationDraft) -> Notification:
        """Persist a notification; assigns id, created_at and is_read=False."""
        ...

    async def get_by_id(self, notification_id: str) -> Optional[Notification]:
        """Get notification by ID."""
        ...

    async def list_for_user(self, user_id: str) -> list[Notification]:
        """Raw personal + broadcast notifications for a user, newest first."""
        ...

    async def list_broadcast(self) -> list[Notification]:
        """Broadcast notifications, newest first."""
        ...

    async def read_broadcast_ids(self, user_id: str) -> set[str]:
        """IDs of broadcast notifications the user has a ReadMarker for."""
        ...

    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        """Mark one notification read for user. False if it does not exist."""
        ...

    async def mark_all_read(self, user_id: str) -> int:
        """Mark every visible notification read for user. Returns count changed."""
        ...

    async def delete_by_id(self, notification_id: str) -> bool:
        """Delete a notification. True if a row was removed."""
        ...

    async def delete_all_for_user(self, user_id: str) -> int:
        """Delete the user's personal notifications only."""
        ...

    async def delete_read_markers_for_user(self, user_id: str) -> int:
        """Delete the user's broadcast ReadMarkers."""
        ...

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete every notification created before cutoff, regardless of read state."""
        ...


class ReadStateReconciler:
    """Builds each user's effective read/unread view."""

    def __init__(self, store: NotificationStore):
        self.store = store

    @staticmethod
    def view_of(notification: Notification, user_id: str, read_ids: set[str]) -> Notification:
        """Per-user view of one notification. Never mutates the stored record."""
        if notification.is_broadcast:
            return notification.model_copy(update={"is_read": notification.id in read_ids})
        return notification

    @classmethod
    def apply(
        cls, notifications: Iterable[Notification], user_id: str, read_ids: set[str]
    ) -> list[Notification]:
        return [cls.view_of(n, user_id, read_ids) for n in notifications]

    async def reconcile(self, user_id: str) -> list[Notification]:
        """Reconciled notification list for a user, newest first."""
        raw = await self.store.list_for_user(user_id)
        read_ids = await self.store.read_broadcast_ids(user_id)
        return self.apply(raw, user_id, read_ids)

    async def unread_count(self, user_id: str) -> int:
        """Unread count from the reconciled view."""
        view = await self.reconcile(user_id)
        return sum(1 for n in view if not n.is_read)


class NotificationService:
    """Notification service: ownership rules and creation fan-out on top of the store."""

    def __init__(self, store: NotificationStore, reconciler: Optional[ReadStateReconciler] = None):
        self.store = store
        self.reconciler = reconciler or ReadStateReconciler(store)

    async def get_notification(self, notification_id: str) -> Notification:
        """Get notification by ID."""
        notification = await self.store.get_by_id(notification_id)
        if notification is None:
            raise NotFoundError("Notification", notification_id)
        return notification

    async def list_for_user(
        self, user_id: str, limit: Optional[int] = None, type: Optional[str] = None
    ) -> list[Notification]:
        """Reconciled list, newest first. Optional filter by type."""
        view = await self.reconciler.reconcile(user_id)
        if type is not None:
            view = [n for n in view if n.type == type]
        if limit is not None:
            view = view[:limit]
        return view

    async def unread_count(self, user_id: str) -> int:
        return await self.reconciler.unread_count(user_id)

    async def mark_read(self, notification_id: str, user_id: str) -> Notification:
        """Mark one notification read for the user and return their view of it.

        Re-marking an already read notification succeeds silently.
        """
        notification = await self.get_notification(notification_id)
        if not notification.is_visible_to(user_id):
            raise AuthorizationError("Cannot mark another user's notification as read")
        found = await self.store.mark_read(notification_id, user_id)
        if not found:
            # Deleted between lookup and update
            raise NotFoundError("Notification", notification_id)
        return notification.model_copy(update={"is_read": True})

    async def mark_all_read(self, user_id: str) -> int:
        return await self.store.mark_all_read(user_id)

    async def create(self, draft: NotificationDraft) -> Notification:
        """Create a personal or broadcast notification."""
        return await self.store.create(draft)

    async def create_for_recipients(
        self,
        title: str,
        message: str,
        recipient_ids: Iterable[str],
        type: str = "personal",
        related_id: Optional[str] = None,
    ) -> list[Notification]:
        """One personal notification per distinct recipient, in the given order."""
        seen: set[str] = set()
        unique_ids = []
        for rid in recipient_ids:
            if rid and rid not in seen:
                seen.add(rid)
                unique_ids.append(rid)
        if not unique_ids:
            raise ValidationError("At least one recipient is required")
        created = []
        for rid in unique_ids:
            draft = NotificationDraft(
                title=title,
                message=message,
                type=type,
                recipient_id=rid,
                related_id=related_id,
            )
            created.append(await self.store.create(draft))
        return created

    async def delete(self, notification_id: str) -> Notification:
        """Delete by id and return the removed record (callers use it to push fresh counts)."""
        notification = await self.get_notification(notification_id)
        if not await self.store.delete_by_id(notification_id):
            raise NotFoundError("Notification", notification_id)
        return notification

    async def purge_user(self, user_id: str) -> tuple[int, int]:
        """Account cleanup: personal notifications, then the user's ReadMarkers.

        Best effort. Store failures are logged and reported as zero; broadcast
        notifications are never touched.
        """
        try:
            deleted = await self.store.delete_all_for_user(user_id)
        except StoreUnavailableError as e:
            logger.warning("Purge of personal notifications failed for user %s: %s", user_id, e)
            deleted = 0
        try:
            markers = await self.store.delete_read_markers_for_user(user_id)
        except StoreUnavailableError as e:
            logger.warning("Purge of read markers failed for user %s: %s", user_id, e)
            markers = 0
        logger.info(
            "Purged notifications for user %s: %s personal, %s read markers", user_id, deleted, markers
        )
        return deleted, markers
