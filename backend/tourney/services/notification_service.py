"""
Central notification delivery: persist, then push fresh counts.

Call this from any trigger site (admin broadcast, tournament room-info update,
targeted alert) instead of writing to the store and pushing separately. Handles:
- DB notification (inbox, read/unread)
- WebSocket notification_update with each affected user's reconciled count
"""
import logging
from typing import Iterable, Optional

from tourney.domain.notifications.models import Notification, NotificationDraft
from tourney.domain.notifications.services import NotificationService
from tourney.services.push_dispatcher import PushDispatcher

logger = logging.getLogger(__name__)


class NotificationDeliveryService:
    """Notification operations that change counts, followed by the matching push."""

    def __init__(self, notifications: NotificationService, dispatcher: PushDispatcher):
        self.notifications = notifications
        self.dispatcher = dispatcher

    async def _push_after_change(self, notification: Notification) -> None:
        if notification.is_broadcast:
            await self.dispatcher.notify_broadcast()
        else:
            await self.dispatcher.notify_user(notification.recipient_id)

    async def deliver(self, draft: NotificationDraft) -> Notification:
        """Create one personal or broadcast notification and push counts to whoever it affects."""
        notification = await self.notifications.create(draft)
        logger.info(
            "Created %s notification %s (type=%s)",
            "broadcast" if notification.is_broadcast else f"personal[{notification.recipient_id}]",
            notification.id,
            notification.type,
        )
        await self._push_after_change(notification)
        return notification

    async def deliver_to_recipients(
        self,
        title: str,
        message: str,
        recipient_ids: Iterable[str],
        *,
        type: str = "personal",
        related_id: Optional[str] = None,
    ) -> list[Notification]:
        """One personal notification per recipient; each recipient gets their count pushed."""
        created = await self.notifications.create_for_recipients(
            title, message, recipient_ids, type=type, related_id=related_id
        )
        logger.info("Created %s %s notifications", len(created), type)
        await self.dispatcher.notify_users(n.recipient_id for n in created)
        return created

    async def mark_read(self, notification_id: str, user_id: str) -> Notification:
        """Mark read and sync the user's other tabs."""
        notification = await self.notifications.mark_read(notification_id, user_id)
        await self.dispatcher.notify_user(user_id)
        return notification

    async def mark_all_read(self, user_id: str) -> int:
        updated = await self.notifications.mark_all_read(user_id)
        await self.dispatcher.notify_user(user_id)
        return updated

    async def delete(self, notification_id: str) -> Notification:
        notification = await self.notifications.delete(notification_id)
        logger.info("Deleted notification %s", notification_id)
        await self._push_after_change(notification)
        return notification

    async def purge_user(self, user_id: str) -> tuple[int, int]:
        deleted, markers = await self.notifications.purge_user(user_id)
        await self.dispatcher.notify_user(user_id)
        return deleted, markers

    async def hide(self, user_id: str) -> int:
        return await self.dispatcher.hide_for_user(user_id)
