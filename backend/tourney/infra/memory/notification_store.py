"""In-memory notification store for tests and single-process development."""
from datetime import datetime
from typing import Optional

from tourney.domain.common.errors import AuthorizationError
from tourney.domain.common.types import Clock, utcnow
from tourney.domain.notifications.models import Notification, NotificationDraft, ReadMarker
from tourney.domain.notifications.services import NotificationStore


class InMemoryNotificationStore(NotificationStore):
    """Dict-backed store. Not shared across processes."""

    def __init__(self, clock: Clock = utcnow):
        self._clock = clock
        self._notifications: dict[str, Notification] = {}
        # (user_id, notification_id) -> marker
        self._read_markers: dict[tuple[str, str], ReadMarker] = {}

    @staticmethod
    def _newest_first(items) -> list[Notification]:
        return sorted(items, key=lambda n: n.created_at, reverse=True)

    def _drop_markers(self, notification_ids: set[str]) -> None:
        for key in [k for k in self._read_markers if k[1] in notification_ids]:
            del self._read_markers[key]

    async def create(self, draft: NotificationDraft) -> Notification:
        notification = Notification.create(draft, created_at=self._clock())
        self._notifications[notification.id] = notification
        return notification

    async def get_by_id(self, notification_id: str) -> Optional[Notification]:
        return self._notifications.get(notification_id)

    async def list_for_user(self, user_id: str) -> list[Notification]:
        return self._newest_first(n for n in self._notifications.values() if n.is_visible_to(user_id))

    async def list_broadcast(self) -> list[Notification]:
        return self._newest_first(n for n in self._notifications.values() if n.is_broadcast)

    async def read_broadcast_ids(self, user_id: str) -> set[str]:
        return {nid for (uid, nid) in self._read_markers if uid == user_id}

    def _add_marker(self, notification_id: str, user_id: str) -> bool:
        key = (user_id, notification_id)
        if key in self._read_markers:
            return False
        self._read_markers[key] = ReadMarker(
            user_id=user_id, notification_id=notification_id, read_at=self._clock()
        )
        return True

    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        notification = self._notifications.get(notification_id)
        if notification is None:
            return False
        if notification.is_broadcast:
            self._add_marker(notification_id, user_id)
            return True
        if not notification.is_owned_by(user_id):
            raise AuthorizationError("Notification belongs to another user")
        if not notification.is_read:
            self._notifications[notification_id] = notification.model_copy(update={"is_read": True})
        return True

    async def mark_all_read(self, user_id: str) -> int:
        changed = 0
        for notification in list(self._notifications.values()):
            if notification.is_broadcast:
                if self._add_marker(notification.id, user_id):
                    changed += 1
            elif notification.is_owned_by(user_id) and not notification.is_read:
                self._notifications[notification.id] = notification.model_copy(update={"is_read": True})
                changed += 1
        return changed

    async def delete_by_id(self, notification_id: str) -> bool:
        if self._notifications.pop(notification_id, None) is None:
            return False
        self._drop_markers({notification_id})
        return True

    async def delete_all_for_user(self, user_id: str) -> int:
        owned = {nid for nid, n in self._notifications.items() if n.is_owned_by(user_id)}
        for nid in owned:
            del self._notifications[nid]
        self._drop_markers(owned)
        return len(owned)

    async def delete_read_markers_for_user(self, user_id: str) -> int:
        keys = [k for k in self._read_markers if k[0] == user_id]
        for key in keys:
            del self._read_markers[key]
        return len(keys)

    async def delete_older_than(self, cutoff: datetime) -> int:
        expired = {nid for nid, n in self._notifications.items() if n.created_at < cutoff}
        for nid in expired:
            del self._notifications[nid]
        self._drop_markers(expired)
        return len(expired)

    def read_marker_count(self, user_id: Optional[str] = None) -> int:
        """Number of stored markers, optionally for one user."""
        if user_id is None:
            return len(self._read_markers)
        return sum(1 for (uid, _) in self._read_markers if uid == user_id)
