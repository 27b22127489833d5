"""Push unread-count updates to live connections.

Frames carry an absolute count, never a delta: two triggers racing may deliver
their frames in either order and the client keeps the last one it received.
"""
import asyncio
import logging
from typing import Iterable, Optional

from starlette.websockets import WebSocketDisconnect

from tourney.domain.notifications.services import ReadStateReconciler
from tourney.infra.realtime.ws_manager import ConnectionRegistry, PushConnection

logger = logging.getLogger(__name__)

NOTIFICATION_UPDATE = "notification_update"


def update_frame(count: int, is_hide_action: bool = False) -> dict:
    return {"type": NOTIFICATION_UPDATE, "count": count, "isHideAction": is_hide_action}


class PushDispatcher:
    """Computes per-recipient unread counts and pushes them over the registry."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        reconciler: ReadStateReconciler,
        count_timeout_seconds: Optional[float] = 5.0,
    ):
        self.registry = registry
        self.reconciler = reconciler
        self.count_timeout_seconds = count_timeout_seconds

    async def _count_for(self, user_id: str) -> Optional[int]:
        """Reconciled unread count, or None if the store failed or was too slow."""
        try:
            return await asyncio.wait_for(
                self.reconciler.unread_count(user_id), timeout=self.count_timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning("[PUSH] Unread count for user %s timed out; skipping push", user_id)
        except Exception as e:
            logger.warning("[PUSH] Unread count for user %s failed; skipping push: %s", user_id, e)
        return None

    async def _send(self, connection: PushConnection, frame: dict) -> bool:
        """Fire-and-forget send. A closed connection is dropped from the registry."""
        try:
            await connection.send_json(frame)
            return True
        except (WebSocketDisconnect, RuntimeError, ConnectionError) as e:
            logger.debug("[PUSH] Dropping frame for closed connection: %s", e)
            self.registry.unregister(connection)
            return False
        except Exception as e:
            # Other servers raise their own close errors (e.g. websockets ConnectionClosed)
            logger.debug("[PUSH] Dropping frame after send failure: %s: %s", type(e).__name__, e)
            self.registry.unregister(connection)
            return False

    async def _send_all(self, connections: Iterable[PushConnection], frame: dict) -> int:
        sent = 0
        for connection in list(connections):
            if await self._send(connection, frame):
                sent += 1
        return sent

    async def notify_user(self, user_id: str) -> int:
        """Push the user's current count to each of their connections. Returns frames sent."""
        connections = self.registry.connections_for(user_id)
        if not connections:
            return 0
        count = await self._count_for(user_id)
        if count is None:
            return 0
        return await self._send_all(connections, update_frame(count))

    async def notify_users(self, user_ids: Iterable[str]) -> int:
        sent = 0
        for user_id in dict.fromkeys(user_ids):
            sent += await self.notify_user(user_id)
        return sent

    async def notify_broadcast(self) -> int:
        """Push every bound user their own count (broadcast read state differs per user)."""
        counts: dict[str, Optional[int]] = {}
        sent = 0
        for connection, user_id in self.registry.all_bound_connections():
            if user_id not in counts:
                counts[user_id] = await self._count_for(user_id)
            count = counts[user_id]
            if count is None:
                continue
            if await self._send(connection, update_frame(count)):
                sent += 1
        logger.info("[PUSH] Broadcast update sent to %s connections (%s users)", sent, len(counts))
        return sent

    async def hide_for_user(self, user_id: str) -> int:
        """Client-local dismiss. Nothing persisted changes."""
        return await self._send_all(
            self.registry.connections_for(user_id), update_frame(0, is_hide_action=True)
        )

    async def authenticate(self, connection: PushConnection, user_id: str) -> bool:
        """Bind a connection and immediately push the user's current count to it.

        Raises ConnectionAlreadyBoundError if the connection belongs to another user.
        """
        self.registry.bind(connection, user_id)
        count = await self._count_for(user_id)
        if count is None:
            return False
        sent = await self._send(connection, update_frame(count))
        if sent:
            logger.info("[PUSH] Sent initial notification count %s to user %s", count, user_id)
        return sent
