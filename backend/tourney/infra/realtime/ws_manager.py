"""Live push connection registry."""
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from tourney.domain.common.errors import ConnectionAlreadyBoundError

logger = logging.getLogger(__name__)


class PushConnection(Protocol):
    """Anything frames can be pushed to (a Starlette WebSocket in production)."""

    async def send_json(self, data: Any, mode: str = "text") -> None:
        ...


@dataclass
class _Entry:
    connection: PushConnection
    user_id: Optional[str] = None


class ConnectionRegistry:
    """Maps live connections to the user they authenticated as.

    Owned by one application instance (``app.state.registry``). Connections are
    keyed by identity because Starlette WebSockets are not hashable. All methods
    are synchronous, so interleaved lifecycle events on one event loop cannot
    observe a half-updated map.
    """

    def __init__(self):
        # id(connection) -> entry (unbound entries have user_id None)
        self._entries: dict[int, _Entry] = {}
        # user_id -> ids of that user's bound connections
        self._by_user: dict[str, set[int]] = {}

    def register(self, connection: PushConnection) -> None:
        """Track a newly opened connection as unbound."""
        self._entries.setdefault(id(connection), _Entry(connection))

    def bind(self, connection: PushConnection, user_id: str) -> None:
        """Associate a connection with a user.

        An unregistered connection is registered implicitly. Binding again to the
        same user is a no-op; binding to a different user is refused.
        """
        key = id(connection)
        entry = self._entries.get(key)
        if entry is None:
            entry = _Entry(connection)
            self._entries[key] = entry
        if entry.user_id is not None:
            if entry.user_id == user_id:
                return
            raise ConnectionAlreadyBoundError(entry.user_id, user_id)
        entry.user_id = user_id
        self._by_user.setdefault(user_id, set()).add(key)
        logger.info("[WEBSOCKET] Connection bound to user %s (%s live)", user_id, len(self._by_user[user_id]))

    def unregister(self, connection: PushConnection) -> None:
        """Forget a connection in any state. Unknown connections are ignored."""
        key = id(connection)
        entry = self._entries.pop(key, None)
        if entry is None or entry.user_id is None:
            return
        keys = self._by_user.get(entry.user_id)
        if keys is not None:
            keys.discard(key)
            if not keys:
                del self._by_user[entry.user_id]

    def user_of(self, connection: PushConnection) -> Optional[str]:
        entry = self._entries.get(id(connection))
        return entry.user_id if entry else None

    def connections_for(self, user_id: str) -> list[PushConnection]:
        """Every live bound connection of a user (several tabs/devices)."""
        return [self._entries[key].connection for key in self._by_user.get(user_id, ())]

    def all_bound_connections(self) -> list[tuple[PushConnection, str]]:
        return [(e.connection, e.user_id) for e in self._entries.values() if e.user_id is not None]

    def bound_user_ids(self) -> list[str]:
        return list(self._by_user)

    def __len__(self) -> int:
        return len(self._entries)
