"""Notification repository (SQLAlchemy async)."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tourney.domain.common.errors import AuthorizationError, StoreUnavailableError
from tourney.domain.common.types import Clock, generate_id, utcnow
from tourney.domain.notifications.models import Notification, NotificationDraft
from tourney.domain.notifications.services import NotificationStore
from tourney.infra.db.models.notification import NotificationModel, NotificationReadModel

logger = logging.getLogger(__name__)


class NotificationRepositoryImpl(NotificationStore):
    """Notification store backed by the relational database.

    Holds a session factory rather than a session: the store is created once at
    startup and every operation runs in its own short transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: Clock = utcnow):
        self._session_factory = session_factory
        self._clock = clock

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError) as e:
            logger.error("[STORE] %s failed: %s", operation, e)
            raise StoreUnavailableError(operation, e) from e

    async def create(self, draft: NotificationDraft) -> Notification:
        """Create a notification."""
        entity = Notification.create(draft, created_at=self._clock())
        async with self._session("create") as session:
            model = NotificationModel.from_entity(entity)
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return model.to_entity()

    async def get_by_id(self, notification_id: str) -> Optional[Notification]:
        """Get notification by ID."""
        async with self._session("get_by_id") as session:
            model = await session.get(NotificationModel, notification_id)
            return model.to_entity() if model else None

    async def list_for_user(self, user_id: str) -> list[Notification]:
        """Personal + broadcast notifications for a user, newest first."""
        async with self._session("list_for_user") as session:
            result = await session.execute(
                select(NotificationModel)
                .where(
                    or_(
                        NotificationModel.recipient_id == user_id,
                        NotificationModel.recipient_id.is_(None),
                    )
                )
                .order_by(NotificationModel.created_at.desc())
            )
            return [m.to_entity() for m in result.scalars().all()]

    async def list_broadcast(self) -> list[Notification]:
        """Broadcast notifications, newest first."""
        async with self._session("list_broadcast") as session:
            result = await session.execute(
                select(NotificationModel)
                .where(NotificationModel.recipient_id.is_(None))
                .order_by(NotificationModel.created_at.desc())
            )
            return [m.to_entity() for m in result.scalars().all()]

    async def read_broadcast_ids(self, user_id: str) -> set[str]:
        """Broadcast notification ids the user has read."""
        async with self._session("read_broadcast_ids") as session:
            result = await session.execute(
                select(NotificationReadModel.notification_id).where(
                    NotificationReadModel.user_id == user_id
                )
            )
            return set(result.scalars().all())

    async def _insert_read_marker(self, session: AsyncSession, notification_id: str, user_id: str) -> bool:
        """Insert a ReadMarker unless one exists. Returns True if a row was added."""
        existing = await session.execute(
            select(NotificationReadModel.id).where(
                NotificationReadModel.user_id == user_id,
                NotificationReadModel.notification_id == notification_id,
            )
        )
        if existing.first() is not None:
            return False
        session.add(
            NotificationReadModel(
                id=generate_id(),
                user_id=user_id,
                notification_id=notification_id,
                read_at=self._clock(),
            )
        )
        try:
            await session.commit()
        except IntegrityError:
            # Concurrent insert of the same (user, notification) pair won the race
            await session.rollback()
            return False
        return True

    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        """Mark a notification as read. Returns False if it does not exist."""
        async with self._session("mark_read") as session:
            model = await session.get(NotificationModel, notification_id)
            if model is None:
                return False
            if model.recipient_id is None:
                await self._insert_read_marker(session, notification_id, user_id)
                return True
            if model.recipient_id != user_id:
                raise AuthorizationError("Notification belongs to another user")
            if not model.is_read:
                await session.execute(
                    update(NotificationModel)
                    .where(NotificationModel.id == notification_id)
                    .values(is_read=True)
                )
                await session.commit()
            return True

    async def mark_all_read(self, user_id: str) -> int:
        """Mark all of a user's notifications read. Returns count changed."""
        async with self._session("mark_all_read") as session:
            result = await session.execute(
                update(NotificationModel)
                .where(
                    NotificationModel.recipient_id == user_id,
                    NotificationModel.is_read.is_(False),
                )
                .values(is_read=True)
            )
            await session.commit()
            updated = result.rowcount or 0

            already_read = select(NotificationReadModel.notification_id).where(
                NotificationReadModel.user_id == user_id
            )
            pending = await session.execute(
                select(NotificationModel.id).where(
                    NotificationModel.recipient_id.is_(None),
                    NotificationModel.id.not_in(already_read),
                )
            )
            pending_ids = list(pending.scalars().all())

        # One transaction per marker so a single failure does not roll back the rest
        marked = 0
        for notification_id in pending_ids:
            try:
                async with self._session("mark_all_read.marker") as session:
                    if await self._insert_read_marker(session, notification_id, user_id):
                        marked += 1
            except StoreUnavailableError as e:
                logger.warning(
                    "Could not mark broadcast %s read for user %s: %s", notification_id, user_id, e
                )
        return updated + marked

    async def delete_by_id(self, notification_id: str) -> bool:
        """Delete a notification and its read markers. Returns True if deleted."""
        async with self._session("delete_by_id") as session:
            await session.execute(
                delete(NotificationReadModel).where(
                    NotificationReadModel.notification_id == notification_id
                )
            )
            result = await session.execute(
                delete(NotificationModel).where(NotificationModel.id == notification_id)
            )
            await session.commit()
            return (result.rowcount or 0) > 0

    async def delete_all_for_user(self, user_id: str) -> int:
        """Delete personal notifications owned by user. Broadcasts are never touched."""
        async with self._session("delete_all_for_user") as session:
            owned = select(NotificationModel.id).where(NotificationModel.recipient_id == user_id)
            await session.execute(
                delete(NotificationReadModel).where(NotificationReadModel.notification_id.in_(owned))
            )
            result = await session.execute(
                delete(NotificationModel).where(NotificationModel.recipient_id == user_id)
            )
            await session.commit()
            return result.rowcount or 0

    async def delete_read_markers_for_user(self, user_id: str) -> int:
        """Delete the user's read markers (account cleanup)."""
        async with self._session("delete_read_markers_for_user") as session:
            result = await session.execute(
                delete(NotificationReadModel).where(NotificationReadModel.user_id == user_id)
            )
            await session.commit()
            return result.rowcount or 0

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete all notifications created before cutoff."""
        async with self._session("delete_older_than") as session:
            expired = select(NotificationModel.id).where(NotificationModel.created_at < cutoff)
            await session.execute(
                delete(NotificationReadModel).where(NotificationReadModel.notification_id.in_(expired))
            )
            result = await session.execute(
                delete(NotificationModel).where(NotificationModel.created_at < cutoff)
            )
            await session.commit()
            return result.rowcount or 0
