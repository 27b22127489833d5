"""Notification store selection."""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from tourney.domain.notifications.services import NotificationStore
from tourney.infra.db.base import build_engine, build_session_factory
from tourney.infra.db.repositories.notification_repo import NotificationRepositoryImpl
from tourney.infra.memory.notification_store import InMemoryNotificationStore
from tourney.settings import Settings

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> tuple[NotificationStore, Optional[AsyncEngine]]:
    """Pick the store backend once at startup. Returns (store, engine or None)."""
    if settings.notification_store_backend == "memory":
        logger.info("Notification store: in-memory")
        return InMemoryNotificationStore(), None
    engine = build_engine(settings.database_url, echo=settings.database_echo)
    logger.info("Notification store: database (%s)", engine.url.render_as_string(hide_password=True))
    return NotificationRepositoryImpl(build_session_factory(engine)), engine
