"""Database models."""
from tourney.infra.db.models.notification import NotificationModel, NotificationReadModel

__all__ = ["NotificationModel", "NotificationReadModel"]
