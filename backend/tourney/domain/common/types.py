"""Common domain types."""
from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

Clock = Callable[[], datetime]


def generate_id() -> str:
    """Generate a new UUID string."""
    return str(uuid4())


def utcnow() -> datetime:
    """Naive UTC now; all stored timestamps are naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
