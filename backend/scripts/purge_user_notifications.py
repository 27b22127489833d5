"""Delete a user's personal notifications and broadcast read markers.

Run this after removing an account when the API is not available. Broadcast
notifications are kept.
"""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path to import tourney modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from tourney.domain.notifications.services import NotificationService, NotificationStore
from tourney.infra.store import build_store
from tourney.settings import load_settings


async def purge_with_store(store: NotificationStore, user_id: str) -> tuple[int, int]:
    """Purge using the given store. Returns (notifications deleted, read markers deleted)."""
    return await NotificationService(store).purge_user(user_id)


async def purge_user_notifications(user_id: str) -> None:
    settings = load_settings()
    store, engine = build_store(settings)
    try:
        deleted, markers = await purge_with_store(store, user_id)
    finally:
        if engine is not None:
            await engine.dispose()
    print(f"✅ Deleted {deleted} notifications and {markers} read markers for user '{user_id}'.")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/purge_user_notifications.py <user_id>")
        sys.exit(1)

    user_id = sys.argv[1]
    print(f"🗑️  Purging notifications for user: {user_id}\n")
    asyncio.run(purge_user_notifications(user_id))
