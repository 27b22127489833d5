"""Run one retention sweep against the configured notification store.

Usage: python scripts/sweep_notifications.py [retention_hours]
"""
import asyncio
import sys
from datetime import timedelta
from pathlib import Path
from typing import Optional

# Add parent directory to path to import tourney modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from tourney.domain.notifications.services import NotificationStore
from tourney.infra.jobs.retention import RetentionSweeper
from tourney.infra.store import build_store
from tourney.settings import load_settings


async def sweep_with_store(store: NotificationStore, retention_hours: int) -> int:
    """Sweep once using the given store. Returns notifications removed."""
    sweeper = RetentionSweeper(store, retention=timedelta(hours=retention_hours))
    return await sweeper.sweep_once()


async def sweep(retention_hours: Optional[int] = None) -> int:
    settings = load_settings()
    hours = retention_hours if retention_hours is not None else settings.notification_retention_hours
    store, engine = build_store(settings)
    try:
        removed = await sweep_with_store(store, hours)
    finally:
        if engine is not None:
            await engine.dispose()
    print(f"✅ Removed {removed} notifications older than {hours}h.")
    return removed


if __name__ == "__main__":
    hours = int(sys.argv[1]) if len(sys.argv) > 1 else None
    print("🧹 Sweeping old notifications...\n")
    asyncio.run(sweep(hours))
