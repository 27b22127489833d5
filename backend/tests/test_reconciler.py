"""Tests for per-user read state reconciliation."""
from datetime import datetime

from tourney.domain.notifications.models import Notification, NotificationDraft
from tourney.domain.notifications.services import ReadStateReconciler


def _notification(nid: str, recipient_id=None, is_read=False) -> Notification:
    return Notification(
        id=nid,
        title="t",
        message="m",
        type="broadcast" if recipient_id is None else "personal",
        recipient_id=recipient_id,
        is_read=is_read,
        created_at=datetime(2026, 3, 1),
    )


def test_view_of_broadcast_uses_read_ids_not_stored_flag():
    stored = _notification("b1", is_read=True)

    assert ReadStateReconciler.view_of(stored, "alice", set()).is_read is False
    assert ReadStateReconciler.view_of(stored, "alice", {"b1"}).is_read is True
    # Stored record untouched
    assert stored.is_read is True


def test_view_of_personal_keeps_stored_flag():
    read = _notification("p1", recipient_id="alice", is_read=True)
    unread = _notification("p2", recipient_id="alice")

    assert ReadStateReconciler.view_of(read, "alice", set()).is_read is True
    assert ReadStateReconciler.view_of(unread, "alice", {"p2"}).is_read is False


async def test_broadcast_read_by_one_user_stays_unread_for_others(memory_store):
    reconciler = ReadStateReconciler(memory_store)
    b = await memory_store.create(NotificationDraft(title="Maintenance", message="Tonight", type="broadcast"))

    await memory_store.mark_read(b.id, "alice")

    assert await reconciler.unread_count("alice") == 0
    assert await reconciler.unread_count("bob") == 1
    bob_view = await reconciler.reconcile("bob")
    assert [(n.id, n.is_read) for n in bob_view] == [(b.id, False)]


async def test_unread_count_mixes_personal_and_broadcast(store):
    reconciler = ReadStateReconciler(store)
    p1 = await store.create(NotificationDraft(title="p1", message="m", recipient_id="alice"))
    await store.create(NotificationDraft(title="p2", message="m", recipient_id="alice"))
    await store.create(NotificationDraft(title="other", message="m", recipient_id="bob"))
    b1 = await store.create(NotificationDraft(title="b1", message="m"))
    await store.create(NotificationDraft(title="b2", message="m"))

    assert await reconciler.unread_count("alice") == 4

    await store.mark_read(p1.id, "alice")
    await store.mark_read(b1.id, "alice")

    assert await reconciler.unread_count("alice") == 2
    assert await reconciler.unread_count("bob") == 3
    assert await reconciler.unread_count("carol") == 2


async def test_unread_count_matches_reconciled_view(store):
    reconciler = ReadStateReconciler(store)
    for i in range(3):
        await store.create(NotificationDraft(title=f"b{i}", message="m"))
    await store.create(NotificationDraft(title="p", message="m", recipient_id="alice"))
    await store.mark_all_read("alice")
    await store.create(NotificationDraft(title="late", message="m"))

    view = await reconciler.reconcile("alice")

    assert await reconciler.unread_count("alice") == sum(1 for n in view if not n.is_read) == 1
