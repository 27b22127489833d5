"""Tests for the notification stores (in-memory and SQLAlchemy)."""
from datetime import timedelta

import pytest

from tourney.domain.common.errors import AuthorizationError
from tourney.domain.notifications.models import NotificationDraft


def personal(user_id: str, title: str = "Hello") -> NotificationDraft:
    return NotificationDraft(title=title, message="Personal message", recipient_id=user_id)


def broadcast(title: str = "Announcement") -> NotificationDraft:
    return NotificationDraft(title=title, message="For everyone", type="broadcast")


async def test_create_assigns_id_timestamp_and_unread(store):
    created = await store.create(personal("alice"))

    assert created.id
    assert created.created_at is not None
    assert created.is_read is False
    assert created.recipient_id == "alice"

    fetched = await store.get_by_id(created.id)
    assert fetched is not None
    assert fetched.title == "Hello"
    assert fetched.type == "personal"


async def test_get_by_id_unknown_returns_none(store):
    assert await store.get_by_id("missing") is None


async def test_list_for_user_personal_and_broadcast_newest_first(store):
    first = await store.create(personal("alice", "first"))
    await store.create(personal("bob", "bob only"))
    second = await store.create(broadcast("second"))
    third = await store.create(personal("alice", "third"))

    listed = await store.list_for_user("alice")

    assert [n.id for n in listed] == [third.id, second.id, first.id]


async def test_list_broadcast_only_returns_broadcasts(store):
    await store.create(personal("alice"))
    b = await store.create(broadcast())

    assert [n.id for n in await store.list_broadcast()] == [b.id]


async def test_mark_read_personal_is_idempotent(store):
    n = await store.create(personal("alice"))

    assert await store.mark_read(n.id, "alice") is True
    assert await store.mark_read(n.id, "alice") is True
    assert (await store.get_by_id(n.id)).is_read is True


async def test_mark_read_unknown_returns_false(store):
    assert await store.mark_read("missing", "alice") is False


async def test_mark_read_someone_elses_personal_is_refused(store):
    n = await store.create(personal("alice"))

    with pytest.raises(AuthorizationError):
        await store.mark_read(n.id, "bob")
    assert (await store.get_by_id(n.id)).is_read is False


async def test_mark_read_broadcast_records_marker_for_that_user_only(store):
    b = await store.create(broadcast())

    assert await store.mark_read(b.id, "alice") is True
    assert await store.mark_read(b.id, "alice") is True

    assert await store.read_broadcast_ids("alice") == {b.id}
    assert await store.read_broadcast_ids("bob") == set()
    # Stored flag of a broadcast never changes
    assert (await store.get_by_id(b.id)).is_read is False


async def test_mark_all_read_counts_only_changes(store):
    await store.create(personal("alice"))
    await store.create(personal("alice"))
    already = await store.create(personal("alice"))
    await store.mark_read(already.id, "alice")
    b1 = await store.create(broadcast())
    b2 = await store.create(broadcast())
    await store.mark_read(b1.id, "alice")
    bob_n = await store.create(personal("bob"))

    assert await store.mark_all_read("alice") == 3
    assert await store.mark_all_read("alice") == 0

    assert await store.read_broadcast_ids("alice") == {b1.id, b2.id}
    assert (await store.get_by_id(bob_n.id)).is_read is False
    assert await store.read_broadcast_ids("bob") == set()


async def test_delete_by_id_removes_notification_and_markers(store):
    b = await store.create(broadcast())
    await store.mark_read(b.id, "alice")

    assert await store.delete_by_id(b.id) is True
    assert await store.get_by_id(b.id) is None
    assert await store.read_broadcast_ids("alice") == set()
    assert await store.delete_by_id(b.id) is False


async def test_delete_all_for_user_keeps_broadcasts_and_other_users(store):
    await store.create(personal("alice"))
    await store.create(personal("alice"))
    bob_n = await store.create(personal("bob"))
    b = await store.create(broadcast())

    assert await store.delete_all_for_user("alice") == 2

    remaining = {n.id for n in await store.list_for_user("alice")}
    assert remaining == {b.id}
    assert await store.get_by_id(bob_n.id) is not None


async def test_delete_read_markers_for_user(store):
    b1 = await store.create(broadcast())
    b2 = await store.create(broadcast())
    await store.mark_read(b1.id, "alice")
    await store.mark_read(b2.id, "alice")
    await store.mark_read(b1.id, "bob")

    assert await store.delete_read_markers_for_user("alice") == 2

    assert await store.read_broadcast_ids("alice") == set()
    assert await store.read_broadcast_ids("bob") == {b1.id}
    assert await store.get_by_id(b1.id) is not None


async def test_delete_older_than_ignores_read_state(store, clock):
    old_read = await store.create(personal("alice", "old read"))
    old_unread = await store.create(broadcast("old unread"))
    await store.mark_read(old_read.id, "alice")
    await store.mark_read(old_unread.id, "bob")
    clock.advance(hours=30)
    fresh = await store.create(personal("alice", "fresh"))

    removed = await store.delete_older_than(fresh.created_at - timedelta(hours=24))

    assert removed == 2
    assert [n.id for n in await store.list_for_user("alice")] == [fresh.id]
    assert await store.read_broadcast_ids("bob") == set()


async def test_delete_older_than_nothing_expired(store):
    n = await store.create(personal("alice"))

    assert await store.delete_older_than(n.created_at) == 0
    assert await store.get_by_id(n.id) is not None
