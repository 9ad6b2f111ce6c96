from __future__ import annotations

import json
import logging
from typing import List

import pytest

from notifications.services import MemoryKeyValueStore, NotificationCenterStore
from notifications.settings import DEFAULT_STORAGE_KEY


def _stored(storage: MemoryKeyValueStore) -> List[dict]:
    return json.loads(storage.load(DEFAULT_STORAGE_KEY))


def _assert_unread_invariant(center: NotificationCenterStore) -> None:
    expected = sum(1 for r in center.notifications if not r.read and not r.archived)
    assert center.unread_count == expected


@pytest.fixture()
def center(notifier, storage) -> NotificationCenterStore:
    return NotificationCenterStore(notifier, storage)


class _BrokenStorage:
    def load(self, key):
        raise OSError("disk gone")

    def save(self, key, data):
        raise OSError("disk gone")


def test_error_creates_unread_record(notifier, center):
    notifier.notify("Helideck lighting failure", "error", id="na-kika-lighting")
    record = center.get("na-kika-lighting")
    assert record is not None
    assert record.read is False and record.archived is False
    assert center.unread_count == 1


def test_resignal_updates_in_place(notifier, center):
    notifier.error("Helideck lighting failure", id="na-kika-lighting")
    first_created = center.get("na-kika-lighting").created_at
    notifier.error("Helideck lighting failure (2 lamps)", id="na-kika-lighting")

    records = [r for r in center.notifications if r.id == "na-kika-lighting"]
    assert len(records) == 1
    assert records[0].message == "Helideck lighting failure (2 lamps)"
    assert records[0].created_at >= first_created
    assert center.unread_count == 1


def test_resignal_moves_record_to_front(notifier, center):
    notifier.error("Net torn", id="net")
    notifier.error("Lighting failure", id="lights")
    notifier.error("Net torn again", id="net")
    assert [r.id for r in center.notifications] == ["net", "lights"]
    assert [r.id for r in center.filtered_notifications] == ["net", "lights"]


def test_resignal_keeps_read_flag(notifier, center):
    notifier.warning("Wind limit", id="wind")
    center.mark_as_read("wind")
    notifier.warning("Wind limit exceeded", id="wind")
    assert center.get("wind").read is True
    assert center.unread_count == 0


def test_mark_as_read_decrements_unread(notifier, center):
    notifier.error("Helideck lighting failure", id="na-kika-lighting")
    notifier.error("Net torn", id="net")
    center.mark_as_read("na-kika-lighting")
    assert center.get("na-kika-lighting").read is True
    assert center.unread_count == 1


def test_archive_moves_record_between_views(notifier, center):
    notifier.error("Helideck lighting failure", id="na-kika-lighting")
    center.archive_notification("na-kika-lighting")

    record = center.get("na-kika-lighting")
    assert record.archived is True and record.read is True
    assert center.query("all") == []
    assert center.query("unread") == []
    assert [r.id for r in center.query("archived")] == ["na-kika-lighting"]


def test_archive_is_idempotent(notifier, center, storage):
    notifier.error("Net torn", id="net")
    center.archive_notification("net")
    writes = storage.load(DEFAULT_STORAGE_KEY)
    changes = []
    center.notificationsChanged.connect(lambda: changes.append(True))

    center.archive_notification("net")

    assert changes == []
    assert storage.load(DEFAULT_STORAGE_KEY) == writes
    assert len(center.notifications) == 1
    record = center.get("net")
    assert record.archived is True and record.read is True


def test_realert_after_archive_creates_new_record(notifier, center):
    notifier.error("Net torn", id="net")
    center.archive_notification("net")
    notifier.error("Net torn again", id="net")

    records = [r for r in center.notifications if r.id == "net"]
    assert len(records) == 2
    assert [r.message for r in center.query("unread")] == ["Net torn again"]
    assert center.unread_count == 1


def test_mark_all_as_read_leaves_archived(notifier, center):
    notifier.error("a", id="a")
    notifier.error("b", id="b")
    notifier.error("c", id="c")
    center.archive_notification("c")
    center.mark_all_as_read()
    assert center.unread_count == 0
    assert all(r.read for r in center.notifications)
    assert [r.id for r in center.query("archived")] == ["c"]


def test_delete_is_permanent(notifier, center, storage):
    notifier.error("a", id="a")
    notifier.error("b", id="b")
    center.archive_notification("b")
    center.delete_notification("b")
    center.delete_notification("missing")
    assert [r.id for r in center.notifications] == ["a"]
    assert [r["id"] for r in _stored(storage)] == ["a"]


def test_filters(notifier, center):
    notifier.error("Inspection overdue", id="i1", category="inspection")
    notifier.warning("Helicard expiring", id="h1", category="helicard")
    notifier.error("Inspection failed", id="i2", category="inspection")
    center.mark_as_read("i2")
    center.archive_notification("h1")

    center.set_filter("all")
    assert [r.id for r in center.filtered_notifications] == ["i2", "i1"]
    center.set_filter("unread")
    assert [r.id for r in center.filtered_notifications] == ["i1"]
    center.set_filter("archived")
    assert [r.id for r in center.filtered_notifications] == ["h1"]
    center.set_filter("helicard")
    assert center.filtered_notifications == []
    center.set_filter("")
    assert center.filter == "all"


def test_filter_does_not_mutate(notifier, center, storage):
    notifier.error("a", id="a")
    before = storage.load(DEFAULT_STORAGE_KEY)
    center.set_filter("archived")
    assert storage.load(DEFAULT_STORAGE_KEY) == before
    assert len(center.notifications) == 1


def test_clear_all_unread_scope(notifier, center):
    notifier.error("unread", id="u")
    notifier.error("read", id="r")
    notifier.error("archived", id="x")
    center.mark_as_read("r")
    center.archive_notification("x")

    center.set_filter("unread")
    assert center.clear_all() == 1
    assert sorted(r.id for r in center.notifications) == ["r", "x"]
    _assert_unread_invariant(center)


def test_clear_all_category_scope(notifier, center):
    notifier.error("open inspection", id="i-open", category="inspection")
    notifier.error("old inspection", id="i-old", category="inspection")
    notifier.error("server", id="s", category="system")
    center.archive_notification("i-old")

    center.set_filter("inspection")
    center.clear_all()
    assert sorted(r.id for r in center.notifications) == ["i-old", "s"]


def test_clear_all_all_scope_keeps_archived(notifier, center):
    notifier.error("a", id="a")
    notifier.error("b", id="b")
    center.archive_notification("b")
    center.clear_all()
    assert [r.id for r in center.notifications] == ["b"]


def test_clear_all_archived_scope(notifier, center):
    notifier.error("a", id="a")
    notifier.error("b", id="b")
    center.archive_notification("b")
    center.set_filter("archived")
    center.clear_all()
    assert [r.id for r in center.notifications] == ["a"]
    assert center.unread_count == 1


def test_unread_invariant_across_mutations(notifier, center):
    for i in range(6):
        notifier.error(f"alert {i}", id=str(i), category="inspection" if i % 2 else "system")
        _assert_unread_invariant(center)
    operations = [
        lambda: center.mark_as_read("1"),
        lambda: center.archive_notification("2"),
        lambda: center.delete_notification("3"),
        lambda: center.set_filter("system"),
        lambda: center.clear_all(),
        lambda: center.mark_all_as_read(),
    ]
    for operation in operations:
        operation()
        _assert_unread_invariant(center)


def test_unread_signal(notifier, center):
    counts = []
    center.unreadCountChanged.connect(lambda n: counts.append(n))
    notifier.error("a", id="a")
    notifier.error("a again", id="a")
    center.mark_as_read("a")
    assert counts == [1, 0]


def test_every_mutation_is_persisted(notifier, center, storage):
    notifier.error("a", id="a", category="inspection")
    assert _stored(storage)[0] == {
        "id": "a",
        "message": "a",
        "severity": "error",
        "category": "inspection",
        "read": False,
        "archived": False,
        "createdAt": center.get("a").created_at,
        "duration": 7000,
    }
    center.mark_as_read("a")
    assert _stored(storage)[0]["read"] is True
    center.archive_notification("a")
    assert _stored(storage)[0]["archived"] is True


def test_round_trip_through_storage(notifier, storage):
    center = NotificationCenterStore(notifier, storage)
    notifier.error("a", id="a", category="inspection")
    notifier.warning("b", id="b", category="helicard")
    notifier.info("c", id="c", persist=True)
    center.mark_as_read("b")
    center.archive_notification("c")
    center.detach()

    def tuples(store):
        return {(r.id, r.message, r.severity, r.category, r.read, r.archived) for r in store.notifications}

    reloaded = NotificationCenterStore(notifier, storage)
    assert tuples(reloaded) == tuples(center)
    assert reloaded.unread_count == 1


def test_actions_are_not_persisted(notifier, center, storage):
    notifier.error("Report failed", id="r", action=lambda: None, action_label="Retry")
    assert "action" not in _stored(storage)[0]
    assert center.get("r").action_label == "Retry"


def test_cap_evicts_oldest(notifier, storage):
    center = NotificationCenterStore(notifier, storage, max_records=3)
    for i in range(5):
        notifier.error(f"alert {i}", id=str(i))
    assert [r.id for r in center.notifications] == ["4", "3", "2"]
    assert len(_stored(storage)) == 3


def test_cap_ignores_filter_and_archive_state(notifier, storage):
    center = NotificationCenterStore(notifier, storage, max_records=2)
    notifier.error("old", id="old")
    center.archive_notification("old")
    center.set_filter("archived")
    notifier.error("mid", id="mid")
    notifier.error("new", id="new")
    assert [r.id for r in center.notifications] == ["new", "mid"]


def test_load_skips_malformed_entries(notifier, caplog):
    payload = [
        {"id": "ok", "message": "fine", "severity": "error", "category": "system",
         "read": True, "archived": False, "createdAt": "2024-05-01T10:00:00+00:00", "duration": 7000},
        {"message": "no id"},
        "garbage",
        {"id": 17, "message": "legacy", "type": "warning", "timestamp": "2024-05-01T09:00:00.000Z"},
    ]
    storage = MemoryKeyValueStore({DEFAULT_STORAGE_KEY: json.dumps(payload).encode("utf-8")})
    with caplog.at_level(logging.WARNING):
        center = NotificationCenterStore(notifier, storage)
    assert [r.id for r in center.notifications] == ["ok", "17"]
    legacy = center.get("17")
    assert legacy.severity == "warning"
    assert legacy.created_at == "2024-05-01T09:00:00.000Z"
    assert legacy.category == "general"
    assert center.unread_count == 1
    assert "skipping" in caplog.text


def test_load_tolerates_out_of_range_duration(notifier):
    raw = b'[{"id": "a", "message": "m", "duration": 1e400}, {"id": "b", "message": "ok", "duration": NaN}]'
    storage = MemoryKeyValueStore({DEFAULT_STORAGE_KEY: raw})
    center = NotificationCenterStore(notifier, storage)
    assert [(r.id, r.duration) for r in center.notifications] == [("a", 0), ("b", 0)]


def test_load_parses_string_flags(notifier):
    payload = [
        {"id": "a", "message": "m", "read": "false", "archived": "False"},
        {"id": "b", "message": "m", "read": "true", "archived": "0"},
        {"id": "c", "message": "m", "read": 1, "archived": None},
    ]
    storage = MemoryKeyValueStore({DEFAULT_STORAGE_KEY: json.dumps(payload).encode("utf-8")})
    center = NotificationCenterStore(notifier, storage)
    flags = {r.id: (r.read, r.archived) for r in center.notifications}
    assert flags == {"a": (False, False), "b": (True, False), "c": (True, False)}
    assert center.unread_count == 1


def test_load_tolerates_corrupt_payload(notifier, caplog):
    storage = MemoryKeyValueStore({DEFAULT_STORAGE_KEY: b"{not json"})
    with caplog.at_level(logging.WARNING):
        center = NotificationCenterStore(notifier, storage)
    assert center.notifications == []
    assert "unreadable" in caplog.text


def test_persistence_failure_keeps_memory_state(notifier, caplog):
    with caplog.at_level(logging.ERROR):
        center = NotificationCenterStore(notifier, _BrokenStorage())
        notifier.error("Helideck lighting failure", id="na-kika-lighting")
    assert center.unread_count == 1
    assert "failed to persist" in caplog.text
    assert "failed to load" in caplog.text


def test_add_notification_bypasses_toasts(notifier, center):
    toasts = []
    notifier.subscribe_toast(toasts.append)
    notification_id = center.add_notification("Compliance review due", "info", category="compliance")
    assert toasts == []
    assert center.get(notification_id).category == "compliance"
    assert center.add_notification("Compliance review due", id=notification_id) == notification_id
    assert len(center.notifications) == 1


@pytest.mark.parametrize("count, label", [(0, ""), (3, "3"), (9, "9"), (10, "9+")])
def test_badge_label(notifier, center, count, label):
    for i in range(count):
        notifier.error("x", id=str(i))
    assert center.badge_label == label


def test_open_state(center):
    states = []
    center.openChanged.connect(lambda value: states.append(value))
    assert center.is_open is False
    center.toggle_center()
    center.set_open(True)
    center.toggle_center()
    assert states == [True, False]
