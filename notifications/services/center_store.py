"""Notification center: the durable, filterable list of retained alerts.

Records are kept newest first. Every mutation rewrites the whole record set to
the key-value store; the in-memory list stays authoritative when a write
fails.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, List, Mapping, Optional

from PySide6.QtCore import QObject, Signal

from notifications.models.notification import CenterRecord, NotificationEvent
from notifications.settings import DEFAULT_MAX_RECORDS, DEFAULT_STORAGE_KEY
from utils.timefmt import to_datetime
from .notifier import Notifier, build_event
from .storage import KeyValueStore


logger = logging.getLogger(__name__)

FILTER_ALL = "all"
FILTER_UNREAD = "unread"
FILTER_ARCHIVED = "archived"

# Filters offered by the panel; any other string is treated as a category.
FILTER_KEYS: tuple[str, ...] = (
    FILTER_ALL,
    FILTER_UNREAD,
    "inspection",
    "helicard",
    "compliance",
    "system",
    FILTER_ARCHIVED,
)


def matches_filter(record: CenterRecord, filter_key: str) -> bool:
    if filter_key == FILTER_ALL:
        return not record.archived
    if filter_key == FILTER_UNREAD:
        return record.is_unread
    if filter_key == FILTER_ARCHIVED:
        return record.archived
    return record.category == filter_key and not record.archived


def _created_sort_key(record: CenterRecord) -> float:
    dt = to_datetime(record.created_at)
    return dt.timestamp() if dt is not None else 0.0


class NotificationCenterStore(QObject):
    notificationsChanged = Signal()
    unreadCountChanged = Signal(int)
    filterChanged = Signal(str)
    openChanged = Signal(bool)

    def __init__(
        self,
        notifier: Notifier,
        storage: KeyValueStore,
        *,
        storage_key: str = DEFAULT_STORAGE_KEY,
        max_records: int = DEFAULT_MAX_RECORDS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._storage = storage
        self._storage_key = storage_key
        self._max_records = max(int(max_records), 1)
        self._durations: Mapping[str, int] = notifier.durations
        self._filter = FILTER_ALL
        self._open = False

        self._records: List[CenterRecord] = self._load()
        self._enforce_cap()
        self._unread = self._count_unread()
        self._unsubscribe: Callable[[], None] = notifier.subscribe_center(self.receive)

    # ---- Read API ----------------------------------------------------------
    @property
    def notifications(self) -> List[CenterRecord]:
        """Every retained record, newest first (copies)."""
        return [r.copy() for r in self._records]

    @property
    def filtered_notifications(self) -> List[CenterRecord]:
        return [r.copy() for r in self._records if matches_filter(r, self._filter)]

    def query(self, filter_key: str) -> List[CenterRecord]:
        """Records visible under ``filter_key`` without changing the active filter."""
        key = self._normalize_filter(filter_key)
        return [r.copy() for r in self._records if matches_filter(r, key)]

    def get(self, notification_id: str) -> Optional[CenterRecord]:
        record = self._find_active(str(notification_id))
        if record is None:
            record = next((r for r in self._records if r.id == str(notification_id)), None)
        return record.copy() if record is not None else None

    @property
    def filter(self) -> str:
        return self._filter

    @property
    def unread_count(self) -> int:
        return self._unread

    @property
    def badge_label(self) -> str:
        if self._unread <= 0:
            return ""
        return "9+" if self._unread > 9 else str(self._unread)

    @property
    def is_open(self) -> bool:
        return self._open

    # ---- Intake ------------------------------------------------------------
    def receive(self, event: NotificationEvent) -> None:
        """Center listener registered with the notifier."""
        existing = self._find_active(event.id)
        if existing is not None:
            existing.refresh_from(event)
            # refreshed created_at makes it the newest record
            index = next(i for i, r in enumerate(self._records) if r is existing)
            self._records.insert(0, self._records.pop(index))
            logger.debug("[center] refreshed %s", event.id)
        else:
            self._records.insert(0, CenterRecord.from_event(event))
            self._enforce_cap()
        self._commit()

    def add_notification(self, message: str, severity: str = "info", **options: Any) -> str:
        """Add a record directly, without showing a toast."""
        event = build_event(message, severity, options, durations=self._durations)
        self.receive(event)
        return event.id

    # ---- Mutators ----------------------------------------------------------
    def mark_as_read(self, notification_id: str) -> None:
        changed = False
        for record in self._records:
            if record.id == str(notification_id) and not record.read:
                record.read = True
                changed = True
        if changed:
            self._commit()

    def mark_all_as_read(self) -> None:
        changed = False
        for record in self._records:
            if record.is_unread:
                record.read = True
                changed = True
        if changed:
            self._commit()

    def archive_notification(self, notification_id: str) -> None:
        changed = False
        for record in self._records:
            if record.id == str(notification_id) and not record.archived:
                record.archived = True
                record.read = True
                changed = True
        if changed:
            self._commit()

    def delete_notification(self, notification_id: str) -> None:
        kept = [r for r in self._records if r.id != str(notification_id)]
        if len(kept) != len(self._records):
            self._records = kept
            self._commit()

    def clear_all(self) -> int:
        """Delete the records visible under the active filter; return how many."""
        kept = [r for r in self._records if not matches_filter(r, self._filter)]
        removed = len(self._records) - len(kept)
        if removed:
            self._records = kept
            logger.info("[center] cleared %d record(s) under filter %r", removed, self._filter)
            self._commit()
        return removed

    def set_filter(self, filter_key: str) -> None:
        key = self._normalize_filter(filter_key)
        if key != self._filter:
            self._filter = key
            self.filterChanged.emit(key)

    def toggle_center(self) -> None:
        self.set_open(not self._open)

    def set_open(self, is_open: bool) -> None:
        if bool(is_open) != self._open:
            self._open = bool(is_open)
            self.openChanged.emit(self._open)

    def detach(self) -> None:
        """Stop receiving events from the notifier. Safe to call twice."""
        self._unsubscribe()

    # ---- Internals ---------------------------------------------------------
    @staticmethod
    def _normalize_filter(filter_key: Optional[str]) -> str:
        key = (filter_key or "").strip()
        return key or FILTER_ALL

    def _find_active(self, notification_id: str) -> Optional[CenterRecord]:
        return next(
            (r for r in self._records if r.id == notification_id and not r.archived), None
        )

    def _count_unread(self) -> int:
        return sum(1 for r in self._records if r.is_unread)

    def _enforce_cap(self) -> None:
        while len(self._records) > self._max_records:
            # reversed: on equal timestamps the earlier insertion goes first
            oldest = min(reversed(self._records), key=_created_sort_key)
            index = next(i for i, r in enumerate(self._records) if r is oldest)
            evicted = self._records.pop(index)
            logger.debug("[center] evicted %s (cap %d)", evicted.id, self._max_records)

    def _commit(self) -> None:
        self._persist()
        unread = self._count_unread()
        changed = unread != self._unread
        self._unread = unread
        self.notificationsChanged.emit()
        if changed:
            self.unreadCountChanged.emit(unread)

    def _persist(self) -> None:
        payload = [r.to_record() for r in self._records]
        try:
            data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
            self._storage.save(self._storage_key, data)
        except Exception:
            logger.exception("[center] failed to persist %d notification(s)", len(payload))

    def _load(self) -> List[CenterRecord]:
        try:
            raw = self._storage.load(self._storage_key)
        except Exception:
            logger.exception("[center] failed to load notifications from storage")
            return []
        if not raw:
            return []
        try:
            payload = json.loads(raw)
        except (UnicodeDecodeError, ValueError) as exc:
            logger.warning("[center] discarding unreadable notification store: %s", exc)
            return []
        if not isinstance(payload, list):
            logger.warning("[center] expected a list in notification store, got %s", type(payload).__name__)
            return []

        records: List[CenterRecord] = []
        active_ids: set[str] = set()
        for item in payload:
            if not isinstance(item, Mapping):
                logger.warning("[center] skipping malformed entry %r", item)
                continue
            try:
                record = CenterRecord.from_record(item)
            except ValueError as exc:
                logger.warning("[center] skipping entry: %s", exc)
                continue
            if not record.archived:
                if record.id in active_ids:
                    logger.warning("[center] dropping duplicate active record %s", record.id)
                    continue
                active_ids.add(record.id)
            records.append(record)
        logger.debug("[center] loaded %d notification(s)", len(records))
        return records
