from .notifier import Notifier, build_event
from .scheduler import NotificationScheduler
from .storage import KeyValueStore, MemoryKeyValueStore, SqliteKeyValueStore
from .toast_store import ToastStore
from .center_store import FILTER_KEYS, NotificationCenterStore, matches_filter

__all__ = [
    "Notifier",
    "build_event",
    "NotificationScheduler",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqliteKeyValueStore",
    "ToastStore",
    "FILTER_KEYS",
    "NotificationCenterStore",
    "matches_filter",
]
