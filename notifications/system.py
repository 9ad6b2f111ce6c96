from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from notifications.settings import NotificationSettings, load_settings
from notifications.services import (
    KeyValueStore,
    NotificationCenterStore,
    NotificationScheduler,
    Notifier,
    SqliteKeyValueStore,
    ToastStore,
)


logger = logging.getLogger(__name__)


@dataclass
class NotificationSystem:
    """The notifier and the two stores wired to it.

    Built once at application start; producers get ``notifier``, UI surfaces
    read ``toasts`` and ``center``.
    """

    settings: NotificationSettings
    notifier: Notifier
    toasts: ToastStore
    center: NotificationCenterStore

    def notify(self, message: str, severity: str = "info", **options) -> str:
        return self.notifier.notify(message, severity, **options)

    def shutdown(self) -> None:
        self.toasts.detach()
        self.center.detach()
        self.toasts.scheduler.cancel_all()


def create_notification_system(
    settings: Optional[NotificationSettings] = None,
    *,
    storage: Optional[KeyValueStore] = None,
    scheduler: Optional[NotificationScheduler] = None,
) -> NotificationSystem:
    settings = settings if settings is not None else load_settings()
    if storage is None:
        storage = SqliteKeyValueStore(settings.db_path)
    notifier = Notifier(durations=settings.durations)
    center = NotificationCenterStore(
        notifier,
        storage,
        storage_key=settings.storage_key,
        max_records=settings.max_records,
    )
    toasts = ToastStore(notifier, scheduler=scheduler)
    logger.debug(
        "[notifications] ready: %d stored record(s), cap %d", len(center.notifications), settings.max_records
    )
    return NotificationSystem(settings=settings, notifier=notifier, toasts=toasts, center=center)
