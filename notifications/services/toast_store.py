from __future__ import annotations

import logging
from typing import Dict, List, Optional

from PySide6.QtCore import QObject, Signal

from notifications.models.notification import NotificationEvent, ToastEntry
from .notifier import Notifier
from .scheduler import NotificationScheduler


logger = logging.getLogger(__name__)


class ToastStore(QObject):
    """Currently visible toasts, in arrival order.

    A toast with an id that is already showing replaces the visible one in
    place and restarts its expiry.
    """

    toastsChanged = Signal()

    def __init__(
        self,
        notifier: Notifier,
        scheduler: Optional[NotificationScheduler] = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self.scheduler = scheduler if scheduler is not None else NotificationScheduler(self)
        self._entries: Dict[str, ToastEntry] = {}
        self._unsubscribe = notifier.subscribe_toast(self.show)

    # ---- Read API ----------------------------------------------------------
    @property
    def toasts(self) -> List[NotificationEvent]:
        return [entry.event for entry in self._entries.values()]

    def entry(self, toast_id: str) -> Optional[ToastEntry]:
        return self._entries.get(str(toast_id))

    def __contains__(self, toast_id: object) -> bool:
        return str(toast_id) in self._entries

    # ---- Mutators ----------------------------------------------------------
    def show(self, event: NotificationEvent) -> None:
        replaced = event.id in self._entries
        self.scheduler.cancel(event.id)
        entry = ToastEntry(event=event, expires=event.duration > 0)
        # assigning an existing key keeps its position
        self._entries[event.id] = entry
        if entry.expires:
            self.scheduler.schedule(event.id, event.duration, lambda: self._expire(event.id))
        if replaced:
            logger.debug("[toasts] replaced %s", event.id)
        self.toastsChanged.emit()

    def _expire(self, toast_id: str) -> None:
        if self._entries.pop(toast_id, None) is not None:
            logger.debug("[toasts] expired %s", toast_id)
            self.toastsChanged.emit()

    def remove(self, toast_id: str) -> None:
        toast_id = str(toast_id)
        self.scheduler.cancel(toast_id)
        if self._entries.pop(toast_id, None) is not None:
            self.toastsChanged.emit()

    def clear(self) -> None:
        self.scheduler.cancel_all()
        if self._entries:
            self._entries.clear()
            self.toastsChanged.emit()

    def detach(self) -> None:
        """Stop receiving events from the notifier. Safe to call twice."""
        self._unsubscribe()
