from __future__ import annotations

import logging
from typing import Callable, Dict

from PySide6.QtCore import QObject, QTimer


logger = logging.getLogger(__name__)


class NotificationScheduler(QObject):
    """Keyed single-shot timers running on the Qt event loop.

    Scheduling a key that already has a pending task replaces it. A cancelled
    or replaced timer never runs its callback.
    """

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._timers: Dict[str, QTimer] = {}

    def schedule(self, key: str, delay_ms: int, func: Callable[[], None]) -> None:
        self.cancel(key)
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.setInterval(max(int(delay_ms), 0))
        timer.timeout.connect(lambda: self._fire(key, timer, func))
        self._timers[key] = timer
        timer.start()

    def _fire(self, key: str, timer: QTimer, func: Callable[[], None]) -> None:
        if self._timers.get(key) is not timer:
            # stale timer for a key that was cancelled or rescheduled
            return
        del self._timers[key]
        timer.deleteLater()
        try:
            func()
        except Exception:
            logger.exception("[scheduler] task %r failed", key)

    def cancel(self, key: str) -> bool:
        timer = self._timers.pop(key, None)
        if timer is None:
            return False
        timer.stop()
        timer.deleteLater()
        return True

    def cancel_all(self) -> None:
        for timer in self._timers.values():
            timer.stop()
            timer.deleteLater()
        self._timers.clear()

    def is_pending(self, key: str) -> bool:
        return key in self._timers

    @property
    def pending_count(self) -> int:
        return len(self._timers)
