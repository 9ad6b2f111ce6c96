from __future__ import annotations

import os
from typing import Callable, Dict, List, Tuple

import pytest

# Qt needs a platform plugin even for timers. Offscreen avoids libGL
# dependencies inside the test container.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QCoreApplication  # noqa: E402

from notifications.services import MemoryKeyValueStore, Notifier  # noqa: E402


@pytest.fixture(scope="session")
def qapp() -> QCoreApplication:
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


class FakeScheduler:
    """Manual stand-in for ``NotificationScheduler``; tasks run only via ``fire``."""

    def __init__(self) -> None:
        self.tasks: Dict[str, Tuple[int, Callable[[], None]]] = {}
        self.cancelled: List[str] = []

    def schedule(self, key: str, delay_ms: int, func: Callable[[], None]) -> None:
        self.cancel(key)
        self.tasks[key] = (delay_ms, func)

    def cancel(self, key: str) -> bool:
        if self.tasks.pop(key, None) is None:
            return False
        self.cancelled.append(key)
        return True

    def cancel_all(self) -> None:
        for key in list(self.tasks):
            self.cancel(key)

    def is_pending(self, key: str) -> bool:
        return key in self.tasks

    @property
    def pending_count(self) -> int:
        return len(self.tasks)

    def delay(self, key: str) -> int:
        return self.tasks[key][0]

    def fire(self, key: str) -> None:
        _, func = self.tasks.pop(key)
        func()


@pytest.fixture()
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture()
def storage() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture()
def notifier(qapp) -> Notifier:
    return Notifier()
