from __future__ import annotations

import itertools
import logging
import math
from typing import Any, Callable, Dict, Mapping, Optional

from PySide6.QtCore import QObject, Signal

from notifications.models.notification import (
    DEFAULT_CATEGORY,
    DEFAULT_DURATIONS_MS,
    SEVERITIES,
    NotificationEvent,
    generate_id,
)


logger = logging.getLogger(__name__)

Listener = Callable[[NotificationEvent], None]
Unsubscribe = Callable[[], None]

_KNOWN_OPTIONS = frozenset({"id", "duration", "persist", "category", "action", "action_label"})


class Notifier(QObject):
    """Central fan-out point for toasts and the notification center.

    Every event goes to the toast listeners. Warnings, errors and events sent
    with ``persist=True`` also go to the center listeners. Delivery is
    synchronous and in subscription order; events sent while nobody listens
    are dropped.
    """

    notificationDispatched = Signal(object)

    def __init__(
        self,
        durations: Optional[Mapping[str, int]] = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._durations: Dict[str, int] = dict(DEFAULT_DURATIONS_MS)
        if durations:
            self._durations.update(durations)
        self._tokens = itertools.count(1)
        self._toast_listeners: Dict[int, Listener] = {}
        self._center_listeners: Dict[int, Listener] = {}

    # ---- Subscriptions -----------------------------------------------------
    def subscribe_toast(self, listener: Listener) -> Unsubscribe:
        return self._subscribe(self._toast_listeners, listener)

    def subscribe_center(self, listener: Listener) -> Unsubscribe:
        return self._subscribe(self._center_listeners, listener)

    def _subscribe(self, registry: Dict[int, Listener], listener: Listener) -> Unsubscribe:
        token = next(self._tokens)
        registry[token] = listener

        def unsubscribe() -> None:
            registry.pop(token, None)

        return unsubscribe

    @property
    def listener_counts(self) -> tuple[int, int]:
        return len(self._toast_listeners), len(self._center_listeners)

    # ---- Public API --------------------------------------------------------
    @property
    def durations(self) -> Dict[str, int]:
        return dict(self._durations)

    def default_duration(self, severity: str) -> int:
        return self._durations.get(severity, self._durations.get("info", 5000))

    def notify(self, message: str, severity: str = "info", **options: Any) -> str:
        event = self._build_event(message, severity, options)
        logger.debug(
            "[notifier] %s %s (%s): %s", event.severity, event.id, event.category, event.message
        )
        self._deliver(self._toast_listeners, event, "toast")
        if event.qualifies_for_center:
            self._deliver(self._center_listeners, event, "center")
        self.notificationDispatched.emit(event)
        return event.id

    def success(self, message: str, **options: Any) -> str:
        options.setdefault("duration", self.default_duration("success"))
        return self.notify(message, "success", **options)

    def error(self, message: str, **options: Any) -> str:
        options.setdefault("duration", self.default_duration("error"))
        return self.notify(message, "error", **options)

    def warning(self, message: str, **options: Any) -> str:
        options.setdefault("duration", self.default_duration("warning"))
        return self.notify(message, "warning", **options)

    def info(self, message: str, **options: Any) -> str:
        options.setdefault("duration", self.default_duration("info"))
        return self.notify(message, "info", **options)

    def loading(self, message: str, **options: Any) -> str:
        options["duration"] = 0
        return self.notify(message, "loading", **options)

    # ---- Internals ---------------------------------------------------------
    def _deliver(self, registry: Dict[int, Listener], event: NotificationEvent, kind: str) -> None:
        # snapshot so listeners may unsubscribe while being called
        for listener in list(registry.values()):
            try:
                listener(event)
            except Exception:
                logger.exception("[notifier] %s listener %r failed for %s", kind, listener, event.id)

    def _build_event(self, message: Any, severity: Any, options: Mapping[str, Any]) -> NotificationEvent:
        return build_event(message, severity, options, durations=self._durations)


def build_event(
    message: Any,
    severity: Any,
    options: Mapping[str, Any],
    *,
    durations: Mapping[str, int] = DEFAULT_DURATIONS_MS,
) -> NotificationEvent:
    """Normalize ``notify`` arguments into an event.

    Missing or malformed options fall back to their defaults; nothing here
    raises for bad input.
    """
    unknown = set(options) - _KNOWN_OPTIONS
    if unknown:
        logger.debug("[notifier] ignoring unknown options: %s", ", ".join(sorted(unknown)))

    if severity not in SEVERITIES:
        logger.warning("[notifier] unknown severity %r; using 'info'", severity)
        severity = "info"

    raw_id = options.get("id")
    event_id = str(raw_id) if raw_id is not None and str(raw_id) != "" else generate_id()

    duration = options.get("duration")
    if (
        isinstance(duration, bool)
        or not isinstance(duration, (int, float))
        or not math.isfinite(duration)
        or duration < 0
    ):
        if duration is not None:
            logger.debug("[notifier] invalid duration %r; using default", duration)
        duration = durations.get(severity, DEFAULT_DURATIONS_MS[severity])

    category = options.get("category")
    if not isinstance(category, str) or not category.strip():
        category = DEFAULT_CATEGORY

    action = options.get("action")
    if action is not None and not callable(action):
        logger.debug("[notifier] dropping non-callable action %r", action)
        action = None
    action_label = options.get("action_label")

    return NotificationEvent(
        id=event_id,
        message="" if message is None else str(message),
        severity=severity,
        category=category.strip(),
        persist=options.get("persist") is True,
        duration=int(duration),
        action=action,
        action_label=str(action_label) if action_label is not None else None,
    )
