"""Domain models for dispatched notifications, toasts and center records."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Literal, Mapping, Optional, get_args

from utils.timefmt import time_ago, utcnow_iso

Severity = Literal['info', 'success', 'warning', 'error', 'loading']

SEVERITIES: tuple[str, ...] = get_args(Severity)

# Severities routed to the notification center without an explicit persist flag
CENTER_SEVERITIES: frozenset[str] = frozenset({"warning", "error"})

DEFAULT_CATEGORY = "general"

DEFAULT_DURATIONS_MS: Dict[str, int] = {
    "success": 5000,
    "info": 5000,
    "warning": 6000,
    "error": 7000,
    "loading": 0,
}


def _as_flag(value: Any) -> bool:
    """Read a persisted boolean; strings such as ``"false"`` are parsed, not truth-tested."""
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    if isinstance(value, (bool, int)):
        return bool(value)
    return False


def generate_id() -> str:
    """Return a new notification id (``<epoch-ms>-<random suffix>``)."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


@dataclass(frozen=True)
class NotificationEvent:
    """A single alert as produced by ``Notifier.notify``."""

    id: str
    message: str
    severity: Severity = 'info'
    category: str = DEFAULT_CATEGORY
    persist: bool = False
    duration: int = DEFAULT_DURATIONS_MS["info"]
    action: Optional[Callable[[], Any]] = None
    action_label: Optional[str] = None
    created_at: str = field(default_factory=lambda: utcnow_iso(precise=True))

    @property
    def qualifies_for_center(self) -> bool:
        return self.severity in CENTER_SEVERITIES or self.persist


@dataclass
class ToastEntry:
    """A visible toast. ``expires`` is True while an expiry task is pending."""

    event: NotificationEvent
    expires: bool = False

    @property
    def id(self) -> str:
        return self.event.id


@dataclass
class CenterRecord:
    """A retained notification center entry."""

    id: str
    message: str
    severity: Severity = 'info'
    category: str = DEFAULT_CATEGORY
    duration: int = 0
    created_at: str = field(default_factory=lambda: utcnow_iso(precise=True))
    read: bool = False
    archived: bool = False
    action: Optional[Callable[[], Any]] = None
    action_label: Optional[str] = None

    @classmethod
    def from_event(cls, event: NotificationEvent) -> "CenterRecord":
        return cls(
            id=event.id,
            message=event.message,
            severity=event.severity,
            category=event.category,
            duration=event.duration,
            created_at=event.created_at,
            action=event.action,
            action_label=event.action_label,
        )

    def refresh_from(self, event: NotificationEvent) -> None:
        """Update in place for a re-signalled event with the same id."""
        self.message = event.message
        self.severity = event.severity
        self.category = event.category
        self.duration = event.duration
        self.created_at = event.created_at
        self.action = event.action
        self.action_label = event.action_label

    @property
    def is_unread(self) -> bool:
        return not self.read and not self.archived

    def time_ago(self, now: Any | None = None) -> str:
        return time_ago(self.created_at, now=now)

    def to_record(self) -> Dict[str, Any]:
        """Return the JSON-ready mapping stored by the center.

        Actions are callables and therefore never persisted.
        """
        return {
            "id": self.id,
            "message": self.message,
            "severity": self.severity,
            "category": self.category,
            "read": self.read,
            "archived": self.archived,
            "createdAt": self.created_at,
            "duration": self.duration,
        }

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "CenterRecord":
        """Build a record from a persisted mapping.

        Older payloads used ``type`` for the severity and ``timestamp`` for the
        creation time; both are accepted. Raises ``ValueError`` when the entry
        has no id or message.
        """
        raw_id = row.get("id")
        message = row.get("message")
        if raw_id is None or raw_id == "" or message is None:
            raise ValueError(f"incomplete notification record: {dict(row)!r}")
        severity = row.get("severity") or row.get("type") or "info"
        if severity not in SEVERITIES:
            severity = "info"
        created_at = row.get("createdAt") or row.get("created_at") or row.get("timestamp")
        try:
            duration = max(int(row.get("duration") or 0), 0)
        except (TypeError, ValueError, OverflowError):
            duration = 0
        return cls(
            id=str(raw_id),
            message=str(message),
            severity=severity,
            category=str(row.get("category") or DEFAULT_CATEGORY),
            duration=duration,
            created_at=str(created_at) if created_at else utcnow_iso(precise=True),
            read=_as_flag(row.get("read")),
            archived=_as_flag(row.get("archived")),
        )

    def copy(self) -> "CenterRecord":
        return replace(self)
