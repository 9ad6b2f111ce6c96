"""Timestamp helpers shared by the notification stores."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional


_LOCAL_TZ = datetime.now().astimezone().tzinfo or timezone.utc


def utcnow_iso(*, precise: bool = False) -> str:
    """Return the current UTC timestamp as an ISO 8601 string.

    ``precise`` keeps microseconds so records created within the same second
    still order correctly.
    """
    return datetime.now(timezone.utc).isoformat(
        timespec="microseconds" if precise else "seconds"
    )


def _coerce_datetime(value: Any) -> Optional[datetime]:
    """Best-effort conversion to an aware ``datetime`` in the local timezone."""

    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        # Millisecond epochs show up in payloads migrated from browser storage
        seconds = value / 1000 if value > 1e11 else value
        dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_LOCAL_TZ)
    return dt.astimezone(_LOCAL_TZ)


def time_ago(value: Any, *, now: Any | None = None, default: str = "") -> str:
    """Return a short label such as ``Just now``, ``5m ago`` or ``3d ago``.

    Anything a week or older is rendered as a local date.
    """

    dt = _coerce_datetime(value)
    if dt is None:
        return default
    reference = _coerce_datetime(now) if now is not None else None
    if reference is None:
        reference = datetime.now(tz=_LOCAL_TZ)

    elapsed = (reference - dt).total_seconds()
    minutes = int(elapsed // 60)
    hours = int(elapsed // 3600)
    days = int(elapsed // 86400)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return dt.strftime("%Y-%m-%d")


def to_datetime(value: Any) -> Optional[datetime]:
    """Public wrapper exposing the internal conversion helper."""

    return _coerce_datetime(value)


__all__ = [
    "utcnow_iso",
    "time_ago",
    "to_datetime",
]
