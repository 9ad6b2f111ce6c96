from .notification import (
    CENTER_SEVERITIES,
    DEFAULT_CATEGORY,
    DEFAULT_DURATIONS_MS,
    SEVERITIES,
    CenterRecord,
    NotificationEvent,
    Severity,
    ToastEntry,
    generate_id,
)
from .schema_sql import ensure_kv_schema

__all__ = [
    "CENTER_SEVERITIES",
    "DEFAULT_CATEGORY",
    "DEFAULT_DURATIONS_MS",
    "SEVERITIES",
    "CenterRecord",
    "NotificationEvent",
    "Severity",
    "ToastEntry",
    "generate_id",
    "ensure_kv_schema",
]
