"""Notification settings.

Values come from, in increasing priority: built-in defaults, the
``[notifications]`` section of ``<data dir>/app.ini`` and environment
variables (``HELIDECK_NOTIFICATIONS_MAX``, ``HELIDECK_NOTIFICATIONS_KEY``).
The data directory itself is ``HELIDECK_DATA_DIR`` (default ``data``).

Example ``app.ini``::

    [notifications]
    storage_key = helideck_notifications
    max_records = 100
    duration_error = 10000
"""

from __future__ import annotations

import configparser
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from notifications.models import DEFAULT_DURATIONS_MS, SEVERITIES
from utils.db import data_dir as _default_data_dir


logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "helideck_notifications"
DEFAULT_MAX_RECORDS = 100
DEFAULT_DB_NAME = "notifications.db"


@dataclass
class NotificationSettings:
    data_dir: Path = field(default_factory=_default_data_dir)
    storage_key: str = DEFAULT_STORAGE_KEY
    max_records: int = DEFAULT_MAX_RECORDS
    db_name: str = DEFAULT_DB_NAME
    durations: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_DURATIONS_MS))

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name

    def duration_for(self, severity: str) -> int:
        return self.durations.get(severity, self.durations.get("info", 5000))


def _positive_int(raw: Optional[str], name: str, *, allow_zero: bool = False) -> Optional[int]:
    if raw is None or str(raw).strip() == "":
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        logger.warning("[settings] ignoring non-integer %s=%r", name, raw)
        return None
    if value < 0 or (value == 0 and not allow_zero):
        logger.warning("[settings] ignoring out-of-range %s=%r", name, raw)
        return None
    return value


def _read_ini(settings: NotificationSettings) -> None:
    ini_path = settings.data_dir / "app.ini"
    if not ini_path.exists():
        return
    cp = configparser.ConfigParser()
    try:
        cp.read(ini_path)
    except configparser.Error as exc:
        logger.warning("[settings] unable to parse %s: %s", ini_path, exc)
        return
    if not cp.has_section("notifications"):
        return
    section = cp["notifications"]
    key = section.get("storage_key", "").strip()
    if key:
        settings.storage_key = key
    db_name = section.get("db_name", "").strip()
    if db_name:
        settings.db_name = db_name
    max_records = _positive_int(section.get("max_records"), "max_records")
    if max_records is not None:
        settings.max_records = max_records
    for severity in SEVERITIES:
        name = f"duration_{severity}"
        duration = _positive_int(section.get(name), name, allow_zero=True)
        if duration is not None:
            settings.durations[severity] = duration


def load_settings(data_dir: Path | str | None = None) -> NotificationSettings:
    """Build settings from defaults, ``app.ini`` and the environment."""
    settings = NotificationSettings()
    if data_dir is not None:
        settings.data_dir = Path(data_dir)
    _read_ini(settings)

    env_key = os.environ.get("HELIDECK_NOTIFICATIONS_KEY", "").strip()
    if env_key:
        settings.storage_key = env_key
    env_max = _positive_int(os.environ.get("HELIDECK_NOTIFICATIONS_MAX"), "HELIDECK_NOTIFICATIONS_MAX")
    if env_max is not None:
        settings.max_records = env_max
    return settings


__all__ = ["NotificationSettings", "load_settings", "DEFAULT_STORAGE_KEY", "DEFAULT_MAX_RECORDS"]
