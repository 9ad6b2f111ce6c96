"""Alert dispatching for the helideck inspection app.

One ``Notifier`` fans each alert out to the toast store and, for warnings,
errors and persisted alerts, to the notification center.
"""

from .system import NotificationSystem, create_notification_system

__all__ = ["NotificationSystem", "create_notification_system"]
