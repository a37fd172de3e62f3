"""Per-client notification delivery."""

from .notifier import ClientNotificationHub, Notifier

__all__ = ["ClientNotificationHub", "Notifier"]
