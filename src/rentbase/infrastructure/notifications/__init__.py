"""Notification providers."""

from rentbase.infrastructure.notifications.console import ConsoleNotifier, DisabledNotifier
from rentbase.infrastructure.notifications.provider import Notification, Notifier
from rentbase.infrastructure.notifications.registry import (
    NotificationProviderKind,
    build_notifier,
)

__all__ = [
    "ConsoleNotifier",
    "DisabledNotifier",
    "Notification",
    "NotificationProviderKind",
    "Notifier",
    "build_notifier",
]
