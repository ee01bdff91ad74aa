"""Providers that do not leave the process."""

from rentbase.core.logging import get_logger
from rentbase.infrastructure.notifications.provider import Notification, Notifier

logger = get_logger(__name__)


class ConsoleNotifier(Notifier):
    """Write notifications to the log. Used in development."""

    async def send(self, notification: Notification) -> None:
        logger.info(
            "Notification",
            kind=notification.kind,
            recipient=notification.recipient,
            subject=notification.subject,
            **notification.data,
        )


class DisabledNotifier(Notifier):
    """Drop every notification."""

    async def send(self, notification: Notification) -> None:
        logger.debug("Notification dropped", kind=notification.kind)
