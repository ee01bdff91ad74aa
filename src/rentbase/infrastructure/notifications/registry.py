"""Notification provider registry.

Maps the configured provider name to a constructor. The name is resolved
once by the application factory, so an unknown provider stops startup
instead of failing on the first notification.
"""

from collections.abc import Callable
from enum import Enum

from rentbase.core.config import Settings
from rentbase.core.exceptions import ProviderConfigurationError
from rentbase.infrastructure.notifications.console import ConsoleNotifier, DisabledNotifier
from rentbase.infrastructure.notifications.provider import Notifier


class NotificationProviderKind(str, Enum):
    """Known notification providers."""

    CONSOLE = "console"
    DISABLED = "disabled"


_PROVIDERS: dict[NotificationProviderKind, Callable[[Settings], Notifier]] = {
    NotificationProviderKind.CONSOLE: lambda settings: ConsoleNotifier(),
    NotificationProviderKind.DISABLED: lambda settings: DisabledNotifier(),
}


def build_notifier(settings: Settings) -> Notifier:
    """Build the notifier named by ``settings.notification_provider``.

    Args:
        settings: Application settings.

    Returns:
        The configured notifier.

    Raises:
        ProviderConfigurationError: If the provider name is unknown.
    """
    name = settings.notification_provider.strip().lower()
    try:
        kind = NotificationProviderKind(name)
    except ValueError as e:
        known = ", ".join(kind.value for kind in NotificationProviderKind)
        raise ProviderConfigurationError(
            f"Unknown notification provider '{name}' (expected one of: {known})"
        ) from e
    return _PROVIDERS[kind](settings)
