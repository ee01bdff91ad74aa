"""Abstract base class for notification providers.

Defines the interface every provider implements and the message value they
deliver.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Notification:
    """A message addressed to one recipient.

    Attributes:
        kind: Event name (e.g. 'tenant.welcome').
        recipient: Email address of the recipient.
        subject: Subject line.
        data: Template variables for the provider.
    """

    kind: str
    recipient: str
    subject: str
    data: dict[str, Any] = field(default_factory=dict)


class Notifier(ABC):
    """Abstract base class for notification providers."""

    @abstractmethod
    async def send(self, notification: Notification) -> None:
        """Deliver a notification.

        Raises:
            Exception: If delivery fails.
        """
