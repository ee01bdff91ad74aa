"""Tests for the notification provider registry."""

import pytest
from structlog.testing import capture_logs

from rentbase.core.exceptions import ProviderConfigurationError
from rentbase.infrastructure.notifications import (
    ConsoleNotifier,
    DisabledNotifier,
    Notification,
    build_notifier,
)


class TestBuildNotifier:
    def test_console(self, settings):
        assert isinstance(
            build_notifier(settings.model_copy(update={"notification_provider": "Console"})),
            ConsoleNotifier,
        )

    def test_disabled(self, settings):
        assert isinstance(build_notifier(settings), DisabledNotifier)

    def test_unknown_provider(self, settings):
        with pytest.raises(ProviderConfigurationError, match="carrier-pigeon"):
            build_notifier(settings.model_copy(update={"notification_provider": "carrier-pigeon"}))

    @pytest.mark.asyncio
    async def test_console_logs_notification(self):
        with capture_logs() as logs:
            await ConsoleNotifier().send(
                Notification(kind="tenant.welcome", recipient="owner@acme-rentals.com", subject="Hi")
            )
        assert logs[0]["recipient"] == "owner@acme-rentals.com"
