from __future__ import annotations

import logging

import pytest
import structlog

from reasonederror import configuration
from reasonederror.notify import CreationNotifier
from reasonederror.telemetry.logging import HANDLER_NAME, PACKAGE_LOGGER


@pytest.fixture(autouse=True)
def global_notifier(monkeypatch: pytest.MonkeyPatch) -> CreationNotifier:
    """Give every test its own process-wide notifier."""
    notifier = CreationNotifier()
    monkeypatch.setattr(configuration, "_notifier", notifier)
    return notifier


@pytest.fixture
def restore_logging():
    """Undo setup_logging(): its root handler, both levels and structlog config."""
    root = logging.getLogger()
    package = logging.getLogger(PACKAGE_LOGGER)
    root_level, package_level = root.level, package.level
    yield
    for handler in list(root.handlers):
        if handler.get_name() == HANDLER_NAME:
            root.removeHandler(handler)
    root.setLevel(root_level)
    package.setLevel(package_level)
    structlog.reset_defaults()
