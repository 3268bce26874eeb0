"""
Reasoned Error — Configuration Facade

Owns the single process-wide CreationNotifier and exposes the minimal
registration surface for application startup:

    from reasonederror import configuration

    configuration.add_sync_handler(audit_hook)
    configuration.add_async_handler(send_to_metrics)
    configuration.fix()

or, driven by ReasonedErrorSettings:

    configuration.configure(load_config("config/default.yaml"))

Configure once, before any code path that can create a ReasonedError.
Errors created before fix() are not announced to anyone.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from reasonederror.config import ReasonedErrorSettings
from reasonederror.notify import CreationNotifier
from reasonederror.telemetry.creation_log import StructlogCreationHandler
from reasonederror.telemetry.logging import setup_logging

if TYPE_CHECKING:
    from reasonederror.handlers import CreationHandler

logger = structlog.get_logger("reasonederror.configuration")

_notifier = CreationNotifier()


def get_notifier() -> CreationNotifier:
    """The process-wide notifier used when no notifier is passed explicitly."""
    return _notifier


def add_sync_handler(handler: CreationHandler) -> None:
    """
    Add a handler run inline right after an error is created.

    Sync handlers run in the order added and stop at the first one that
    raises; that exception propagates to the code creating the error.
    """
    _notifier.add_sync_handler(handler)


def add_async_handler(handler: CreationHandler) -> None:
    """
    Add a handler run on a background thread right after an error is created.

    Async handlers run in the order added; a failing one does not stop
    the others.
    """
    _notifier.add_async_handler(handler)


def fix() -> None:
    """Freeze the configuration and start announcing created errors."""
    _notifier.fix()


def is_fixed() -> bool:
    return _notifier.is_fixed


def configure(settings: ReasonedErrorSettings | None = None) -> CreationNotifier:
    """
    Bootstrap logging and the creation log handler from settings.

    Handlers the application wants alongside the log handler should be
    added before this call when ``notifier.auto_fix`` is enabled.
    """
    settings = settings or ReasonedErrorSettings()
    setup_logging(settings.logging)

    notifier = get_notifier()
    opts = settings.notifier
    if opts.log_creations:
        handler = StructlogCreationHandler(level=opts.log_level)
        if opts.log_mode == "sync":
            notifier.add_sync_handler(handler)
        else:
            notifier.add_async_handler(handler)

    if opts.auto_fix:
        notifier.fix()

    logger.info(
        "reasoned_error_configured",
        log_creations=opts.log_creations,
        log_mode=opts.log_mode,
        fixed=notifier.is_fixed,
    )
    return notifier
