"""Structured logging setup and the creation log handler."""

from reasonederror.telemetry.creation_log import StructlogCreationHandler
from reasonederror.telemetry.logging import setup_logging

__all__ = [
    "StructlogCreationHandler",
    "setup_logging",
]
