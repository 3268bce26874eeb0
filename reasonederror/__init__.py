"""
Reasoned Error

Exceptions identified by an enum reason, carrying ordered situation
parameters, an optional cause and their origin, plus a process-wide
notifier that announces every creation to registered handlers.
"""

from reasonederror import configuration
from reasonederror.error import Builder, Origin, ReasonedError, RuntimeReasonedError
from reasonederror.errors import (
    BuilderFinalizedError,
    InvalidObjectError,
    NotSerializableError,
    ReasonedErrorUsageError,
    SituationFrozenError,
    UnwrapError,
)
from reasonederror.handlers import CreationHandler
from reasonederror.notify import CreationNotifier
from reasonederror.situation import SituationMap

__all__ = [
    # Error value
    "Builder",
    "Origin",
    "ReasonedError",
    "RuntimeReasonedError",
    "SituationMap",
    # Notification
    "CreationHandler",
    "CreationNotifier",
    "configuration",
    # Package errors
    "BuilderFinalizedError",
    "InvalidObjectError",
    "NotSerializableError",
    "ReasonedErrorUsageError",
    "SituationFrozenError",
    "UnwrapError",
]
