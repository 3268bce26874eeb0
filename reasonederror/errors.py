"""
Reasoned Error — Package Exception Hierarchy

Exceptions raised by this package itself, as opposed to the
ReasonedError values it produces for applications.

These two kinds must never be mixed:
  ReasonedErrorUsageError subclasses -> caller bugs -> fail at the call site, never notified
  ReasonedError                      -> domain errors -> announced to CreationHandlers

Severity guide:
  BuilderFinalizedError   FATAL  -- a Builder was used after by(); fix the caller
  SituationFrozenError    FATAL  -- a frozen SituationMap was written to
  UnwrapError             FATAL  -- to_reasoned_error() on a wrapper carrying something else
  NotSerializableError    HIGH   -- the reason enum cannot be pickled; error not persisted
  InvalidObjectError      HIGH   -- pickled payload reconstructed without a reason
"""

from __future__ import annotations

import pickle


class ReasonedErrorUsageError(RuntimeError):
    """Base for precondition violations specific to this package."""


class BuilderFinalizedError(ReasonedErrorUsageError):
    """
    A Builder was used after it had already produced its error.

    Recovery: none. Create a new builder with ReasonedError.with_().
    """


class SituationFrozenError(ReasonedErrorUsageError):
    """A parameter was put into a SituationMap that is already frozen."""


class UnwrapError(TypeError):
    """
    RuntimeReasonedError.to_reasoned_error() found no ReasonedError.

    Raised when the wrapper's cause was replaced or it was built around a
    different exception type.
    """


class NotSerializableError(pickle.PicklingError):
    """
    The reason of a ReasonedError cannot be pickled.

    The message is the fully qualified type name of the reason, e.g. a
    reason enum defined inside a function body.
    """


class InvalidObjectError(pickle.UnpicklingError):
    """A ReasonedError payload was reconstructed without a reason."""
