"""
Reasoned Error — Pickle Boundary

Moves a ReasonedError across process boundaries with pickle. The reason,
situation, cause and origin survive; the traceback does not.

Failure conditions:
  NotSerializableError  -- the reason enum cannot be pickled (e.g. defined
                           inside a function); the message names its type
  InvalidObjectError    -- the payload reconstructs without a reason
"""

from __future__ import annotations

import pickle

from reasonederror.error import ReasonedError


def dumps(error: ReasonedError, protocol: int | None = None) -> bytes:
    """Pickle a ReasonedError."""
    if not isinstance(error, ReasonedError):
        raise TypeError(f"expected ReasonedError, got {type(error).__name__}")
    return pickle.dumps(error, protocol=protocol)


def loads(data: bytes) -> ReasonedError:
    """
    Unpickle a ReasonedError. Reconstruction does not notify handlers.

    Only load data from trusted sources: this is pickle.
    """
    error = pickle.loads(data)
    if not isinstance(error, ReasonedError):
        raise TypeError(f"payload is {type(error).__name__}, not ReasonedError")
    return error
