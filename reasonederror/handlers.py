"""
Reasoned Error — Creation Handler Contract

A creation handler observes every ReasonedError finalized after the
notifier is fixed. It receives the error and the moment of creation:

    def handler(error: ReasonedError, timestamp: datetime) -> None: ...

Handlers registered as asynchronous may also be coroutine functions.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from reasonederror.error import ReasonedError


class CreationHandler(Protocol):
    """Callable invoked with a newly created error and its timestamp."""

    def __call__(
        self,
        error: ReasonedError,
        timestamp: datetime,
    ) -> None | Awaitable[None]: ...


def is_coroutine_handler(handler: Any) -> bool:
    """True for ``async def`` functions and objects with an ``async def __call__``."""
    if inspect.iscoroutinefunction(handler):
        return True
    call = getattr(type(handler), "__call__", None)
    return inspect.iscoroutinefunction(call)
