"""
Reasoned Error — Creation Notifier

Fans out every ReasonedError creation to registered CreationHandlers.

Lifecycle:
  OPEN   -- handlers may be registered; notify() does nothing (events are dropped, not buffered)
  FIXED  -- registrations are ignored; notify() dispatches every event

Dispatch per event:
  1. One timestamp is taken and shared by all handlers.
  2. Sync handlers run inline in registration order. The first one that
     raises stops the rest and the exception reaches the code that
     created the error.
  3. Async handlers run in registration order on a new thread. Each
     failure, SystemExit included, is logged and swallowed; the
     remaining handlers still run.
  4. notify() never waits for the async thread.

There is no cancellation, timeout or queue bound for async dispatch.
A slow async handler under a high error rate accumulates threads.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import threading
from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog

from reasonederror.handlers import CreationHandler, is_coroutine_handler
from reasonederror.primitives.common import utc_now

if TYPE_CHECKING:
    from reasonederror.error import ReasonedError

logger = structlog.get_logger("reasonederror.notify.notifier")

_DEFAULT_THREAD_NAME_PREFIX: str = "reasoned-error-notify"


class CreationNotifier:
    """
    Registry of sync and async creation handlers with a one-way fix.

    Registration and fix() are serialised by a lock. fix() publishes the
    final handler tuples before flipping the fixed flag, so any thread
    that observes ``is_fixed`` also observes the complete handler lists.
    Concurrent notify() calls share those tuples read-only.
    """

    def __init__(
        self,
        *,
        daemon_threads: bool = True,
        thread_name_prefix: str = _DEFAULT_THREAD_NAME_PREFIX,
    ) -> None:
        self._lock = threading.Lock()
        self._fixed = False
        self._sync_handlers: list[CreationHandler] | tuple[CreationHandler, ...] = []
        self._async_handlers: list[CreationHandler] | tuple[CreationHandler, ...] = []

        self._daemon_threads = daemon_threads
        self._thread_name_prefix = thread_name_prefix
        self._thread_seq = itertools.count(1)

        self._logger = logger.bind(component="creation_notifier")

    # ─── State ───────────────────────────────────────────────────────

    @property
    def is_fixed(self) -> bool:
        return self._fixed

    @property
    def sync_handlers(self) -> tuple[CreationHandler, ...]:
        return tuple(self._sync_handlers)

    @property
    def async_handlers(self) -> tuple[CreationHandler, ...]:
        return tuple(self._async_handlers)

    # ─── Registration ────────────────────────────────────────────────

    def add_sync_handler(self, handler: CreationHandler) -> None:
        """
        Register a handler run inline on the creating thread.

        Ignored once fixed. Coroutine functions are rejected: nothing
        would await them.
        """
        if not callable(handler):
            raise TypeError(f"creation handler must be callable, got {handler!r}")
        if is_coroutine_handler(handler):
            raise TypeError(
                f"coroutine function {_handler_name(handler)} cannot be a sync "
                "creation handler; register it with add_async_handler"
            )
        self._register("sync", handler)

    def add_async_handler(self, handler: CreationHandler) -> None:
        """Register a handler run on a background thread. Ignored once fixed."""
        if not callable(handler):
            raise TypeError(f"creation handler must be callable, got {handler!r}")
        self._register("async", handler)

    def _register(self, kind: str, handler: CreationHandler) -> None:
        with self._lock:
            if self._fixed:
                self._logger.debug(
                    "late_handler_registration_ignored",
                    kind=kind,
                    handler=_handler_name(handler),
                )
                return
            handlers = self._sync_handlers if kind == "sync" else self._async_handlers
            handlers.append(handler)  # type: ignore[union-attr]

    def fix(self) -> None:
        """Close registration and start dispatching. Idempotent."""
        with self._lock:
            if self._fixed:
                return
            self._sync_handlers = tuple(self._sync_handlers)
            self._async_handlers = tuple(self._async_handlers)
            self._fixed = True

        self._logger.info(
            "notifier_fixed",
            sync_handlers=len(self._sync_handlers),
            async_handlers=len(self._async_handlers),
        )

    # ─── Dispatch ────────────────────────────────────────────────────

    def notify(self, error: ReasonedError) -> None:
        """
        Announce that ``error`` was created.

        Does nothing until fixed. Exceptions from sync handlers propagate;
        async handlers never affect the caller.
        """
        if not self._fixed:
            return

        sync_handlers = self._sync_handlers
        async_handlers = self._async_handlers
        now = utc_now()

        for handler in sync_handlers:
            handler(error, now)

        if async_handlers:
            self._spawn_async(async_handlers, error, now)

    def _spawn_async(
        self,
        handlers: tuple[CreationHandler, ...],
        error: ReasonedError,
        timestamp: datetime,
    ) -> None:
        thread = threading.Thread(
            target=self._run_async_handlers,
            args=(handlers, error, timestamp),
            name=f"{self._thread_name_prefix}-{next(self._thread_seq)}",
            daemon=self._daemon_threads,
        )
        try:
            thread.start()
        except RuntimeError as exc:
            self._logger.error(
                "async_dispatch_spawn_failed",
                reason=error.reason.name,
                error=str(exc),
            )

    def _run_async_handlers(
        self,
        handlers: tuple[CreationHandler, ...],
        error: ReasonedError,
        timestamp: datetime,
    ) -> None:
        for handler in handlers:
            try:
                result = handler(error, timestamp)
                if inspect.iscoroutine(result):
                    asyncio.run(result)
            except BaseException as exc:
                self._logger.warning(
                    "async_creation_handler_failed",
                    handler=_handler_name(handler),
                    reason=error.reason.name,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

    # ─── Stats ───────────────────────────────────────────────────────

    @property
    def stats(self) -> dict[str, Any]:
        return {
            "fixed": self._fixed,
            "sync_handler_count": len(self._sync_handlers),
            "async_handler_count": len(self._async_handlers),
        }


def _handler_name(handler: Any) -> str:
    return getattr(handler, "__qualname__", None) or type(handler).__qualname__
