"""
Tests for CreationNotifier.

Covers:
  - Registration while open, ignored after fix
  - No dispatch before fix
  - Sync ordering and fail-loud propagation
  - Async dispatch off the calling thread, ordering and failure isolation
  - Handler lists published by fix() on another thread
  - Coroutine async handlers
  - Shared timestamp
"""

from __future__ import annotations

import enum
import sys
import threading
from datetime import datetime

import pytest
from structlog.testing import capture_logs

from reasonederror.error import ReasonedError
from reasonederror.notify import CreationNotifier

_WAIT_S = 5.0


class Err(enum.Enum):
    FAIL_TO_DO_SOMETHING = enum.auto()


def _make_error() -> ReasonedError:
    # Created against an open notifier so nothing is dispatched here.
    return ReasonedError.by(Err.FAIL_TO_DO_SOMETHING, notifier=CreationNotifier())


def _recorder(log: list, name: str, done: threading.Event | None = None):
    def handler(error, timestamp):
        log.append(name)
        if done is not None:
            done.set()

    handler.__qualname__ = name
    return handler


class TestRegistration:
    def test_starts_open_and_empty(self):
        notifier = CreationNotifier()
        assert notifier.is_fixed is False
        assert notifier.sync_handlers == ()
        assert notifier.async_handlers == ()

    def test_handlers_kept_in_registration_order(self):
        notifier = CreationNotifier()
        h1, h2, h3, h4 = (_recorder([], n) for n in ("h1", "h2", "h3", "h4"))

        notifier.add_sync_handler(h1)
        notifier.add_sync_handler(h2)
        notifier.add_async_handler(h3)
        notifier.add_async_handler(h4)

        assert notifier.sync_handlers == (h1, h2)
        assert notifier.async_handlers == (h3, h4)

    def test_fix_is_idempotent(self):
        notifier = CreationNotifier()
        h1 = _recorder([], "h1")
        notifier.add_sync_handler(h1)

        notifier.fix()
        notifier.fix()

        assert notifier.is_fixed is True
        assert notifier.sync_handlers == (h1,)

    def test_registration_after_fix_is_ignored(self):
        notifier = CreationNotifier()
        notifier.fix()
        log: list = []
        late_done = threading.Event()

        notifier.add_sync_handler(_recorder(log, "late_sync"))
        notifier.add_async_handler(_recorder(log, "late_async", late_done))
        notifier.notify(_make_error())

        assert notifier.sync_handlers == ()
        assert notifier.async_handlers == ()
        assert not late_done.wait(0.1)
        assert log == []

    def test_non_callable_rejected(self):
        notifier = CreationNotifier()
        with pytest.raises(TypeError):
            notifier.add_sync_handler("not a handler")  # type: ignore[arg-type]
        with pytest.raises(TypeError):
            notifier.add_async_handler(None)  # type: ignore[arg-type]

    def test_coroutine_sync_handler_rejected(self):
        notifier = CreationNotifier()

        async def handler(error, timestamp):
            pass

        with pytest.raises(TypeError, match="add_async_handler"):
            notifier.add_sync_handler(handler)

    def test_concurrent_registration_keeps_every_handler(self):
        notifier = CreationNotifier()
        handlers = [_recorder([], f"h{i}") for i in range(40)]

        threads = [
            threading.Thread(target=notifier.add_sync_handler, args=(h,))
            for h in handlers
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert set(notifier.sync_handlers) == set(handlers)

    def test_stats(self):
        notifier = CreationNotifier()
        notifier.add_sync_handler(_recorder([], "h1"))
        notifier.fix()
        assert notifier.stats == {
            "fixed": True,
            "sync_handler_count": 1,
            "async_handler_count": 0,
        }


class TestDispatchBeforeFix:
    def test_nothing_runs_before_fix(self):
        notifier = CreationNotifier()
        log: list = []
        async_done = threading.Event()
        notifier.add_sync_handler(_recorder(log, "sync"))
        notifier.add_async_handler(_recorder(log, "async", async_done))

        notifier.notify(_make_error())

        assert log == []
        assert not async_done.wait(0.1)

    def test_events_before_fix_are_not_replayed(self):
        notifier = CreationNotifier()
        log: list = []
        notifier.add_sync_handler(_recorder(log, "sync"))

        notifier.notify(_make_error())
        notifier.fix()

        assert log == []
        notifier.notify(_make_error())
        assert log == ["sync"]


class TestSyncDispatch:
    def test_sync_handlers_run_inline_in_order(self):
        notifier = CreationNotifier()
        log: list = []
        notifier.add_sync_handler(_recorder(log, "h1"))
        notifier.add_sync_handler(_recorder(log, "h2"))
        notifier.fix()

        notifier.notify(_make_error())

        assert log == ["h1", "h2"]

    def test_sync_handler_receives_error_and_aware_timestamp(self):
        notifier = CreationNotifier()
        received: list = []
        notifier.add_sync_handler(lambda error, ts: received.append((error, ts)))
        notifier.fix()
        err = _make_error()

        notifier.notify(err)

        (got_error, timestamp), = received
        assert got_error is err
        assert isinstance(timestamp, datetime)
        assert timestamp.tzinfo is not None

    def test_failing_sync_handler_stops_later_ones_and_propagates(self):
        notifier = CreationNotifier()
        log: list = []

        def failing(error, timestamp):
            log.append("failing")
            raise LookupError("sync observer failed")

        notifier.add_sync_handler(_recorder(log, "h1"))
        notifier.add_sync_handler(failing)
        notifier.add_sync_handler(_recorder(log, "h3"))
        notifier.fix()

        with pytest.raises(LookupError, match="sync observer failed"):
            notifier.notify(_make_error())
        assert log == ["h1", "failing"]


class TestAsyncDispatch:
    def test_sync_before_return_async_eventually_in_order(self):
        notifier = CreationNotifier()
        sync_log: list = []
        async_log: list = []
        done = threading.Event()
        notifier.add_sync_handler(_recorder(sync_log, "h1"))
        notifier.add_sync_handler(_recorder(sync_log, "h2"))
        notifier.add_async_handler(_recorder(async_log, "h3"))
        notifier.add_async_handler(_recorder(async_log, "h4", done))
        notifier.fix()

        notifier.notify(_make_error())

        assert sync_log == ["h1", "h2"]
        assert done.wait(_WAIT_S)
        assert async_log == ["h3", "h4"]

    def test_notify_does_not_wait_for_async_handlers(self):
        notifier = CreationNotifier()
        release = threading.Event()
        finished = threading.Event()

        def slow(error, timestamp):
            release.wait(_WAIT_S)
            finished.set()

        notifier.add_async_handler(slow)
        notifier.fix()

        notifier.notify(_make_error())

        assert not finished.is_set()
        release.set()
        assert finished.wait(_WAIT_S)

    def test_async_handlers_run_off_the_calling_thread(self):
        notifier = CreationNotifier(thread_name_prefix="test-notify")
        seen: list = []
        done = threading.Event()

        def handler(error, timestamp):
            seen.append(threading.current_thread())
            done.set()

        notifier.add_async_handler(handler)
        notifier.fix()
        notifier.notify(_make_error())

        assert done.wait(_WAIT_S)
        assert seen[0] is not threading.current_thread()
        assert seen[0].name.startswith("test-notify-")
        assert seen[0].daemon is True

    def test_failing_async_handler_is_isolated(self):
        notifier = CreationNotifier()
        log: list = []
        done = threading.Event()

        def failing(error, timestamp):
            log.append("failing")
            raise RuntimeError("async observer failed")

        notifier.add_async_handler(_recorder(log, "before"))
        notifier.add_async_handler(failing)
        notifier.add_async_handler(_recorder(log, "after", done))
        notifier.fix()

        notifier.notify(_make_error())

        assert done.wait(_WAIT_S)
        assert log == ["before", "failing", "after"]

    def test_failing_async_handler_is_logged(self):
        with capture_logs() as entries:
            notifier = CreationNotifier()
            done = threading.Event()

            def failing(error, timestamp):
                raise RuntimeError("async observer failed")

            notifier.add_async_handler(failing)
            notifier.add_async_handler(_recorder([], "after", done))
            notifier.fix()
            notifier.notify(_make_error())
            assert done.wait(_WAIT_S)

        failures = [e for e in entries if e["event"] == "async_creation_handler_failed"]
        assert len(failures) == 1
        assert failures[0]["error"] == "async observer failed"
        assert failures[0]["reason"] == "FAIL_TO_DO_SOMETHING"
        assert failures[0]["log_level"] == "warning"

    def test_coroutine_async_handler_is_awaited(self):
        notifier = CreationNotifier()
        log: list = []
        done = threading.Event()

        async def handler(error, timestamp):
            log.append(error.reason.name)
            done.set()

        notifier.add_async_handler(handler)
        notifier.fix()
        notifier.notify(_make_error())

        assert done.wait(_WAIT_S)
        assert log == ["FAIL_TO_DO_SOMETHING"]

    def test_sync_and_async_share_one_timestamp(self):
        notifier = CreationNotifier()
        stamps: list = []
        done = threading.Event()

        def async_handler(error, timestamp):
            stamps.append(timestamp)
            done.set()

        notifier.add_sync_handler(lambda error, ts: stamps.append(ts))
        notifier.add_async_handler(async_handler)
        notifier.fix()
        notifier.notify(_make_error())

        assert done.wait(_WAIT_S)
        assert stamps[0] is stamps[1]

    def test_failed_thread_start_does_not_reach_caller(self, monkeypatch):
        notifier = CreationNotifier()
        notifier.add_async_handler(_recorder([], "h"))
        notifier.fix()

        def refuse(self):
            raise RuntimeError("can't start new thread")

        monkeypatch.setattr(threading.Thread, "start", refuse)

        notifier.notify(_make_error())

    def test_system_exit_in_async_handler_is_isolated(self):
        log: list = []
        done = threading.Event()

        def exiting(error, timestamp):
            log.append("exiting")
            sys.exit(1)

        with capture_logs() as entries:
            notifier = CreationNotifier()
            notifier.add_async_handler(exiting)
            notifier.add_async_handler(_recorder(log, "after", done))
            notifier.fix()
            notifier.notify(_make_error())
            assert done.wait(_WAIT_S)

        assert log == ["exiting", "after"]
        failures = [e for e in entries if e["event"] == "async_creation_handler_failed"]
        assert failures[0]["error_type"] == "SystemExit"


class TestFixAcrossThreads:
    def test_fix_on_worker_thread_publishes_complete_lists(self):
        notifier = CreationNotifier()
        log: list = []
        done = threading.Event()
        notifier.add_sync_handler(_recorder(log, "s1"))
        notifier.add_sync_handler(_recorder(log, "s2"))
        notifier.add_async_handler(_recorder(log, "a1", done))

        worker = threading.Thread(target=notifier.fix)
        worker.start()
        worker.join()

        assert notifier.is_fixed is True
        notifier.notify(_make_error())

        assert done.wait(_WAIT_S)
        assert log == ["s1", "s2", "a1"]
