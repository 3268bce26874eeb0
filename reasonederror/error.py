"""
Reasoned Error — Error Value

ReasonedError is an exception that carries:
  reason     -- a member of an application-defined Enum (why it happened)
  situation  -- ordered name -> value parameters (what was going on)
  cause      -- an optional earlier exception, possibly another ReasonedError
  origin     -- the call site that created it

It has no public constructor. Errors are created with ``by``, directly or
at the end of a chain of ``with_`` calls:

    class FileErr(enum.Enum):
        OPEN_FAILED = enum.auto()

    raise ReasonedError.with_("path", path).with_("mode", "r").by(FileErr.OPEN_FAILED, exc)

Every creation is announced to the process-wide CreationNotifier (see
reasonederror.configuration) or to the notifier passed explicitly.
"""

from __future__ import annotations

import enum
import os
import pickle
import sys
from typing import TYPE_CHECKING, Any, TypeVar

from reasonederror import configuration
from reasonederror.errors import (
    BuilderFinalizedError,
    InvalidObjectError,
    NotSerializableError,
    UnwrapError,
)
from reasonederror.primitives.common import FrozenModel, qualified_name
from reasonederror.situation import SituationKey, SituationMap, situation_key

if TYPE_CHECKING:
    from reasonederror.notify import CreationNotifier

T = TypeVar("T")

# Nested ReasonedError causes rendered by ``message`` before it prints "...".
MAX_CAUSE_DEPTH: int = 64

_FACTORY = object()


class Origin(FrozenModel):
    """The single call site at which a ReasonedError was finalized."""

    module: str
    operation: str
    file: str
    line: int

    @classmethod
    def from_caller(cls, depth: int = 1) -> Origin:
        """
        Origin of the frame ``depth`` levels above the function that calls this.

        ``depth=1`` is the caller of the calling function.
        """
        frame = sys._getframe(depth + 1)
        code = frame.f_code
        return cls(
            module=frame.f_globals.get("__name__", "<unknown>"),
            operation=code.co_qualname,
            file=os.path.basename(code.co_filename),
            line=frame.f_lineno,
        )

    def __str__(self) -> str:
        return f"{self.module}.{self.operation} ({self.file}:{self.line})"


class ReasonedError(Exception):
    """
    An exception identified by an enum reason.

    Immutable once created. ``str(error)`` is the ``message`` rendering:

        reason=<REASON>, name1=value1, name2=value2, cause=<Type>: <cause message>

    ``cause`` is only the exception passed to ``by``. It also becomes
    ``__cause__``, but ``raise ReasonedError.by(reason) from exc`` sets
    ``__cause__`` alone: ``cause`` stays None and ``message`` omits it.
    Pass ``exc`` to ``by`` to have it rendered.
    """

    def __init__(
        self,
        reason: enum.Enum,
        situation: SituationMap,
        cause: BaseException | None,
        origin: Origin,
        *,
        _token: object = None,
    ) -> None:
        if _token is not _FACTORY:
            raise TypeError(
                "ReasonedError has no public constructor; "
                "use ReasonedError.by(...) or ReasonedError.with_(...).by(...)"
            )
        super().__init__()
        self._reason = reason
        self._situation = situation
        self._cause = cause
        self._origin = origin
        self.__cause__ = cause

    # ─── Factories ───────────────────────────────────────────────────

    @classmethod
    def by(
        cls,
        reason: enum.Enum,
        cause: BaseException | None = None,
        *,
        notifier: CreationNotifier | None = None,
    ) -> ReasonedError:
        """Create an error with no situation parameters."""
        origin = Origin.from_caller()
        return Builder(notifier=notifier)._finalize(reason, cause, origin)

    @classmethod
    def with_(
        cls,
        name: SituationKey,
        value: Any,
        *,
        notifier: CreationNotifier | None = None,
    ) -> Builder:
        """Start a Builder with one situation parameter."""
        return Builder(notifier=notifier).with_(name, value)

    # ─── Accessors ───────────────────────────────────────────────────

    @property
    def reason(self) -> enum.Enum:
        return self._reason

    @property
    def situation(self) -> SituationMap:
        return self._situation

    @property
    def cause(self) -> BaseException | None:
        return self._cause

    @property
    def origin(self) -> Origin:
        return self._origin

    def situation_value(
        self,
        name: SituationKey,
        expected_type: type[T] | None = None,
    ) -> Any:
        """
        Look up a situation parameter by name or by enum member.

        Returns None when absent. With ``expected_type``, a value of a
        different type raises TypeError.
        """
        if expected_type is None:
            return self._situation.get(situation_key(name))
        return self._situation.get_as(name, expected_type)

    # ─── Rendering ───────────────────────────────────────────────────

    @property
    def message(self) -> str:
        return self._render(0)

    def _render(self, depth: int) -> str:
        parts = [f"reason={self._reason.name}"]
        parts.extend(f"{name}={value}" for name, value in self._situation.items())
        if self._cause is not None:
            parts.append(f"cause={_render_cause(self._cause, depth + 1)}")
        return ", ".join(parts)

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view for structured logs."""
        cause = None if self._cause is None else _render_cause(self._cause, 1)
        return {
            "reason": self._reason.name,
            "reason_type": qualified_name(type(self._reason)),
            "situation": {
                name: value if _is_json_primitive(value) else repr(value)
                for name, value in self._situation.items()
            },
            "origin": self._origin.model_dump(),
            "cause": cause,
        }

    # ─── Conversion ──────────────────────────────────────────────────

    def to_runtime_error(self) -> RuntimeReasonedError:
        """Wrap for call sites that must not surface a ReasonedError directly."""
        return RuntimeReasonedError(self)

    # ─── Pickling ────────────────────────────────────────────────────

    def __reduce__(self) -> tuple[Any, ...]:
        try:
            pickle.dumps(self._reason)
        except (pickle.PicklingError, TypeError, AttributeError) as exc:
            raise NotSerializableError(qualified_name(type(self._reason))) from exc
        return (
            _restore,
            (self._reason, tuple(self._situation.items()), self._cause, self._origin),
        )


class RuntimeReasonedError(RuntimeError):
    """
    Carries a ReasonedError as its cause.

    For callbacks and interfaces whose contract allows only a fixed set of
    exception types. Unwrap with ``to_reasoned_error()``.
    """

    def __init__(self, error: BaseException) -> None:
        super().__init__(str(error))
        self.__cause__ = error

    def to_reasoned_error(self) -> ReasonedError:
        cause = self.__cause__
        if not isinstance(cause, ReasonedError):
            raise UnwrapError(
                f"cause is {type(cause).__name__}, not ReasonedError"
            )
        return cause

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (self.__cause__,))


class Builder:
    """
    Accumulates situation parameters, then creates one ReasonedError.

    A builder is single use: after ``by`` every further call raises
    BuilderFinalizedError.
    """

    def __init__(self, notifier: CreationNotifier | None = None) -> None:
        self._notifier = notifier
        self._situation: SituationMap | None = SituationMap()

    def with_(self, name: SituationKey, value: Any) -> Builder:
        if self._situation is None:
            raise BuilderFinalizedError("builder already produced its error")
        self._situation.put(name, value)
        return self

    def by(
        self,
        reason: enum.Enum,
        cause: BaseException | None = None,
    ) -> ReasonedError:
        """Create the error, announce it, and return it."""
        origin = Origin.from_caller()
        return self._finalize(reason, cause, origin)

    def _finalize(
        self,
        reason: enum.Enum,
        cause: BaseException | None,
        origin: Origin,
    ) -> ReasonedError:
        if self._situation is None:
            raise BuilderFinalizedError("builder already produced its error")
        _check_reason(reason)
        if cause is not None and not isinstance(cause, BaseException):
            raise TypeError(f"cause must be an exception, got {type(cause).__name__}")

        situation = self._situation.freeze()
        self._situation = None

        error = ReasonedError(reason, situation, cause, origin, _token=_FACTORY)
        notifier = self._notifier if self._notifier is not None else configuration.get_notifier()
        notifier.notify(error)
        return error


# ─── Helpers ─────────────────────────────────────────────────────


def _check_reason(reason: Any) -> None:
    if reason is None:
        raise ValueError("reason must not be None")
    if not isinstance(reason, enum.Enum):
        raise TypeError(f"reason must be an Enum member, got {type(reason).__name__}")


def _render_cause(cause: BaseException, depth: int) -> str:
    type_name = qualified_name(type(cause))
    if isinstance(cause, ReasonedError):
        text = "..." if depth > MAX_CAUSE_DEPTH else cause._render(depth)
    else:
        text = str(cause)
    return f"{type_name}: {text}" if text else type_name


def _is_json_primitive(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def _restore(
    reason: enum.Enum | None,
    situation_items: tuple[tuple[str, Any], ...],
    cause: BaseException | None,
    origin: Origin,
) -> ReasonedError:
    if reason is None:
        raise InvalidObjectError("reason is null.")
    situation = SituationMap(situation_items).freeze()
    return ReasonedError(reason, situation, cause, origin, _token=_FACTORY)
