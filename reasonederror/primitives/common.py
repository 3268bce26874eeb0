"""
Reasoned Error — Common Primitives

Identifiers, timestamps and the frozen base model shared by the error
value types and the telemetry layer.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel
from ulid import ULID


def new_id() -> str:
    """Generate a new ULID string. Time-sortable, globally unique."""
    return str(ULID())


def utc_now() -> datetime:
    """Current UTC time, timezone-aware."""
    return datetime.now(timezone.utc)


def qualified_name(cls: type) -> str:
    """``module.QualName`` for a class, or the bare name for builtins."""
    module = cls.__module__
    if module in ("builtins", "__main__", None):
        return cls.__qualname__
    return f"{module}.{cls.__qualname__}"


# ─── Base Models ──────────────────────────────────────────────────


class FrozenModel(BaseModel):
    """Immutable value record. Assignment after construction raises."""

    model_config = {"frozen": True, "populate_by_name": True}
