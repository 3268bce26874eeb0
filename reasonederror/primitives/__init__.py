"""Shared primitives: ids, timestamps, base models."""

from reasonederror.primitives.common import FrozenModel, new_id, qualified_name, utc_now

__all__ = [
    "FrozenModel",
    "new_id",
    "qualified_name",
    "utc_now",
]
