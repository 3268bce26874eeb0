"""
Reasoned Error — Situation Map

The ordered name -> value parameters attached to an error when it is
created. A SituationMap accumulates while a Builder is being chained and
is frozen when the error is finalized.

Ordering: iteration follows first insertion. Putting a name again
replaces its value but keeps its original position.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, TypeVar

from reasonederror.errors import SituationFrozenError

T = TypeVar("T")

# A situation parameter name: plain text, or an enum member whose name is used.
SituationKey = str | enum.Enum


def situation_key(name: SituationKey) -> str:
    """Normalise a parameter name to its lookup string."""
    if isinstance(name, enum.Enum):
        key = name.name
    elif isinstance(name, str):
        key = name
    else:
        raise TypeError(
            f"situation parameter name must be str or Enum, got {type(name).__name__}"
        )
    if not key:
        raise ValueError("situation parameter name must not be empty")
    return key


class SituationMap(Mapping[str, Any]):
    """
    Insertion-ordered parameter map with a one-way freeze.

    Values may be of any type, including None. Indexing and ``in`` accept
    an enum member as well as its name.
    """

    __slots__ = ("_entries", "_frozen")

    def __init__(
        self,
        entries: Mapping[SituationKey, Any] | Iterable[tuple[SituationKey, Any]] = (),
    ) -> None:
        self._entries: dict[str, Any] = {}
        self._frozen = False
        items = entries.items() if isinstance(entries, Mapping) else entries
        for name, value in items:
            self.put(name, value)

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def put(self, name: SituationKey, value: Any) -> None:
        """Record one parameter. Raises SituationFrozenError once frozen."""
        if self._frozen:
            raise SituationFrozenError(
                f"cannot put {name!r}: situation is frozen"
            )
        self._entries[situation_key(name)] = value

    def freeze(self) -> SituationMap:
        """Return a frozen copy. This map is left as it is."""
        frozen = SituationMap()
        frozen._entries = dict(self._entries)
        frozen._frozen = True
        return frozen

    def get_as(self, name: SituationKey, expected_type: type[T]) -> T | None:
        """
        Typed lookup.

        Returns None when the name is absent or its value is None.
        Raises TypeError when the stored value is not an ``expected_type``.
        """
        value = self._entries.get(situation_key(name))
        if value is None:
            return None
        if not isinstance(value, expected_type):
            raise TypeError(
                f"situation parameter {situation_key(name)!r} is "
                f"{type(value).__name__}, not {expected_type.__name__}"
            )
        return value

    # ─── Mapping protocol ────────────────────────────────────────────

    def __getitem__(self, name: SituationKey) -> Any:
        return self._entries[name.name if isinstance(name, enum.Enum) else name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"SituationMap({self._entries!r}, {state})"
