"""
Reasoned Error — Creation Log Handler

A ready-made CreationHandler that writes one structured log line per
created error. Register it as sync or async; configure() does this from
NotifierConfig.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Final

import structlog

from reasonederror.primitives.common import new_id

if TYPE_CHECKING:
    from reasonederror.error import ReasonedError

_LEVELS: Final = frozenset({"debug", "info", "warning", "error", "critical"})


class StructlogCreationHandler:
    """Logs ``reasoned_error_created`` with reason, situation, origin and cause."""

    def __init__(
        self,
        logger_name: str = "reasonederror.creation",
        level: str = "error",
    ) -> None:
        if level not in _LEVELS:
            raise ValueError(f"unknown log level {level!r}")
        self._level = level
        self._logger = structlog.get_logger(logger_name).bind(component="creation_log")

    def __call__(self, error: ReasonedError, timestamp: datetime) -> None:
        record = error.to_dict()
        log = getattr(self._logger, self._level)
        log(
            "reasoned_error_created",
            event_id=new_id(),
            created_at=timestamp.isoformat(),
            **record,
        )
