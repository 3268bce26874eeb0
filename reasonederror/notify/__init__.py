"""
Reasoned Error — Notification

Announces every ReasonedError creation to registered observers.
"""

from reasonederror.notify.notifier import CreationNotifier

__all__ = [
    "CreationNotifier",
]
