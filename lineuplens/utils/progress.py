"""Progress notification independent of any rendering target.

Services emit :class:`ProgressEvent` objects on a :class:`ProgressEvents`
bus; the CLI subscribes a logger, tests subscribe a list.

Stages:
- ``auth``: completing login, fetching the profile
- ``catalog``: loading lineup data
- ``library``: fetching saved tracks (``current``/``total`` set per page)
- ``match``: computing matches
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    stage: str
    message: str
    current: Optional[int] = None
    total: Optional[int] = None

    @property
    def percent(self) -> Optional[int]:
        if self.current is None or not self.total:
            return None
        return round(self.current / self.total * 100)


Subscriber = Callable[[ProgressEvent], None]


class ProgressEvents:
    """Observer list for progress events.

    Examples:
        >>> events = ProgressEvents()
        >>> seen = []
        >>> unsubscribe = events.subscribe(seen.append)
        >>> events.emit(ProgressEvent("library", "Loading liked songs", 50, 200))
        >>> seen[0].percent
        25
    """

    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Add a subscriber; returns a function that removes it again."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def emit(self, event: ProgressEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:  # a broken subscriber must not abort the operation
                logger.exception("Error in progress subscriber")

    def status(self, stage: str, message: str) -> None:
        self.emit(ProgressEvent(stage, message))

    def items(self, stage: str, message: str, current: int, total: int) -> None:
        self.emit(ProgressEvent(stage, message, current, total))


__all__ = ["ProgressEvent", "ProgressEvents"]
