"""Synchronous delivery of heading snapshots to presentation consumers."""

import logging
from typing import Callable, List, Optional

from fieldcompass.sensors.types import HeadingSnapshot

logger = logging.getLogger(__name__)

HeadingCallback = Callable[[HeadingSnapshot], None]


class HeadingPublisher:
    """Observer registry for fused heading snapshots.

    Delivery is synchronous and ordered: ``publish`` calls every subscriber,
    in subscription order, before returning. There is no batching and no
    dropping. A subscriber that raises is logged and skipped so the
    remaining subscribers still receive the snapshot.

    Usage:
        >>> publisher = HeadingPublisher()
        >>> received = []
        >>> unsubscribe = publisher.subscribe(received.append)
        >>> # engine calls publisher.publish(snapshot) once per sample
        >>> unsubscribe()
    """

    def __init__(self):
        self._subscribers: List[HeadingCallback] = []
        self.latest: Optional[HeadingSnapshot] = None
        self.published = 0

    def subscribe(self, callback: HeadingCallback) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        if not callable(callback):
            raise TypeError(f"callback must be callable, got {type(callback)}")
        self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: HeadingCallback) -> bool:
        """Remove a callback. Returns False if it was not subscribed."""
        try:
            self._subscribers.remove(callback)
        except ValueError:
            return False
        return True

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, snapshot: HeadingSnapshot) -> None:
        self.latest = snapshot
        self.published += 1
        # Copy so callbacks may unsubscribe themselves during delivery
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Heading subscriber %r failed", callback)
