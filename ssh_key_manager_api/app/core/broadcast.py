"""
Live update fan-out.

``BroadcastRegistry`` maps an opaque subscriber id to a delivery
callable ``deliver(event_name, payload)``.  ``broadcast`` hands the
event to every subscriber registered at the time of the call.  A
subscriber whose delivery raises is logged and skipped; it stays
registered until its owner calls ``unregister`` (normally when the
underlying connection closes).

The registry does no serialization and no queueing of its own.
``QueueSubscriber`` is the delivery target used by the SSE endpoint: a
bounded queue that drops the oldest pending event when full, so one
slow client can never grow memory without limit.
"""

import asyncio
import logging
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

Deliver = Callable[[str, str], None]


class DeliveryError(Exception):
    """A subscriber could not accept an event."""


class BroadcastRegistry:
    """Set of currently connected live update subscribers."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, Deliver] = {}

    def register(self, subscriber_id: str, deliver: Deliver) -> None:
        """Add a subscriber, replacing any previous one with the same id."""
        if subscriber_id in self._subscribers:
            logger.debug("Replacing subscriber %s", subscriber_id)
        self._subscribers[subscriber_id] = deliver
        logger.info("Subscriber %s registered (%d total)", subscriber_id, len(self._subscribers))

    def unregister(self, subscriber_id: str) -> None:
        """Remove a subscriber.  Unknown ids are ignored."""
        if self._subscribers.pop(subscriber_id, None) is not None:
            logger.info("Subscriber %s unregistered (%d total)", subscriber_id, len(self._subscribers))

    def broadcast(self, event_name: str, payload: str) -> int:
        """Deliver an event to every subscriber and return how many accepted it."""
        # Iterate over a copy; a deliver callback may register or unregister.
        targets: List[Tuple[str, Deliver]] = list(self._subscribers.items())
        delivered = 0
        for subscriber_id, deliver in targets:
            try:
                deliver(event_name, payload)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Delivery of %r to subscriber %s failed: %s", event_name, subscriber_id, exc)
                continue
            delivered += 1
        logger.debug("Broadcast %r delivered to %d/%d subscribers", event_name, delivered, len(targets))
        return delivered

    def subscriber_ids(self) -> List[str]:
        return list(self._subscribers)

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, subscriber_id: object) -> bool:
        return subscriber_id in self._subscribers


class QueueSubscriber:
    """Bounded per-connection event queue with drop-oldest overflow."""

    def __init__(self, maxsize: int = 100) -> None:
        self._queue: "asyncio.Queue[Tuple[str, str]]" = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, event_name: str, payload: str) -> None:
        if self._closed:
            raise DeliveryError("subscriber is closed")
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
        self._queue.put_nowait((event_name, payload))

    async def get(self, timeout: Optional[float] = None) -> Optional[Tuple[str, str]]:
        """Next pending event, or ``None`` if nothing arrived within ``timeout``."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self._closed = True
