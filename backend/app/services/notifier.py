"""Best-effort fan-out of realtime events to connected observers.

Observers are WebSocket handlers running on the server's event loop.
Publishers are request handlers (threadpool) and the scheduler thread, so
delivery goes through ``loop.call_soon_threadsafe``.  Each observer has a
bounded queue; when it is full the event is dropped for that observer
only.  There is no delivery or cross-observer ordering guarantee.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
from dataclasses import dataclass, field

from backend.app.core.logging import EVENT_BROADCAST, log_event
from backend.app.models.engagement import EventMessage

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100


@dataclass(eq=False)
class Subscription:
    """One observer's inbox."""

    id: int
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue[dict[str, object]] = field(repr=False)

    async def get(self) -> dict[str, object]:
        return await self.queue.get()


class EventBroadcaster:
    """Registry of observers plus thread-safe publish."""

    def __init__(self, max_queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self._max_queue_size = max_queue_size
        self._subscriptions: dict[int, Subscription] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def subscribe(self) -> Subscription:
        """Register an observer.  Must be called from the observer's event loop."""
        sub = Subscription(
            id=next(self._ids),
            loop=asyncio.get_running_loop(),
            queue=asyncio.Queue(maxsize=self._max_queue_size),
        )
        with self._lock:
            self._subscriptions[sub.id] = sub
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            self._subscriptions.pop(sub.id, None)

    def publish(self, event_type: str, payload: dict[str, object]) -> int:
        """Queue ``{type, payload}`` for every observer.  Returns observers reached."""
        message = EventMessage(type=event_type, payload=payload).model_dump(mode="json")
        with self._lock:
            targets = list(self._subscriptions.values())

        reached = 0
        for sub in targets:
            try:
                sub.loop.call_soon_threadsafe(self._offer, sub, message)
            except RuntimeError:
                # Observer's loop already closed; it will unsubscribe itself
                continue
            reached += 1

        log_event(logger, "info", EVENT_BROADCAST, type=event_type, observers=reached)
        return reached

    @staticmethod
    def _offer(sub: Subscription, message: dict[str, object]) -> None:
        try:
            sub.queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("event_dropped: observer=%d type=%s", sub.id, message["type"])


broadcaster = EventBroadcaster()
