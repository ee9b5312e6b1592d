"""In-process pub/sub for message change events."""

from __future__ import annotations

import asyncio
import logging

from messagehub.models import Event, Topic

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 256

# Queued after a subscriber's last event to end its iteration.
_CLOSED = object()


class Subscription:
    """One subscriber's queue on a topic.

    Iterate with ``async for``; iteration ends when the subscription is
    closed, dropped as a slow consumer, or the broadcaster shuts down. Use
    as an async context manager (or call ``close()``) to deregister.
    """

    def __init__(self, broadcaster: Broadcaster, topic: Topic, queue_size: int) -> None:
        self.topic = topic
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._broadcaster = broadcaster
        self._done = False

    def close(self) -> None:
        """Deregister and end iteration. Safe to call more than once."""
        self._broadcaster.unsubscribe(self)

    async def aclose(self) -> None:
        self.close()

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> Event:
        if self._done:
            raise StopAsyncIteration
        event = await self.queue.get()
        if event is _CLOSED:
            self._done = True
            self.close()
            raise StopAsyncIteration
        return event

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()


class Broadcaster:
    """Asyncio broadcast hub keyed by topic.

    Mutations publish; subscription handlers consume. Each subscriber gets
    its own bounded queue, so a slow consumer never holds up the others.
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self._queue_size = queue_size
        self._subscribers: dict[Topic, set[Subscription]] = {t: set() for t in Topic}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, topic: Topic) -> Subscription:
        """Register a new subscriber that receives events published from now on."""
        if self._closed:
            raise RuntimeError("Broadcaster is closed")
        sub = Subscription(self, Topic(topic), self._queue_size)
        self._subscribers[sub.topic].add(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        """Remove a subscriber and end its iteration."""
        subs = self._subscribers[sub.topic]
        if sub in subs:
            subs.discard(sub)
            _end(sub)

    def publish(self, event: Event) -> None:
        """Deliver event to every subscriber of its topic (non-blocking)."""
        if self._closed:
            return
        dead: list[Subscription] = []
        for sub in self._subscribers[event.topic]:
            try:
                sub.queue.put_nowait(event)
            except asyncio.QueueFull:
                dead.append(sub)
        # Drop slow consumers
        for sub in dead:
            self._subscribers[sub.topic].discard(sub)
            _end(sub)
            logger.debug("Dropped slow %s subscriber", sub.topic.value)

    def subscriber_count(self, topic: Topic | None = None) -> int:
        if topic is not None:
            return len(self._subscribers[Topic(topic)])
        return sum(len(subs) for subs in self._subscribers.values())

    def close(self) -> None:
        """End every subscription and discard later publishes."""
        self._closed = True
        for subs in self._subscribers.values():
            for sub in subs:
                _end(sub)
            subs.clear()
        logger.info("Broadcaster closed")


def _end(sub: Subscription) -> None:
    try:
        sub.queue.put_nowait(_CLOSED)
    except asyncio.QueueFull:
        # Consumer is too far behind; its backlog is discarded.
        while not sub.queue.empty():
            sub.queue.get_nowait()
        sub.queue.put_nowait(_CLOSED)
