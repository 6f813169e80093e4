"""In-process pub/sub — the relay between mutations and subscribers.

Learn: This is an observer list, nothing more. Each topic maps to a list
of listeners; publish() walks that list in registration order and calls
every listener synchronously. Nothing is persisted: if no one is listening,
the payload is dropped. That's fine for live UI updates (the client can
always re-query to catch up, the database stays the source of truth).

Streaming consumers (GraphQL subscriptions) use subscribe(), which wraps a
listener around an asyncio.Queue and exposes it as an async iterator.
Each handle MUST be closed when its connection goes away, otherwise the
listener list grows for the life of the process. The handle is an async
context manager so `async with pubsub.subscribe(...)` takes care of it,
including when the consuming task is cancelled.
"""

import asyncio
from collections import defaultdict
from typing import Any, Callable, Optional

import structlog

logger = structlog.get_logger()

Listener = Callable[[Any], None]

# Wakes a reader blocked in __anext__ when the handle is closed
_CLOSED = object()


class Subscription:
    """Handle that yields payloads published to one topic until closed."""

    def __init__(self, pubsub: "PubSub", topic: str):
        self.topic = topic
        self._pubsub = pubsub
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._remove = pubsub.add_listener(topic, self._deliver)

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        """Payloads delivered but not yet consumed."""
        return self._queue.qsize()

    def _deliver(self, payload: Any) -> None:
        self._queue.put_nowait(payload)

    def close(self) -> None:
        """Release the listener and end iteration. Safe to call twice.

        Payloads still queued at close time are discarded.
        """
        if self._closed:
            return
        self._closed = True
        self._remove()
        self._pubsub._forget(self)
        self._queue.put_nowait(_CLOSED)
        logger.debug(
            "pubsub.unsubscribed",
            topic=self.topic,
            listeners=self._pubsub.listener_count(self.topic),
        )

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Any:
        if self._closed:
            raise StopAsyncIteration
        payload = await self._queue.get()
        if payload is _CLOSED or self._closed:
            raise StopAsyncIteration
        return payload

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class PubSub:
    """Topic → ordered listener list, delivered synchronously on publish."""

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._subscriptions: set[Subscription] = set()

    def add_listener(self, topic: str, listener: Listener) -> Callable[[], None]:
        """Register a callback on a topic. Returns a function that removes it."""
        self._listeners[topic].append(listener)
        removed = False

        def remove() -> None:
            nonlocal removed
            if removed:
                return
            removed = True
            registered = self._listeners.get(topic, [])
            # By identity: the same callback may be registered more than once
            for i, candidate in enumerate(registered):
                if candidate is listener:
                    del registered[i]
                    break
            if not registered:
                self._listeners.pop(topic, None)

        return remove

    def subscribe(self, topic: str) -> Subscription:
        """Open a streaming handle on a topic. Only future publishes are seen."""
        sub = Subscription(self, topic)
        self._subscriptions.add(sub)
        logger.debug(
            "pubsub.subscribed",
            topic=topic,
            listeners=self.listener_count(topic),
        )
        return sub

    def publish(self, topic: str, payload: Any) -> int:
        """Deliver payload to every listener on topic, in registration order.

        Returns the number of listeners called. A failing listener is logged
        and skipped; the rest still receive the payload.
        """
        listeners = list(self._listeners.get(topic, ()))
        for listener in listeners:
            try:
                listener(payload)
            except Exception:
                logger.exception("pubsub.listener_failed", topic=topic)
        return len(listeners)

    def listener_count(self, topic: Optional[str] = None) -> int:
        if topic is not None:
            return len(self._listeners.get(topic, ()))
        return sum(len(v) for v in self._listeners.values())

    def close_all(self) -> int:
        """Close every open subscription. Used to drain streams on shutdown."""
        subs = list(self._subscriptions)
        for sub in subs:
            sub.close()
        return len(subs)

    def _forget(self, sub: Subscription) -> None:
        self._subscriptions.discard(sub)


# Process-wide relay (one per server process)
pubsub = PubSub()


def get_pubsub() -> PubSub:
    """FastAPI dependency — the process-wide relay (overridable in tests)."""
    return pubsub
