from __future__ import annotations

import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Callable, DefaultDict, Generic, Hashable, Iterator, TypeVar

Event = TypeVar("Event")
Subscriber = Callable[[Event], None]


class EventBus(Generic[Event]):
    """Topic based publish/subscribe shared by the workers and the session.

    Listeners run on the publishing thread, outside the bus lock, so a listener
    may publish or (un)subscribe without deadlocking.
    """

    def __init__(self) -> None:
        self._topics: DefaultDict[Hashable, list[Subscriber]] = defaultdict(list)
        self._lock = threading.RLock()

    def subscribe(self, topic: Hashable, callback: Subscriber) -> None:
        with self._lock:
            self._topics[topic].append(callback)

    def unsubscribe(self, topic: Hashable, callback: Subscriber) -> None:
        with self._lock:
            listeners = self._topics.get(topic)
            if not listeners or callback not in listeners:
                return
            listeners.remove(callback)
            if not listeners:
                del self._topics[topic]

    @contextmanager
    def subscription(self, topic: Hashable, callback: Subscriber) -> Iterator[None]:
        """Keep ``callback`` subscribed for the duration of a ``with`` block."""

        self.subscribe(topic, callback)
        try:
            yield
        finally:
            self.unsubscribe(topic, callback)

    def subscriber_count(self, topic: Hashable) -> int:
        with self._lock:
            return len(self._topics.get(topic, ()))

    def publish(self, topic: Hashable, event: Event) -> None:
        with self._lock:
            listeners = tuple(self._topics.get(topic, ()))
        for listener in listeners:
            listener(event)
