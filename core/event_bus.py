"""In-process publish/subscribe bus connecting the map, movement and unit layers.

Topics are :class:`~core.events.topics.EventTopic` members (plain strings are
accepted and matched by value).  Handlers receive the payload as keyword
arguments::

    bus = EventBus()
    bus.subscribe(MovementTopic.MOVEMENT_ENDED, lambda entity, tile: ...)
    bus.publish(MovementTopic.MOVEMENT_ENDED, entity=player, tile=(3, 4))
"""

from __future__ import annotations

from collections import defaultdict, deque
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Sequence, Tuple

from core.events.topics import EventTopic
from utils.logger import get_logger

__all__ = ["EventBus", "PublishedEvent", "Subscriber", "Topic"]

Topic = str | EventTopic
Subscriber = Callable[..., None]
PublishedEvent = Tuple[str, Dict[str, Any]]

logger = get_logger(__name__)


def topic_key(topic: Topic) -> str:
    return topic.value if isinstance(topic, EventTopic) else str(topic)


class EventBus:
    """Synchronous in-memory dispatcher.

    Handlers run in subscription order inside :meth:`publish`; a handler may
    (un)subscribe while being dispatched without affecting the current round.

    Args:
        history_size: When positive, the last ``history_size`` published events
            are kept in :attr:`history` as ``(topic, payload)`` pairs, which is
            handy when replaying a movement session in a debugger.
    """

    def __init__(self, history_size: int = 0) -> None:
        if history_size < 0:
            raise ValueError("history_size must be non-negative")
        self._handlers: Dict[str, List[Subscriber]] = defaultdict(list)
        self._history: Optional[Deque[PublishedEvent]] = (
            deque(maxlen=history_size) if history_size else None
        )

    def subscribe(self, topic: Topic, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback``; returns a function that undoes the subscription."""

        handlers = self._handlers[topic_key(topic)]
        if callback not in handlers:
            handlers.append(callback)
        return lambda: self.unsubscribe(topic, callback)

    def unsubscribe(self, topic: Topic, callback: Subscriber) -> None:
        key = topic_key(topic)
        handlers = self._handlers.get(key)
        if handlers and callback in handlers:
            handlers.remove(callback)
            if not handlers:
                del self._handlers[key]

    def publish(self, topic: Topic, payload: Mapping[str, Any] | None = None, /, **kwargs: Any) -> None:
        """Dispatch ``topic``; keyword values override keys of ``payload``."""

        key = topic_key(topic)
        data: Dict[str, Any] = {**(payload or {}), **kwargs}
        if self._history is not None:
            self._history.append((key, data))

        handlers = tuple(self._handlers.get(key, ()))
        if handlers:
            logger.debug("%s -> %d handler(s)", key, len(handlers))
        for handler in handlers:
            handler(**data)

    @property
    def history(self) -> List[PublishedEvent]:
        return list(self._history) if self._history is not None else []

    def clear(self) -> None:
        """Drop every subscription and the recorded history."""

        self._handlers.clear()
        if self._history is not None:
            self._history.clear()

    def get_subscribers(self, topic: Topic) -> Sequence[Subscriber]:
        return tuple(self._handlers.get(topic_key(topic), ()))
