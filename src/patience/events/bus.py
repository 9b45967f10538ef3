"""
In-process publish/subscribe bus for lifecycle events.

The orchestrator only depends on the `EventPublisher` protocol; any object
with a compatible `publish` method (a message broker adapter, a UI
notifier) can be passed in its place.
"""

import itertools
import threading
from typing import Callable, Protocol, Union

import structlog

from patience.models.enums import LifecycleEvent

logger = structlog.get_logger(__name__)

EventHandler = Callable[[str, str], None]
Topic = Union[LifecycleEvent, str]


def _topic_name(topic: Topic) -> str:
    return topic.value if isinstance(topic, LifecycleEvent) else topic


class EventPublisher(Protocol):
    """Anything the orchestrator can broadcast lifecycle events to."""

    def publish(self, topic: Topic, message: str) -> bool:
        """
        Publish `message` on `topic`.

        Returns:
            True if at least one subscriber received the message
        """
        ...


class EventBus:
    """
    Synchronous topic-based event bus.

    Handlers are called in subscription order with `(topic, message)`. A
    handler that raises is logged and skipped; delivery continues.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, dict[str, EventHandler]] = {}
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, topic: Topic, handler: EventHandler) -> str:
        """Subscribe `handler` to `topic` and return an unsubscribe token."""
        token = f"sub-{next(self._tokens)}"
        with self._lock:
            self._handlers.setdefault(_topic_name(topic), {})[token] = handler
        return token

    def unsubscribe(self, token: str) -> bool:
        """Remove the subscription identified by `token`."""
        with self._lock:
            for handlers in self._handlers.values():
                if handlers.pop(token, None) is not None:
                    return True
        return False

    def publish(self, topic: Topic, message: str) -> bool:
        name = _topic_name(topic)
        with self._lock:
            handlers = list(self._handlers.get(name, {}).values())

        logger.debug("Publishing lifecycle event", topic=name, subscribers=len(handlers))

        for handler in handlers:
            try:
                handler(name, message)
            except Exception:
                logger.exception("Event handler failed", topic=name)

        return bool(handlers)
