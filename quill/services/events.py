"""In-process domain event bus.

Services publish events such as ``post.created`` or ``design.failed``;
any number of handlers may subscribe to a single name or to ``"*"``.
A handler that raises is logged and skipped, so delivery to the other
handlers and the request that published the event are unaffected.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

WILDCARD = "*"

POST_CREATED = "post.created"
POST_PUBLISHED = "post.published"
POST_DELETED = "post.deleted"
DESIGN_APPLIED = "design.applied"
DESIGN_FAILED = "design.failed"
COMMENT_CREATED = "comment.created"
LIKE_TOGGLED = "like.toggled"


@dataclass(frozen=True)
class Event:
    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Handler = Callable[[Event], None]


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, name: str, handler: Handler) -> Callable[[], None]:
        """Register *handler* for *name* (or ``"*"``); returns an unsubscribe callable."""
        self._handlers[name].append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(name, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, name: str, **payload: Any) -> Event:
        event = Event(name=name, payload=payload)
        handlers = [*self._handlers.get(name, []), *self._handlers.get(WILDCARD, [])]
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler %r failed for %s", handler, name)
        return event

    def clear(self) -> None:
        self._handlers.clear()


# Lazy singleton, lives for the process lifetime
_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    global _bus
    if _bus is None:
        _bus = EventBus()
    return _bus


def publish(name: str, **payload: Any) -> Event:
    """Publish on the shared bus."""
    return get_event_bus().publish(name, **payload)


def log_event(event: Event) -> None:
    """Subscriber that writes every event to the application log."""
    level = logging.WARNING if event.name == DESIGN_FAILED else logging.INFO
    details = " ".join(f"{k}={v}" for k, v in sorted(event.payload.items()))
    logger.log(level, "event %s %s", event.name, details)
