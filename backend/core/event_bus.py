# core/event_bus.py - in-process publish/subscribe
#
# The scheduling module publishes schedule changes and command outcomes from
# request threads; the sync client publishes sync outcomes from its own push
# threads. Handler lists are guarded by a lock and copied before dispatch, so
# a handler may subscribe or unsubscribe while an event is being delivered.

import logging
import threading
from typing import Any, Callable

from core.interfaces.event_bus import Event, EventBus

log = logging.getLogger("event_bus")

Handler = Callable[[Event], Any]

WILDCARD = "*"


class InMemoryEventBus(EventBus):
    """
    Synchronous in-process event bus.

    Typed handlers run first, in subscription order, then WILDCARD handlers.
    Delivery happens on the publishing thread. A failing handler is logged
    and skipped; publishers never see handler exceptions.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: dict[str, list[Handler]] = {}

    def publish(self, event: Event) -> None:
        with self._lock:
            targets = (
                list(self._subscriptions.get(event.event_type, ()))
                + list(self._subscriptions.get(WILDCARD, ()))
            )
        for handler in targets:
            try:
                handler(event)
            except Exception as e:
                log.error(
                    f"{event.event_type} handler {getattr(handler, '__qualname__', handler)!r} "
                    f"failed: {e}",
                    exc_info=True,
                )

    def subscribe(self, event_type: str, handler: Handler) -> None:
        """Add a handler; subscribing the same handler twice keeps one entry."""
        with self._lock:
            handlers = self._subscriptions.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)

    def unsubscribe(self, event_type: str, handler: Handler) -> None:
        with self._lock:
            handlers = self._subscriptions.get(event_type)
            if handlers and handler in handlers:
                handlers.remove(handler)


_bus = InMemoryEventBus()


def get_event_bus() -> InMemoryEventBus:
    """Process-wide bus used when the app factory is not handed one."""
    return _bus
