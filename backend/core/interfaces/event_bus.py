# core/interfaces/event_bus.py - event envelope and bus contract
#
# Event types are the dot-notation constants in core/events.py.

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable


@dataclass
class Event:
    event_type: str     # e.g. "schedule.updated", "sync.failed"
    source_module: str  # manifest MODULE_ID of the publisher
    data: dict = field(default_factory=dict)


class EventBus(ABC):
    """Pub/sub between modules that must not import each other."""

    @abstractmethod
    def publish(self, event: Event) -> None:
        """Deliver `event` to its subscribers."""

    @abstractmethod
    def subscribe(self, event_type: str, handler: Callable[[Event], Any]) -> None:
        """Register `handler`; event_type "*" receives every event."""

    @abstractmethod
    def unsubscribe(self, event_type: str, handler: Callable[[Event], Any]) -> None:
        """Remove `handler`; unknown handlers are ignored."""
