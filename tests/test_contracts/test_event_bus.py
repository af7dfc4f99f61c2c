"""
Contract tests - InMemoryEventBus.

Verifies publish/subscribe/unsubscribe behaviour of InMemoryEventBus including:
- Subscribers receive events they subscribed to.
- Unsubscribed handlers are not called.
- Wildcard ("*") subscribers receive all events, after the typed handlers.
- Exceptions in one handler do not block other handlers.
- The singleton get_event_bus() is stable.

These tests run without a container: pytest tests/test_contracts/test_event_bus.py -v
"""

import sys
from pathlib import Path

import pytest

BACKEND_DIR = Path(__file__).resolve().parents[2] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from core import events  # noqa: E402
from core.interfaces.event_bus import Event, EventBus  # noqa: E402
from core.event_bus import InMemoryEventBus, get_event_bus  # noqa: E402


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_event(event_type: str, source: str = "test", data: dict = None) -> Event:
    return Event(event_type=event_type, source_module=source, data=data or {})


def _fresh_bus() -> InMemoryEventBus:
    """Return a new, isolated bus for each test."""
    return InMemoryEventBus()


# ---------------------------------------------------------------------------
# ABC contract
# ---------------------------------------------------------------------------

class TestEventBusABC:
    def test_event_bus_is_abstract(self):
        with pytest.raises(TypeError):
            EventBus()  # type: ignore[abstract]

    def test_in_memory_bus_is_concrete(self):
        assert isinstance(_fresh_bus(), EventBus)

    def test_abstract_methods_defined(self):
        assert set(EventBus.__abstractmethods__) == {"publish", "subscribe", "unsubscribe"}

    def test_event_data_defaults_to_empty_dict(self):
        a = Event(event_type=events.SCHEDULE_UPDATED, source_module="scheduling")
        b = Event(event_type=events.SCHEDULE_UPDATED, source_module="scheduling")
        assert a.data == {}
        assert a.data is not b.data


# ---------------------------------------------------------------------------
# Event type constants
# ---------------------------------------------------------------------------

class TestEventConstants:
    def test_constants_use_dot_notation(self):
        names = [n for n in dir(events) if n.isupper()]
        assert names
        for name in names:
            assert "." in getattr(events, name), f"events.{name} must use dot notation"

    def test_constants_are_unique(self):
        values = [getattr(events, n) for n in dir(events) if n.isupper()]
        assert len(values) == len(set(values))


# ---------------------------------------------------------------------------
# Publish / Subscribe
# ---------------------------------------------------------------------------

class TestPublishSubscribe:
    def test_subscriber_receives_event(self):
        bus = _fresh_bus()
        received = []
        bus.subscribe(events.SCHEDULE_UPDATED, received.append)
        evt = _make_event(events.SCHEDULE_UPDATED)
        bus.publish(evt)
        assert received == [evt]
        assert received[0] is evt

    def test_subscriber_does_not_receive_other_event_types(self):
        bus = _fresh_bus()
        received = []
        bus.subscribe(events.SCHEDULE_UPDATED, received.append)
        bus.publish(_make_event(events.SCHEDULE_UNDONE))
        assert received == []

    def test_multiple_subscribers_all_receive_event(self):
        bus = _fresh_bus()
        calls_a, calls_b = [], []
        bus.subscribe(events.SYNC_FAILED, calls_a.append)
        bus.subscribe(events.SYNC_FAILED, calls_b.append)
        bus.publish(_make_event(events.SYNC_FAILED))
        assert len(calls_a) == 1
        assert len(calls_b) == 1

    def test_same_handler_not_registered_twice(self):
        bus = _fresh_bus()
        calls = []
        handler = calls.append
        bus.subscribe(events.SCHEDULE_UPDATED, handler)
        bus.subscribe(events.SCHEDULE_UPDATED, handler)  # duplicate - ignored
        bus.publish(_make_event(events.SCHEDULE_UPDATED))
        assert len(calls) == 1

    def test_event_data_is_passed_through(self):
        bus = _fresh_bus()
        received = []
        bus.subscribe(events.SCHEDULE_UPDATED, received.append)
        data = {"tower_id": "harbor", "floor": 10}
        bus.publish(_make_event(events.SCHEDULE_UPDATED, data=data))
        assert received[0].data == data

    def test_handlers_run_in_registration_order(self):
        bus = _fresh_bus()
        order = []
        bus.subscribe(events.SCHEDULE_UPDATED, lambda e: order.append("first"))
        bus.subscribe(events.SCHEDULE_UPDATED, lambda e: order.append("second"))
        bus.publish(_make_event(events.SCHEDULE_UPDATED))
        assert order == ["first", "second"]


# ---------------------------------------------------------------------------
# Unsubscribe
# ---------------------------------------------------------------------------

class TestUnsubscribe:
    def test_unsubscribed_handler_not_called(self):
        bus = _fresh_bus()
        calls = []
        bus.subscribe(events.SCHEDULE_UPDATED, calls.append)
        bus.unsubscribe(events.SCHEDULE_UPDATED, calls.append)
        bus.publish(_make_event(events.SCHEDULE_UPDATED))
        assert calls == []

    def test_unsubscribe_only_removes_specified_handler(self):
        bus = _fresh_bus()
        calls_a, calls_b = [], []
        bus.subscribe(events.SCHEDULE_UPDATED, calls_a.append)
        bus.subscribe(events.SCHEDULE_UPDATED, calls_b.append)
        bus.unsubscribe(events.SCHEDULE_UPDATED, calls_a.append)
        bus.publish(_make_event(events.SCHEDULE_UPDATED))
        assert len(calls_a) == 0
        assert len(calls_b) == 1

    def test_unsubscribe_nonexistent_handler_does_not_raise(self):
        _fresh_bus().unsubscribe(events.SCHEDULE_UPDATED, lambda e: None)

    def test_unsubscribe_from_wrong_event_type_is_noop(self):
        bus = _fresh_bus()
        calls = []
        bus.subscribe(events.SCHEDULE_UPDATED, calls.append)
        bus.unsubscribe(events.SCHEDULE_UNDONE, calls.append)
        bus.publish(_make_event(events.SCHEDULE_UPDATED))
        assert len(calls) == 1


# ---------------------------------------------------------------------------
# Wildcard subscription
# ---------------------------------------------------------------------------

class TestWildcardSubscription:
    def test_wildcard_receives_all_events(self):
        bus = _fresh_bus()
        received = []
        bus.subscribe("*", received.append)
        bus.publish(_make_event(events.SCHEDULE_UPDATED))
        bus.publish(_make_event(events.COMMAND_FAILED))
        bus.publish(_make_event(events.SYNC_COMPLETED))
        assert len(received) == 3

    def test_typed_handlers_run_before_wildcards(self):
        bus = _fresh_bus()
        order = []
        bus.subscribe("*", lambda e: order.append("wildcard"))
        bus.subscribe(events.SCHEDULE_UPDATED, lambda e: order.append("typed"))
        bus.publish(_make_event(events.SCHEDULE_UPDATED))
        assert order == ["typed", "wildcard"]

    def test_wildcard_not_registered_twice(self):
        bus = _fresh_bus()
        calls = []
        handler = calls.append
        bus.subscribe("*", handler)
        bus.subscribe("*", handler)
        bus.publish(_make_event(events.SCHEDULE_UPDATED))
        assert len(calls) == 1

    def test_unsubscribe_wildcard(self):
        bus = _fresh_bus()
        calls = []
        bus.subscribe("*", calls.append)
        bus.unsubscribe("*", calls.append)
        bus.publish(_make_event(events.SCHEDULE_UPDATED))
        assert calls == []


# ---------------------------------------------------------------------------
# Error isolation
# ---------------------------------------------------------------------------

class TestErrorIsolation:
    def test_exception_in_handler_does_not_prevent_subsequent_handlers(self):
        bus = _fresh_bus()
        second_called = []

        def bad_handler(event):
            raise RuntimeError("handler explodes")

        bus.subscribe(events.SCHEDULE_UPDATED, bad_handler)
        bus.subscribe(events.SCHEDULE_UPDATED, second_called.append)

        bus.publish(_make_event(events.SCHEDULE_UPDATED))
        assert len(second_called) == 1, "Second handler must still be called after first raised"

    def test_exception_is_logged_not_raised(self, caplog):
        bus = _fresh_bus()

        def bad_handler(event):
            raise ValueError("wildcard explodes")

        bus.subscribe("*", bad_handler)
        bus.publish(_make_event(events.SYNC_FAILED))
        assert "wildcard explodes" in caplog.text


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

class TestSingleton:
    def test_get_event_bus_returns_same_instance(self):
        assert get_event_bus() is get_event_bus(), "get_event_bus() must return the same singleton instance"

    def test_singleton_is_in_memory_bus(self):
        assert isinstance(get_event_bus(), InMemoryEventBus)
