"""
RMI Scheduler test suite - shared fixtures.

Tests run in-process against an in-memory SQLite database; no server or
container is needed.

Usage:
    pip install -e ".[test]"
    pytest tests/ -v --tb=short
"""

import os
import sys
from datetime import date, timedelta
from pathlib import Path

# Must be set before core.config is imported anywhere.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("SYNC_URL", None)

BACKEND_DIR = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

import pytest  # noqa: E402

from core.event_bus import InMemoryEventBus  # noqa: E402
from core.kv_store import InMemoryKeyValueStore  # noqa: E402
from modules.scheduling.commands import create_scheduler  # noqa: E402


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

TODAY = date(2024, 4, 10)


class FakeClock:
    """Callable clock the tests can move forward."""

    def __init__(self, today=TODAY):
        self.today = today

    def __call__(self):
        return self.today

    def advance(self, days: int = 1) -> None:
        self.today = self.today + timedelta(days=days)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def bus():
    return InMemoryEventBus()


@pytest.fixture
def events(bus):
    """Every event published on the bus, in order."""
    received = []
    bus.subscribe("*", received.append)
    return received


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def scheduler(kv, bus, clock):
    return create_scheduler(kv, bus=bus, clock=clock)
