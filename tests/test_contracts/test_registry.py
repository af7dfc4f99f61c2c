"""
Contract tests - ModuleRegistry.

Providers are looked up by interface name; REQUIRES declarations recorded
from module manifests are validated after every module has registered.

These tests run without a container: pytest tests/test_contracts/test_registry.py -v
"""

import sys
from pathlib import Path

import pytest

BACKEND_DIR = Path(__file__).resolve().parents[2] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from core.registry import MissingProviderError, ModuleRegistry  # noqa: E402


class TestProviders:
    def test_register_and_get(self):
        registry = ModuleRegistry()
        impl = object()
        registry.register_provider("KeyValueStore", impl)
        assert registry.get_provider("KeyValueStore") is impl
        assert registry.require("KeyValueStore") is impl

    def test_optional_lookup_returns_none(self):
        assert ModuleRegistry().get_provider("RemoteSyncClient") is None

    def test_required_lookup_raises(self):
        with pytest.raises(MissingProviderError):
            ModuleRegistry().require("EventBus")

    def test_last_registration_wins(self):
        registry = ModuleRegistry()
        first, second = object(), object()
        registry.register_provider("EventBus", first)
        registry.register_provider("EventBus", second)
        assert registry.require("EventBus") is second

    def test_providers_view_is_a_copy(self):
        registry = ModuleRegistry()
        registry.providers["EventBus"] = object()
        assert registry.get_provider("EventBus") is None


class TestDependencyValidation:
    def test_satisfied(self):
        registry = ModuleRegistry()
        registry.register_provider("EventBus", object())
        registry.record_requires("sync", ["EventBus"])
        assert registry.validate_dependencies() is True
        assert registry.missing_dependencies() == []

    def test_missing_is_reported(self, caplog):
        registry = ModuleRegistry()
        registry.record_requires("scheduling", ["KeyValueStore", "EventBus"])
        registry.register_provider("EventBus", object())
        assert registry.validate_dependencies() is False
        assert registry.missing_dependencies() == [("scheduling", "KeyValueStore")]
        assert "KeyValueStore" in caplog.text
