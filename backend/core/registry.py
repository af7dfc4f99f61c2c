# core/registry.py - providers shared between modules
#
# The app factory registers the key-value store and the event bus; the
# scheduling module adds the MaintenanceScheduler, the sync module its push
# client. Each module's REQUIRES manifest list is checked once all modules
# have registered.

import logging
from typing import Any

log = logging.getLogger("rmi.registry")


class MissingProviderError(LookupError):
    pass


class ModuleRegistry:
    """Interface name -> implementation, plus the REQUIRES declarations to check."""

    def __init__(self):
        self._providers: dict[str, Any] = {}
        self._requirements: dict[str, list[str]] = {}

    def register_provider(self, interface_name: str, impl: Any) -> None:
        previous = self._providers.get(interface_name)
        if previous is not None and previous is not impl:
            log.warning(f"Replacing {interface_name} provider {type(previous).__name__} "
                        f"with {type(impl).__name__}")
        self._providers[interface_name] = impl
        log.debug(f"{interface_name} -> {type(impl).__name__}")

    def get_provider(self, interface_name: str) -> Any:
        """Provider for an optional interface, or None."""
        provider = self._providers.get(interface_name)
        if provider is None:
            log.warning(f"No {interface_name} provider registered")
        return provider

    def require(self, interface_name: str) -> Any:
        """Provider for a mandatory interface; raises MissingProviderError."""
        try:
            return self._providers[interface_name]
        except KeyError:
            raise MissingProviderError(f"{interface_name} provider is not registered") from None

    def record_requires(self, module_id: str, requires: list[str]) -> None:
        self._requirements.setdefault(module_id, []).extend(requires)

    def missing_dependencies(self) -> list[tuple[str, str]]:
        """(module_id, interface) pairs whose interface has no provider."""
        return [
            (module_id, iface)
            for module_id, interfaces in self._requirements.items()
            for iface in interfaces
            if iface not in self._providers
        ]

    def validate_dependencies(self) -> bool:
        missing = self.missing_dependencies()
        for module_id, iface in missing:
            log.error(f"Module '{module_id}' requires {iface}, which no module provides")
        if not missing:
            total = sum(len(v) for v in self._requirements.values())
            log.info(f"Module dependencies satisfied ({total} declarations)")
        return not missing

    @property
    def providers(self) -> dict[str, Any]:
        return dict(self._providers)
