# core/interfaces/kv_store.py
from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """Byte-oriented key-value store used for persisted snapshots."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]: ...

    @abstractmethod
    def set(self, key: str, value: bytes) -> None: ...
