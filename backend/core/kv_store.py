# core/kv_store.py - KeyValueStore implementations
#
# InMemoryKeyValueStore backs tests and ephemeral runs. SqlKeyValueStore keeps
# values in the kv_store table; each call opens a short-lived session, so the
# store is safe to share between request threads (last writer wins).

import logging
from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from core.interfaces.kv_store import KeyValueStore
from core.models import KeyValueEntry

log = logging.getLogger("rmi.persistence")


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local dict store."""

    def __init__(self, initial: Optional[dict[str, bytes]] = None):
        self._data: dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)


class SqlKeyValueStore(KeyValueStore):
    """KeyValueStore over the kv_store table."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[bytes]:
        with self._session_factory() as db:  # type: Session
            entry = db.get(KeyValueEntry, key)
            return bytes(entry.value) if entry else None

    def set(self, key: str, value: bytes) -> None:
        with self._session_factory() as db:  # type: Session
            entry = db.get(KeyValueEntry, key)
            if entry is None:
                db.add(KeyValueEntry(key=key, value=value))
            else:
                entry.value = value
            db.commit()
        log.debug(f"Stored {len(value)} bytes under '{key}'")
