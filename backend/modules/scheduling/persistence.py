"""
modules/scheduling/persistence.py - Schedule snapshot <-> key-value byte store.

Snapshot format (UTF-8 JSON under one key, "rmiSchedule" by default):

    {"harbor": {"10": {"lastMaintenance": "2024-01-15",
                       "nextMaintenance": "2024-04-15",
                       "completed": true}}}

Anything that does not parse into that shape is treated as absent, so a
corrupt snapshot reseeds the store instead of failing startup.
"""

import json
import logging
from typing import Optional

from pydantic import ValidationError

from core.interfaces.kv_store import KeyValueStore
from modules.scheduling.records import MaintenanceRecord, add_months

log = logging.getLogger("rmi.persistence")

LoadedSchedule = dict[str, dict[int, MaintenanceRecord]]


class MalformedSnapshot(ValueError):
    pass


def encode_snapshot(snapshot: dict) -> bytes:
    return json.dumps(snapshot, sort_keys=True, separators=(",", ":")).encode("utf-8")


def decode_snapshot(raw: bytes, cycle_months: int = 3) -> LoadedSchedule:
    """Parse stored bytes into records keyed by tower id and integer floor.

    Raises MalformedSnapshot for undecodable bytes, non-object JSON, floor
    keys that are not integers, records that fail validation, or a
    nextMaintenance that is not exactly `cycle_months` after lastMaintenance.
    """
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedSnapshot(f"not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedSnapshot(f"expected an object, got {type(data).__name__}")

    loaded: LoadedSchedule = {}
    for tower_id, floors in data.items():
        if not isinstance(floors, dict):
            raise MalformedSnapshot(f"tower '{tower_id}' is not an object")
        tower_records: dict[int, MaintenanceRecord] = {}
        for floor_key, raw_record in floors.items():
            try:
                floor = int(floor_key)
            except (TypeError, ValueError) as e:
                raise MalformedSnapshot(f"floor key {floor_key!r} is not a number") from e
            if not isinstance(raw_record, dict):
                raise MalformedSnapshot(f"{tower_id}/{floor_key} is not an object")
            try:
                record = MaintenanceRecord.model_validate(raw_record)
            except ValidationError as e:
                raise MalformedSnapshot(f"{tower_id}/{floor_key}: {e.errors()[0]['msg']}") from e
            if (record.next_maintenance is not None
                    and record.next_maintenance != add_months(record.last_maintenance, cycle_months)):
                raise MalformedSnapshot(
                    f"{tower_id}/{floor_key}: nextMaintenance {record.next_maintenance} "
                    f"is not {cycle_months} months after {record.last_maintenance}"
                )
            tower_records[floor] = record
        loaded[tower_id] = tower_records
    return loaded


class ScheduleSnapshotAdapter:
    """Reads and writes the schedule snapshot under a configurable key."""

    def __init__(self, kv: KeyValueStore, key: str = "rmiSchedule", cycle_months: int = 3):
        self._kv = kv
        self.key = key
        self.cycle_months = cycle_months

    def load(self) -> Optional[LoadedSchedule]:
        """Return the stored schedule, or None when absent, empty or malformed."""
        raw = self._kv.get(self.key)
        if not raw:
            log.info(f"No stored schedule under '{self.key}', seeding defaults")
            return None
        try:
            loaded = decode_snapshot(raw, self.cycle_months)
        except MalformedSnapshot as e:
            log.warning(f"Stored schedule under '{self.key}' is malformed ({e}), reseeding")
            return None
        if not loaded:
            log.info(f"Stored schedule under '{self.key}' is empty, seeding defaults")
            return None
        return loaded

    def save(self, snapshot: dict) -> None:
        self._kv.set(self.key, encode_snapshot(snapshot))
