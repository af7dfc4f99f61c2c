"""
modules/scheduling/records.py - Maintenance records and the record store.

The store owns the live MaintenanceRecord for every configured (tower, floor)
pair. Records are frozen pydantic models, so handing one out never lets a
caller mutate store state; replacing a record always goes through set().
"""

import logging
from datetime import date, timedelta
from typing import Callable, Iterable, Iterator, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from modules.scheduling.errors import UnknownFloorError
from modules.scheduling.towers import Tower, index_towers

log = logging.getLogger("rmi.scheduling")


def add_months(start: date, months: int) -> date:
    """Add calendar months keeping the day-of-month.

    A day that does not exist in the target month rolls forward into the next
    month (2024-11-30 + 3 months -> 2025-03-02) instead of clamping to the
    month's last day. Stored next-maintenance dates depend on this.
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, 1) + timedelta(days=start.day - 1)


class MaintenanceRecord(BaseModel):
    """Maintenance state of one floor."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    last_maintenance: Optional[date] = Field(default=None, alias="lastMaintenance")
    next_maintenance: Optional[date] = Field(default=None, alias="nextMaintenance")
    completed: bool = False

    @model_validator(mode="after")
    def _next_requires_last(self):
        if self.next_maintenance is not None and self.last_maintenance is None:
            raise ValueError("nextMaintenance is set without lastMaintenance")
        return self

    @classmethod
    def unscheduled(cls) -> "MaintenanceRecord":
        return cls()

    @classmethod
    def serviced_on(cls, serviced: date, cycle_months: int = 3) -> "MaintenanceRecord":
        """Record for a floor serviced on `serviced`, due again one cycle later."""
        return cls(
            last_maintenance=serviced,
            next_maintenance=add_months(serviced, cycle_months),
            completed=True,
        )

    @property
    def is_unscheduled(self) -> bool:
        return self.last_maintenance is None and self.next_maintenance is None

    def to_json(self) -> dict:
        """Wire format: {lastMaintenance, nextMaintenance, completed} with ISO dates."""
        return self.model_dump(mode="json", by_alias=True)


UNSCHEDULED = MaintenanceRecord.unscheduled()

FloorKey = tuple[str, int]


class RecordStore:
    """
    In-memory owner of all maintenance records.

    The key space is fixed at construction from the tower configuration.
    Every set() writes the whole store through `persist` and then notifies
    change listeners. Persist and listener failures are logged, never raised,
    so a set() that returns has always replaced the record. Callers serialise
    access; the store has no lock.
    """

    def __init__(
        self,
        towers: Iterable[Tower],
        persist: Optional[Callable[[dict], None]] = None,
    ):
        self._towers = index_towers(towers)
        self._persist = persist
        self._listeners: list[Callable[["RecordStore"], None]] = []
        self._records: dict[FloorKey, MaintenanceRecord] = {
            (tower.id, floor): UNSCHEDULED
            for tower in self._towers.values()
            for floor in tower.floors
        }

    # -- key space ---------------------------------------------------------

    @property
    def towers(self) -> list[Tower]:
        return list(self._towers.values())

    def tower(self, tower_id: str) -> Tower:
        try:
            return self._towers[tower_id]
        except KeyError:
            raise UnknownFloorError(tower_id) from None

    def has_floor(self, tower_id: str, floor: int) -> bool:
        return (tower_id, floor) in self._records

    def require_floor(self, tower_id: str, floor: int) -> None:
        if not self.has_floor(tower_id, floor):
            raise UnknownFloorError(tower_id, floor)

    # -- reads ---------------------------------------------------------------

    def get(self, tower_id: str, floor: int) -> MaintenanceRecord:
        """Current record, or the unscheduled default for unknown keys."""
        return self._records.get((tower_id, floor), UNSCHEDULED)

    def items(self) -> Iterator[tuple[Tower, int, MaintenanceRecord]]:
        """Yield (tower, floor, record) in tower order, then static floor order."""
        for tower in self._towers.values():
            for floor in tower.floors:
                yield tower, floor, self._records[(tower.id, floor)]

    def snapshot(self) -> dict:
        """JSON-ready copy: {tower_id: {"floor": {lastMaintenance, ...}}}."""
        result: dict[str, dict[str, dict]] = {}
        for tower, floor, record in self.items():
            result.setdefault(tower.id, {})[str(floor)] = record.to_json()
        return result

    def __len__(self) -> int:
        return len(self._records)

    # -- writes --------------------------------------------------------------

    def set(self, tower_id: str, floor: int, record: MaintenanceRecord) -> None:
        """Replace the record for one floor, then persist and notify."""
        self.require_floor(tower_id, floor)
        self._records[(tower_id, floor)] = record.model_copy(deep=True)
        self._write_through()

    def seed(self, loaded: Optional[Mapping[str, Mapping[int, MaintenanceRecord]]]) -> int:
        """Initial seeding pass from a loaded snapshot.

        Every configured pair missing from `loaded` gets the unscheduled
        record; entries outside the configuration are dropped. Returns the
        number of records taken from `loaded`.
        """
        loaded = loaded or {}
        taken = 0
        dropped = 0
        for tower_id, floors in loaded.items():
            for floor, record in floors.items():
                if (tower_id, floor) in self._records:
                    self._records[(tower_id, floor)] = record.model_copy(deep=True)
                    taken += 1
                else:
                    dropped += 1
        if dropped:
            log.warning(f"Seeding dropped {dropped} record(s) for unconfigured towers/floors")
        log.info(f"Record store seeded: {taken} loaded, {len(self._records) - taken} unscheduled")
        self._write_through()
        return taken

    def add_listener(self, callback: Callable[["RecordStore"], None]) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def _write_through(self) -> None:
        if self._persist is not None:
            try:
                self._persist(self.snapshot())
            except Exception as e:
                log.error(f"Failed to persist schedule snapshot: {e}", exc_info=True)
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception as e:
                name = getattr(callback, "__qualname__", repr(callback))
                log.error(f"Record store listener {name!r} failed: {e}", exc_info=True)
