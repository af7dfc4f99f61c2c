"""
modules/scheduling/status.py - Floor status derivation and aggregate views.

Pure functions over a RecordStore and a reference "today". Nothing here is
cached or persisted; callers re-derive on every read.

Precedence: unscheduled (no next date) > overdue (days < 0) >
due-soon (0 <= days <= window, both ends inclusive) > scheduled.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional, Union

from core.base import FloorStatus
from modules.scheduling.records import MaintenanceRecord, RecordStore

DUE_SOON_DAYS = 7

Today = Union[date, datetime]


@dataclass(frozen=True)
class Reminder:
    tower_id: str
    tower_name: str
    floor: int
    next_maintenance: date
    days_until: int


@dataclass(frozen=True)
class ScheduleStatistics:
    overdue: int = 0
    due_soon: int = 0
    scheduled: int = 0
    unscheduled: int = 0

    @property
    def total(self) -> int:
        return self.overdue + self.due_soon + self.scheduled + self.unscheduled


def days_until(next_maintenance: date, today: Today) -> int:
    """Whole days from `today` to `next_maintenance`, rounded up.

    With a plain date the result is exact. With a datetime the partial day
    counts as a full one, so 2024-04-15 seen from 2024-04-10 09:00 is 5.
    """
    if isinstance(today, datetime):
        delta = datetime.combine(next_maintenance, time.min) - today.replace(tzinfo=None)
        return math.ceil(delta.total_seconds() / 86400)
    return (next_maintenance - today).days


def derive_status(
    record: Optional[MaintenanceRecord],
    today: Today,
    due_soon_days: int = DUE_SOON_DAYS,
) -> FloorStatus:
    if record is None or record.next_maintenance is None:
        return FloorStatus.UNSCHEDULED
    days = days_until(record.next_maintenance, today)
    if days < 0:
        return FloorStatus.OVERDUE
    if days <= due_soon_days:
        return FloorStatus.DUE_SOON
    return FloorStatus.SCHEDULED


def compute_statistics(
    store: RecordStore,
    today: Today,
    due_soon_days: int = DUE_SOON_DAYS,
) -> ScheduleStatistics:
    counts = {status: 0 for status in FloorStatus}
    for _tower, _floor, record in store.items():
        counts[derive_status(record, today, due_soon_days)] += 1
    return ScheduleStatistics(
        overdue=counts[FloorStatus.OVERDUE],
        due_soon=counts[FloorStatus.DUE_SOON],
        scheduled=counts[FloorStatus.SCHEDULED],
        unscheduled=counts[FloorStatus.UNSCHEDULED],
    )


def compute_reminders(
    store: RecordStore,
    today: Today,
    due_soon_days: int = DUE_SOON_DAYS,
) -> list[Reminder]:
    """Floors due within the window, soonest first.

    Overdue floors are not reminders; they only show up in the statistics
    and in the per-floor status.
    """
    reminders = []
    for tower, floor, record in store.items():
        if record.next_maintenance is None:
            continue
        days = days_until(record.next_maintenance, today)
        if 0 <= days <= due_soon_days:
            reminders.append(Reminder(
                tower_id=tower.id,
                tower_name=tower.name,
                floor=floor,
                next_maintenance=record.next_maintenance,
                days_until=days,
            ))
    # sorted() is stable: ties keep scan order
    return sorted(reminders, key=lambda r: r.days_until)


def filter_floors(
    store: RecordStore,
    tower_id: str,
    today: Today,
    search: str = "",
    status: Optional[Union[FloorStatus, str]] = None,
    due_soon_days: int = DUE_SOON_DAYS,
) -> list[tuple[int, MaintenanceRecord, FloorStatus]]:
    """Floors of one tower matching a floor-number substring and a status.

    `status` of None or "all" matches every status.
    """
    tower = store.tower(tower_id)
    wanted = None if status in (None, "all") else FloorStatus(status)
    search = (search or "").strip()
    result = []
    for floor in tower.floors:
        record = store.get(tower_id, floor)
        floor_status = derive_status(record, today, due_soon_days)
        if search and search not in str(floor):
            continue
        if wanted is not None and floor_status != wanted:
            continue
        result.append((floor, record, floor_status))
    return result
