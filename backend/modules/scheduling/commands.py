"""
modules/scheduling/commands.py - Schedule, complete, reset and undo.

MaintenanceScheduler is the only writer of the record store. Each command
runs to completion under one lock: read current record -> build new record ->
store.set() (persists and refreshes reminders) -> log the action -> publish.
Nothing is published for a command that was rejected before mutating.

Confirmation of complete/reset is the caller's job; confirm_complete() and
confirm_reset() only describe what would change.
"""

import logging
import re
import threading
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional, Union

from dateutil.parser import isoparse

from core.base import ActionType, FloorStatus
from core.config import Settings, settings as default_settings
from core.events import COMMAND_FAILED, SCHEDULE_RESEEDED, SCHEDULE_UNDONE, SCHEDULE_UPDATED
from core.interfaces.event_bus import Event, EventBus
from core.interfaces.kv_store import KeyValueStore
from modules.scheduling.errors import InvalidDateError
from modules.scheduling.history import Action, ActionLog
from modules.scheduling.persistence import ScheduleSnapshotAdapter
from modules.scheduling.records import MaintenanceRecord, RecordStore, UNSCHEDULED
from modules.scheduling.status import (
    Reminder,
    ScheduleStatistics,
    compute_reminders,
    compute_statistics,
    days_until,
    derive_status,
    filter_floors,
)
from modules.scheduling.towers import DEFAULT_TOWERS, Tower

log = logging.getLogger("rmi.scheduling")

DateInput = Union[date, datetime, str, None]

_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a command, shaped for a transient user notification.

    `action` is the undo handle for a successful mutation; `undone` is the
    action a successful undo consumed.
    """
    ok: bool
    message: str
    severity: str = "success"  # success | warning | error
    tower_id: Optional[str] = None
    floor: Optional[int] = None
    record: Optional[MaintenanceRecord] = None
    action: Optional[Action] = None
    undone: Optional[Action] = None

    @property
    def undo_id(self) -> Optional[str]:
        return self.action.id if self.action else None


@dataclass(frozen=True)
class ConfirmationPrompt:
    title: str
    message: str
    tower_id: str
    floor: int
    current: MaintenanceRecord
    proposed: MaintenanceRecord


def parse_maintenance_date(
    value: DateInput,
    today: date,
    earliest: date = date(2000, 1, 1),
    max_future_days: int = 366,
) -> date:
    """Validate a user-supplied maintenance date.

    Accepts date/datetime objects and ISO-8601 strings that start with a full
    YYYY-MM-DD date. Rejects empty or placeholder input, dates before
    `earliest` and dates more than `max_future_days` after `today`.
    """
    if value is None:
        raise InvalidDateError(value, "no date given")
    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidDateError(value, "no date given")
        if not _ISO_DATE_PREFIX.match(text):
            raise InvalidDateError(value, "expected an ISO date (YYYY-MM-DD)")
        try:
            parsed = isoparse(text).date()
        except (ValueError, OverflowError) as e:
            raise InvalidDateError(value, str(e)) from e
    else:
        raise InvalidDateError(value, f"unsupported type {type(value).__name__}")

    if parsed < earliest:
        raise InvalidDateError(value, f"before {earliest.isoformat()}")
    latest = today + timedelta(days=max_future_days)
    if parsed > latest:
        raise InvalidDateError(value, f"more than {max_future_days} days in the future")
    return parsed


class MaintenanceScheduler:
    """Command and query facade over the record store and action log."""

    def __init__(
        self,
        store: RecordStore,
        history: ActionLog,
        bus: Optional[EventBus] = None,
        clock: Callable[[], Union[date, datetime]] = date.today,
        cycle_months: int = 3,
        due_soon_days: int = 7,
        earliest_date: date = date(2000, 1, 1),
        max_future_days: int = 366,
    ):
        self.store = store
        self.history = history
        self._bus = bus
        self._clock = clock
        self.cycle_months = cycle_months
        self.due_soon_days = due_soon_days
        self.earliest_date = earliest_date
        self.max_future_days = max_future_days
        self._lock = threading.RLock()
        self._reminders: list[Reminder] = []
        self._reminders_day: Optional[date] = None
        store.add_listener(self._refresh_reminders)
        self._refresh_reminders(store)

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def now(self) -> Union[date, datetime]:
        return self._clock()

    def today(self) -> date:
        now = self._clock()
        return now.date() if isinstance(now, datetime) else now

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def schedule_maintenance(self, tower_id: str, floor: int, when: DateInput) -> CommandResult:
        """Record maintenance on `when`; the next one falls one cycle later."""
        self.store.require_floor(tower_id, floor)
        try:
            serviced = parse_maintenance_date(
                when, self.today(), self.earliest_date, self.max_future_days
            )
        except InvalidDateError as e:
            self._publish_failure(str(e), "error", tower_id, floor)
            raise
        return self._apply(
            ActionType.SCHEDULE, tower_id, floor,
            MaintenanceRecord.serviced_on(serviced, self.cycle_months),
            description=f"Scheduled maintenance for Floor {floor}",
            message=f"Floor {floor} maintenance scheduled successfully",
        )

    def complete_today(self, tower_id: str, floor: int) -> CommandResult:
        """Mark maintenance done today. Call after the user confirmed."""
        self.store.require_floor(tower_id, floor)
        return self._apply(
            ActionType.COMPLETE, tower_id, floor,
            MaintenanceRecord.serviced_on(self.today(), self.cycle_months),
            description=f"Completed maintenance for Floor {floor}",
            message=f"Floor {floor} marked as completed!",
        )

    def reset_floor(self, tower_id: str, floor: int) -> CommandResult:
        """Clear both dates. Call after the user confirmed."""
        self.store.require_floor(tower_id, floor)
        return self._apply(
            ActionType.RESET, tower_id, floor, UNSCHEDULED,
            description=f"Reset maintenance for Floor {floor}",
            message=f"Floor {floor} schedule cleared",
        )

    def confirm_complete(self, tower_id: str, floor: int) -> ConfirmationPrompt:
        self.store.require_floor(tower_id, floor)
        return ConfirmationPrompt(
            title="Mark Maintenance Complete",
            message=f"Are you sure you want to mark Floor {floor} maintenance as completed today?",
            tower_id=tower_id,
            floor=floor,
            current=self.store.get(tower_id, floor),
            proposed=MaintenanceRecord.serviced_on(self.today(), self.cycle_months),
        )

    def confirm_reset(self, tower_id: str, floor: int) -> ConfirmationPrompt:
        self.store.require_floor(tower_id, floor)
        return ConfirmationPrompt(
            title="Reset Floor Schedule",
            message=f"Are you sure you want to clear the maintenance dates for Floor {floor}?",
            tower_id=tower_id,
            floor=floor,
            current=self.store.get(tower_id, floor),
            proposed=UNSCHEDULED,
        )

    def undo_action(self, action_id: str) -> CommandResult:
        """Restore the record an action replaced. Unknown ids are a soft failure."""
        with self._lock:
            action = self.history.undo(action_id)
            if action is None:
                return self._not_found("Action not found or already undone.")
            self.store.set(action.tower_id, action.floor, action.previous_state)
            snapshot = self.store.snapshot()

        message = f"Undid action for Floor {action.floor}"
        log.info(f"{message} ({action.tower_id}, {action.type.value} {action.id})")
        self._publish(SCHEDULE_UNDONE, {
            "tower_id": action.tower_id,
            "floor": action.floor,
            "action_id": action.id,
            "message": message,
            "snapshot": snapshot,
        })
        return CommandResult(
            ok=True,
            message=message,
            tower_id=action.tower_id,
            floor=action.floor,
            record=action.previous_state,
            undone=action,
        )

    def undo_last_for_floor(self, tower_id: str, floor: int) -> CommandResult:
        self.store.require_floor(tower_id, floor)
        with self._lock:
            action = self.history.find_most_recent_for_floor(tower_id, floor)
            if action is None:
                return self._not_found(
                    "No recent action found for this floor to undo.", tower_id, floor
                )
            return self.undo_action(action.id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def towers(self) -> list[Tower]:
        return self.store.towers

    def record(self, tower_id: str, floor: int) -> MaintenanceRecord:
        return self.store.get(tower_id, floor)

    def status(self, tower_id: str, floor: int) -> FloorStatus:
        return derive_status(self.store.get(tower_id, floor), self.now(), self.due_soon_days)

    def days_until_due(self, tower_id: str, floor: int) -> Optional[int]:
        record = self.store.get(tower_id, floor)
        if record.next_maintenance is None:
            return None
        return days_until(record.next_maintenance, self.now())

    def statistics(self) -> ScheduleStatistics:
        with self._lock:
            return compute_statistics(self.store, self.now(), self.due_soon_days)

    def reminders(self) -> list[Reminder]:
        """Due-soon floors, soonest first; recomputed on change or a new day."""
        with self._lock:
            if self._reminders_day != self.today():
                self._refresh_reminders(self.store)
            return list(self._reminders)

    def floors(
        self,
        tower_id: str,
        search: str = "",
        status: Optional[Union[FloorStatus, str]] = None,
    ) -> list[tuple[int, MaintenanceRecord, FloorStatus]]:
        with self._lock:
            return filter_floors(
                self.store, tower_id, self.now(), search, status, self.due_soon_days
            )

    def history_entries(self) -> list[Action]:
        with self._lock:
            return self.history.entries()

    def snapshot(self) -> dict:
        with self._lock:
            return self.store.snapshot()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply(
        self,
        action_type: ActionType,
        tower_id: str,
        floor: int,
        new_record: MaintenanceRecord,
        description: str,
        message: str,
    ) -> CommandResult:
        with self._lock:
            previous = self.store.get(tower_id, floor)
            self.store.set(tower_id, floor, new_record)
            action = self.history.record(
                action_type, tower_id, floor, previous, new_record, description
            )
            snapshot = self.store.snapshot()

        log.info(f"{description} in {tower_id} (action {action.id})")
        self._publish(SCHEDULE_UPDATED, {
            "tower_id": tower_id,
            "floor": floor,
            "action_id": action.id,
            "action_type": action_type.value,
            "message": message,
            "snapshot": snapshot,
        })
        return CommandResult(
            ok=True,
            message=message,
            tower_id=tower_id,
            floor=floor,
            record=new_record,
            action=action,
        )

    def _not_found(
        self, message: str, tower_id: Optional[str] = None, floor: Optional[int] = None
    ) -> CommandResult:
        self._publish_failure(message, "warning", tower_id, floor)
        return CommandResult(
            ok=False, message=message, severity="warning", tower_id=tower_id, floor=floor
        )

    def _publish_failure(
        self, message: str, severity: str, tower_id: Optional[str], floor: Optional[int]
    ) -> None:
        log.info(f"Command not applied: {message}")
        self._publish(COMMAND_FAILED, {
            "message": message,
            "severity": severity,
            "tower_id": tower_id,
            "floor": floor,
        })

    def _publish(self, event_type: str, data: dict) -> None:
        if self._bus is not None:
            self._bus.publish(Event(event_type=event_type, source_module="scheduling", data=data))

    def _refresh_reminders(self, store: RecordStore) -> None:
        now = self.now()
        self._reminders = compute_reminders(store, now, self.due_soon_days)
        self._reminders_day = now.date() if isinstance(now, datetime) else now


def create_scheduler(
    kv: KeyValueStore,
    towers: Iterable[Tower] = DEFAULT_TOWERS,
    bus: Optional[EventBus] = None,
    clock: Callable[[], Union[date, datetime]] = date.today,
    config: Settings = default_settings,
) -> MaintenanceScheduler:
    """Load the persisted schedule and wire store, history and scheduler."""
    adapter = ScheduleSnapshotAdapter(kv, key=config.schedule_key, cycle_months=config.cycle_months)
    loaded = adapter.load()
    store = RecordStore(towers, persist=adapter.save)
    # A snapshot holding only unconfigured towers/floors seeds nothing either
    if store.seed(loaded) == 0 and bus is not None:
        bus.publish(Event(
            event_type=SCHEDULE_RESEEDED,
            source_module="scheduling",
            data={"key": adapter.key},
        ))
    history = ActionLog(capacity=config.history_capacity)
    return MaintenanceScheduler(
        store,
        history,
        bus=bus,
        clock=clock,
        cycle_months=config.cycle_months,
        due_soon_days=config.due_soon_days,
        earliest_date=config.earliest_maintenance_date,
        max_future_days=config.max_future_days,
    )
