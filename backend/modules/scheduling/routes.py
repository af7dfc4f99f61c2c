"""Scheduling routes - towers, floor grid, schedule/complete/reset commands, undo, reminders."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from core.base import FloorStatus
from modules.scheduling.commands import CommandResult, ConfirmationPrompt, MaintenanceScheduler
from modules.scheduling.errors import InvalidDateError, UnknownFloorError
from modules.scheduling.history import Action
from modules.scheduling.schemas import (
    ActionResponse,
    CommandResponse,
    ConfirmationResponse,
    FloorResponse,
    ReminderResponse,
    ScheduleRequest,
    StatisticsResponse,
    TowerResponse,
)

log = logging.getLogger("rmi.api")
router = APIRouter()


def get_scheduler(request: Request) -> MaintenanceScheduler:
    """Dependency: the scheduler built by the composition root."""
    return request.app.state.scheduler


# ============== Serialisation helpers ==============

def _action_out(action: Optional[Action]) -> Optional[ActionResponse]:
    if action is None:
        return None
    return ActionResponse(
        id=action.id,
        type=action.type,
        tower_id=action.tower_id,
        floor=action.floor,
        previous_state=action.previous_state,
        new_state=action.new_state,
        description=action.description,
        created_at=action.created_at,
    )


def _command_out(result: CommandResult) -> CommandResponse:
    return CommandResponse(
        ok=result.ok,
        message=result.message,
        severity=result.severity,
        tower_id=result.tower_id,
        floor=result.floor,
        record=result.record,
        undo_id=result.undo_id,
        action=_action_out(result.action or result.undone),
    )


def _prompt_out(prompt: ConfirmationPrompt) -> ConfirmationResponse:
    return ConfirmationResponse(
        title=prompt.title,
        message=prompt.message,
        tower_id=prompt.tower_id,
        floor=prompt.floor,
        current=prompt.current,
        proposed=prompt.proposed,
    )


def _floor_out(scheduler: MaintenanceScheduler, tower_id: str, floor: int) -> FloorResponse:
    return FloorResponse(
        tower_id=tower_id,
        floor=floor,
        status=scheduler.status(tower_id, floor),
        days_until=scheduler.days_until_due(tower_id, floor),
        record=scheduler.record(tower_id, floor),
    )


def _require_floor(scheduler: MaintenanceScheduler, tower_id: str, floor: int) -> None:
    if not scheduler.store.has_floor(tower_id, floor):
        raise HTTPException(status_code=404, detail=f"Floor {floor} not found in tower '{tower_id}'")


# ============== Towers & floors ==============

@router.get("/towers", response_model=List[TowerResponse], tags=["Schedule"])
def list_towers(scheduler: MaintenanceScheduler = Depends(get_scheduler)):
    """List configured towers and their floors."""
    return [TowerResponse(id=t.id, name=t.name, floors=list(t.floors)) for t in scheduler.towers]


@router.get("/towers/{tower_id}/floors", response_model=List[FloorResponse], tags=["Schedule"])
def list_floors(
    tower_id: str,
    search: str = Query(default="", max_length=10),
    status: Optional[FloorStatus] = None,
    scheduler: MaintenanceScheduler = Depends(get_scheduler),
):
    """Floor grid for one tower, filtered by floor-number substring and status."""
    try:
        rows = scheduler.floors(tower_id, search=search, status=status)
    except UnknownFloorError:
        raise HTTPException(status_code=404, detail=f"Tower '{tower_id}' not found")
    return [_floor_out(scheduler, tower_id, floor) for floor, _record, _status in rows]


@router.get("/towers/{tower_id}/floors/{floor}", response_model=FloorResponse, tags=["Schedule"])
def get_floor(tower_id: str, floor: int, scheduler: MaintenanceScheduler = Depends(get_scheduler)):
    _require_floor(scheduler, tower_id, floor)
    return _floor_out(scheduler, tower_id, floor)


@router.get("/schedule", tags=["Schedule"])
def get_schedule(scheduler: MaintenanceScheduler = Depends(get_scheduler)):
    """Full schedule snapshot in the persisted wire format."""
    return scheduler.snapshot()


# ============== Commands ==============

@router.post("/towers/{tower_id}/floors/{floor}/schedule", response_model=CommandResponse, tags=["Schedule"])
def schedule_floor(
    tower_id: str,
    floor: int,
    data: ScheduleRequest,
    scheduler: MaintenanceScheduler = Depends(get_scheduler),
):
    """Record maintenance on the given date; next maintenance is one cycle later."""
    _require_floor(scheduler, tower_id, floor)
    try:
        result = scheduler.schedule_maintenance(tower_id, floor, data.date)
    except InvalidDateError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _command_out(result)


@router.get("/towers/{tower_id}/floors/{floor}/complete", response_model=ConfirmationResponse, tags=["Schedule"])
def confirm_complete_floor(tower_id: str, floor: int, scheduler: MaintenanceScheduler = Depends(get_scheduler)):
    """Confirmation prompt for completing maintenance today."""
    _require_floor(scheduler, tower_id, floor)
    return _prompt_out(scheduler.confirm_complete(tower_id, floor))


@router.post("/towers/{tower_id}/floors/{floor}/complete", response_model=CommandResponse, tags=["Schedule"])
def complete_floor(tower_id: str, floor: int, scheduler: MaintenanceScheduler = Depends(get_scheduler)):
    """Mark maintenance as completed today (caller has confirmed)."""
    _require_floor(scheduler, tower_id, floor)
    return _command_out(scheduler.complete_today(tower_id, floor))


@router.get("/towers/{tower_id}/floors/{floor}/reset", response_model=ConfirmationResponse, tags=["Schedule"])
def confirm_reset_floor(tower_id: str, floor: int, scheduler: MaintenanceScheduler = Depends(get_scheduler)):
    _require_floor(scheduler, tower_id, floor)
    return _prompt_out(scheduler.confirm_reset(tower_id, floor))


@router.post("/towers/{tower_id}/floors/{floor}/reset", response_model=CommandResponse, tags=["Schedule"])
def reset_floor(tower_id: str, floor: int, scheduler: MaintenanceScheduler = Depends(get_scheduler)):
    """Clear a floor's maintenance dates (caller has confirmed)."""
    _require_floor(scheduler, tower_id, floor)
    return _command_out(scheduler.reset_floor(tower_id, floor))


@router.post("/towers/{tower_id}/floors/{floor}/undo", response_model=CommandResponse, tags=["Schedule"])
def undo_last_for_floor(tower_id: str, floor: int, scheduler: MaintenanceScheduler = Depends(get_scheduler)):
    """Undo the most recent action recorded for this floor."""
    _require_floor(scheduler, tower_id, floor)
    result = scheduler.undo_last_for_floor(tower_id, floor)
    if not result.ok:
        raise HTTPException(status_code=404, detail=result.message)
    return _command_out(result)


# ============== History ==============

@router.get("/history", response_model=List[ActionResponse], tags=["History"])
def list_history(scheduler: MaintenanceScheduler = Depends(get_scheduler)):
    """Undoable actions, newest first."""
    return [_action_out(a) for a in scheduler.history_entries()]


@router.post("/history/{action_id}/undo", response_model=CommandResponse, tags=["History"])
def undo_action(action_id: str, scheduler: MaintenanceScheduler = Depends(get_scheduler)):
    result = scheduler.undo_action(action_id)
    if not result.ok:
        raise HTTPException(status_code=404, detail=result.message)
    return _command_out(result)


# ============== Derived views ==============

@router.get("/reminders", response_model=List[ReminderResponse], tags=["Schedule"])
def list_reminders(scheduler: MaintenanceScheduler = Depends(get_scheduler)):
    """Floors due within the due-soon window, soonest first. Overdue floors are not included."""
    return [
        ReminderResponse(
            tower_id=r.tower_id,
            tower_name=r.tower_name,
            floor=r.floor,
            next_maintenance=r.next_maintenance,
            days_until=r.days_until,
        )
        for r in scheduler.reminders()
    ]


@router.get("/statistics", response_model=StatisticsResponse, tags=["Schedule"])
def get_statistics(scheduler: MaintenanceScheduler = Depends(get_scheduler)):
    stats = scheduler.statistics()
    return StatisticsResponse(
        overdue=stats.overdue,
        due_soon=stats.due_soon,
        scheduled=stats.scheduled,
        unscheduled=stats.unscheduled,
        total=stats.total,
    )
