"""
modules/scheduling/schemas.py - Pydantic schemas for the scheduling API.
"""

from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel

from core.base import ActionType, FloorStatus
from modules.scheduling.records import MaintenanceRecord


# ============== Towers & floors ==============

class TowerResponse(BaseModel):
    id: str
    name: str
    floors: List[int]


class FloorResponse(BaseModel):
    tower_id: str
    floor: int
    status: FloorStatus
    days_until: Optional[int] = None
    record: MaintenanceRecord


class ScheduleRequest(BaseModel):
    """Maintenance date as entered by the user (ISO YYYY-MM-DD)."""
    date: Optional[str] = None


# ============== Actions & commands ==============

class ActionResponse(BaseModel):
    id: str
    type: ActionType
    tower_id: str
    floor: int
    previous_state: MaintenanceRecord
    new_state: MaintenanceRecord
    description: str
    created_at: datetime


class CommandResponse(BaseModel):
    ok: bool
    message: str
    severity: str
    tower_id: Optional[str] = None
    floor: Optional[int] = None
    record: Optional[MaintenanceRecord] = None
    undo_id: Optional[str] = None
    action: Optional[ActionResponse] = None


class ConfirmationResponse(BaseModel):
    title: str
    message: str
    tower_id: str
    floor: int
    current: MaintenanceRecord
    proposed: MaintenanceRecord


# ============== Derived views ==============

class ReminderResponse(BaseModel):
    tower_id: str
    tower_name: str
    floor: int
    next_maintenance: date
    days_until: int


class StatisticsResponse(BaseModel):
    """Floor counts per status across all towers."""
    overdue: int = 0
    due_soon: int = 0
    scheduled: int = 0
    unscheduled: int = 0
    total: int = 0
