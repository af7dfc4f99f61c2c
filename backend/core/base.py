"""
core/base.py - Declarative Base and shared enums.

All ORM models import Base from here.
Shared enums used by more than one module live here to avoid circular imports.
"""

from enum import Enum
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class FloorStatus(str, Enum):
    """Urgency of a floor's next maintenance, most urgent last."""
    UNSCHEDULED = "unscheduled"
    SCHEDULED = "scheduled"
    DUE_SOON = "due-soon"
    OVERDUE = "overdue"


class ActionType(str, Enum):
    """Kinds of undoable schedule mutations."""
    SCHEDULE = "schedule"
    COMPLETE = "complete"
    RESET = "reset"
