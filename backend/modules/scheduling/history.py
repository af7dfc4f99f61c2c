"""
modules/scheduling/history.py - Bounded, newest-first log of undoable actions.

Each Action carries deep copies of the record before and after the mutation
it describes. The log keeps the most recent `capacity` actions; anything
older is dropped silently and can no longer be undone.
"""

import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from core.base import ActionType
from modules.scheduling.records import MaintenanceRecord

log = logging.getLogger("rmi.scheduling")

DEFAULT_CAPACITY = 10


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _new_action_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Action:
    id: str
    type: ActionType
    tower_id: str
    floor: int
    previous_state: MaintenanceRecord
    new_state: MaintenanceRecord
    description: str
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "tower_id": self.tower_id,
            "floor": self.floor,
            "previous_state": self.previous_state.to_json(),
            "new_state": self.new_state.to_json(),
            "description": self.description,
            "created_at": self.created_at.isoformat(),
        }


class ActionLog:
    """Newest-first action history with single-shot undo."""

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_action_id,
    ):
        if capacity < 1:
            raise ValueError("Action log capacity must be at least 1")
        self.capacity = capacity
        self._clock = clock
        self._id_factory = id_factory
        # appendleft on a full deque drops the rightmost (oldest) entry
        self._actions: deque[Action] = deque(maxlen=capacity)

    def record(
        self,
        action_type: ActionType,
        tower_id: str,
        floor: int,
        previous_state: MaintenanceRecord,
        new_state: MaintenanceRecord,
        description: str,
    ) -> Action:
        action = Action(
            id=self._id_factory(),
            type=ActionType(action_type),
            tower_id=tower_id,
            floor=floor,
            previous_state=previous_state.model_copy(deep=True),
            new_state=new_state.model_copy(deep=True),
            description=description,
            created_at=self._clock(),
        )
        if len(self._actions) == self.capacity:
            evicted = self._actions[-1]
            log.debug(f"History full, evicting action {evicted.id} ({evicted.description})")
        self._actions.appendleft(action)
        return action

    def undo(self, action_id: str) -> Optional[Action]:
        """Remove and return the action so its previous_state can be restored.

        Returns None when the id is unknown, already undone or evicted.
        """
        action = self.get(action_id)
        if action is None:
            return None
        self._actions.remove(action)
        return action

    def get(self, action_id: str) -> Optional[Action]:
        for action in self._actions:
            if action.id == action_id:
                return action
        return None

    def find_most_recent_for_floor(self, tower_id: str, floor: int) -> Optional[Action]:
        for action in self._actions:
            if action.tower_id == tower_id and action.floor == floor:
                return action
        return None

    def entries(self) -> list[Action]:
        """Snapshot of the history, newest first."""
        return list(self._actions)

    def clear(self) -> None:
        self._actions.clear()

    def __len__(self) -> int:
        return len(self._actions)
