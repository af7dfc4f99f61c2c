# core/events.py - canonical event type definitions
# All cross-module communication should use these constants as event_type values.

# Schedule events
SCHEDULE_UPDATED = "schedule.updated"                 # {tower_id, floor, action_id, action_type, message, snapshot}
SCHEDULE_UNDONE = "schedule.undone"                   # {tower_id, floor, action_id, message, snapshot}
SCHEDULE_RESEEDED = "schedule.reseeded"               # {key}
COMMAND_FAILED = "schedule.command_failed"            # {message, severity, tower_id, floor}

# Remote sync events
SYNC_COMPLETED = "sync.completed"                     # {status_code}
SYNC_FAILED = "sync.failed"                           # {error}
