"""Sync routes - receiving end of the remote schedule sync.

Appends (ISO timestamp, JSON snapshot) rows to the sheet table. Only POST is
routed, so any other method on the path gets 405 from the router.
"""

import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.db import get_db
from modules.sync.models import ScheduleSheetRow

log = logging.getLogger("rmi.sync")
router = APIRouter()


@router.post("/update-schedule", tags=["Sync"])
async def update_schedule(request: Request, db: Session = Depends(get_db)):
    """Append a schedule snapshot row. Body: {"scheduleData": {...}}."""
    try:
        raw = await request.body()
        payload = json.loads(raw or b"{}")
        schedule_data = payload.get("scheduleData") if isinstance(payload, dict) else None

        row = ScheduleSheetRow(
            recorded_at=datetime.now(timezone.utc).isoformat(),
            snapshot=json.dumps(schedule_data),
        )
        db.add(row)
        db.commit()
    except Exception as e:
        db.rollback()
        log.error(f"update-schedule error: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"ok": False, "error": "Error saving to sheet"})

    return {"ok": True, "message": "Data saved to sheet"}
