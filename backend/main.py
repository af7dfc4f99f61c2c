"""
RMI Scheduler - Room Maintenance API

FastAPI application tracking quarterly room maintenance per tower floor,
with undoable actions and an optional remote sheet sync.

Run:
    uvicorn main:app --app-dir backend
"""

import logging

from core.config import settings

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(message)s",
)

from core.app import create_app  # noqa: E402

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)
