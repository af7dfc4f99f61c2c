MODULE_ID = "sync"
MODULE_VERSION = "1.0.0"
MODULE_DESCRIPTION = "Best-effort push of schedule snapshots to a remote sheet, and the sheet-append endpoint"

ROUTES = [
    "sync.routes",
]

TABLES = [
    "schedule_sheet_rows",
]

PUBLISHES = [
    "sync.completed",
    "sync.failed",
]

SUBSCRIBES = [
    "schedule.updated",
    "schedule.undone",
]

IMPLEMENTS = []

REQUIRES = ["EventBus"]


def register(app, registry) -> None:
    """Mount the update-schedule endpoint and, when configured, the push client."""
    import logging

    from core.config import settings
    from modules.sync import routes

    app.include_router(routes.router, prefix="/api")

    if not settings.sync_url:
        logging.getLogger("rmi.sync").info("SYNC_URL not set, remote schedule sync disabled")
        return

    from modules.sync.client import RemoteSyncClient

    bus = registry.require("EventBus")
    client = RemoteSyncClient(settings.sync_url, timeout=settings.sync_timeout_seconds, bus=bus)
    client.subscribe(bus)
    registry.register_provider("RemoteSyncClient", client)
