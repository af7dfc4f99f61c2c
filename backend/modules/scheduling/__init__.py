MODULE_ID = "scheduling"
MODULE_VERSION = "1.0.0"
MODULE_DESCRIPTION = "Floor maintenance records, status derivation, reminders, and undoable action history"

ROUTES = [
    "scheduling.routes",
]

TABLES = []

PUBLISHES = [
    "schedule.updated",
    "schedule.undone",
    "schedule.reseeded",
    "schedule.command_failed",
]

SUBSCRIBES = []

IMPLEMENTS = ["MaintenanceScheduler"]

REQUIRES = ["KeyValueStore", "EventBus", "Clock"]


def register(app, registry) -> None:
    """Build the scheduler from the registered providers and mount its routes."""
    from core.config import settings
    from modules.scheduling import routes
    from modules.scheduling.commands import create_scheduler

    scheduler = create_scheduler(
        registry.require("KeyValueStore"),
        bus=registry.require("EventBus"),
        clock=registry.require("Clock"),
        config=settings,
    )
    app.state.scheduler = scheduler
    registry.register_provider("MaintenanceScheduler", scheduler)

    app.include_router(routes.router, prefix="/api")
