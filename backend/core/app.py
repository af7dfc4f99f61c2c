# core/app.py - App factory with module discovery
#
# Creates and configures the FastAPI application. Discovers module packages
# under backend/modules/, creates their tables, registers the shared providers
# (key-value store, event bus, clock) and calls each module's
# register(app, registry).
#
# main.py: from core.app import create_app; app = create_app()

import importlib
import logging
import pathlib
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Callable, Optional, Union

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.interfaces.event_bus import EventBus
from core.interfaces.kv_store import KeyValueStore

log = logging.getLogger("rmi.api")

__version__ = "1.0.0"


# ---------------------------------------------------------------------------
# Module discovery helpers
# ---------------------------------------------------------------------------

def _discover_modules() -> list[str]:
    """Return module package names under backend/modules/, alphabetically.

    A valid module directory contains an __init__.py with a MODULE_ID attribute.
    """
    modules_dir = pathlib.Path(__file__).parent.parent / "modules"
    found = []
    for entry in sorted(modules_dir.iterdir()):
        if not (entry / "__init__.py").exists():
            continue
        pkg_name = f"modules.{entry.name}"
        try:
            mod = importlib.import_module(pkg_name)
        except Exception as exc:
            log.warning(f"Module discovery: skipping {pkg_name!r} - {exc}")
            continue
        if hasattr(mod, "MODULE_ID"):
            found.append(pkg_name)
    return found


def _import_models(pkg_names: list[str]) -> None:
    """Import each module's models.py so its tables join Base.metadata."""
    for pkg in pkg_names:
        models_file = pathlib.Path(importlib.import_module(pkg).__file__).parent / "models.py"
        if models_file.exists():
            importlib.import_module(f"{pkg}.models")


def _setup_middleware(app: FastAPI) -> None:
    from core.config import settings

    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    kv_store: Optional[KeyValueStore] = None,
    bus: Optional[EventBus] = None,
    clock: Optional[Callable[[], Union[date, datetime]]] = None,
) -> FastAPI:
    """Create and fully configure the RMI Scheduler application.

    1. Discover modules and create the tables their models declare.
    2. Register shared providers: KeyValueStore (SQL-backed unless injected),
       EventBus (the process singleton unless injected) and Clock (date.today
       unless injected).
    3. Call each module's register(app, registry); this is where the
       scheduler loads the persisted schedule.
    4. Validate REQUIRES declarations and attach middleware.
    """
    from core.db import SessionLocal, init_db
    from core.event_bus import get_event_bus
    from core.kv_store import SqlKeyValueStore
    from core.registry import ModuleRegistry

    pkg_names = _discover_modules()
    log.info(f"Module load order: {[p.split('.')[-1] for p in pkg_names]}")

    _import_models(pkg_names)
    init_db()

    registry = ModuleRegistry()
    registry.register_provider("KeyValueStore", kv_store or SqlKeyValueStore(SessionLocal))
    registry.register_provider("EventBus", bus or get_event_bus())
    registry.register_provider("Clock", clock or date.today)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        scheduler = app.state.scheduler
        log.info(f"RMI Scheduler started with {len(scheduler.store)} floors across "
                 f"{len(scheduler.towers)} towers")
        yield
        log.info("RMI Scheduler shutting down")

    app = FastAPI(
        title="RMI Scheduler",
        description="Room maintenance scheduling for tower floors",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.registry = registry

    _setup_middleware(app)

    @app.get("/health", tags=["System"])
    def health():
        scheduler = app.state.scheduler
        return {
            "status": "ok",
            "version": __version__,
            "floors": len(scheduler.store),
            "history": len(scheduler.history),
        }

    for pkg in pkg_names:
        mod = importlib.import_module(pkg)
        registry.record_requires(getattr(mod, "MODULE_ID", pkg), getattr(mod, "REQUIRES", []))
        if hasattr(mod, "register"):
            mod.register(app, registry)
            log.debug(f"Registered module: {pkg}")

    registry.validate_dependencies()
    return app
