"""
Main entrypoint for the SSH Key Manager API.

This module assembles the FastAPI application.  ``create_app`` sets
up logging, builds the record store and the broadcast registry, hangs
them on ``app.state`` for the dependencies in ``api.deps`` and mounts
the versioned routers.  The module-level ``app`` uses the settings
from the environment, so it can be served directly::

    uvicorn ssh_key_manager_api.app.main:app

The record store is loaded in the startup hook, before the first
request is accepted.
"""

import logging
from typing import Optional

from fastapi import FastAPI

from .core.broadcast import BroadcastRegistry
from .core.config import Settings, settings
from .core.logging_config import setup_logging
from .core.store import LoadError, RecordStore
from .api.v1.router import router as v1_router

logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    app_settings : Optional[Settings]
        Settings to use instead of the environment-derived defaults.
        Tests pass their own to point the store at temporary files.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    app_settings = app_settings or settings
    setup_logging(app_settings.log_level, app_settings.log_file or None)

    app = FastAPI(title=app_settings.project_name, version=app_settings.api_version, debug=app_settings.debug)
    app.state.settings = app_settings
    app.state.store = RecordStore(
        app_settings.users_file,
        app_settings.servers_file,
        write_timeout=app_settings.write_timeout_seconds,
    )
    app.state.registry = BroadcastRegistry()

    app.include_router(v1_router, prefix="/api/v1")

    @app.on_event("startup")
    async def startup_event() -> None:
        try:
            await app.state.store.load()
        except LoadError:
            if app_settings.abort_on_load_error:
                raise
            logger.warning("Starting with a failed record store; store-backed routes will answer 503")

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
