"""Production FastAPI wrapper exposing the judge routers."""

from __future__ import annotations

import logging
from typing import Final

from fastapi import FastAPI

from redshell import __version__
from redshell.logging_utils import configure_logging
from routes.webhook import health_router, router as webhook_router

LOGGER: Final[logging.Logger] = logging.getLogger("redshell.api")


def create_app() -> FastAPI:
    """Instantiate the FastAPI application with the webhook and health routers."""

    configure_logging()
    app = FastAPI(title="RedShell Judge", version=__version__, docs_url="/docs")

    app.include_router(health_router)
    app.include_router(webhook_router)

    LOGGER.info("RedShell judge API created")
    return app


app = create_app()
