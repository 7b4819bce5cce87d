"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from signal_notify.app.exception_handlers import configure_exception_handlers
from signal_notify.app.lifespan import lifespan
from signal_notify.app.router import setup_routers
from signal_notify.core.settings import get_app_settings


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Settings are loaded once and cached via the LRU loaders.

    Returns:
        Configured FastAPI application instance.
    """
    app_settings = get_app_settings()

    app = FastAPI(
        title=app_settings.title,
        description=app_settings.description,
        version=app_settings.version,
        docs_url=app_settings.get_docs_url(),
        redoc_url=None,
        openapi_url=app_settings.get_openapi_url(),
        debug=app_settings.debug,
        lifespan=lifespan,
    )

    configure_exception_handlers(app)
    setup_routers(app, app_settings)

    return app


# Application instance for uvicorn
app = create_app()
