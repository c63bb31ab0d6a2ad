"""FastAPI application entrypoint for TutorHub."""

from fastapi import FastAPI

from .api.v1.router import api_router
from .core.config import get_settings
from .core.database import init_db
from .core.errors import register_exception_handlers
from .core.logging import configure_logging
from .jobs import register_scheduler


def create_app() -> FastAPI:
    """Instantiate and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="TutorHub API", version="0.1.0")
    app.include_router(api_router, prefix="/api/v1")
    register_exception_handlers(app)

    if settings.create_tables:
        @app.on_event("startup")
        def create_tables() -> None:
            init_db()

    register_scheduler(app)
    return app


app = create_app()
