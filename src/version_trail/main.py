"""HTTP entry point for the read-side history API.

The host supplies the VersionTrail (with its registered types and store) and
an EntityLoader that returns live entities; ``create_app`` wires them into a
FastAPI application.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from version_trail.api.router import EntityLoader, router
from version_trail.history.service import VersionTrail
from version_trail.observability import configure_logging, get_logger
from version_trail.settings import Settings

logger = get_logger(__name__)


def create_app(
    version_trail: VersionTrail,
    entity_loader: EntityLoader,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        version_trail: The configured history engine.
        entity_loader: Callable (item_type, item_id) -> live entity or None.
        settings: Service settings. Loaded from the environment if omitted.

    Returns:
        The FastAPI application with the history router mounted at /api/v1.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        configure_logging(settings.log_level, settings.log_format)
        logger.info("History API startup complete", service=settings.service_name)
        yield
        logger.info("History API shutdown complete", service=settings.service_name)

    app = FastAPI(title=settings.service_name, version="0.1.0", lifespan=lifespan)
    app.state.version_trail = version_trail
    app.state.entity_loader = entity_loader
    app.state.settings = settings
    app.include_router(router, prefix="/api/v1")
    return app
