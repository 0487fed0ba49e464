"""
FastAPI application entry point.
"""

import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as SettingsValidationError

from issuebot import __version__
from issuebot.api.deps import ServiceContainer
from issuebot.api.v1 import health, webhook
from issuebot.core.config import Settings, get_settings
from issuebot.core.constants import API_PREFIX
from issuebot.core.exceptions import IssueBotError
from issuebot.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    settings: Settings = app.state.settings
    container: ServiceContainer = app.state.container

    # Startup
    logger.info(
        "Starting issuebot",
        app_name=settings.app_name,
        env=settings.app_env,
        github_app=settings.github.app_name,
    )
    container.initialize()
    logger.info(
        "Service container initialized",
        commands=[command.value for command in container.dispatcher.registry],
    )

    yield

    # Shutdown
    logger.info("Shutting down issuebot", active_tasks=container.dispatcher.active_count)
    await container.shutdown(timeout=settings.workflow.shutdown_timeout)


async def issuebot_error_handler(request: Request, exc: IssueBotError) -> JSONResponse:
    """Handle custom application errors."""
    logger.warning(
        "Application error",
        error_code=exc.code,
        error_message=exc.message,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors."""
    logger.exception(
        "Unexpected error",
        error=str(exc),
        path=request.url.path,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            }
        },
    )


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (loaded from the environment if omitted)
        container: Prebuilt service container (tests)
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="issuebot",
        description="GitHub App that turns issues into PRDs, sub-task checklists and pull requests",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.container = container or ServiceContainer(settings)

    # Exception handlers
    app.add_exception_handler(IssueBotError, issuebot_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Include routers
    app.include_router(health.router, prefix=API_PREFIX, tags=["Health"])
    app.include_router(webhook.router, prefix=API_PREFIX, tags=["Webhook"])

    # Root endpoint
    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "webhook": f"{API_PREFIX}/webhook",
            "docs": "/docs" if settings.debug else "Disabled in production",
        }

    return app


def run() -> None:
    """Console entry point: validate configuration, then serve."""
    import uvicorn

    try:
        settings = get_settings()
    except SettingsValidationError as e:
        logger.error(
            "Invalid configuration, refusing to start",
            missing_or_invalid=[".".join(str(part) for part in err["loc"]) for err in e.errors()],
        )
        sys.exit(1)

    uvicorn.run(
        "issuebot.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )


if __name__ == "__main__":
    run()
