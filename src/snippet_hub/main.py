"""
Snippet Hub Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures global exception handling, and provides a test-friendly application
factory.
"""

from __future__ import annotations

import logging
from fastapi import FastAPI

from .config import settings
from .core.errors import (
    SnippetHubError,
    snippet_hub_error_handler,
    unhandled_exception_handler,
)
from .db import Base, async_engine
from .api.dependencies import get_live_query_hub

from .api import (
    auth_routes,
    explain_routes,
    facet_routes,
    health_routes,
    snippet_routes,
)


logger = logging.getLogger("snippets.app")


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Tests build their own instance and swap the repository and explainer
    through `app.dependency_overrides`.
    """
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(SnippetHubError, snippet_hub_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(snippet_routes.router)
    app.include_router(facet_routes.router)
    app.include_router(auth_routes.router)
    app.include_router(explain_routes.router)

    # --------------------------------------------------------------
    # Startup Validation Hook
    # --------------------------------------------------------------

    @app.on_event("startup")
    async def _startup_validation() -> None:
        """
        Fail-fast validation at application startup.

        A missing signing secret would reject every signed-in request, so it
        stops the server. A missing model key only disables explanations.
        """
        logger.info("Starting %s", settings.app_name)

        if not settings.auth_jwt_secret.get_secret_value():
            raise RuntimeError("AUTH_JWT_SECRET is not configured")

        if not settings.openai_api_key.get_secret_value():
            logger.warning("OPENAI_API_KEY is not set; code explanations will fail")

        if settings.create_schema:
            async with async_engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database schema ensured")

        logger.info("Configuration validated successfully")

    # --------------------------------------------------------------
    # Shutdown Hook
    # --------------------------------------------------------------

    @app.on_event("shutdown")
    async def _shutdown_cleanup() -> None:
        """Cancel open live queries and release pooled connections."""
        logger.info("Shutting down %s", settings.app_name)
        get_live_query_hub().close()
        await async_engine.dispose()

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn)
# ---------------------------------------------------------------------

app = create_app()
