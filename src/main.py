from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from src.application.dtos.common_dto import HealthResponse, RootResponse
from src.infrastructure.api.dependencies import build_session_loader
from src.infrastructure.api.middlewares import add_default_middlewares
from src.infrastructure.api.routes.session_routes import router as session_router
from src.infrastructure.observability.event_sink import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    loader = build_session_loader()
    app.state.session_loader = loader
    loader.start()
    try:
        yield
    finally:
        await loader.stop()
        app.state.session_loader = None


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Pharmalink Session Backend",
        version="0.1.0",
        description="""
        ## Pharmalink Session Backend

        Keeps a single, consistent view of who is signed in and what their
        profile attributes are (role, linked patient, linked pharmacy company,
        account type), backed by Supabase auth and the `profile_users` table.

        ### Features
        - **Single-flight loading**: concurrent refreshes share one load plus at most one trailing load
        - **Stale suppression**: results from superseded loads are discarded
        - **Fail-closed**: any timeout or remote error reads as signed out
        - **Self-healing retry**: bounded exponential backoff, suspended after repeated failures

        ### Configuration
        Timing is controlled with `SESSION_DEADLINE_MS`, `SESSION_MIN_SPACING_MS`,
        `SESSION_RETRY_BASE_MS`, `SESSION_RETRY_CAP_MS` and `SESSION_RETRY_MAX_ATTEMPTS`.
        Set `SUPABASE_DISABLED=1` to run against in-memory fakes.
        """,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )
    add_default_middlewares(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the session API",
        response_description="API information including status and version",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "pharmalink-session", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
        response_description="Health status of the API service",
    )
    def health():
        """Check API health status."""
        return {"status": "healthy"}

    app.include_router(session_router)
    return app


app = create_app()
