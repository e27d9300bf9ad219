"""Application factory for the ReelIndex catalog API."""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routers import categories, content, health, jobs
from .settings import CatalogSettings
from .state import AppState
from .stores.content_store import ContentStoreError


def create_app(settings: CatalogSettings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""

    resolved_settings = settings or CatalogSettings()
    app_state = AppState(settings=resolved_settings)

    app = FastAPI(title="ReelIndex Catalog API", version="0.1.0")
    app.state.app_state = app_state
    app.state.settings = app_state.settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ContentStoreError)
    async def _storage_unavailable(request: Request, exc: ContentStoreError) -> JSONResponse:
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    for router in (health.router, content.router, categories.router, jobs.router):
        app.include_router(router)

    return app
