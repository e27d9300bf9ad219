"""FastAPI dependencies for the catalog API."""
from fastapi import Depends, Request

from .services.category_materializer import CategoryMaterializer
from .services.queue import JobQueueService
from .settings import CatalogSettings
from .state import AppState
from .stores.artifact_store import ArtifactStore
from .stores.content_store import ContentStore
from .stores.job_log_store import JobLogStore
from .stores.job_store import JobStore
from .stores.taxonomy_store import TaxonomyStore


def get_app_state(request: Request) -> AppState:
    """Resolve the shared application state from the FastAPI request."""
    return request.app.state.app_state


def get_settings(app_state: AppState = Depends(get_app_state)) -> CatalogSettings:
    return app_state.settings


def get_content_store(app_state: AppState = Depends(get_app_state)) -> ContentStore:
    return app_state.content_store


def get_taxonomy_store(app_state: AppState = Depends(get_app_state)) -> TaxonomyStore:
    return app_state.taxonomy_store


def get_artifact_store(app_state: AppState = Depends(get_app_state)) -> ArtifactStore:
    return app_state.artifact_store


def get_materializer(app_state: AppState = Depends(get_app_state)) -> CategoryMaterializer:
    return app_state.materializer


def get_job_store(app_state: AppState = Depends(get_app_state)) -> JobStore:
    return app_state.job_store


def get_job_log_store(app_state: AppState = Depends(get_app_state)) -> JobLogStore:
    return app_state.job_log_store


def get_job_queue(app_state: AppState = Depends(get_app_state)) -> JobQueueService:
    return app_state.job_queue
