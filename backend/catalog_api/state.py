"""Shared state container for the catalog API."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.engine import Engine

from .db import create_engine_from_settings, init_database
from .services.category_materializer import CategoryMaterializer
from .services.queue import JobQueueService
from .settings import CatalogSettings
from .stores.artifact_store import ArtifactStore
from .stores.content_store import ContentStore
from .stores.job_log_store import JobLogStore
from .stores.job_store import JobStore
from .stores.taxonomy_store import TaxonomyStore
from .utils.paths import ensure_artifact_directory

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AppState:
    """Stores and services shared by every router of one application."""

    settings: CatalogSettings
    engine: Engine
    artifact_root: Path
    content_store: ContentStore
    taxonomy_store: TaxonomyStore
    artifact_store: ArtifactStore
    materializer: CategoryMaterializer
    job_store: JobStore
    job_log_store: JobLogStore
    job_queue: JobQueueService

    def __init__(self, settings: CatalogSettings) -> None:
        self.settings = settings
        self.engine = create_engine_from_settings(settings)
        init_database(self.engine)
        self.artifact_root = ensure_artifact_directory(settings.artifact_path)
        self.content_store = ContentStore(self.engine)
        self.taxonomy_store = TaxonomyStore(self.engine)
        self.artifact_store = ArtifactStore(self.artifact_root)
        self.materializer = CategoryMaterializer(self.artifact_root)
        self.job_store = JobStore(self.engine)
        self.job_log_store = JobLogStore(self.engine)
        self.job_queue = JobQueueService(settings)
        logger.info("Catalog state ready (artifacts at %s)", self.artifact_root)
