"""Persistence layer for catalog content, taxonomy, artifacts and jobs."""

from .artifact_store import ArtifactStore
from .content_store import ContentStore, ContentStoreError, UpsertResult
from .job_log_store import JobLogStore
from .job_store import JobStore
from .taxonomy_store import TaxonomyStore

__all__ = [
    "ArtifactStore",
    "ContentStore",
    "ContentStoreError",
    "JobLogStore",
    "JobStore",
    "TaxonomyStore",
    "UpsertResult",
]
