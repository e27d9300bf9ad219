"""Runtime configuration for the catalog service."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils.paths import default_artifact_path


class CatalogSettings(BaseSettings):
    """Environment-aware settings for the catalog API, worker and jobs."""

    database_url: str = Field(
        default="sqlite:///./data/catalog.db",
        description="Connection URL for the canonical content database.",
    )
    database_echo: bool = Field(
        default=False, description="Enable SQL echo for debugging queries."
    )
    artifact_path: str = Field(
        default_factory=default_artifact_path,
        description="Directory where category artifacts and the manifest are published.",
    )
    default_page_size: int = Field(
        default=20, ge=1, le=200, description="Items per page when a caller omits a limit."
    )
    log_level: str = Field(
        default="INFO", description="Root log level used by the service entrypoints."
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Connection URL for the Redis-backed job queue.",
    )
    redis_queue_name: str = Field(
        default="reelindex-catalog",
        description="RQ queue name used for catalog jobs.",
    )
    queue_worker_name: str = Field(
        default="catalog-worker",
        description="Identifier used when reporting job worker executions.",
    )

    model_config = SettingsConfigDict(
        env_prefix="REELINDEX_",
        env_file=".env",
        env_file_encoding="utf-8",
    )
