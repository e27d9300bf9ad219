"""Pydantic models exposed by the catalog API."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .content import ContentEntry, ContentItem
from .utils.paths import is_safe_segment


class QueueHealthStatus(BaseModel):
    """Represents Redis queue connectivity status."""

    status: Literal["ok", "error"] = Field(default="ok")
    detail: str | None = Field(
        default=None, description="Optional diagnostic message when the queue is unavailable."
    )


class HealthStatus(BaseModel):
    """Service health payload."""

    status: Literal["ok"] = Field(default="ok")
    version: str = Field(default="0.1.0", description="Semantic version of the API service.")
    queue: QueueHealthStatus = Field(
        default_factory=QueueHealthStatus,
        description="Health information for the background job queue.",
    )


class ContentListModel(BaseModel):
    """Paginated list container for canonical content items."""

    items: list[ContentItem]
    total: int
    page: int
    page_size: int


class UpsertResponse(BaseModel):
    """Outcome of storing a single content item."""

    status: Literal["inserted", "updated", "unchanged"]
    item: ContentItem


class IngestFailure(BaseModel):
    """A record the ingestion run could not store."""

    index: int = Field(description="Position of the record in the submitted batch.")
    url: str | None = Field(default=None, description="Source URL when the record carried one.")
    error: str


class IngestSummaryModel(BaseModel):
    """Aggregate outcome of ingesting a batch of scraped records."""

    processed: int = 0
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0
    failures: list[IngestFailure] = Field(default_factory=list)


class IngestRequest(BaseModel):
    """Batch of raw scraped records submitted for ingestion."""

    items: list[dict[str, Any]] = Field(default_factory=list)
    force_update: bool = Field(
        default=False,
        description="Merge and write every record even when its content is unchanged.",
    )


class CategoryTypeModel(BaseModel):
    """Descriptor of one category type and its slugs."""

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    description: str = ""
    slugs: list[str] = Field(default_factory=list)


class CategoryTaxonomyModel(BaseModel):
    """Declarative type -> slug structure driving categorization."""

    model_config = ConfigDict(extra="ignore")

    categories: dict[str, CategoryTypeModel] = Field(default_factory=dict)

    @field_validator("categories")
    @classmethod
    def _safe_names(cls, value: dict[str, CategoryTypeModel]) -> dict[str, CategoryTypeModel]:
        # Type and slug names become artifact directory and file names.
        for category_type, descriptor in value.items():
            if not is_safe_segment(category_type):
                raise ValueError(f"Invalid category type name: {category_type!r}")
            for slug in descriptor.slugs:
                if slug.strip() and not is_safe_segment(slug.strip()):
                    raise ValueError(f"Invalid slug {slug!r} in category type {category_type!r}")
        return value

    @property
    def total_slugs(self) -> int:
        return sum(len(descriptor.slugs) for descriptor in self.categories.values())


class MaterializeOptions(BaseModel):
    """Flags gating which category artifacts a generation run writes."""

    force: bool = Field(default=False, description="Rewrite artifacts that already exist.")
    create_empty: bool = Field(
        default=False, description="Write an empty artifact for slugs with no matches."
    )
    comprehensive: bool = Field(
        default=False, description="Also match slugs by free-text search."
    )
    types: list[str] | None = Field(
        default=None, description="Restrict the run to these category types."
    )
    slugs: list[str] | None = Field(
        default=None, description="Restrict the run to these slugs."
    )


class CategoryArtifactModel(BaseModel):
    """Serialized artifact for one ``(type, slug)`` pair."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    slug: str
    total_items: int = Field(alias="totalItems")
    generated_at: datetime = Field(alias="generatedAt")
    items: list[ContentEntry] = Field(default_factory=list)


class ManifestCategoryModel(BaseModel):
    """Per-slug record in the generation manifest."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    slug: str
    match_count: int = Field(
        alias="matchCount",
        description="Matches found by this run. A skipped slug keeps its older artifact, "
        "whose own totalItems may differ.",
    )
    generated_at: datetime = Field(
        alias="generatedAt", description="Start of this run, not of the published artifact."
    )
    empty: bool
    status: Literal["written", "skipped", "omitted", "failed"]


class ManifestErrorModel(BaseModel):
    """A slug whose artifact could not be produced."""

    type: str
    slug: str
    error: str


class CategoryManifestModel(BaseModel):
    """Statistics of one category generation run."""

    model_config = ConfigDict(populate_by_name=True)

    generated_at: datetime = Field(alias="generatedAt")
    options: MaterializeOptions = Field(default_factory=MaterializeOptions)
    total_categories: int = Field(default=0, alias="totalCategories")
    categories_with_matches: int = Field(default=0, alias="categoriesWithMatches")
    empty_categories: int = Field(default=0, alias="emptyCategories")
    written: int = 0
    skipped: int = 0
    errors: list[ManifestErrorModel] = Field(default_factory=list)
    categories: list[ManifestCategoryModel] = Field(default_factory=list)


class CategoryPageModel(BaseModel):
    """One page of a category artifact."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    slug: str
    items: list[ContentEntry]
    total_items: int = Field(alias="totalItems")
    page: int
    limit: int
    total_pages: int = Field(alias="totalPages")


class JobModel(BaseModel):
    """Represents a catalog background job."""

    id: str
    type: str
    status: Literal["queued", "running", "completed", "failed", "cancelled"]
    progress: float = Field(ge=0, le=1)
    worker_id: str | None = Field(
        default=None, description="Identifier for the worker processing the job."
    )
    payload: dict[str, Any] | None = Field(
        default=None, description="Optional JSON payload forwarded to the runner."
    )
    created_at: datetime = Field(
        description="Timestamp when the job record was created."
    )
    updated_at: datetime = Field(
        description="Timestamp when the job record was last updated."
    )
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error_message: str | None = None
    result: dict[str, Any] | None = Field(
        default=None, description="Summary produced by a completed ingest or categories run."
    )
    duration_seconds: float | None = Field(
        default=None,
        description="Execution duration calculated from started and finished timestamps.",
    )


class JobMetricsModel(BaseModel):
    """Aggregate statistics for background job processing."""

    total: int = Field(description="Total number of job records persisted in the store.")
    status_counts: dict[str, int] = Field(
        default_factory=dict,
        description="Count of jobs grouped by current status.",
    )
    type_counts: dict[str, int] = Field(
        default_factory=dict,
        description="Count of jobs grouped by job type identifier.",
    )
    average_duration_seconds: float | None = Field(
        default=None,
        description="Average duration in seconds for jobs with start and finish timestamps.",
    )
    last_finished_at: datetime | None = Field(
        default=None,
        description="Timestamp of the most recently finished job regardless of outcome.",
    )
    queue_depth: int = Field(
        default=0,
        description="Number of jobs currently waiting in the Redis queue.",
    )


class JobLogCreate(BaseModel):
    """Payload used to append a new job log entry."""

    level: Literal["debug", "info", "warning", "error"] = Field(
        default="info", description="Severity level of the log entry."
    )
    message: str = Field(..., description="Human-readable log message.")
    context: dict[str, Any] | None = Field(
        default=None,
        description="Optional structured context payload for the log entry.",
    )


class JobLogModel(JobLogCreate):
    """Represents a persisted job log entry."""

    id: int
    job_id: str
    created_at: datetime


class JobRunRequest(BaseModel):
    """Payload used to enqueue a new catalog job."""

    type: str = Field(..., description="Job type identifier, e.g., ingest or categories.")
    payload: dict[str, Any] | None = Field(
        default=None, description="Optional JSON payload forwarded to the job runner."
    )


class JobCancelRequest(BaseModel):
    """Payload used when cancelling a job."""

    reason: str | None = Field(
        default=None, description="Optional reason recorded with the cancellation."
    )
