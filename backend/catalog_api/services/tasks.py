"""RQ task entrypoints executed by background workers."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from rq import get_current_job

from ..db import create_engine_from_settings, init_database
from ..schemas import MaterializeOptions
from ..settings import CatalogSettings
from ..stores.content_store import ContentStore
from ..stores.job_log_store import JobLogStore
from ..stores.job_store import JobStore
from ..stores.taxonomy_store import TaxonomyStore
from ..utils.paths import ensure_artifact_directory
from .category_materializer import CategoryMaterializer, generate_categories
from .ingestion import ingest_records, load_records_file

logger = logging.getLogger(__name__)

JOB_TYPES = ("ingest", "categories")


def execute_catalog_job(
    *,
    job_id: str,
    job_type: str,
    payload: dict[str, Any] | None,
    settings: dict[str, Any],
    worker_name: str,
) -> dict[str, Any] | None:
    """Background worker entrypoint for catalog jobs."""

    resolved_settings = CatalogSettings.model_validate(settings)
    engine = create_engine_from_settings(resolved_settings)
    init_database(engine)
    job_store = JobStore(engine)
    log_store = JobLogStore(engine)

    current_job = get_current_job()
    worker_id = worker_name
    if current_job and getattr(current_job, "worker_name", None):  # pragma: no cover - runtime path
        worker_id = current_job.worker_name  # type: ignore[assignment]

    existing = job_store.get(job_id)
    if existing is not None and existing.status == "cancelled":
        log_store.log(job_id, "Skipped cancelled job", level="warning")
        engine.dispose()
        return None

    job_store.mark_running(job_id, worker_id=worker_id)
    log_store.log(job_id, f"Executing {job_type} job", context={"payload": payload} if payload else None)

    try:
        result: dict[str, Any] | None = None
        if job_type == "ingest":
            result = _run_ingest(job_id, payload or {}, engine, job_store, log_store)
        elif job_type == "categories":
            result = _run_categories(job_id, payload or {}, engine, resolved_settings, log_store)
        else:
            log_store.log(job_id, f"Unknown job type: {job_type}", level="warning")

        finished = job_store.mark_completed(job_id, result=result)
        if finished.status == "cancelled":
            log_store.log(job_id, "Job was cancelled while running; result discarded", level="warning")
        else:
            log_store.log(job_id, "Job completed", context=result)
        return result
    except Exception as exc:
        logger.exception("Job %s (%s) failed", job_id, job_type)
        job_store.mark_failed(job_id, error_message=str(exc))
        log_store.log(job_id, "Job failed", level="error", context={"error": str(exc)})
        raise
    finally:
        engine.dispose()


def _run_ingest(job_id, payload, engine, job_store, log_store) -> dict[str, Any]:
    if "items" in payload:
        records = payload["items"] or []
    elif payload.get("path"):
        records = load_records_file(Path(payload["path"]))
    else:
        raise ValueError("ingest jobs need either 'items' or 'path' in the payload")

    log_store.log(job_id, f"Ingesting {len(records)} records")

    def report(done: int, total: int) -> None:
        if total and (done == total or done % 100 == 0):
            job_store.update_progress(job_id, done / total)

    summary = ingest_records(
        ContentStore(engine),
        records,
        force_update=bool(payload.get("force_update", False)),
        on_progress=report,
    )
    for failure in summary.failures:
        log_store.log(
            job_id,
            f"Record {failure.index} rejected",
            level="warning",
            context=failure.model_dump(),
        )
    return summary.model_dump(exclude={"failures"})


def _run_categories(job_id, payload, engine, settings, log_store) -> dict[str, Any]:
    options = MaterializeOptions.model_validate(payload)
    root = ensure_artifact_directory(settings.artifact_path)
    log_store.log(job_id, f"Generating categories under {root}", context=options.model_dump())

    manifest = generate_categories(
        ContentStore(engine), TaxonomyStore(engine), CategoryMaterializer(root), options
    )
    for error in manifest.errors:
        log_store.log(
            job_id,
            f"Category {error.type}/{error.slug} failed",
            level="warning",
            context={"error": error.error},
        )
    return manifest.model_dump(
        mode="json", by_alias=True, exclude={"categories", "errors", "options"}
    ) | {"errors": len(manifest.errors)}
