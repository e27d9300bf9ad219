"""Command line interface for the ReelIndex catalog API."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

import httpx
import typer

from .client import create_client


DEFAULT_API_BASE = "http://localhost:8000"

app = typer.Typer(help="Interact with the ReelIndex catalog service.")
content_app = typer.Typer(help="Ingest and inspect canonical content items.")
app.add_typer(content_app, name="content")
categories_app = typer.Typer(help="Manage the category taxonomy and generated artifacts.")
app.add_typer(categories_app, name="categories")
jobs_app = typer.Typer(help="Inspect and trigger background jobs.")
app.add_typer(jobs_app, name="jobs")


JOB_STATUS_CHOICES = {"queued", "running", "completed", "failed", "cancelled"}


def _api_base_option() -> typer.Option:
    return typer.Option(
        DEFAULT_API_BASE,
        "--api-base",
        help="Base URL for the catalog API service.",
        show_default=True,
        envvar="REELINDEX_API_BASE",
    )


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _echo_response(response: httpx.Response, *, not_found: str | None = None) -> None:
    """Print a JSON response, exiting non-zero on a 404 when ``not_found`` is set."""

    if not_found is not None and response.status_code == 404:
        typer.echo(not_found, err=True)
        raise typer.Exit(code=1)
    response.raise_for_status()
    _echo_json(response.json())


def _read_json_file(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        typer.echo(f"Unable to read {path}: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def health(api_base: str = _api_base_option()) -> None:
    """Call the /health endpoint and pretty-print the response."""

    with create_client(api_base) as client:
        _echo_response(client.get("/health"))


@content_app.command("ingest")
def ingest_content(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON export of scraped records."),
    force_update: bool = typer.Option(
        False,
        "--force-update/--no-force-update",
        help="Merge and rewrite records even when their content is unchanged.",
    ),
    background: bool = typer.Option(
        False,
        "--background/--no-background",
        help="Enqueue an ingest job instead of ingesting within the request.",
    ),
    api_base: str = _api_base_option(),
) -> None:
    """Upsert every record of a scraper export into the canonical store."""

    data = _read_json_file(path)
    records = data.get("items", [data]) if isinstance(data, dict) else data
    if not isinstance(records, list):
        typer.echo("Expected a JSON array of records.", err=True)
        raise typer.Exit(code=1)

    with create_client(api_base, timeout=120.0) as client:
        if background:
            body = {"type": "ingest", "payload": {"items": records, "force_update": force_update}}
            _echo_response(client.post("/jobs/run", json=body))
        else:
            body = {"items": records, "force_update": force_update}
            _echo_response(client.post("/content/batch", json=body))


@content_app.command("show")
def show_content(
    url: Optional[str] = typer.Option(None, "--url", help="Source URL of the item."),
    item_id: Optional[int] = typer.Option(None, "--id", help="Stored item identifier."),
    api_base: str = _api_base_option(),
) -> None:
    """Display one stored item, looked up by URL or identifier."""

    if (url is None) == (item_id is None):
        typer.echo("Provide exactly one of --url or --id.", err=True)
        raise typer.Exit(code=1)

    with create_client(api_base) as client:
        if url is not None:
            response = client.get("/content", params={"url": url})
        else:
            response = client.get(f"/content/{item_id}")
        _echo_response(response, not_found="Content item not found")


@content_app.command("list")
def list_content(
    page: int = typer.Option(1, min=1, help="Page number starting at 1."),
    page_size: Optional[int] = typer.Option(None, min=1, max=200, help="Items per page."),
    query: Optional[str] = typer.Option(None, "--query", "-q", help="Title search term."),
    api_base: str = _api_base_option(),
) -> None:
    """Display stored items, newest first."""

    params: dict[str, object] = {"page": page}
    if page_size is not None:
        params["page_size"] = page_size
    if query:
        params["q"] = query

    with create_client(api_base) as client:
        _echo_response(client.get("/content", params=params))


@categories_app.command("load")
def load_categories(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="categories.json taxonomy file."),
    api_base: str = _api_base_option(),
) -> None:
    """Replace the stored taxonomy with the contents of a file."""

    taxonomy = _read_json_file(path)
    with create_client(api_base) as client:
        _echo_response(client.put("/categories", json=taxonomy))


@categories_app.command("show")
def show_categories(api_base: str = _api_base_option()) -> None:
    """Display the stored taxonomy."""

    with create_client(api_base) as client:
        _echo_response(client.get("/categories"))


@categories_app.command("generate")
def generate_categories(
    force: bool = typer.Option(False, "--force/--no-force", help="Rewrite existing artifacts."),
    create_empty: bool = typer.Option(
        False, "--create-empty/--no-create-empty", help="Write artifacts for empty slugs."
    ),
    comprehensive: bool = typer.Option(
        False, "--comprehensive/--no-comprehensive", help="Also match by free-text search."
    ),
    types: Optional[List[str]] = typer.Option(
        None, "--type", help="Restrict generation to a category type (repeat the flag)."
    ),
    slugs: Optional[List[str]] = typer.Option(
        None, "--slug", help="Restrict generation to a slug (repeat the flag)."
    ),
    background: bool = typer.Option(
        False, "--background/--no-background", help="Enqueue a categories job instead."
    ),
    api_base: str = _api_base_option(),
) -> None:
    """Match stored content against the taxonomy and publish artifacts."""

    options: dict[str, object] = {
        "force": force,
        "create_empty": create_empty,
        "comprehensive": comprehensive,
    }
    if types:
        options["types"] = types
    if slugs:
        options["slugs"] = slugs

    with create_client(api_base, timeout=300.0) as client:
        if background:
            _echo_response(client.post("/jobs/run", json={"type": "categories", "payload": options}))
        else:
            _echo_response(client.post("/categories/generate", json=options))


@categories_app.command("manifest")
def show_manifest(api_base: str = _api_base_option()) -> None:
    """Display the manifest of the last generation run."""

    with create_client(api_base) as client:
        _echo_response(
            client.get("/categories/manifest"),
            not_found="Categories have not been generated yet",
        )


@categories_app.command("page")
def category_page(
    category_type: str = typer.Argument(..., help="Category type, e.g. movies-by-year."),
    slug: str = typer.Argument(..., help="Slug within the type, e.g. 2024."),
    page: int = typer.Option(1, min=1, help="Page number starting at 1."),
    limit: int = typer.Option(20, min=1, max=200, help="Items per page."),
    api_base: str = _api_base_option(),
) -> None:
    """Display one page of a generated category."""

    with create_client(api_base) as client:
        response = client.get(
            f"/categories/{category_type}/{slug}", params={"page": page, "limit": limit}
        )
        _echo_response(response, not_found="Category not found")


@jobs_app.command("run")
def run_job(
    job_type: str = typer.Argument(..., help="Job type to execute (ingest or categories)."),
    payload: Optional[str] = typer.Option(
        None,
        "--payload",
        help="Optional JSON payload passed to the job.",
    ),
    api_base: str = _api_base_option(),
) -> None:
    """Enqueue a background job via the catalog API."""

    request_body: dict[str, object] = {"type": job_type}
    if payload is not None:
        try:
            request_body["payload"] = json.loads(payload)
        except json.JSONDecodeError as exc:
            typer.echo(f"Invalid JSON payload: {exc}", err=True)
            raise typer.Exit(code=1) from exc

    with create_client(api_base) as client:
        response = client.post("/jobs/run", json=request_body)
        if response.status_code == 422:
            typer.echo(f"Rejected: {response.json().get('detail')}", err=True)
            raise typer.Exit(code=1)
        _echo_response(response)


@jobs_app.command("list")
def list_jobs(
    limit: int = typer.Option(10, min=1, max=100, help="Number of recent jobs to display."),
    statuses: Optional[List[str]] = typer.Option(
        None,
        "--status",
        help="Filter results to specific job statuses (repeat the flag).",
    ),
    job_type: Optional[str] = typer.Option(None, "--type", help="Filter results to a job type."),
    api_base: str = _api_base_option(),
) -> None:
    """Display recent jobs."""

    params: dict[str, object] = {"limit": limit}
    if statuses:
        normalized = [status.lower() for status in statuses]
        invalid = [status for status in normalized if status not in JOB_STATUS_CHOICES]
        if invalid:
            typer.echo(
                "Invalid status value. Allowed values: " + ", ".join(sorted(JOB_STATUS_CHOICES)),
                err=True,
            )
            raise typer.Exit(code=1)
        params["status"] = normalized
    if job_type:
        params["type"] = job_type

    with create_client(api_base) as client:
        _echo_response(client.get("/jobs", params=params))


@jobs_app.command("show")
def show_job(
    job_id: str = typer.Argument(..., help="Identifier of the job to display."),
    api_base: str = _api_base_option(),
) -> None:
    """Display details for a single job."""

    with create_client(api_base) as client:
        _echo_response(client.get(f"/jobs/{job_id}"), not_found="Job not found")


@jobs_app.command("cancel")
def cancel_job(
    job_id: str = typer.Argument(..., help="Identifier of the job to cancel."),
    reason: Optional[str] = typer.Option(None, "--reason", help="Reason recorded with the cancellation."),
    api_base: str = _api_base_option(),
) -> None:
    """Cancel a queued or running job."""

    with create_client(api_base) as client:
        if reason is None:
            response = client.post(f"/jobs/{job_id}/cancel")
        else:
            response = client.post(f"/jobs/{job_id}/cancel", json={"reason": reason})
        _echo_response(response, not_found="Job not found")


@jobs_app.command("logs")
def job_logs(
    job_id: str = typer.Argument(..., help="Identifier of the job to inspect."),
    limit: int = typer.Option(50, min=1, max=500, help="Maximum number of log entries."),
    level: Optional[str] = typer.Option(None, "--level", help="Only show entries of this level."),
    api_base: str = _api_base_option(),
) -> None:
    """Display persisted log events for a job."""

    params: dict[str, object] = {"limit": limit}
    if level:
        params["level"] = level
    with create_client(api_base) as client:
        _echo_response(client.get(f"/jobs/{job_id}/logs", params=params), not_found="Job not found")


@jobs_app.command("metrics")
def job_metrics(api_base: str = _api_base_option()) -> None:
    """Display aggregate job statistics and queue depth."""

    with create_client(api_base) as client:
        _echo_response(client.get("/jobs/metrics"))
