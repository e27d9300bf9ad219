"""Feed batches of raw scraped records into the canonical store."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Iterable

from pydantic import ValidationError

from ..content import ContentItem
from ..schemas import IngestFailure, IngestSummaryModel
from ..stores.content_store import ContentStore, ContentStoreError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def ingest_records(
    store: ContentStore,
    records: Iterable[Any],
    *,
    force_update: bool = False,
    on_progress: ProgressCallback | None = None,
) -> IngestSummaryModel:
    """Upsert every record and tally the outcome.

    A record that cannot be parsed or stored is recorded as a failure and the
    batch continues with the next one.
    """

    batch = list(records)
    summary = IngestSummaryModel()
    for index, raw in enumerate(batch):
        summary.processed += 1
        url = raw.get("url") if isinstance(raw, dict) else None
        try:
            item = ContentItem.model_validate(raw)
            result = store.upsert(item, force_update=force_update)
        except (ValidationError, ValueError, ContentStoreError) as exc:
            logger.warning("Failed to ingest record %s (%s): %s", index, url, exc)
            summary.failed += 1
            summary.failures.append(IngestFailure(index=index, url=url, error=str(exc)))
        else:
            if result.status == "inserted":
                summary.inserted += 1
            elif result.status == "updated":
                summary.updated += 1
            else:
                summary.unchanged += 1
        if on_progress is not None:
            on_progress(index + 1, len(batch))

    logger.info(
        "Ingested %s records: %s inserted, %s updated, %s unchanged, %s failed",
        summary.processed,
        summary.inserted,
        summary.updated,
        summary.unchanged,
        summary.failed,
    )
    return summary


def load_records_file(path: Path) -> list[Any]:
    """Read a scraper export: a JSON array, or an object holding ``items``."""

    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("items", [data])
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a list of records")
    return data
