"""Canonical content endpoints."""
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import ValidationError

from ..content import ContentItem
from ..dependencies import get_app_state, get_content_store
from ..schemas import ContentListModel, IngestRequest, IngestSummaryModel, UpsertResponse
from ..services.ingestion import ingest_records
from ..state import AppState
from ..stores.content_store import ContentStore

router = APIRouter(prefix="/content", tags=["content"])


@router.post("", response_model=UpsertResponse)
def upsert_content(
    payload: dict[str, Any] = Body(...),
    force_update: bool = Query(default=False),
    store: ContentStore = Depends(get_content_store),
) -> UpsertResponse:
    """Store one scraped record, merging its sections with the stored copy."""

    try:
        item = ContentItem.model_validate(payload)
        result = store.upsert(item, force_update=force_update)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return UpsertResponse(status=result.status, item=result.item)


@router.post("/batch", response_model=IngestSummaryModel)
def ingest_batch(
    request: IngestRequest,
    store: ContentStore = Depends(get_content_store),
) -> IngestSummaryModel:
    """Ingest a batch synchronously; bad records are reported, not fatal."""

    return ingest_records(store, request.items, force_update=request.force_update)


@router.get("", response_model=ContentListModel | ContentItem)
def list_content(
    url: str | None = Query(default=None, description="Return the single item stored for this URL."),
    page: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1, le=200),
    q: str | None = Query(default=None, description="Case-insensitive title filter."),
    app_state: AppState = Depends(get_app_state),
) -> ContentListModel | ContentItem:
    """List stored items, or look one up by any spelling of its URL."""

    store = app_state.content_store
    if url is not None:
        item = store.find_by_url(url)
        if item is None:
            raise HTTPException(status_code=404, detail="Content item not found")
        return item
    size = page_size or app_state.settings.default_page_size
    return store.list(page=page, page_size=size, query=q)


@router.get("/{item_id}", response_model=ContentItem)
def get_content(item_id: int, store: ContentStore = Depends(get_content_store)) -> ContentItem:
    item = store.get(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Content item not found")
    return item


@router.put("/{item_id}/tags", response_model=ContentItem)
def replace_tags(
    item_id: int,
    tags: list[str] = Body(..., embed=True),
    store: ContentStore = Depends(get_content_store),
) -> ContentItem:
    """Replace the tags of a stored item, e.g. ``movies-by-genres@action``."""

    item = store.update_tags(item_id, tags)
    if item is None:
        raise HTTPException(status_code=404, detail="Content item not found")
    return item
