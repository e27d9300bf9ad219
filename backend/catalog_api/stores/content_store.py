"""Canonical store for scraped content items keyed by their source URL."""
from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import Any, Iterator, Literal

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..content import ContentItem
from ..models import ContentItemRecord
from ..schemas import ContentListModel
from ..services.section_merger import IdFactory, merge_sections, new_section_id
from ..utils.urls import normalize_url

logger = logging.getLogger(__name__)

UpsertStatus = Literal["inserted", "updated", "unchanged"]

LOCK_STRIPES = 64


class ContentStoreError(RuntimeError):
    """Raised when the backing database cannot serve a read or write."""


@dataclass(slots=True)
class UpsertResult:
    """Persisted form of an upserted item and what the upsert did."""

    item: ContentItem
    status: UpsertStatus


class ContentStore:
    """Owns content item identity and every mutation of persisted items.

    Writes to the same URL are serialized through a fixed pool of locks
    picked by URL hash. Each upsert reads the stored row, merges section
    identities and writes the result back in one transaction.
    """

    def __init__(self, engine: Engine, *, id_factory: IdFactory = new_section_id) -> None:
        self._engine = engine
        self._id_factory = id_factory
        self._locks = [Lock() for _ in range(LOCK_STRIPES)]

    def _lock_for(self, key: str) -> Lock:
        return self._locks[hash(key) % len(self._locks)]

    def find_by_url(self, url: str) -> ContentItem | None:
        """Return the stored item for ``url`` (any equivalent spelling)."""

        key = normalize_url(url)
        if not key:
            return None
        try:
            with Session(self._engine) as session:
                record = session.exec(
                    select(ContentItemRecord).where(ContentItemRecord.url == key)
                ).first()
                return _to_item(record) if record else None
        except SQLAlchemyError as exc:
            raise ContentStoreError(f"Unable to read content item {key}") from exc

    def get(self, item_id: int) -> ContentItem | None:
        """Return the stored item with the given identifier."""

        try:
            with Session(self._engine) as session:
                record = session.get(ContentItemRecord, item_id)
                return _to_item(record) if record else None
        except SQLAlchemyError as exc:
            raise ContentStoreError(f"Unable to read content item {item_id}") from exc

    def upsert(self, item: ContentItem, *, force_update: bool = False) -> UpsertResult:
        """Insert or refresh ``item`` and return its persisted, merged form.

        Without ``force_update`` an incoming scrape identical to the stored
        content is not written again.
        """

        key = normalize_url(item.url)
        if not key:
            raise ValueError("Content item has no usable URL")

        fingerprint = content_fingerprint(item)
        with self._lock_for(key):
            try:
                with Session(self._engine) as session:
                    record = session.exec(
                        select(ContentItemRecord).where(ContentItemRecord.url == key)
                    ).first()

                    if record is not None and not force_update and record.content_hash == fingerprint:
                        logger.debug("Skipped unchanged content item %s", key)
                        return UpsertResult(item=_to_item(record), status="unchanged")

                    existing = _to_item(record) if record else None
                    merged = merge_sections(
                        existing,
                        item.model_copy(update={"url": key}),
                        id_factory=self._id_factory,
                    )

                    now = datetime.utcnow()
                    status: UpsertStatus = "updated"
                    if record is None:
                        record = ContentItemRecord(url=key, created_at=now)
                        status = "inserted"

                    record.title = merged.title
                    record.thumbnail = merged.thumbnail or record.thumbnail
                    record.date = merged.date or record.date
                    record.tags = list(merged.tags)
                    record.info = [
                        info.model_dump(mode="json", by_alias=True) for info in merged.info
                    ]
                    record.content_hash = fingerprint
                    record.updated_at = now

                    session.add(record)
                    session.commit()
                    session.refresh(record)
                    logger.info("Content item %s %s (id=%s)", key, status, record.id)
                    return UpsertResult(item=_to_item(record), status=status)
            except SQLAlchemyError as exc:
                raise ContentStoreError(f"Unable to upsert content item {key}") from exc

    def update_tags(self, item_id: int, tags: list[str]) -> ContentItem | None:
        """Replace the tags of a stored item."""

        cleaned = ContentItem(url="-", tags=tags).tags
        try:
            with Session(self._engine) as session:
                record = session.get(ContentItemRecord, item_id)
                if record is None:
                    return None
                record.tags = cleaned
                # Stored content no longer matches any scrape fingerprint.
                record.content_hash = ""
                record.updated_at = datetime.utcnow()
                session.add(record)
                session.commit()
                session.refresh(record)
                return _to_item(record)
        except SQLAlchemyError as exc:
            raise ContentStoreError(f"Unable to update tags for {item_id}") from exc

    def iter_items(self, *, batch_size: int = 500) -> Iterator[ContentItem]:
        """Yield every stored item in identifier (insertion) order."""

        last_id = 0
        while True:
            statement = (
                select(ContentItemRecord)
                .where(ContentItemRecord.id > last_id)
                .order_by(ContentItemRecord.id)
                .limit(batch_size)
            )
            try:
                with Session(self._engine) as session:
                    records = list(session.exec(statement))
                    batch = [_to_item(record) for record in records]
            except SQLAlchemyError as exc:
                raise ContentStoreError("Unable to scan content items") from exc
            if not batch:
                return
            yield from batch
            last_id = batch[-1].id or last_id

    def count(self) -> int:
        """Return the number of stored items."""

        try:
            with Session(self._engine) as session:
                return session.exec(
                    select(func.count()).select_from(ContentItemRecord)
                ).one()
        except SQLAlchemyError as exc:
            raise ContentStoreError("Unable to count content items") from exc

    def list(self, *, page: int, page_size: int, query: str | None = None) -> ContentListModel:
        """Return a page of stored items, newest identifiers first."""

        offset = (page - 1) * page_size
        count_statement = select(func.count()).select_from(ContentItemRecord)
        items_statement = select(ContentItemRecord)
        if query:
            condition = func.lower(ContentItemRecord.title).like(f"%{query.lower()}%")
            count_statement = count_statement.where(condition)
            items_statement = items_statement.where(condition)
        items_statement = (
            items_statement.order_by(ContentItemRecord.id.desc()).offset(offset).limit(page_size)
        )

        try:
            with Session(self._engine) as session:
                total = session.exec(count_statement).one()
                items = [_to_item(record) for record in session.exec(items_statement)]
        except SQLAlchemyError as exc:
            raise ContentStoreError("Unable to list content items") from exc

        return ContentListModel(items=items, total=total, page=page, page_size=page_size)


def content_fingerprint(item: ContentItem) -> str:
    """Hash the scraped content of ``item``, ignoring ids and timestamps."""

    payload = item.model_dump(
        mode="json",
        by_alias=True,
        exclude={"id", "url", "created_at", "updated_at"},
    )
    payload["tags"] = sorted(payload.get("tags") or [])
    for info in payload.get("info") or []:
        for section in info.get("sections") or []:
            section.pop("id", None)
    encoded = json.dumps(payload, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def _to_item(record: ContentItemRecord) -> ContentItem:
    """Convert a stored record into the domain model."""

    data: dict[str, Any] = {
        "id": record.id,
        "url": record.url,
        "title": record.title,
        "thumbnail": record.thumbnail,
        "date": record.date,
        "tags": record.tags,
        "info": record.info,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }
    return ContentItem.model_validate(data)
