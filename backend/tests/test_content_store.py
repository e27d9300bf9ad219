"""Tests for the canonical content store."""
from __future__ import annotations

import itertools
import sys
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.engine import Engine

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.catalog_api.content import ContentItem  # noqa: E402
from backend.catalog_api.db import create_engine_from_settings, init_database  # noqa: E402
from backend.catalog_api.services.ingestion import ingest_records  # noqa: E402
from backend.catalog_api.settings import CatalogSettings  # noqa: E402
from backend.catalog_api.stores.content_store import (  # noqa: E402
    LOCK_STRIPES,
    ContentStore,
    content_fingerprint,
)


@pytest.fixture()
def engine(tmp_path: Path) -> Engine:
    settings = CatalogSettings(
        database_url=f"sqlite:///{tmp_path / 'catalog.db'}",
        artifact_path=str(tmp_path / "artifacts"),
        redis_url="fakeredis://",
    )
    engine = create_engine_from_settings(settings)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def store(engine: Engine) -> ContentStore:
    counter = itertools.count(1)
    return ContentStore(engine, id_factory=lambda: f"s{next(counter)}")


def record(*headings: str, url: str = "https://site.example/movie-a/", **fields: Any) -> dict[str, Any]:
    return {
        "url": url,
        "title": fields.pop("title", "Movie A"),
        "thumbnail": fields.pop("thumbnail", "https://img.example/a.jpg"),
        "date": fields.pop("date", "2024-05-01"),
        "tags": fields.pop("tags", ["movies-by-year@2024"]),
        "info": [
            {
                "movie_or_series": "movie",
                "release_year": "2024",
                "sections": [
                    {"heading": heading, "links": [{"name": f"Movie A {heading} [1GB]", "links": []}]}
                    for heading in headings
                ],
                **fields,
            }
        ],
    }


def headings_to_ids(item: ContentItem) -> dict[str, str | None]:
    return {section.heading: section.id for section in item.sections()}


def test_reingest_keeps_ids_for_surviving_headings(store: ContentStore) -> None:
    first = store.upsert(ContentItem.model_validate(record("720p", "1080p")))
    assert first.status == "inserted"
    assert headings_to_ids(first.item) == {"720p": "s1", "1080p": "s2"}

    second = store.upsert(ContentItem.model_validate(record("1080p", "480p")))

    assert second.status == "updated"
    assert second.item.id == first.item.id
    assert headings_to_ids(second.item) == {"1080p": "s2", "480p": "s3"}
    assert store.count() == 1


def test_identical_content_is_skipped_without_force(store: ContentStore) -> None:
    first = store.upsert(ContentItem.model_validate(record("720p")))

    again = store.upsert(ContentItem.model_validate(record("720p")))

    assert again.status == "unchanged"
    assert again.item.updated_at == first.item.updated_at
    assert headings_to_ids(again.item) == {"720p": "s1"}


def test_force_update_rewrites_and_preserves_ids(store: ContentStore) -> None:
    store.upsert(ContentItem.model_validate(record("720p", "1080p")))

    forced = store.upsert(ContentItem.model_validate(record("720p", "1080p")), force_update=True)

    assert forced.status == "updated"
    assert headings_to_ids(forced.item) == {"720p": "s1", "1080p": "s2"}


def test_equivalent_urls_share_one_row(store: ContentStore) -> None:
    store.upsert(ContentItem.model_validate(record("720p", url="https://site.example/movie-a/")))
    store.upsert(ContentItem.model_validate(record("720p", url="http://mirror.example/movie-a")))

    assert store.count() == 1
    found = store.find_by_url("movie-a/")
    assert found is not None
    assert found.url == "movie-a"


def test_empty_thumbnail_keeps_stored_value(store: ContentStore) -> None:
    store.upsert(ContentItem.model_validate(record("720p")))

    updated = store.upsert(ContentItem.model_validate(record("720p", thumbnail="", title="Movie A (2024)")))

    assert updated.item.thumbnail == "https://img.example/a.jpg"
    assert updated.item.title == "Movie A (2024)"


def test_upsert_rejects_items_without_url(store: ContentStore) -> None:
    with pytest.raises(ValueError):
        store.upsert(ContentItem(url="https://site.example/"))


def test_fingerprint_ignores_section_ids_and_tag_order() -> None:
    plain = ContentItem.model_validate(record("720p", tags=["b", "a"]))
    tagged = ContentItem.model_validate(record("720p", tags=["a", "b"]))
    tagged.info[0].sections[0].id = "already-assigned"

    assert content_fingerprint(plain) == content_fingerprint(tagged)


def test_iteration_follows_insertion_order(store: ContentStore) -> None:
    for slug in ("first", "second", "third"):
        store.upsert(ContentItem.model_validate(record("720p", url=f"https://site.example/{slug}/")))

    assert [item.url for item in store.iter_items(batch_size=2)] == ["first", "second", "third"]


def test_list_paginates_newest_first_with_title_filter(store: ContentStore) -> None:
    for index in range(5):
        store.upsert(
            ContentItem.model_validate(
                record("720p", url=f"https://site.example/m{index}/", title=f"Movie {index}")
            )
        )

    page = store.list(page=1, page_size=2)
    assert page.total == 5
    assert [item.title for item in page.items] == ["Movie 4", "Movie 3"]

    filtered = store.list(page=1, page_size=10, query="movie 2")
    assert [item.title for item in filtered.items] == ["Movie 2"]


def test_update_tags_deduplicates(store: ContentStore) -> None:
    stored = store.upsert(ContentItem.model_validate(record("720p"))).item

    updated = store.update_tags(stored.id, ["action", "action", " drama "])

    assert updated is not None
    assert updated.tags == ["action", "drama"]
    assert store.update_tags(9999, ["x"]) is None


def test_reingest_after_tag_edit_behaves_like_forced_update(store: ContentStore) -> None:
    item = ContentItem.model_validate(record("720p", tags=["action"]))
    stored = store.upsert(item).item
    store.update_tags(stored.id, ["action", "movies-by-genres@special"])

    plain = store.upsert(item)

    assert plain.status == "updated"
    assert plain.item.tags == ["action"]
    assert store.upsert(item).status == "unchanged"


def test_locks_come_from_a_fixed_pool(store: ContentStore) -> None:
    for index in range(100):
        store.upsert(ContentItem.model_validate(record("720p", url=f"https://site.example/m-{index}/")))

    assert len(store._locks) == LOCK_STRIPES
    assert store._lock_for("movie-a") is store._lock_for("movie-a")


def test_ingest_records_reports_per_item_failures(store: ContentStore) -> None:
    summary = ingest_records(
        store,
        [
            record("720p", url="https://site.example/ok/"),
            {"title": "no url"},
            "not a record",
            record("720p", url="https://site.example/ok/"),
        ],
    )

    assert summary.processed == 4
    assert summary.inserted == 1
    assert summary.unchanged == 1
    assert summary.failed == 2
    assert [failure.index for failure in summary.failures] == [1, 2]
