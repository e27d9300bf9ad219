"""Tests for category artifact publication and reads."""
from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.catalog_api.content import ContentEntry  # noqa: E402
from backend.catalog_api.schemas import MaterializeOptions  # noqa: E402
from backend.catalog_api.services import category_materializer  # noqa: E402
from backend.catalog_api.services.category_materializer import CategoryMaterializer  # noqa: E402
from backend.catalog_api.stores.artifact_store import ArtifactStore  # noqa: E402


def entries(count: int) -> list[ContentEntry]:
    return [ContentEntry(id=index, title=f"Item {index}", url=f"item-{index}") for index in range(1, count + 1)]


def artifact_file(root: Path, category_type: str, slug: str) -> Path:
    return root / "categories" / category_type / f"{slug}.json"


def test_writes_artifacts_and_manifest(tmp_path: Path) -> None:
    materializer = CategoryMaterializer(tmp_path)

    manifest = materializer.materialize(
        {"movies-by-quality": {"1080p": entries(2), "720p": entries(1)}},
    )

    data = json.loads(artifact_file(tmp_path, "movies-by-quality", "1080p").read_text(encoding="utf-8"))
    assert data["totalItems"] == 2
    assert [item["url"] for item in data["items"]] == ["item-1", "item-2"]
    assert manifest.total_categories == 2
    assert manifest.categories_with_matches == 2
    assert manifest.written == 2

    on_disk = json.loads((tmp_path / "categories" / "manifest.json").read_text(encoding="utf-8"))
    assert on_disk["totalCategories"] == 2
    assert on_disk["categories"][0]["matchCount"] == 2


def test_empty_slugs_are_omitted_unless_requested(tmp_path: Path) -> None:
    materializer = CategoryMaterializer(tmp_path)

    omitted = materializer.materialize({"movies-by-year": {"1999": []}})
    assert not artifact_file(tmp_path, "movies-by-year", "1999").exists()
    assert omitted.empty_categories == 1
    assert omitted.categories[0].status == "omitted"

    created = materializer.materialize(
        {"movies-by-year": {"1999": []}}, MaterializeOptions(create_empty=True)
    )
    data = json.loads(artifact_file(tmp_path, "movies-by-year", "1999").read_text(encoding="utf-8"))
    assert data["items"] == []
    assert created.categories[0].empty is True
    assert created.categories[0].status == "written"


def test_existing_artifacts_are_kept_unless_forced(tmp_path: Path) -> None:
    materializer = CategoryMaterializer(tmp_path)
    materializer.materialize({"special": {"classics": entries(1)}})

    skipped = materializer.materialize({"special": {"classics": entries(3)}})
    assert skipped.skipped == 1
    assert ArtifactStore(tmp_path).load("special", "classics").total_items == 1

    forced = materializer.materialize({"special": {"classics": entries(3)}}, MaterializeOptions(force=True))
    assert forced.written == 1
    assert ArtifactStore(tmp_path).load("special", "classics").total_items == 3


def test_skipped_manifest_entries_report_the_fresh_match(tmp_path: Path) -> None:
    materializer = CategoryMaterializer(tmp_path)
    materializer.materialize({"special": {"classics": entries(1)}})

    manifest = materializer.materialize({"special": {"classics": entries(3)}})

    entry = manifest.categories[0]
    assert entry.status == "skipped"
    assert entry.match_count == 3
    assert entry.generated_at == manifest.generated_at
    assert ArtifactStore(tmp_path).load("special", "classics").total_items == 1


def test_forced_run_removes_stale_artifacts_of_now_empty_slugs(tmp_path: Path) -> None:
    materializer = CategoryMaterializer(tmp_path)
    materializer.materialize({"special": {"classics": entries(1)}})

    materializer.materialize({"special": {"classics": []}}, MaterializeOptions(force=True))

    assert not artifact_file(tmp_path, "special", "classics").exists()


def test_filters_restrict_which_slugs_are_written(tmp_path: Path) -> None:
    materializer = CategoryMaterializer(tmp_path)

    manifest = materializer.materialize(
        {"movies-by-year": {"2024": entries(1), "2023": entries(1)}, "special": {"x": entries(1)}},
        MaterializeOptions(types=["movies-by-year"], slugs=["2023"]),
    )

    assert [(entry.type, entry.slug) for entry in manifest.categories] == [("movies-by-year", "2023")]
    assert not artifact_file(tmp_path, "movies-by-year", "2024").exists()


def test_one_failing_slug_does_not_abort_the_run(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    real_write = category_materializer.write_json_atomic

    def flaky_write(path: Path, payload) -> None:
        if path.name == "bad.json":
            raise OSError("disk full")
        real_write(path, payload)

    monkeypatch.setattr(category_materializer, "write_json_atomic", flaky_write)
    materializer = CategoryMaterializer(tmp_path)

    manifest = materializer.materialize({"special": {"bad": entries(1), "good": entries(1)}})

    assert [error.slug for error in manifest.errors] == ["bad"]
    assert manifest.written == 1
    assert [entry.status for entry in manifest.categories] == ["failed", "written"]
    assert artifact_file(tmp_path, "special", "good").exists()
    assert not artifact_file(tmp_path, "special", "bad").exists()


def test_pages_past_the_end_are_empty(tmp_path: Path) -> None:
    CategoryMaterializer(tmp_path).materialize({"special": {"classics": entries(5)}})
    store = ArtifactStore(tmp_path)

    first = store.page("special", "classics", page=1, limit=2)
    assert [item.id for item in first.items] == [1, 2]
    assert first.total_pages == 3

    beyond = store.page("special", "classics", page=100, limit=20)
    assert beyond.items == []
    assert beyond.total_items == 5


def test_missing_or_unsafe_artifacts_read_as_absent(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)

    assert store.page("special", "nothing") is None
    assert store.load("..", "manifest") is None
    assert store.manifest() is None
    with pytest.raises(ValueError):
        store.page("special", "classics", page=0)


@pytest.mark.parametrize("slug", ["../../../escaped", "nested/slug", ".hidden"])
def test_unsafe_slugs_fail_without_writing(tmp_path: Path, slug: str) -> None:
    root = tmp_path / "artifacts"
    materializer = CategoryMaterializer(root)

    manifest = materializer.materialize({"movies-by-genres": {slug: entries(1), "action": entries(1)}})

    assert [entry.status for entry in manifest.categories] == ["failed", "written"]
    assert [error.slug for error in manifest.errors] == [slug]
    assert not (tmp_path / "escaped.json").exists()
    assert sorted(path.name for path in (root / "categories").rglob("*.json")) == ["action.json", "manifest.json"]


def test_unsafe_category_type_fails_without_writing(tmp_path: Path) -> None:
    manifest = CategoryMaterializer(tmp_path / "artifacts").materialize({"..": {"x": entries(1)}})

    assert manifest.categories[0].status == "failed"
    assert not (tmp_path / "artifacts" / "x.json").exists()
