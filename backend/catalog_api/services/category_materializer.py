"""Publish category match results as per-slug artifacts plus a manifest."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from ..schemas import (
    CategoryArtifactModel,
    CategoryManifestModel,
    ManifestCategoryModel,
    ManifestErrorModel,
    MaterializeOptions,
)
from ..stores.content_store import ContentStore
from ..stores.taxonomy_store import TaxonomyStore
from ..utils.files import write_json_atomic
from ..utils.paths import category_artifact_path, manifest_path
from .category_matcher import CategoryMatchResult, match_categories

logger = logging.getLogger(__name__)


class CategoryMaterializer:
    """Writes the read side of the category index under ``root``.

    Every artifact and the manifest are published atomically. A slug that
    fails to write is recorded in the manifest and the run moves on.
    """

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def materialize(
        self,
        match_result: CategoryMatchResult,
        options: MaterializeOptions | None = None,
    ) -> CategoryManifestModel:
        options = options or MaterializeOptions()
        type_filter = set(options.types) if options.types else None
        slug_filter = set(options.slugs) if options.slugs else None

        generated_at = datetime.utcnow()
        manifest = CategoryManifestModel(generated_at=generated_at, options=options)

        for category_type, slugs in match_result.items():
            if type_filter is not None and category_type not in type_filter:
                continue
            for slug, entries in slugs.items():
                if slug_filter is not None and slug not in slug_filter:
                    continue

                manifest.total_categories += 1
                match_count = len(entries)
                if match_count:
                    manifest.categories_with_matches += 1
                else:
                    manifest.empty_categories += 1

                try:
                    path = category_artifact_path(self._root, category_type, slug)
                    if match_count == 0 and not options.create_empty:
                        status = "omitted"
                        if options.force and path.exists():
                            path.unlink()
                            logger.info("Removed stale artifact %s/%s", category_type, slug)
                    elif path.exists() and not options.force:
                        status = "skipped"
                        manifest.skipped += 1
                    else:
                        artifact = CategoryArtifactModel(
                            type=category_type,
                            slug=slug,
                            total_items=match_count,
                            generated_at=generated_at,
                            items=entries,
                        )
                        write_json_atomic(path, artifact.model_dump(mode="json", by_alias=True))
                        status = "written"
                        manifest.written += 1
                except Exception as exc:
                    logger.warning(
                        "Failed to write category %s/%s: %s", category_type, slug, exc
                    )
                    status = "failed"
                    manifest.errors.append(
                        ManifestErrorModel(type=category_type, slug=slug, error=str(exc))
                    )

                manifest.categories.append(
                    ManifestCategoryModel(
                        type=category_type,
                        slug=slug,
                        match_count=match_count,
                        generated_at=generated_at,
                        empty=match_count == 0,
                        status=status,
                    )
                )

        write_json_atomic(
            manifest_path(self._root), manifest.model_dump(mode="json", by_alias=True)
        )
        logger.info(
            "Category generation finished: %s categories, %s written, %s skipped, %s errors",
            manifest.total_categories,
            manifest.written,
            manifest.skipped,
            len(manifest.errors),
        )
        return manifest


def generate_categories(
    content_store: ContentStore,
    taxonomy_store: TaxonomyStore,
    materializer: CategoryMaterializer,
    options: MaterializeOptions | None = None,
) -> CategoryManifestModel:
    """Match every stored item against the stored taxonomy and publish the result."""

    options = options or MaterializeOptions()
    taxonomy = taxonomy_store.read()
    match_result = match_categories(
        taxonomy,
        content_store.iter_items(),
        comprehensive=options.comprehensive,
        types=options.types,
        slugs=options.slugs,
    )
    return materializer.materialize(match_result, options)
