"""Read access to published category artifacts."""
from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path

from ..schemas import CategoryArtifactModel, CategoryManifestModel, CategoryPageModel
from ..utils.paths import category_artifact_path, is_safe_segment, manifest_path


@dataclass(slots=True)
class ArtifactStore:
    """Serves paginated slices of the artifacts written by the materializer."""

    root: Path

    def load(self, category_type: str, slug: str) -> CategoryArtifactModel | None:
        """Return the whole artifact for a slug, or ``None`` when not published."""

        if not (is_safe_segment(category_type) and is_safe_segment(slug)):
            return None
        path = category_artifact_path(self.root, category_type, slug)
        if not path.is_file():
            return None
        data = json.loads(path.read_text(encoding="utf-8"))
        return CategoryArtifactModel.model_validate(data)

    def page(
        self,
        category_type: str,
        slug: str,
        *,
        page: int = 1,
        limit: int = 20,
    ) -> CategoryPageModel | None:
        """Return one page of a slug's members.

        Pages past the end are empty rather than an error.
        """

        if page < 1 or limit < 1:
            raise ValueError("page and limit must be positive")

        artifact = self.load(category_type, slug)
        if artifact is None:
            return None

        start = (page - 1) * limit
        items = artifact.items[start : start + limit]
        total = len(artifact.items)
        return CategoryPageModel(
            type=category_type,
            slug=slug,
            items=items,
            total_items=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        )

    def manifest(self) -> CategoryManifestModel | None:
        """Return the manifest of the last generation run, if any."""

        path = manifest_path(self.root)
        if not path.is_file():
            return None
        return CategoryManifestModel.model_validate_json(path.read_text(encoding="utf-8"))
