"""Filesystem helpers for catalog artifact locations."""
from __future__ import annotations

from pathlib import Path

from platformdirs import user_data_dir


APP_NAME = "ReelIndex"
APP_AUTHOR = "ReelIndex"

CATEGORIES_DIRNAME = "categories"
MANIFEST_FILENAME = "manifest.json"


def default_artifact_path() -> str:
    """Return the platform-appropriate default artifact directory."""

    base_dir = Path(user_data_dir(APP_NAME, APP_AUTHOR))
    return str(base_dir / "artifacts")


def ensure_artifact_directory(path: str) -> Path:
    """Expand and create the artifact root if it does not exist."""

    resolved = Path(path).expanduser()
    resolved.mkdir(parents=True, exist_ok=True)
    return resolved.resolve()


def category_artifact_path(root: Path, category_type: str, slug: str) -> Path:
    """Return the artifact file for a single ``(type, slug)`` pair.

    Raises ``ValueError`` when either name would leave its directory.
    """

    for name in (category_type, slug):
        if not is_safe_segment(name):
            raise ValueError(f"Unsafe category path segment: {name!r}")
    return root / CATEGORIES_DIRNAME / category_type / f"{slug}.json"


def manifest_path(root: Path) -> Path:
    """Return the location of the category generation manifest."""

    return root / CATEGORIES_DIRNAME / MANIFEST_FILENAME


def is_safe_segment(name: str) -> bool:
    """Return whether ``name`` can be used as a single path component."""

    return bool(name) and not name.startswith(".") and "/" not in name and "\\" not in name
