"""Tests for atomic JSON publication."""
from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.catalog_api.utils.files import write_json_atomic  # noqa: E402


def test_write_replaces_existing_file(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "out.json"

    write_json_atomic(target, {"v": 1})
    write_json_atomic(target, {"v": 2})

    assert json.loads(target.read_text(encoding="utf-8")) == {"v": 2}
    assert [path.name for path in target.parent.iterdir()] == ["out.json"]


def test_failed_write_leaves_previous_content(tmp_path: Path) -> None:
    target = tmp_path / "out.json"
    write_json_atomic(target, {"v": 1})

    with pytest.raises(TypeError):
        write_json_atomic(target, {"v": object()})

    assert json.loads(target.read_text(encoding="utf-8")) == {"v": 1}
    assert [path.name for path in tmp_path.iterdir()] == ["out.json"]
