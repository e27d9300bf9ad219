"""Tests for lenient parsing of scraped content records."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.catalog_api.content import (  # noqa: E402
    BatchZipLinkGroup,
    ContentItem,
    MovieLinkGroup,
    Section,
    SeriesLinkGroup,
)


def test_none_collections_and_scalars_fall_back_to_defaults() -> None:
    item = ContentItem.model_validate(
        {"url": "https://site.example/a/", "title": None, "thumbnail": None, "tags": None, "info": None}
    )

    assert item.title == ""
    assert item.thumbnail == ""
    assert item.tags == []
    assert item.info == []


def test_none_nested_fields_fall_back_to_defaults() -> None:
    item = ContentItem.model_validate(
        {
            "url": "https://site.example/a/",
            "info": [
                {
                    "title": None,
                    "details": None,
                    "screenshots": None,
                    "sections": [{"id": None, "heading": None, "links": None}],
                }
            ],
        }
    )

    info = item.info[0]
    assert info.title == ""
    assert info.details == []
    assert info.screenshots == []
    assert info.sections[0].id is None
    assert info.sections[0].heading == ""
    assert info.sections[0].links == []


def test_missing_url_is_still_rejected() -> None:
    with pytest.raises(ValidationError):
        ContentItem.model_validate({"url": None})


def test_untagged_link_groups_are_tagged_by_shape() -> None:
    section = Section.model_validate(
        {
            "heading": "Downloads",
            "links": [
                {"name": "Movie 1080p [2GB]", "links": [{"buttonLabel": "V-Cloud", "link": "https://v"}]},
                {"buttonLabel": "V-Cloud", "links": {"1": "https://e1", "2": None}},
                {"name": "Season 1 720p [4GB]", "type": "batch/zip", "links": []},
            ],
        }
    )

    movie, series, batch = section.links
    assert isinstance(movie, MovieLinkGroup)
    assert movie.quality == "1080p"
    assert movie.size == "2GB"
    assert movie.links[0].type == "vcloud"
    assert isinstance(series, SeriesLinkGroup)
    assert series.links == {"1": "https://e1"}
    assert isinstance(batch, BatchZipLinkGroup)
    assert batch.type == "Batch/Zip"
    assert batch.quality == "720p"


def test_explicit_kind_wins_over_shape() -> None:
    section = Section.model_validate(
        {"links": [{"kind": "batch_zip", "name": "Pack 480p", "type": "anything", "links": None}]}
    )

    group = section.links[0]
    assert isinstance(group, BatchZipLinkGroup)
    assert group.type == "Batch/Zip"
    assert group.links == []


def test_none_scalars_on_link_groups_are_derived() -> None:
    section = Section.model_validate(
        {
            "links": [
                {"name": "Movie 720p [900MB]", "quality": None, "size": None, "links": None},
                {"name": None, "quality": None, "links": [{"buttonLabel": None, "link": None, "type": None}]},
            ]
        }
    )

    described, blank = section.links
    assert described.quality == "720p"
    assert described.size == "900MB"
    assert described.links == []
    assert blank.name == ""
    assert blank.quality is None
    assert blank.links[0].link == ""
