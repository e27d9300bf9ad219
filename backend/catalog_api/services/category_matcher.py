"""Assign canonical content items to taxonomy slugs.

Every declared slug is checked against every item with three predicates in
increasing order of cost: tag membership, structured facet equality and,
in comprehensive mode only, free-text search. Membership is inclusive, so one
item can land in many slugs of many types.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Literal

from ..content import (
    BatchZipLinkGroup,
    ContentEntry,
    ContentItem,
    MovieLinkGroup,
    SeriesLinkGroup,
)
from ..schemas import CategoryTaxonomyModel
from .patterns import extract_encoding, extract_format, extract_qualities, quality_aliases

TypeFamily = Literal["year", "quality", "genre", "series", "other"]
CategoryMatchResult = dict[str, dict[str, list[ContentEntry]]]

SERIES_TYPES = {"web-series", "tv-series"}
_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    return _SLUG_RE.sub("-", value.lower()).strip("-")


def type_family(category_type: str) -> TypeFamily:
    """Group a category type key by the facet it is matched on."""

    key = category_type.lower()
    if "year" in key:
        return "year"
    if "quality" in key:
        return "quality"
    if "genre" in key:
        return "genre"
    if key in SERIES_TYPES:
        return "series"
    return "other"


def ordered_slugs(category_type: str, slugs: Iterable[str]) -> list[str]:
    """Render order of a type's slugs: years newest first, others A-Z."""

    unique = list(dict.fromkeys(slugs))
    if type_family(category_type) == "year":
        return sorted(
            unique,
            key=lambda slug: (not slug.isdigit(), -int(slug) if slug.isdigit() else 0, slug),
        )
    return sorted(unique)


@dataclass(frozen=True, slots=True)
class ItemFacets:
    """Structured values of one item that slugs are compared against."""

    tags: frozenset[str]
    year: str
    qualities: frozenset[str]
    encodings: frozenset[str]
    formats: frozenset[str]
    genres: frozenset[str]
    platform: str
    is_series: bool
    texts: tuple[str, ...]
    url: str


def _extra(info: Any, name: str) -> Any:
    return (getattr(info, "model_extra", None) or {}).get(name)


def _genre_values(raw: Any) -> list[str]:
    if isinstance(raw, str):
        return [part for part in raw.split(",")]
    if isinstance(raw, (list, tuple)):
        return [str(part) for part in raw if part]
    return []


def item_facets(item: ContentItem) -> ItemFacets:
    """Collect the facets of ``item`` from its first info entry and labels."""

    qualities: set[str] = set()
    encodings: set[str] = set()
    formats: set[str] = set()

    def collect(label: str | None) -> None:
        for quality in extract_qualities(label):
            qualities.update(quality_aliases(quality))
        encoding = extract_encoding(label)
        if encoding:
            encodings.add(encoding.lower())
        container = extract_format(label)
        if container:
            formats.add(container.lower())

    info = item.primary_info
    year = ""
    genres: set[str] = set()
    platform = ""
    is_series = False
    texts: list[str] = [item.title.lower()]

    if info is not None:
        year = info.release_year.strip()
        is_series = info.is_series
        collect(info.quality)
        collect(info.format)
        for section in info.sections:
            collect(section.heading)
            for group in section.links:
                if isinstance(group, (MovieLinkGroup, BatchZipLinkGroup)):
                    collect(group.name)
                    if group.quality:
                        qualities.update(quality_aliases(group.quality))
                elif isinstance(group, SeriesLinkGroup):
                    collect(group.button_label)
        for raw in (_extra(info, "genre"), _extra(info, "genres")):
            genres.update(slugify(value) for value in _genre_values(raw) if slugify(value))
        platform = slugify(str(_extra(info, "platform") or ""))
        texts.append(info.synopsis.lower())
        plot = _extra(info, "plot")
        if isinstance(plot, str):
            texts.append(plot.lower())

    return ItemFacets(
        tags=frozenset(tag.lower() for tag in item.tags),
        year=year,
        qualities=frozenset(qualities),
        encodings=frozenset(encodings),
        formats=frozenset(formats),
        genres=frozenset(genres),
        platform=platform,
        is_series=is_series,
        texts=tuple(text for text in texts if text),
        url=item.url.lower(),
    )


def matches_slug(
    category_type: str,
    slug: str,
    facets: ItemFacets,
    *,
    comprehensive: bool = False,
) -> bool:
    """Return whether an item with ``facets`` belongs to ``(type, slug)``."""

    key = slug.lower()
    if key in facets.tags or f"{category_type}@{slug}".lower() in facets.tags:
        return True

    family = type_family(category_type)
    if family == "year" and facets.year == slug:
        return True
    if family == "quality" and (
        key in facets.qualities or key in facets.encodings or key in facets.formats
    ):
        return True
    if family == "genre" and key in facets.genres:
        return True
    if family == "series" and facets.is_series and facets.platform == key:
        return True

    if comprehensive:
        term = key.replace("-", " ")
        if any(term in text for text in facets.texts) or key in facets.url:
            return True
    return False


def match_categories(
    taxonomy: CategoryTaxonomyModel,
    items: Iterable[ContentItem],
    *,
    comprehensive: bool = False,
    types: Iterable[str] | None = None,
    slugs: Iterable[str] | None = None,
) -> CategoryMatchResult:
    """Compute the member list of every selected slug.

    Members keep the iteration order of ``items``; slugs are keyed in render
    order so the result can be written out as-is.
    """

    type_filter = set(types) if types else None
    slug_filter = set(slugs) if slugs else None
    indexed = [(item.to_entry(), item_facets(item)) for item in items]

    result: CategoryMatchResult = {}
    for category_type, descriptor in taxonomy.categories.items():
        if type_filter is not None and category_type not in type_filter:
            continue
        selected: dict[str, list[ContentEntry]] = {}
        for slug in ordered_slugs(category_type, descriptor.slugs):
            if slug_filter is not None and slug not in slug_filter:
                continue
            selected[slug] = [
                entry
                for entry, facets in indexed
                if matches_slug(category_type, slug, facets, comprehensive=comprehensive)
            ]
        result[category_type] = selected
    return result
