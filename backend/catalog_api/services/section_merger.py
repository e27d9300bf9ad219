"""Section identity reconciliation across repeated scrapes of one item."""
from __future__ import annotations

import logging
from collections import Counter
from typing import Callable
from uuid import uuid4

from ..content import ContentItem, Section

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def new_section_id() -> str:
    """Return a fresh section identifier."""

    return uuid4().hex


def merge_sections(
    existing: ContentItem | None,
    incoming: ContentItem,
    *,
    id_factory: IdFactory = new_section_id,
) -> ContentItem:
    """Return ``incoming`` with section ids carried over from ``existing``.

    Sections are matched by exact heading within the same info position. A
    matched section keeps the stored id and takes every other field from the
    incoming scrape; unmatched sections get a fresh id. Sections that only
    exist in ``existing`` are dropped.

    When a heading repeats, incoming duplicates bind to stored sections with
    that heading in the order both were encountered. Anything beyond that
    first-available pairing is not guaranteed; such cases are logged.
    """

    merged = incoming.model_copy(deep=True)
    used_ids: set[str] = set()
    if existing is not None:
        used_ids.update(section.id for section in existing.sections() if section.id)

    for position, info in enumerate(merged.info):
        previous: list[Section] = []
        if existing is not None and position < len(existing.info):
            previous = list(existing.info[position].sections)

        _note_duplicate_headings(merged, position, info.sections, previous)

        available = [section for section in previous if section.id]
        for section in info.sections:
            match = _take_first(available, section.heading)
            if match is not None:
                section.id = match.id
            else:
                section.id = _fresh_id(id_factory, used_ids)
            used_ids.add(section.id)

    return merged


def _take_first(available: list[Section], heading: str) -> Section | None:
    for index, candidate in enumerate(available):
        if candidate.heading == heading:
            return available.pop(index)
    return None


def _fresh_id(id_factory: IdFactory, used_ids: set[str]) -> str:
    candidate = id_factory()
    while candidate in used_ids:
        candidate = id_factory()
    return candidate


def _note_duplicate_headings(
    item: ContentItem,
    position: int,
    incoming: list[Section],
    previous: list[Section],
) -> None:
    repeated = sorted(
        heading
        for heading, count in Counter(section.heading for section in incoming).items()
        if count > 1
    )
    if repeated and previous:
        logger.info(
            "Duplicate section headings for %s (info %d) resolved first-available: %s",
            item.url,
            position,
            ", ".join(repr(heading) for heading in repeated),
        )
