"""Pydantic domain types for scraped content items.

Scraped records arrive without stable identifiers and with loosely shaped
nested data. The models below accept that input leniently: ``None`` or
missing collections become empty, link groups are tagged by shape and derived
facets (quality, size, link purpose) are filled in when the scraper left them
out.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from .services.patterns import classify_link_purpose, extract_quality, extract_size

BATCH_ZIP_TYPE = "Batch/Zip"
SERIES_KINDS = {"series", "tv series", "web series"}


class _LenientModel(BaseModel):
    """Base model that treats ``None`` as "use the field default"."""

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _none_as_default(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        required: set[str] = set()
        for name, field in cls.model_fields.items():
            if field.is_required():
                required.add(name)
                if field.alias:
                    required.add(field.alias)
        # Required fields keep their None so validation reports them.
        return {key: value for key, value in data.items() if value is not None or key in required}


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _as_string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    return [str(entry) for entry in _as_list(value) if entry is not None]


class DownloadLink(_LenientModel):
    """A single download button inside a movie or batch link group."""

    button_label: str = Field(default="", alias="buttonLabel")
    link: str = ""
    type: str = ""

    @model_validator(mode="after")
    def _derive_type(self) -> "DownloadLink":
        if not self.type:
            self.type = classify_link_purpose(self.button_label)
        return self


def _download_links(value: Any) -> list[Any]:
    return [entry for entry in _as_list(value) if isinstance(entry, (dict, DownloadLink))]


class MovieLinkGroup(_LenientModel):
    """One quality variant of a movie with its download buttons."""

    kind: Literal["movie"] = "movie"
    name: str = ""
    quality: str | None = None
    size: str | None = None
    links: list[DownloadLink] = Field(default_factory=list)

    @field_validator("links", mode="before")
    @classmethod
    def _links(cls, value: Any) -> list[Any]:
        return _download_links(value)

    @model_validator(mode="after")
    def _derive_facets(self) -> "MovieLinkGroup":
        if not self.quality:
            self.quality = extract_quality(self.name)
        if not self.size:
            self.size = extract_size(self.name)
        return self


class BatchZipLinkGroup(_LenientModel):
    """A complete-season bundle; shaped like a movie group with a fixed type."""

    kind: Literal["batch_zip"] = "batch_zip"
    name: str = ""
    quality: str | None = None
    type: Literal["Batch/Zip"] = BATCH_ZIP_TYPE
    size: str | None = None
    links: list[DownloadLink] = Field(default_factory=list)

    @field_validator("links", mode="before")
    @classmethod
    def _links(cls, value: Any) -> list[Any]:
        return _download_links(value)

    @field_validator("type", mode="before")
    @classmethod
    def _fixed_type(cls, value: Any) -> str:
        return BATCH_ZIP_TYPE

    @model_validator(mode="after")
    def _derive_facets(self) -> "BatchZipLinkGroup":
        if not self.quality:
            self.quality = extract_quality(self.name)
        if not self.size:
            self.size = extract_size(self.name)
        return self


class SeriesLinkGroup(_LenientModel):
    """Episode links for one button, keyed by episode number."""

    kind: Literal["series"] = "series"
    button_label: str = Field(default="", alias="buttonLabel")
    type: str = ""
    links: dict[str, str] = Field(default_factory=dict)

    @field_validator("links", mode="before")
    @classmethod
    def _episode_links(cls, value: Any) -> dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {str(episode): str(url) for episode, url in value.items() if url is not None}


LinkGroup = Annotated[
    Union[MovieLinkGroup, SeriesLinkGroup, BatchZipLinkGroup],
    Field(discriminator="kind"),
]


def infer_link_group_kind(raw: dict[str, Any]) -> str:
    """Tag an untagged link group by the shape of its payload."""

    if isinstance(raw.get("links"), dict):
        return "series"
    if str(raw.get("type") or "").strip().lower() == BATCH_ZIP_TYPE.lower():
        return "batch_zip"
    return "movie"


class Section(_LenientModel):
    """A headed group of download options; carries a stable identifier."""

    id: str | None = None
    heading: str = ""
    links: list[LinkGroup] = Field(default_factory=list)

    @field_validator("links", mode="before")
    @classmethod
    def _tag_link_groups(cls, value: Any) -> list[Any]:
        tagged: list[Any] = []
        for entry in _as_list(value):
            if isinstance(entry, BaseModel):
                tagged.append(entry)
            elif isinstance(entry, dict):
                if entry.get("kind") in {"movie", "series", "batch_zip"}:
                    tagged.append(entry)
                else:
                    tagged.append({**entry, "kind": infer_link_group_kind(entry)})
        return tagged


class ContentInfo(_LenientModel):
    """Descriptive metadata for one release of a content item."""

    model_config = ConfigDict(extra="allow")

    imdb_rating: str = ""
    movie_or_series: str = ""
    title: str = ""
    season: str | None = None
    episode: str | None = None
    release_year: str = ""
    language: str = ""
    subtitle: str = ""
    size: str = ""
    episode_size: str | None = None
    complete_zip: str | None = None
    quality: str = ""
    format: str = ""
    details: list[str] = Field(default_factory=list)
    synopsis: str = ""
    screenshots: list[str] = Field(default_factory=list)
    movie_notes: list[str] | None = None
    sections: list[Section] = Field(default_factory=list)

    @field_validator("details", "screenshots", mode="before")
    @classmethod
    def _string_lists(cls, value: Any) -> list[str]:
        return _as_string_list(value)

    @field_validator("sections", mode="before")
    @classmethod
    def _sections(cls, value: Any) -> list[Any]:
        return [entry for entry in _as_list(value) if isinstance(entry, (dict, Section))]

    @property
    def is_series(self) -> bool:
        return self.movie_or_series.strip().lower() in SERIES_KINDS


class ContentEntry(BaseModel):
    """Lightweight projection published in category artifacts."""

    id: int | None = None
    title: str = ""
    thumbnail: str = ""
    date: str = ""
    url: str = ""


class ContentItem(_LenientModel):
    """One scraped movie or series, keyed by its source URL."""

    id: int | None = None
    url: str
    title: str = ""
    thumbnail: str = ""
    date: str = ""
    tags: list[str] = Field(default_factory=list)
    info: list[ContentInfo] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            value = value.split(",")
        unique: list[str] = []
        for tag in _as_string_list(value):
            cleaned = tag.strip()
            if cleaned and cleaned not in unique:
                unique.append(cleaned)
        return unique

    @field_validator("info", mode="before")
    @classmethod
    def _info(cls, value: Any) -> list[Any]:
        entries = _as_list(value)
        # Some scrapes wrap the info list one level too deep.
        if entries and isinstance(entries[0], list):
            entries = entries[0]
        return [entry for entry in entries if isinstance(entry, (dict, ContentInfo))]

    @property
    def primary_info(self) -> ContentInfo | None:
        return self.info[0] if self.info else None

    def sections(self) -> list[Section]:
        """Return every section across all info entries in order."""

        return [section for info in self.info for section in info.sections]

    def to_entry(self) -> ContentEntry:
        return ContentEntry(
            id=self.id,
            title=self.title,
            thumbnail=self.thumbnail,
            date=self.date,
            url=self.url,
        )
