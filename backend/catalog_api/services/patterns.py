"""Taxonomy facet extraction from free-text download labels.

Every function here is pure: it takes a label (a link group name, a section
heading or a button label) and returns a normalized facet or ``None``. They
never raise on odd input, so callers can feed them whatever the scraper
produced.
"""
from __future__ import annotations

import re
from typing import Literal

LinkPurpose = Literal["gdrive", "vcloud", "batch", "direct", "unknown"]

QUALITY_RE = re.compile(r"(4k|2160p|1080p|720p|480p)", re.IGNORECASE)
ENCODING_RE = re.compile(r"(x264|x265|HEVC|H\.264|H\.265|10Bit)", re.IGNORECASE)
SIZE_RE = re.compile(r"\[(\d+(?:\.\d+)?)\s*(MB|GB)\]", re.IGNORECASE)
FORMAT_RE = re.compile(r"\b(MKV|MP4|AVI|WMV|FLV|WebM)\b", re.IGNORECASE)

# Canonical spelling for tokens matched case-insensitively.
ENCODINGS = {
    "x264": "x264",
    "x265": "x265",
    "hevc": "HEVC",
    "h.264": "H.264",
    "h.265": "H.265",
    "10bit": "10Bit",
}
FORMATS = {
    "mkv": "MKV",
    "mp4": "MP4",
    "avi": "AVI",
    "wmv": "WMV",
    "flv": "FLV",
    "webm": "WebM",
}

QUALITY_ALIASES = {"4k": "2160p", "2160p": "4k"}

GDRIVE_TOKENS = ("g-direct", "gdrive", "g-drive")
VCLOUD_TOKENS = ("v-cloud", "vcloud")
BATCH_TOKENS = ("batch", "zip")


def extract_quality(text: str | None) -> str | None:
    """Return the first quality token in ``text``, lowercased."""

    if not text:
        return None
    match = QUALITY_RE.search(text)
    return match.group(1).lower() if match else None


def extract_qualities(text: str | None) -> list[str]:
    """Return every distinct quality token in ``text`` in order of appearance."""

    if not text:
        return []
    found: list[str] = []
    for token in QUALITY_RE.findall(text):
        quality = token.lower()
        if quality not in found:
            found.append(quality)
    return found


def quality_aliases(quality: str) -> set[str]:
    """Return ``quality`` plus the tokens treated as equivalent to it."""

    normalized = quality.lower()
    aliases = {normalized}
    if normalized in QUALITY_ALIASES:
        aliases.add(QUALITY_ALIASES[normalized])
    return aliases


def extract_encoding(text: str | None) -> str | None:
    """Return the first video encoding token in ``text`` in canonical spelling."""

    if not text:
        return None
    match = ENCODING_RE.search(text)
    return ENCODINGS[match.group(1).lower()] if match else None


def extract_size(text: str | None) -> str | None:
    """Return a bracketed size token such as ``[1.4GB]`` as ``"1.4GB"``."""

    if not text:
        return None
    match = SIZE_RE.search(text)
    if not match:
        return None
    return f"{match.group(1)}{match.group(2).upper()}"


def extract_format(text: str | None) -> str | None:
    """Return the first container format token in ``text``."""

    if not text:
        return None
    match = FORMAT_RE.search(text)
    return FORMATS[match.group(1).lower()] if match else None


def classify_link_purpose(button_label: str | None) -> LinkPurpose:
    """Classify a download button by the service it points at.

    Rules are checked in priority order: Google Drive tokens, then V-Cloud,
    then batch/zip bundles. Any other non-empty label is a direct link.
    """

    if not button_label or not button_label.strip():
        return "unknown"
    label = button_label.lower()
    if any(token in label for token in GDRIVE_TOKENS):
        return "gdrive"
    if any(token in label for token in VCLOUD_TOKENS):
        return "vcloud"
    if any(token in label for token in BATCH_TOKENS):
        return "batch"
    return "direct"
