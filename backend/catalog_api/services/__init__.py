"""Service layer: label parsing, section merging and category generation."""

from .patterns import (
    classify_link_purpose,
    extract_encoding,
    extract_format,
    extract_quality,
    extract_size,
)

__all__ = [
    "classify_link_purpose",
    "extract_encoding",
    "extract_format",
    "extract_quality",
    "extract_size",
]
