"""
Article body extraction.

This package turns raw HTML into normalized body text.
"""

from .extractor import (
    CONTENT_SELECTORS,
    STRIP_TAGS,
    available_methods,
    extract_selectors,
    extract_text,
    normalize_text,
)

__all__ = [
    "CONTENT_SELECTORS",
    "STRIP_TAGS",
    "available_methods",
    "extract_selectors",
    "extract_text",
    "normalize_text",
]
