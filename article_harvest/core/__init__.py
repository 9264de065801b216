"""
Core domain models and business logic.

This package contains data types, hit validation and deduplication that
are independent of any specific provider or pipeline stage.
"""

from .types import ArticleMetadata, CollectionReport, Engine, ExtractedArticle, SearchHit
from .validate import clean_text, extract_domain, filter_valid_hits, is_valid_hit
from .dedup import dedup_hits

__all__ = [
    "ArticleMetadata",
    "CollectionReport",
    "Engine",
    "ExtractedArticle",
    "SearchHit",
    "clean_text",
    "extract_domain",
    "filter_valid_hits",
    "is_valid_hit",
    "dedup_hits",
]
