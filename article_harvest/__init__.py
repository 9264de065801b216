"""
Article Harvest - topic-driven web article collector.

This package queries one of several interchangeable search providers for a
topic, fetches each candidate page, extracts readable body text and derives
metadata (keywords, language, summary, word count) for downstream storage.

Main entry point is the CLI via `article-harvest collect` command.

Example:
    $ article-harvest collect "quantum computing" --max-articles 3 -o out/articles.jsonl
"""

__all__ = [
    "__version__",
    "collect_articles",
    "derive_metadata",
    "extract_text",
    "ExtractedArticle",
    "SearchHit",
]
__version__ = "0.1.0"

from .core.types import ExtractedArticle, SearchHit
from .extract.extractor import extract_text
from .metadata import derive_metadata
from .runner import collect_articles
