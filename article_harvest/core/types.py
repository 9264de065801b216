"""
Core data types for the acquisition pipeline.

This module defines the fundamental data structures used throughout the pipeline:
- Engine: Names of the selectable search engines
- SearchHit: A candidate search result before its page has been fetched
- ArticleMetadata: Derived metadata stored alongside an article
- ExtractedArticle: Article with extracted body text, handed to persistence
- CollectionReport: Outcome of one collection batch
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Engine(str, Enum):
    """Search engine names accepted by the aggregator and the CLI."""

    AUTO = "auto"
    GOOGLE = "google"
    SERPAPI = "serpapi"
    DUCKDUCKGO = "duckduckgo"
    BING = "bing"
    RSS = "rss"


@dataclass(frozen=True)
class SearchHit:
    """A raw search result produced by a provider adapter.

    Attributes:
        title: Result title, already whitespace-normalized
        url: Target URL with any provider redirect wrapping removed
        snippet: Optional description text shown by the provider
    """
    title: str
    url: str
    snippet: str | None = None


@dataclass(frozen=True)
class ArticleMetadata:
    """Metadata attached to an extracted article.

    Attributes:
        topic: The topic the batch was collected for
        source: Host name of the article URL without "www."
        date_added: UTC timestamp of collection
        word_count: Number of whitespace-delimited tokens in the content
        keywords: Up to 10 keywords, topic words first
        summary: Provider snippet or a summary built from the content
        language: "ru" or "en"
    """
    topic: str
    source: str
    date_added: datetime
    word_count: int
    keywords: tuple[str, ...]
    summary: str
    language: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "source": self.source,
            "dateAdded": self.date_added.isoformat(),
            "wordCount": self.word_count,
            "keywords": list(self.keywords),
            "summary": self.summary,
            "language": self.language,
        }


@dataclass(frozen=True)
class ExtractedArticle:
    """An accepted article, immutable once constructed.

    Attributes:
        title: Cleaned hit title
        content: Extracted body text (always longer than the acceptance gate)
        url: The hit URL
        metadata: Derived metadata
    """
    title: str
    content: str
    url: str
    metadata: ArticleMetadata

    def to_dict(self) -> dict[str, Any]:
        """Return the record shape expected by the persistence collaborator."""
        return {
            "title": self.title,
            "content": self.content,
            "url": self.url,
            "metadata": self.metadata.to_dict(),
        }


@dataclass
class CollectionReport:
    """Outcome of one collection batch.

    Attributes:
        topic: The requested topic
        engine: The engine that was requested ("auto" or an explicit name)
        provider: Name of the provider whose hits were used, None if none
        articles: Accepted articles in original hit order
        hits: Number of validated hits returned by the aggregator
        attempted: Number of hits whose page fetch was started
        accepted: Number of hits that became articles
        failures: Failure counts keyed by category
        cancelled: True if the batch stopped early on a cancellation signal
    """
    topic: str
    engine: str
    provider: str | None = None
    articles: list[ExtractedArticle] = field(default_factory=list)
    hits: int = 0
    attempted: int = 0
    accepted: int = 0
    failures: dict[str, int] = field(default_factory=dict)
    cancelled: bool = False

    @property
    def no_results(self) -> bool:
        return not self.articles

    def record_failure(self, category: str) -> None:
        self.failures[category] = self.failures.get(category, 0) + 1
