"""
Collection batch orchestration.

This module drives one batch for a topic:
1. Searching: ask the aggregator for candidate hits
2. Parsing: fetch, extract and derive metadata for each hit
3. Done: report attempted vs. accepted counts

Pages are processed in windows of `fetch.concurrency` concurrent tasks.
Results are assembled in original hit order, so the output does not
depend on completion order. One hit's failure never affects another hit;
it is logged and counted in the report. Cancellation is cooperative: the
signal is checked before each window and again once a fetch has waited out
its host pacing slot; requests already sent finish.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Any, Callable, Protocol

from rich.progress import Progress, TaskID

from .config import AppConfig
from .core.types import ArticleMetadata, CollectionReport, Engine, ExtractedArticle, SearchHit
from .core.validate import clean_text, extract_domain
from .errors import (
    ContentTooShort,
    ExtractionEmpty,
    FetchFailure,
    FetchTimeout,
    HitError,
)
from .extract.extractor import extract_text
from .fetch.fetcher import FetchResult, PageFetcher, categorize_error
from .logging_utils import get_logger, log_event
from .metadata import derive_metadata
from .search.aggregator import SearchAggregator
from .search.factory import build_search_client, parse_engine

MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 8


class Fetcher(Protocol):
    async def fetch(self, url: str, cancel_event: Any = None) -> FetchResult: ...


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...


@dataclass
class HitOutcome:
    """Result of processing one hit; exactly one of article/error is set."""
    index: int
    hit: SearchHit
    article: ExtractedArticle | None = None
    error: HitError | None = None
    final_url: str | None = None


def collect_articles(
    topic: str,
    cfg: AppConfig,
    max_articles: int | None = None,
    engine: str | Engine | None = None,
    aggregator: SearchAggregator | None = None,
    fetcher: Fetcher | None = None,
    cancel_event: CancelSignal | None = None,
    logger: logging.Logger | None = None,
    progress: Progress | None = None,
    clock: Callable[[], datetime] | None = None,
) -> CollectionReport:
    """Collect up to max_articles articles on a topic.

    Args:
        topic: Topic used as the search query and recorded in metadata
        cfg: Application configuration
        max_articles: Number of articles wanted (defaults to search.max_articles)
        engine: "auto" or an explicit engine (defaults to search.engine)
        aggregator: Search aggregator; built from cfg when omitted
        fetcher: Page fetcher; a PageFetcher is created per run when omitted
        cancel_event: Object with is_set(); checked before every request
        logger: Logger for events
        progress: Optional Rich progress bar
        clock: Returns the collection timestamp (UTC now by default)

    Returns:
        CollectionReport with accepted articles in hit order

    Raises:
        ConfigurationError: Explicit engine unknown or unconfigured
        ProviderError: Explicit engine failed
    """
    logger = logger or get_logger()
    max_articles = cfg.search.max_articles if max_articles is None else max_articles
    resolved = parse_engine(engine or cfg.search.engine)
    report = CollectionReport(topic=topic, engine=resolved.value)
    if max_articles <= 0:
        return report

    # Searching
    wanted = max_articles * max(1, cfg.search.candidate_multiplier)
    if aggregator is None:
        with build_search_client(cfg) as client:
            aggregator = SearchAggregator.from_config(cfg, client, logger=logger)
            result = aggregator.search(topic, wanted, resolved)
    else:
        result = aggregator.search(topic, wanted, resolved)

    report.provider = result.provider
    report.hits = len(result.hits)
    if not result.hits:
        log_event(logger, f"No articles found for '{topic}'", event="no_results", topic=topic)
        return report

    # Parsing
    asyncio.run(
        parse_hits(
            topic,
            result.hits,
            report,
            cfg,
            max_articles,
            fetcher=fetcher,
            cancel_event=cancel_event,
            logger=logger,
            progress=progress,
            clock=clock,
        )
    )

    # Done
    log_event(
        logger,
        f"Collected {report.accepted} of {report.attempted} attempted articles",
        event="batch_complete",
        topic=topic,
        provider=report.provider,
        hits=report.hits,
        attempted=report.attempted,
        accepted=report.accepted,
        failures=report.failures,
        cancelled=report.cancelled,
    )
    return report


async def parse_hits(
    topic: str,
    hits: list[SearchHit],
    report: CollectionReport,
    cfg: AppConfig,
    max_articles: int,
    fetcher: Fetcher | None = None,
    cancel_event: CancelSignal | None = None,
    logger: logging.Logger | None = None,
    progress: Progress | None = None,
    clock: Callable[[], datetime] | None = None,
) -> CollectionReport:
    """Process hits window by window until max_articles are accepted.

    Accepted articles are appended to report.articles in hit order.
    """
    logger = logger or get_logger()
    owned: PageFetcher | None = None
    if fetcher is None:
        owned = fetcher = PageFetcher(cfg.fetch)
    window = min(MAX_CONCURRENCY, max(MIN_CONCURRENCY, cfg.fetch.concurrency))
    task_id: TaskID | None = None
    if progress is not None:
        task_id = progress.add_task("Fetch + Extract", total=len(hits))

    # Final URLs of accepted pages; two hits can redirect to the same article
    seen_urls: set[str] = set()

    try:
        for start in range(0, len(hits), window):
            if report.accepted >= max_articles:
                break
            if _is_cancelled(cancel_event):
                _mark_cancelled(report, logger)
                break

            batch = list(enumerate(hits))[start : start + window]
            outcomes = await asyncio.gather(
                *(
                    _process_hit(index, hit, topic, cfg, fetcher, cancel_event, logger, clock)
                    for index, hit in batch
                )
            )
            for outcome in outcomes:
                if progress is not None and task_id is not None:
                    progress.advance(task_id, 1)
                if outcome is None:
                    continue
                report.attempted += 1
                _accept(outcome, report, seen_urls, max_articles, logger)
            if _is_cancelled(cancel_event) or any(outcome is None for outcome in outcomes):
                _mark_cancelled(report, logger)
                break
    finally:
        if owned is not None:
            await owned.aclose()
    return report


def _accept(
    outcome: HitOutcome,
    report: CollectionReport,
    seen_urls: set[str],
    max_articles: int,
    logger: logging.Logger,
) -> None:
    if outcome.error is not None:
        report.record_failure(outcome.error.category)
        log_event(
            logger,
            f"Skipped: {outcome.error}",
            level=logging.WARNING,
            event="hit_skipped",
            url=outcome.hit.url,
            title=outcome.hit.title,
            category=outcome.error.category,
        )
        return

    article = outcome.article
    if article is None:
        return
    urls = {article.url, outcome.final_url or article.url}
    if seen_urls & urls:
        report.record_failure("duplicate")
        log_event(logger, "Skipped duplicate page", event="hit_skipped", url=article.url, category="duplicate")
        return
    if report.accepted >= max_articles:
        return

    seen_urls.update(urls)
    report.articles.append(article)
    report.accepted += 1
    log_event(
        logger,
        f"Accepted: {article.title} ({article.metadata.word_count} words)",
        event="article_accepted",
        url=article.url,
        title=article.title,
        word_count=article.metadata.word_count,
        language=article.metadata.language,
    )


async def _process_hit(
    index: int,
    hit: SearchHit,
    topic: str,
    cfg: AppConfig,
    fetcher: Fetcher,
    cancel_event: CancelSignal | None,
    logger: logging.Logger,
    clock: Callable[[], datetime] | None,
) -> HitOutcome | None:
    """Fetch, extract and assemble one hit. Returns None if cancelled before the request."""
    if _is_cancelled(cancel_event):
        return None
    log_event(logger, f"Parsing: {hit.title}", level=logging.DEBUG, event="fetch_start", url=hit.url)
    try:
        result = await fetcher.fetch(hit.url, cancel_event=cancel_event)
        if result.error_kind == "cancelled":
            return None
        if not result.ok:
            _raise_fetch_error(hit.url, result)
        content = await asyncio.to_thread(
            extract_text,
            result.text or "",
            cfg.extract.primary,
            cfg.extract.fallback,
            hit.url,
        )
        if not content:
            raise ExtractionEmpty(hit.url, "no text could be extracted")
        if len(content) <= cfg.extract.min_content_chars:
            raise ContentTooShort(hit.url, f"only {len(content)} characters")
        article = build_article(hit, content, topic, clock)
        return HitOutcome(index=index, hit=hit, article=article, final_url=result.final_url)
    except HitError as exc:
        return HitOutcome(index=index, hit=hit, error=exc)
    except Exception as exc:  # noqa: BLE001
        return HitOutcome(index=index, hit=hit, error=HitError(hit.url, f"{type(exc).__name__}: {exc}"))


def _raise_fetch_error(url: str, result: FetchResult) -> None:
    message = f"{result.error} [{categorize_error(result.error, result.status_code)}]"
    if result.error_kind == "timeout":
        raise FetchTimeout(url, message)
    raise FetchFailure(url, message)


def build_article(
    hit: SearchHit,
    content: str,
    topic: str,
    clock: Callable[[], datetime] | None = None,
) -> ExtractedArticle:
    """Assemble an ExtractedArticle from an accepted hit."""
    derived = derive_metadata(content, topic, hit.snippet)
    now = clock() if clock else datetime.now(timezone.utc)
    return ExtractedArticle(
        title=clean_text(hit.title),
        content=content,
        url=hit.url,
        metadata=ArticleMetadata(
            topic=topic,
            source=extract_domain(hit.url),
            date_added=now,
            word_count=derived.word_count,
            keywords=derived.keywords,
            summary=derived.summary,
            language=derived.language,
        ),
    )


def _is_cancelled(cancel_event: Any) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def _mark_cancelled(report: CollectionReport, logger: logging.Logger) -> None:
    if report.cancelled:
        return
    report.cancelled = True
    log_event(
        logger,
        "Batch cancelled; no further pages will be fetched",
        level=logging.WARNING,
        event="batch_cancelled",
        attempted=report.attempted,
        accepted=report.accepted,
    )
