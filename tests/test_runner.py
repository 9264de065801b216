from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import logging
import threading

import httpx

from article_harvest.config import AppConfig, FetchConfig
from article_harvest.core.types import CollectionReport, Engine, SearchHit
from article_harvest.fetch.fetcher import FetchResult, PageFetcher
from article_harvest.fetch.pacing import HostPacer
from article_harvest.runner import build_article, collect_articles, parse_hits
from article_harvest.search.aggregator import SearchAggregator

from conftest import FakeFetcher, FakeProvider, article_html, make_hits

LOGGER = logging.getLogger("tests.runner")
TOPIC = "quantum computing"
FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _config(concurrency: int = 2) -> AppConfig:
    cfg = AppConfig()
    cfg.fetch.concurrency = concurrency
    return cfg


def _aggregator(hits: list[SearchHit]) -> tuple[SearchAggregator, FakeProvider]:
    provider = FakeProvider(Engine.GOOGLE, hits=hits)
    return SearchAggregator([provider], logger=LOGGER), provider


def _collect(hits, fetcher, max_articles=3, concurrency=2, cancel_event=None):
    aggregator, provider = _aggregator(hits)
    report = collect_articles(
        TOPIC,
        _config(concurrency),
        max_articles=max_articles,
        aggregator=aggregator,
        fetcher=fetcher,
        cancel_event=cancel_event,
        logger=LOGGER,
        clock=lambda: FIXED_NOW,
    )
    return report, provider


def test_end_to_end_collects_requested_articles() -> None:
    """Five hits, three usable pages: exactly three articles come back."""
    hits = make_hits(5)
    pages = {hits[i].url: article_html(3) for i in (0, 2, 4)}
    pages.update({hits[i].url: article_html(1) for i in (1, 3)})
    fetcher = FakeFetcher(pages=pages)

    report, provider = _collect(hits, fetcher, max_articles=3)

    assert len(report.articles) == 3
    assert [a.url for a in report.articles] == [hits[0].url, hits[2].url, hits[4].url]
    assert len({a.url for a in report.articles}) == 3
    for article in report.articles:
        assert article.metadata.topic == TOPIC
        assert len(article.content) > 200
        assert article.metadata.source == "news.example.com"
        assert article.metadata.date_added == FIXED_NOW
        assert article.metadata.keywords[:2] == ("quantum", "computing")
    assert report.provider == "google"
    assert report.attempted == 5
    assert report.accepted == 3
    assert report.failures == {"content_too_short": 2}
    # The aggregator is asked for extra candidates
    assert provider.calls == [(TOPIC, 6)]


def test_stops_once_enough_articles_accepted() -> None:
    hits = make_hits(6)
    fetcher = FakeFetcher(pages={hit.url: article_html(3) for hit in hits})

    report, _ = _collect(hits, fetcher, max_articles=2, concurrency=2)

    assert report.accepted == 2
    assert fetcher.calls == [hits[0].url, hits[1].url]


def test_failures_are_isolated_and_counted() -> None:
    hits = make_hits(4)
    fetcher = FakeFetcher(
        pages={hits[3].url: article_html(3)},
        results={
            hits[0].url: FetchResult(
                url=hits[0].url,
                final_url=None,
                status_code=None,
                text=None,
                error="TimeoutError: read timed out",
                error_kind="timeout",
            )
        },
        errors={hits[1].url: RuntimeError("decoder crashed")},
    )

    report, _ = _collect(hits, fetcher, max_articles=3, concurrency=4)

    assert [a.url for a in report.articles] == [hits[3].url]
    assert report.failures == {"fetch_timeout": 1, "hit_error": 1, "fetch_failure": 1}
    assert report.attempted == 4


def test_content_gate_is_strict() -> None:
    hits = make_hits(2)
    fetcher = FakeFetcher(
        pages={
            hits[0].url: f"<html><body><p>{'a' * 200}</p></body></html>",
            hits[1].url: f"<html><body><p>{'a' * 201}</p></body></html>",
        }
    )

    report, _ = _collect(hits, fetcher, max_articles=2)

    assert [a.url for a in report.articles] == [hits[1].url]
    assert report.failures == {"content_too_short": 1}


def test_redirect_to_same_page_counts_as_duplicate() -> None:
    hits = make_hits(2)
    canonical = "https://news.example.com/canonical"
    fetcher = FakeFetcher(
        results={
            hit.url: FetchResult(url=hit.url, final_url=canonical, status_code=200, text=article_html(3))
            for hit in hits
        }
    )

    report, _ = _collect(hits, fetcher, max_articles=2)

    assert report.accepted == 1
    assert report.failures == {"duplicate": 1}


def test_output_order_follows_hit_order() -> None:
    hits = make_hits(4)
    # Later hits finish first
    delays = {hit.url: 0.01 * (len(hits) - i) for i, hit in enumerate(hits)}
    fetcher = FakeFetcher(pages={hit.url: article_html(3) for hit in hits}, delays=delays)

    report, _ = _collect(hits, fetcher, max_articles=4, concurrency=4)

    assert [a.url for a in report.articles] == [hit.url for hit in hits]


def test_cancellation_stops_new_fetches() -> None:
    hits = make_hits(5)
    cancel = threading.Event()
    fetcher = FakeFetcher(
        pages={hit.url: article_html(3) for hit in hits},
        on_fetch=lambda url: cancel.set(),
    )

    report, _ = _collect(hits, fetcher, max_articles=5, concurrency=1, cancel_event=cancel)

    assert report.cancelled
    assert fetcher.calls == [hits[0].url]
    assert report.attempted == 1
    assert report.accepted == 1


def test_cancellation_drops_fetches_waiting_for_host_slot() -> None:
    """Same-host hits queued behind the pacer are not requested once cancelled."""
    hits = make_hits(4)
    cancel = threading.Event()
    requested: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        await asyncio.sleep(0.05)
        cancel.set()
        return httpx.Response(200, text=article_html(3))

    async def run() -> CollectionReport:
        report = CollectionReport(topic=TOPIC, engine="auto")
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            fetcher = PageFetcher(FetchConfig(), pacer=HostPacer(0.2), client=client)
            await parse_hits(
                TOPIC,
                hits,
                report,
                _config(4),
                4,
                fetcher=fetcher,
                cancel_event=cancel,
                logger=LOGGER,
                clock=lambda: FIXED_NOW,
            )
        return report

    report = asyncio.run(run())

    assert requested == [hits[0].url]
    assert report.cancelled
    assert report.attempted == 1
    assert report.accepted == 1


def test_cancelled_before_start_fetches_nothing() -> None:
    cancel = threading.Event()
    cancel.set()
    fetcher = FakeFetcher()

    report, _ = _collect(make_hits(3), fetcher, cancel_event=cancel)

    assert report.cancelled
    assert report.no_results
    assert fetcher.calls == []


def test_no_hits_reports_no_results() -> None:
    fetcher = FakeFetcher()

    report, _ = _collect([], fetcher)

    assert report.no_results
    assert report.provider is None
    assert report.hits == 0
    assert fetcher.calls == []


def test_build_article_prefers_snippet_summary() -> None:
    hit = SearchHit(
        title="  Quantum   computing report ",
        url="https://www.example.com/q",
        snippet="Provider supplied summary",
    )
    article = build_article(hit, "Body text " * 40, TOPIC, clock=lambda: FIXED_NOW)

    assert article.title == "Quantum computing report"
    assert article.metadata.summary == "Provider supplied summary"
    assert article.metadata.source == "example.com"
    record = article.to_dict()
    assert record["metadata"]["wordCount"] == 80
    assert record["metadata"]["dateAdded"] == FIXED_NOW.isoformat()
