from __future__ import annotations

import asyncio

from article_harvest.core.types import Engine, SearchHit
from article_harvest.errors import ProviderError
from article_harvest.fetch.fetcher import FetchResult
from article_harvest.search.base import SearchProvider

PARAGRAPH = (
    "Quantum computers manipulate qubits that hold superpositions of states, "
    "which lets certain algorithms explore many possibilities at once."
)


def article_html(paragraphs: int = 3, paragraph: str = PARAGRAPH) -> str:
    body = "".join(f"<p>{paragraph}</p>" for _ in range(paragraphs))
    return (
        "<html><head><title>Article</title></head><body>"
        "<nav>Home | News | Sport | Contacts and other navigation links</nav>"
        f"<article>{body}</article>"
        "<footer>Copyright notice repeated on every single page of the site</footer>"
        "</body></html>"
    )


def make_hits(count: int, domain: str = "news.example.com") -> list[SearchHit]:
    return [
        SearchHit(
            # Titles must stay apart under the edit-distance dedup
            title=f"Quantum computing report {chr(ord('A') + i) * 4}",
            url=f"https://{domain}/story/{i}",
            snippet=None,
        )
        for i in range(count)
    ]


class FakeProvider(SearchProvider):
    """In-memory provider; records every query it receives."""

    def __init__(
        self,
        engine: Engine,
        hits: list[SearchHit] | None = None,
        error: Exception | None = None,
        kind: str = "api",
        missing: list[str] | None = None,
    ) -> None:
        super().__init__(client=None)
        self.engine = engine
        self.name = engine.value
        self.kind = kind
        self.hits = hits or []
        self.error = error
        self.missing = missing or []
        self.calls: list[tuple[str, int]] = []

    def missing_credentials(self) -> list[str]:
        return list(self.missing)

    def search(self, query: str, max_results: int) -> list[SearchHit]:
        self.calls.append((query, max_results))
        if self.error is not None:
            raise self.error
        return self.validate(self.hits)


class FailingProvider(FakeProvider):
    def __init__(self, engine: Engine, message: str = "boom", kind: str = "api") -> None:
        super().__init__(engine, error=ProviderError(engine.value, message), kind=kind)


class FakeFetcher:
    """Serves canned pages by URL.

    Unknown URLs produce an HTTP 404 result. `delays` maps a URL to the
    number of seconds its fetch sleeps, to shuffle completion order.
    """

    def __init__(
        self,
        pages: dict[str, str] | None = None,
        results: dict[str, FetchResult] | None = None,
        errors: dict[str, Exception] | None = None,
        delays: dict[str, float] | None = None,
        on_fetch=None,
    ) -> None:
        self.pages = pages or {}
        self.results = results or {}
        self.errors = errors or {}
        self.delays = delays or {}
        self.on_fetch = on_fetch
        self.calls: list[str] = []

    async def fetch(self, url: str, cancel_event=None) -> FetchResult:
        self.calls.append(url)
        if self.on_fetch is not None:
            self.on_fetch(url)
        if url in self.delays:
            await asyncio.sleep(self.delays[url])
        if url in self.errors:
            raise self.errors[url]
        if url in self.results:
            return self.results[url]
        if url in self.pages:
            return FetchResult(url=url, final_url=url, status_code=200, text=self.pages[url])
        return FetchResult(
            url=url,
            final_url=url,
            status_code=404,
            text=None,
            error="HTTP 404",
            error_kind="http_status",
        )
