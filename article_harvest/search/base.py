"""
Abstract base classes for search providers.

Every provider maps (query, max_results) to a list of validated SearchHit
objects or raises ProviderError. Two families share most of their plumbing:
- ApiSearchProvider: credentialed JSON APIs, one GET per search
- ScrapeSearchProvider: anonymous HTML search pages parsed with ordered
  selector tables, paced before every request

To add a new provider:
1. Inherit from ApiSearchProvider or ScrapeSearchProvider
2. Implement search() (API) or the rule tables and unwrap_url() (scrape)
3. Register a ProviderSpec in search/factory.py
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
import random
import re
import time
from typing import Any, Callable
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
import httpx

from ..config import ValidationConfig
from ..core.types import Engine, SearchHit
from ..core.validate import clean_text, filter_valid_hits
from ..errors import ProviderBadResponse, ProviderUnavailable
from ..logging_utils import log_event

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+")


def query_tokens(query: str, min_len: int = 3) -> set[str]:
    """Lower-cased word tokens of a query, ignoring very short words."""
    return {token for token in _TOKEN_RE.findall(query.lower()) if len(token) >= min_len}


class SearchProvider(ABC):
    """Common capability interface of all search providers.

    Attributes:
        engine: Engine enum member this provider implements
        name: Human-readable provider name used in logs and errors
        kind: "api" for credentialed providers, "scrape" for anonymous ones
        surface_domains: Domains of the search surface itself, never valid hits
    """

    engine: Engine
    name: str
    kind: str
    surface_domains: tuple[str, ...] = ()

    def __init__(
        self,
        client: httpx.Client,
        validation: ValidationConfig | None = None,
        timeout: float = 15.0,
    ):
        self.client = client
        self.validation = validation or ValidationConfig()
        self.timeout = timeout

    def missing_credentials(self) -> list[str]:
        """Return the names of required credentials that are not set."""
        return []

    @property
    def is_configured(self) -> bool:
        return not self.missing_credentials()

    @abstractmethod
    def search(self, query: str, max_results: int) -> list[SearchHit]:
        """Search for a query.

        Args:
            query: Free-text query, usually the collection topic
            max_results: Number of hits the caller wants

        Returns:
            Validated hits in provider order; max_results is a request hint
            and the aggregator applies the final cap

        Raises:
            ProviderUnavailable: Credentials missing or the provider is unreachable
            ProviderBadResponse: The provider answered with an error or garbage
        """
        raise NotImplementedError

    def validate(self, hits: list[SearchHit]) -> list[SearchHit]:
        """Apply the hit validity predicate with this provider's own exclusions.

        Nothing is capped here; the aggregator trims after deduplication.
        """
        return filter_valid_hits(
            hits,
            excluded_domains=self.surface_domains + tuple(self.validation.excluded_domains),
            min_title=self.validation.min_title_chars,
            max_title=self.validation.max_title_chars,
        )

    def _get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Issue one GET and map transport failures onto ProviderError."""
        try:
            resp = self.client.get(url, params=params, headers=headers, timeout=self.timeout)
        except httpx.TimeoutException as exc:
            raise ProviderUnavailable(self.name, f"timeout: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ProviderUnavailable(self.name, f"{type(exc).__name__}: {exc}") from exc
        if not resp.is_success:
            raise ProviderBadResponse(self.name, f"HTTP {resp.status_code}")
        return resp


class ApiSearchProvider(SearchProvider):
    """Base for credentialed JSON search APIs."""

    kind = "api"

    def _require_credentials(self) -> None:
        missing = self.missing_credentials()
        if missing:
            raise ProviderUnavailable(self.name, f"missing credentials: {', '.join(missing)}")

    def _get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        resp = self._get(url, params=params)
        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderBadResponse(self.name, f"malformed JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ProviderBadResponse(self.name, "unexpected JSON payload")
        return data


@dataclass(frozen=True)
class SelectorRule:
    """How to read results from one layout of a search results page.

    Attributes:
        container: CSS selector of one result block
        link: CSS selector of the result anchor inside the block
        snippet: Optional CSS selector of the description inside the block
    """
    container: str
    link: str
    snippet: str | None = None


class ScrapeSearchProvider(SearchProvider):
    """Base for anonymous HTML search surfaces.

    Results are read with PRIMARY_RULES; if they yield nothing,
    SECONDARY_RULES are tried, and finally any outbound link whose anchor
    text shares at least `overlap_min_tokens` tokens with the query.
    """

    kind = "scrape"
    base_url: str = ""
    PRIMARY_RULES: tuple[SelectorRule, ...] = ()
    SECONDARY_RULES: tuple[SelectorRule, ...] = ()

    def __init__(
        self,
        client: httpx.Client,
        validation: ValidationConfig | None = None,
        timeout: float = 15.0,
        delay: float = 1.0,
        jitter: float = 0.0,
        overlap_min_tokens: int = 1,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(client, validation, timeout)
        self.delay = max(0.0, delay)
        self.jitter = max(0.0, jitter)
        self.overlap_min_tokens = max(1, overlap_min_tokens)
        self._rng = rng or random.Random()
        self._sleep = sleep

    def pause(self) -> float:
        """Sleep for the pacing delay plus random jitter before a request."""
        seconds = self.delay + (self._rng.uniform(0.0, self.jitter) if self.jitter else 0.0)
        if seconds > 0:
            self._sleep(seconds)
        return seconds

    @abstractmethod
    def build_request(self, query: str, max_results: int) -> tuple[str, dict[str, Any]]:
        """Return (url, params) of the results page request."""
        raise NotImplementedError

    def unwrap_url(self, href: str) -> str | None:
        """Recover the real target from a provider click-through link.

        Returns None for links that should be ignored.
        """
        return href

    def search(self, query: str, max_results: int) -> list[SearchHit]:
        url, params = self.build_request(query, max_results)
        self.pause()
        resp = self._get(url, params=params)
        hits = self.parse_results(resp.text, query)
        return self.validate(hits)

    def parse_results(self, html: str, query: str) -> list[SearchHit]:
        """Parse a results page, falling through the rule tables."""
        soup = BeautifulSoup(html, "html.parser")
        for stage, rules in (("primary", self.PRIMARY_RULES), ("secondary", self.SECONDARY_RULES)):
            hits = self._apply_rules(soup, rules)
            if hits:
                return hits
            log_event(
                logger,
                "No results from selector set",
                level=logging.DEBUG,
                event="selector_set_empty",
                provider=self.name,
                stage=stage,
            )
        return self._overlap_links(soup, query)

    def _apply_rules(self, soup: BeautifulSoup, rules: tuple[SelectorRule, ...]) -> list[SearchHit]:
        hits: list[SearchHit] = []
        for rule in rules:
            for block in soup.select(rule.container):
                anchor = block.select_one(rule.link)
                if anchor is None:
                    continue
                hit = self._hit_from_anchor(anchor, block, rule.snippet)
                if hit is not None:
                    hits.append(hit)
            if hits:
                break
        return hits

    def _hit_from_anchor(self, anchor: Tag, block: Tag | None, snippet_selector: str | None) -> SearchHit | None:
        href = anchor.get("href")
        if not href or not isinstance(href, str):
            return None
        target = self.unwrap_url(urljoin(self.base_url, href.strip()))
        if not target:
            return None
        title = clean_text(anchor.get_text(" ", strip=True))
        snippet = None
        if block is not None and snippet_selector:
            node = block.select_one(snippet_selector)
            if node is not None:
                snippet = clean_text(node.get_text(" ", strip=True)) or None
        return SearchHit(title=title, url=target, snippet=snippet)

    def _overlap_links(self, soup: BeautifulSoup, query: str) -> list[SearchHit]:
        """Last resort: any outbound link whose anchor text overlaps the query."""
        wanted = query_tokens(query)
        if not wanted:
            return []
        hits: list[SearchHit] = []
        for anchor in soup.find_all("a", href=True):
            text_tokens = query_tokens(anchor.get_text(" ", strip=True))
            if len(wanted & text_tokens) < min(self.overlap_min_tokens, len(wanted)):
                continue
            hit = self._hit_from_anchor(anchor, None, None)
            if hit is not None:
                hits.append(hit)
        if hits:
            log_event(
                logger,
                "Fell back to query-overlap links",
                event="overlap_fallback",
                provider=self.name,
                count=len(hits),
            )
        return hits
