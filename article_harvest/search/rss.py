"""RSS feed provider: keyword match over a fixed list of news feeds."""

from __future__ import annotations

import logging
import random
import time
from typing import Callable

from bs4 import BeautifulSoup
import feedparser
import httpx

from ..config import ProvidersConfig, ValidationConfig
from ..core.types import Engine, SearchHit
from ..core.validate import clean_text
from ..errors import ProviderBadResponse, ProviderError, ProviderUnavailable
from ..logging_utils import log_event
from .base import SearchProvider, query_tokens

logger = logging.getLogger(__name__)


class RssSearchProvider(SearchProvider):
    """Scan configured feeds for entries mentioning the query.

    An entry matches when its title or description contains any query
    word. Feeds are read in order until enough hits are gathered. A feed
    that fails is logged and skipped; only if every feed fails does the
    provider raise.
    """

    engine = Engine.RSS
    name = "rss"
    kind = "scrape"

    def __init__(
        self,
        client: httpx.Client,
        providers_cfg: ProvidersConfig,
        validation: ValidationConfig | None = None,
        timeout: float = 15.0,
        delay: float = 0.5,
        jitter: float = 0.0,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(client, validation, timeout)
        self.feeds = list(providers_cfg.rss_feeds)
        self.items_per_feed = providers_cfg.rss_items_per_feed
        self.delay = max(0.0, delay)
        self.jitter = max(0.0, jitter)
        self._rng = rng or random.Random()
        self._sleep = sleep

    def search(self, query: str, max_results: int) -> list[SearchHit]:
        if not self.feeds:
            raise ProviderUnavailable(self.name, "no feeds configured")
        # Very short words ("в", "of") would match almost every entry
        words = query_tokens(query) or query_tokens(query, min_len=1)

        hits: list[SearchHit] = []
        failed = 0
        for feed_url in self.feeds:
            try:
                hits.extend(self._scan_feed(feed_url, words))
            except ProviderError as exc:
                failed += 1
                log_event(
                    logger,
                    "RSS feed failed",
                    level=logging.WARNING,
                    event="rss_feed_failed",
                    feed=feed_url,
                    error=str(exc),
                )
                continue
            valid = self.validate(hits)
            if len(valid) >= max_results:
                return valid

        if failed == len(self.feeds):
            raise ProviderUnavailable(self.name, "all feeds failed")
        return self.validate(hits)

    def _scan_feed(self, feed_url: str, words: set[str]) -> list[SearchHit]:
        if self.delay or self.jitter:
            self._sleep(self.delay + (self._rng.uniform(0.0, self.jitter) if self.jitter else 0.0))
        resp = self._get(feed_url)
        feed = feedparser.parse(resp.content)
        if feed.bozo and not feed.entries:
            raise ProviderBadResponse(self.name, f"unparseable feed {feed_url}")

        hits = []
        for entry in feed.entries[: self.items_per_feed]:
            title = clean_text(entry.get("title"))
            link = (entry.get("link") or "").strip()
            if not title or not link:
                continue
            description = _strip_markup(entry.get("summary") or entry.get("description") or "")
            haystack = f"{title} {description}".lower()
            if not any(word in haystack for word in words):
                continue
            hits.append(SearchHit(title=title, url=link, snippet=description or None))
        return hits


def _strip_markup(text: str) -> str:
    if "<" not in text:
        return clean_text(text)
    return clean_text(BeautifulSoup(text, "html.parser").get_text(" ", strip=True))
