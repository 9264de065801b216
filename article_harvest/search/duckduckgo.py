"""DuckDuckGo HTML (no-JavaScript) results page provider."""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qs, urlparse

from ..core.types import Engine
from .base import ScrapeSearchProvider, SelectorRule


DUCKDUCKGO_HTML_URL = "https://html.duckduckgo.com/html/"


class DuckDuckGoSearchProvider(ScrapeSearchProvider):
    engine = Engine.DUCKDUCKGO
    name = "duckduckgo"
    base_url = "https://duckduckgo.com/"
    surface_domains = ("duckduckgo.com",)

    PRIMARY_RULES = (
        SelectorRule("div.result:not(.result--ad)", "a.result__a", ".result__snippet"),
    )
    SECONDARY_RULES = (
        SelectorRule("div.links_main", "a[href]", ".result__snippet"),
        # Lite layout: one table row per field
        SelectorRule("table tr", "a.result-link", None),
    )

    def build_request(self, query: str, max_results: int) -> tuple[str, dict[str, Any]]:
        return DUCKDUCKGO_HTML_URL, {"q": query}

    def unwrap_url(self, href: str) -> str | None:
        """Strip the "/l/?uddg=<target>" click-through wrapper.

        Ad redirects ("/y.js") are dropped.
        """
        parsed = urlparse(href)
        host = (parsed.hostname or "").lower()
        if host.endswith("duckduckgo.com"):
            if parsed.path.startswith("/l/"):
                target = parse_qs(parsed.query).get("uddg")
                return target[0] if target else None
            return None
        return href
