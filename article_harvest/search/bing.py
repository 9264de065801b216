"""Bing web results page provider."""

from __future__ import annotations

import base64
import binascii
from typing import Any
from urllib.parse import parse_qs, urlparse

from ..core.types import Engine
from .base import ScrapeSearchProvider, SelectorRule


BING_SEARCH_URL = "https://www.bing.com/search"
# Bing returns at most 50 results per page
BING_MAX_COUNT = 50


class BingSearchProvider(ScrapeSearchProvider):
    engine = Engine.BING
    name = "bing"
    base_url = "https://www.bing.com/"
    surface_domains = ("bing.com", "microsoft.com", "msn.com")

    PRIMARY_RULES = (
        SelectorRule("li.b_algo", "h2 a", ".b_caption p, p.b_lineclamp2, p.b_algoSlug"),
    )
    SECONDARY_RULES = (
        SelectorRule("#b_results > li", "h2 a, a[href]", "p"),
    )

    def build_request(self, query: str, max_results: int) -> tuple[str, dict[str, Any]]:
        return BING_SEARCH_URL, {"q": query, "count": max(1, min(max_results, BING_MAX_COUNT))}

    def unwrap_url(self, href: str) -> str | None:
        """Decode "/ck/a?...&u=a1<base64url>" click-through links.

        Other links back into bing.com are dropped.
        """
        parsed = urlparse(href)
        host = (parsed.hostname or "").lower()
        if not host.endswith("bing.com"):
            return href
        if not parsed.path.startswith("/ck/"):
            return None
        values = parse_qs(parsed.query).get("u")
        if not values:
            return None
        return decode_bing_target(values[0])


def decode_bing_target(value: str) -> str | None:
    """Decode the "u" parameter of a Bing click-through link.

    The value is "a1" followed by the target URL in unpadded base64url.
    """
    if value.startswith("a1"):
        value = value[2:]
    padded = value + "=" * (-len(value) % 4)
    try:
        decoded = base64.urlsafe_b64decode(padded).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    if not decoded.startswith(("http://", "https://")):
        return None
    return decoded
