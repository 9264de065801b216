"""
Search hit validation.

Every provider adapter, and the aggregator after it, runs hits through the
same validity predicate. The rules live in plain tables so they can be
tested and extended without touching control flow:
- EXCLUDED_DOMAINS: search surfaces and social platforms that never carry
  article bodies
- BOILERPLATE_TITLES: generic page titles that indicate a non-article page
"""

from __future__ import annotations

import html
import re
from typing import Iterable
from urllib.parse import urlparse

from .types import SearchHit


EXCLUDED_DOMAINS: frozenset[str] = frozenset(
    {
        # Search surfaces
        "google.com",
        "googleapis.com",
        "bing.com",
        "duckduckgo.com",
        "yandex.ru",
        "serpapi.com",
        # Social platforms and video hosts
        "facebook.com",
        "twitter.com",
        "x.com",
        "instagram.com",
        "linkedin.com",
        "pinterest.com",
        "tiktok.com",
        "vk.com",
        "ok.ru",
        "t.me",
        "youtube.com",
        "youtu.be",
        "reddit.com",
    }
)

BOILERPLATE_TITLES: frozenset[str] = frozenset(
    {
        "home",
        "home page",
        "homepage",
        "login",
        "log in",
        "sign in",
        "sign up",
        "register",
        "404",
        "404 not found",
        "not found",
        "page not found",
        "error",
        "access denied",
        "forbidden",
        "index",
        "untitled",
        "главная",
        "вход",
        "регистрация",
        "страница не найдена",
    }
)

_WS_RE = re.compile(r"\s+")
_TRAILING_PUNCT = " .,:;!?|-–—"


def clean_text(text: str | None) -> str:
    """Collapse whitespace and decode HTML entities."""
    if not text:
        return ""
    return html.unescape(_WS_RE.sub(" ", text)).strip()


def extract_domain(url: str) -> str:
    """Return the lower-cased host of a URL without a leading "www."."""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return "unknown"
    if not host:
        return "unknown"
    return host.lower().removeprefix("www.")


def is_excluded_domain(url: str, excluded_domains: Iterable[str] = ()) -> bool:
    host = extract_domain(url)
    domains = EXCLUDED_DOMAINS.union(d.lower().removeprefix("www.") for d in excluded_domains)
    return any(host == domain or host.endswith("." + domain) for domain in domains)


def is_boilerplate_title(title: str) -> bool:
    normalized = clean_text(title).lower().strip(_TRAILING_PUNCT)
    return normalized in BOILERPLATE_TITLES


def is_valid_hit(
    hit: SearchHit,
    excluded_domains: Iterable[str] = (),
    min_title: int = 5,
    max_title: int = 200,
) -> bool:
    """Check whether a hit is worth fetching.

    Args:
        hit: The candidate hit
        excluded_domains: Extra domains to reject in addition to EXCLUDED_DOMAINS
        min_title: Minimum title length in characters
        max_title: Maximum title length in characters

    Returns:
        True if the title length is within bounds, the URL uses a web scheme,
        the host is not excluded and the title is not boilerplate
    """
    title = (hit.title or "").strip()
    if not (min_title <= len(title) <= max_title):
        return False
    url = (hit.url or "").strip()
    if not url.lower().startswith(("http://", "https://")):
        return False
    if is_excluded_domain(url, excluded_domains):
        return False
    if is_boilerplate_title(title):
        return False
    return True


def filter_valid_hits(
    hits: Iterable[SearchHit],
    excluded_domains: Iterable[str] = (),
    min_title: int = 5,
    max_title: int = 200,
) -> list[SearchHit]:
    """Drop invalid hits, preserving order."""
    excluded = tuple(excluded_domains)
    return [
        hit
        for hit in hits
        if is_valid_hit(hit, excluded, min_title=min_title, max_title=max_title)
    ]
