"""
HTML content extraction with multiple strategies.

This module provides a chain of extraction methods:
1. selectors: Ranked structural selectors, longest candidate wins (default)
2. trafilatura: Purpose-built main-content extraction
3. readability: Mozilla's readability algorithm
4. bs4: BeautifulSoup plain text of the whole page

Every method returns single-line text or None. Entities are decoded once,
by the HTML parser. Missing markup
never raises; a page without matching nodes simply yields less text.
"""

from __future__ import annotations

import html as html_lib
import re
from typing import Callable, Iterable

from bs4 import BeautifulSoup
import trafilatura
from readability import Document


# Subtrees that never contain article body text
STRIP_TAGS: tuple[str, ...] = ("script", "style", "noscript", "nav", "header", "footer", "aside")

# Candidate body selectors in evaluation order: (css selector, minimum node text length
# for the node to be selected at all). Every selector is evaluated; the longest
# concatenation wins.
CONTENT_SELECTORS: tuple[tuple[str, int], ...] = (
    ("article p", 0),
    ("div[class*='content'] p", 0),
    ("div[class*='article'] p", 0),
    ("div[class*='text'] p", 0),
    ("div[class*='body'] p", 0),
    ("main p", 0),
    ("p", 50),
)

# Node texts at or below this length are dropped before concatenation
MIN_NODE_TEXT = 30

_WS_RE = re.compile(r"\s+")


def normalize_text(text: str | None) -> str:
    """Collapse whitespace, decode HTML entities and trim."""
    if not text:
        return ""
    return collapse_whitespace(html_lib.unescape(text))


def collapse_whitespace(text: str | None) -> str:
    """Collapse whitespace and trim.

    Extractor output comes from a parsed tree whose entities are already
    decoded, so it must not be unescaped a second time.
    """
    if not text:
        return ""
    return _WS_RE.sub(" ", text).strip()


def extract_text(
    html: str,
    primary: str = "selectors",
    fallback: Iterable[str] = (),
    url: str | None = None,
) -> str | None:
    """Extract plain text from HTML using a chain of extractors.

    Tries each extraction method in order until one produces non-empty
    output.

    Args:
        html: The HTML content to extract text from
        primary: Name of the primary extraction method to try first
        fallback: Method names to try if primary yields nothing
        url: Source URL, kept for provenance only

    Returns:
        Normalized text, or None if all methods fail

    Examples:
        >>> extract_text(html, "selectors", ["trafilatura"])
        "Article content here..."
    """
    if not html or not html.strip():
        return None
    order = [primary] + [name for name in fallback if name != primary]
    for method in order:
        extractor = _get_extractor(method)
        if not extractor:
            continue
        text = collapse_whitespace(extractor(html))
        if text:
            return text
    return None


def available_methods() -> list[str]:
    return list(_EXTRACTORS)


def _get_extractor(name: str) -> Callable[[str], str | None] | None:
    return _EXTRACTORS.get(name)


def extract_selectors(html: str) -> str | None:
    """Extract body text by evaluating CONTENT_SELECTORS.

    Non-content subtrees are removed first. For each selector the texts of
    the matching nodes longer than MIN_NODE_TEXT are joined with single
    spaces, and the longest result across all selectors is kept. If no
    selector yields text, the whole page's visible text is used.
    """
    soup = BeautifulSoup(html, "html.parser")
    _strip_non_content(soup)

    best = ""
    for selector, min_node_chars in CONTENT_SELECTORS:
        texts = []
        for node in soup.select(selector):
            text = node.get_text(" ", strip=True)
            if min_node_chars and len(text) <= min_node_chars:
                continue
            if len(text) > MIN_NODE_TEXT:
                texts.append(text)
        candidate = " ".join(texts).strip()
        if len(candidate) > len(best):
            best = candidate

    if not best:
        # Last resort: all visible text
        best = soup.get_text(" ", strip=True)

    cleaned = collapse_whitespace(best)
    return cleaned or None


def _strip_non_content(soup: BeautifulSoup) -> None:
    for tag in soup(list(STRIP_TAGS)):
        tag.decompose()


def _extract_trafilatura(html: str) -> str | None:
    """Extract article content using trafilatura."""
    return trafilatura.extract(html)


def _extract_readability(html: str) -> str | None:
    """Extract article content using Mozilla's readability algorithm.

    Readability returns simplified HTML which is converted to text with bs4.
    """
    doc = Document(html)
    content_html = doc.summary()
    return _extract_bs4(content_html)


def _extract_bs4(html: str) -> str | None:
    """Extract the plain text of the whole page using BeautifulSoup."""
    soup = BeautifulSoup(html, "html.parser")
    _strip_non_content(soup)
    text = soup.get_text(separator=" ", strip=True)
    return text if text else None


_EXTRACTORS: dict[str, Callable[[str], str | None]] = {
    "selectors": extract_selectors,
    "trafilatura": _extract_trafilatura,
    "readability": _extract_readability,
    "bs4": _extract_bs4,
}
