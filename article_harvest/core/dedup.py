"""
Search hit deduplication using URL matching and title edit distance.

This module removes duplicate hits based on:
1. Exact URL matches (canonical duplicates)
2. Title edit distance (the same story listed under slightly different titles)
"""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein

from .types import SearchHit


def dedup_hits(hits: list[SearchHit], distance_threshold: int = 3) -> list[SearchHit]:
    """Remove duplicate hits from a list.

    A hit is dropped when its URL equals the URL of an already kept hit, or
    when its title is within `distance_threshold` edits of a kept title.
    The first-seen hit of each duplicate group is kept.

    Args:
        hits: List of hits in provider order
        distance_threshold: Titles with a Levenshtein distance strictly below
                            this value are duplicates. Default 3.

    Returns:
        Deduplicated list of hits, preserving original order
    """
    seen_urls: set[str] = set()
    kept: list[SearchHit] = []
    titles: list[str] = []

    for hit in hits:
        # Skip if we've seen this exact URL
        if hit.url in seen_urls:
            continue
        title = hit.title.casefold()
        # Skip if title is a near-duplicate of any kept hit
        if _is_near_duplicate(title, titles, distance_threshold):
            continue
        seen_urls.add(hit.url)
        titles.append(title)
        kept.append(hit)

    return kept


def _is_near_duplicate(title: str, titles: list[str], threshold: int) -> bool:
    """Check if a title is within `threshold` edits of any title in the list.

    The score_cutoff lets rapidfuzz stop early once the distance is known
    to exceed the cutoff.
    """
    for existing in titles:
        if Levenshtein.distance(title, existing, score_cutoff=threshold) < threshold:
            return True
    return False
