from article_harvest.core.dedup import dedup_hits
from article_harvest.core.types import SearchHit


def test_same_url_keeps_first() -> None:
    hits = [
        SearchHit(title="Quantum computing today", url="https://example.com/a"),
        SearchHit(title="A completely different headline", url="https://example.com/a"),
    ]
    kept = dedup_hits(hits)
    assert kept == [hits[0]]


def test_near_duplicate_titles_collapse() -> None:
    hits = [
        SearchHit(title="Machine Learning Basics", url="https://a.example.com/ml"),
        SearchHit(title="Machine Learning Basic", url="https://b.example.com/ml"),
    ]
    kept = dedup_hits(hits)
    assert len(kept) == 1
    assert kept[0].url == "https://a.example.com/ml"


def test_title_comparison_ignores_case() -> None:
    hits = [
        SearchHit(title="Quantum Computing Breakthrough", url="https://a.example.com/1"),
        SearchHit(title="quantum computing breakthrough", url="https://b.example.com/2"),
    ]
    assert len(dedup_hits(hits)) == 1


def test_distance_at_threshold_is_kept() -> None:
    hits = [
        SearchHit(title="Quantum news abc", url="https://a.example.com/1"),
        SearchHit(title="Quantum news xyz", url="https://b.example.com/2"),
    ]
    # Three substitutions: not strictly below the threshold of 3
    assert len(dedup_hits(hits, distance_threshold=3)) == 2
    assert len(dedup_hits(hits, distance_threshold=4)) == 1


def test_order_preserved_for_distinct_hits() -> None:
    hits = [
        SearchHit(title=f"Distinct headline about topic {word}", url=f"https://example.com/{word}")
        for word in ("alpha", "bravo", "charlie")
    ]
    assert dedup_hits(hits) == hits
