"""
Metadata derivation from extracted article text.

derive_metadata is a pure function of (text, topic, snippet): the same
input always yields the same DerivedMetadata. Collection-time fields
(source host, timestamp) are added by the runner.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
import re


MAX_KEYWORDS = 10
CONTENT_KEYWORDS = 5
MIN_TOPIC_WORD = 3
MIN_CONTENT_WORD = 4
SUMMARY_MAX_CHARS = 300
SUMMARY_SENTENCES = 2
SUMMARY_MIN_SENTENCE = 50

STOP_WORDS: frozenset[str] = frozenset(
    {
        # Russian
        "который", "которая", "которые", "которого", "которой", "этого", "этом",
        "этой", "была", "было", "были", "будет", "есть", "для", "как", "что",
        "чтобы", "или", "также", "если", "когда", "где", "так", "только",
        "более", "может", "очень", "после", "между", "через", "свой", "своей",
        # English
        "that", "this", "with", "from", "have", "were", "been", "will", "would",
        "there", "their", "they", "them", "what", "when", "where", "which",
        "while", "about", "into", "than", "then", "also", "such", "some",
        "more", "most", "other", "these", "those", "over", "only", "your",
        "said", "each", "very", "just", "like", "does", "could", "should",
    }
)

# Runs of letters only: no digits, no underscores
_WORD_RE = re.compile(r"\b[^\W\d_]{%d,}\b" % MIN_CONTENT_WORD)
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]")
_CYRILLIC_RE = re.compile(r"[\u0400-\u04FF]")


@dataclass(frozen=True)
class DerivedMetadata:
    word_count: int
    keywords: tuple[str, ...]
    language: str
    summary: str


def derive_metadata(text: str, topic: str, snippet: str | None = None) -> DerivedMetadata:
    """Compute word count, keywords, language and summary for an article.

    Args:
        text: Extracted article text
        topic: The topic the article was collected for
        snippet: Search snippet; reused as the summary when present

    Returns:
        DerivedMetadata for the article
    """
    summary = snippet.strip() if snippet and snippet.strip() else generate_summary(text)
    return DerivedMetadata(
        word_count=count_words(text),
        keywords=extract_keywords(text, topic),
        language=detect_language(text),
        summary=summary,
    )


def count_words(text: str) -> int:
    return len(text.split())


def extract_keywords(text: str, topic: str) -> tuple[str, ...]:
    """Build the keyword list for an article.

    Topic words longer than two characters come first, followed by the
    most frequent content words (at least four letters, not stop words).
    Duplicates are dropped and the result is capped at MAX_KEYWORDS.
    """
    keywords: dict[str, None] = {}
    for word in topic.split():
        if len(word) >= MIN_TOPIC_WORD:
            keywords.setdefault(word.lower(), None)

    counts = Counter(
        word for word in _WORD_RE.findall(text.lower()) if word not in STOP_WORDS
    )
    for word, _count in counts.most_common(CONTENT_KEYWORDS):
        keywords.setdefault(word, None)

    return tuple(keywords)[:MAX_KEYWORDS]


def detect_language(text: str) -> str:
    """Return "ru" when more than half of the letters are Cyrillic, else "en"."""
    letters = [ch for ch in text if ch.isalpha()]
    if not letters:
        return "en"
    cyrillic = sum(1 for ch in letters if _CYRILLIC_RE.match(ch))
    return "ru" if cyrillic / len(letters) > 0.5 else "en"


def generate_summary(text: str) -> str:
    """Join the first two long sentences, truncated to SUMMARY_MAX_CHARS."""
    if not text:
        return ""
    sentences = [
        part.strip()
        for part in _SENTENCE_SPLIT_RE.split(text)
        if len(part.strip()) > SUMMARY_MIN_SENTENCE
    ][:SUMMARY_SENTENCES]
    summary = ". ".join(sentences).strip()
    if len(summary) > SUMMARY_MAX_CHARS:
        return summary[:SUMMARY_MAX_CHARS] + "..."
    return summary
