"""Export of collected articles for the persistence layer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from .core.types import ExtractedArticle

OUTPUT_FORMATS = ("jsonl", "json")


def write_articles(articles: Iterable[ExtractedArticle], path: Path, fmt: str = "jsonl") -> Path:
    """Write articles as JSON Lines or as a single JSON array.

    Args:
        articles: Articles to write, in order
        path: Destination file; parent directories are created
        fmt: "jsonl" or "json"

    Returns:
        The written path

    Raises:
        ValueError: If fmt is not supported
    """
    records = [article.to_dict() for article in articles]
    path.parent.mkdir(parents=True, exist_ok=True)
    if fmt == "jsonl":
        with path.open("w", encoding="utf-8") as handle:
            for record in records:
                handle.write(json.dumps(record, ensure_ascii=False))
                handle.write("\n")
    elif fmt == "json":
        path.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")
    else:
        raise ValueError(f"Unsupported output format {fmt!r}. Use 'jsonl' or 'json'.")
    return path
