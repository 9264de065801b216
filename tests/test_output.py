from datetime import datetime, timezone
import json
import logging
from pathlib import Path

import pytest

from article_harvest.config import LoggingConfig
from article_harvest.core.types import ArticleMetadata, ExtractedArticle
from article_harvest.logging_utils import log_event, setup_logging
from article_harvest.output import write_articles


def _article(url: str, title: str = "Квантовый компьютер") -> ExtractedArticle:
    return ExtractedArticle(
        title=title,
        content="Текст статьи " * 30,
        url=url,
        metadata=ArticleMetadata(
            topic="квантовые вычисления",
            source="example.com",
            date_added=datetime(2024, 5, 1, tzinfo=timezone.utc),
            word_count=60,
            keywords=("квантовые", "вычисления"),
            summary="Краткое описание",
            language="ru",
        ),
    )


def test_write_jsonl(tmp_path: Path) -> None:
    path = write_articles([_article("https://example.com/1"), _article("https://example.com/2")], tmp_path / "out" / "a.jsonl")
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    record = json.loads(lines[0])
    assert record["title"] == "Квантовый компьютер"
    assert record["metadata"]["dateAdded"] == "2024-05-01T00:00:00+00:00"
    assert record["metadata"]["keywords"] == ["квантовые", "вычисления"]
    # Non-ASCII text is written as-is
    assert "Квантовый" in lines[0]


def test_write_json_array(tmp_path: Path) -> None:
    path = write_articles([_article("https://example.com/1")], tmp_path / "a.json", fmt="json")
    data = json.loads(path.read_text(encoding="utf-8"))
    assert isinstance(data, list)
    assert data[0]["url"] == "https://example.com/1"


def test_unknown_format(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        write_articles([], tmp_path / "a.csv", fmt="csv")


def test_jsonl_run_log(tmp_path: Path) -> None:
    cfg = LoggingConfig(level="INFO", console=False, file=True, format="jsonl", filename="run.jsonl")
    logger = setup_logging(cfg, tmp_path)
    try:
        log_event(logger, "Accepted article", event="article_accepted", url="https://example.com/1")
        log_event(logger, "hidden", level=logging.DEBUG, event="fetch_start")
    finally:
        for handler in logger.handlers:
            handler.close()
        logger.handlers = []

    lines = (tmp_path / "run.jsonl").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert record["event"] == "article_accepted"
    assert record["url"] == "https://example.com/1"
    assert record["level"] == "INFO"
    assert record["message"] == "Accepted article"
