from datetime import datetime, timezone
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from article_harvest import cli
from article_harvest.core.types import ArticleMetadata, CollectionReport, ExtractedArticle
from article_harvest.errors import ConfigurationError, ProviderUnavailable

runner = CliRunner()


def _report(topic: str, with_article: bool = True) -> CollectionReport:
    report = CollectionReport(topic=topic, engine="auto", provider="duckduckgo", hits=2, attempted=2)
    if with_article:
        report.articles.append(
            ExtractedArticle(
                title="Quantum computing report",
                content="Qubits " * 60,
                url="https://example.com/q",
                metadata=ArticleMetadata(
                    topic=topic,
                    source="example.com",
                    date_added=datetime(2024, 5, 1, tzinfo=timezone.utc),
                    word_count=60,
                    keywords=("quantum", "computing"),
                    summary="Qubits",
                    language="en",
                ),
            )
        )
        report.accepted = 1
        report.failures = {"content_too_short": 1}
    return report


def _patch_collect(monkeypatch: pytest.MonkeyPatch, result=None, error: Exception | None = None) -> dict:
    captured: dict = {}

    def fake_collect(topic, cfg, **kwargs):
        captured["topic"] = topic
        captured["cfg"] = cfg
        if error is not None:
            raise error
        return result

    monkeypatch.setattr(cli, "collect_articles", fake_collect)
    return captured


def test_collect_writes_output(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    captured = _patch_collect(monkeypatch, _report("quantum computing"))
    out = tmp_path / "articles.jsonl"

    result = runner.invoke(
        cli.app,
        [
            "collect",
            "quantum computing",
            "--no-progress",
            "-n",
            "3",
            "-e",
            "duckduckgo",
            "-o",
            str(out),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "accepted=1" in result.output
    assert captured["cfg"].search.max_articles == 3
    assert captured["cfg"].search.engine == "duckduckgo"
    record = json.loads(out.read_text(encoding="utf-8").splitlines()[0])
    assert record["metadata"]["topic"] == "quantum computing"


def test_collect_no_results(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    _patch_collect(monkeypatch, _report("nothing here", with_article=False))
    out = tmp_path / "articles.jsonl"

    result = runner.invoke(
        cli.app,
        ["collect", "nothing here", "--no-progress", "-o", str(out)],
    )

    assert result.exit_code == 0
    assert "No results" in result.output
    assert not out.exists()


def test_collect_configuration_error_exit_code(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    _patch_collect(monkeypatch, error=ConfigurationError("Engine 'google' is not configured"))

    result = runner.invoke(
        cli.app,
        ["collect", "quantum", "--no-progress", "-e", "google"],
    )

    assert result.exit_code == 2
    assert "Configuration error" in result.output


def test_collect_provider_error_exit_code(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    _patch_collect(monkeypatch, error=ProviderUnavailable("bing", "timeout"))

    result = runner.invoke(
        cli.app,
        ["collect", "quantum", "--no-progress", "-e", "bing"],
    )

    assert result.exit_code == 1
    assert "Search failed" in result.output


def test_engines_lists_providers(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("GOOGLE_API_KEY", "GOOGLE_CSE_ID", "SERPAPI_API_KEY"):
        monkeypatch.delenv(name, raising=False)

    result = runner.invoke(cli.app, ["engines"])

    assert result.exit_code == 0
    for name in ("google", "serpapi", "duckduckgo", "bing", "rss"):
        assert name in result.output
    assert "missing" in result.output


def test_explicit_missing_config_exit_code(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    captured = _patch_collect(monkeypatch, _report("quantum"))

    result = runner.invoke(cli.app, ["collect", "quantum", "--no-progress", "-c", str(tmp_path / "nope.yaml")])

    assert result.exit_code == 2
    assert "Config file not found" in result.output
    assert captured == {}


def test_default_config_file_is_used_when_present(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("search:\n  max_articles: 7\n", encoding="utf-8")
    captured = _patch_collect(monkeypatch, _report("quantum", with_article=False))

    result = runner.invoke(cli.app, ["collect", "quantum", "--no-progress"])

    assert result.exit_code == 0, result.output
    assert captured["cfg"].search.max_articles == 7


def test_invalid_config_value_exit_code(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "strict.yaml"
    path.write_text("dedup:\n  title_distance_threshold: 0\n", encoding="utf-8")
    captured = _patch_collect(monkeypatch, _report("quantum"))

    result = runner.invoke(cli.app, ["collect", "quantum", "--no-progress", "-c", str(path)])

    assert result.exit_code == 2
    assert "title_distance_threshold" in result.output
    assert captured == {}


def test_unknown_output_format_fails_before_collecting(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    captured = _patch_collect(monkeypatch, _report("quantum"))

    result = runner.invoke(
        cli.app,
        ["collect", "quantum", "--no-progress", "--format", "csv", "-o", str(tmp_path / "a.csv")],
    )

    assert result.exit_code == 2
    assert "Unsupported output format" in result.output
    assert captured == {}
    assert not (tmp_path / "a.csv").exists()
