"""
Command-line interface for Article Harvest.

Uses Typer to provide a CLI with options for the major configuration
settings. Loads .env files for provider credentials.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import signal
import threading
from typing import Iterator, NoReturn

from dotenv import load_dotenv
import typer
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from .config import AppConfig, load_config
from .core.types import CollectionReport
from .errors import ConfigurationError, ProviderError
from .logging_utils import setup_logging
from .output import OUTPUT_FORMATS, write_articles
from .runner import collect_articles
from .search.factory import PROVIDER_REGISTRY, build_providers, build_search_client

app = typer.Typer(add_completion=False, help="Collect web articles on a topic.")
console = Console()


DEFAULT_CONFIG = Path("config.yaml")


def _load(config: Path | None) -> AppConfig:
    """Load .env and the YAML config; exit with code 2 on a bad config.

    Without --config, config.yaml in the working directory is used when present.
    """
    load_dotenv()
    if config is None:
        config = DEFAULT_CONFIG if DEFAULT_CONFIG.exists() else None
    elif not config.is_file():
        _config_error(ConfigurationError(f"Config file not found: {config}"))
    try:
        return load_config(str(config) if config else None)
    except ConfigurationError as exc:
        _config_error(exc)


def _config_error(exc: ConfigurationError) -> NoReturn:
    console.print(f"[bold red]Configuration error:[/bold red] {exc}")
    raise typer.Exit(code=2) from exc


@app.command()
def collect(
    topic: str = typer.Argument(..., help="Topic to search for."),
    max_articles: int | None = typer.Option(None, "--max-articles", "-n", min=1, help="Articles to collect."),
    engine: str | None = typer.Option(
        None, "--engine", "-e", help="auto, google, serpapi, duckduckgo, bing or rss."
    ),
    config: Path | None = typer.Option(None, "--config", "-c", help="YAML config (default: ./config.yaml if present)."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write articles to this file."),
    output_format: str | None = typer.Option(None, "--format", help="Output format: jsonl or json."),
    progress: bool = typer.Option(True, "--progress/--no-progress"),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_dir: Path | None = typer.Option(None, "--log-dir", help="Write a JSONL run log here."),
    concurrency: int | None = typer.Option(None, "--concurrency", min=1, max=8),
    google_api_key: str | None = typer.Option(None, "--google-api-key", help="Override Google API key."),
    google_cse_id: str | None = typer.Option(None, "--google-cse-id", help="Override Google CSE id."),
    serpapi_key: str | None = typer.Option(None, "--serpapi-key", help="Override SerpAPI key."),
):
    """Search for TOPIC, fetch the pages and extract articles.

    Exit codes: 0 on success (including "no results"), 1 when an explicitly
    chosen engine fails, 2 on configuration errors.
    """
    cfg = _load(config)

    # Override with CLI options
    if engine:
        cfg.search.engine = engine
    if max_articles is not None:
        cfg.search.max_articles = max_articles
    if output_format:
        cfg.output.format = output_format
    if cfg.output.format not in OUTPUT_FORMATS:
        _config_error(
            ConfigurationError(
                f"Unsupported output format {cfg.output.format!r}; use {' or '.join(OUTPUT_FORMATS)}"
            )
        )
    if log_level:
        cfg.logging.level = log_level
    if log_dir is not None:
        cfg.logging.file = True
    if concurrency is not None:
        cfg.fetch.concurrency = concurrency
    if google_api_key:
        cfg.providers.google_api_key = google_api_key
    if google_cse_id:
        cfg.providers.google_cse_id = google_cse_id
    if serpapi_key:
        cfg.providers.serpapi_api_key = serpapi_key

    logger = setup_logging(cfg.logging, log_dir)
    cancel_event = threading.Event()

    try:
        with _cooperative_interrupt(cancel_event):
            if progress:
                with _progress_bar() as bar:
                    report = collect_articles(topic, cfg, cancel_event=cancel_event, logger=logger, progress=bar)
            else:
                report = collect_articles(topic, cfg, cancel_event=cancel_event, logger=logger)
    except ConfigurationError as exc:
        _config_error(exc)
    except ProviderError as exc:
        console.print(f"[bold red]Search failed:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    _render_report(report)
    if report.no_results:
        return
    if output is not None:
        path = write_articles(report.articles, output, cfg.output.format)
        console.print(f"Articles written: {path}")


@app.command()
def engines(config: Path | None = typer.Option(None, "--config", "-c", help="YAML config (default: ./config.yaml if present).")):
    """List search engines and whether they are configured."""
    cfg = _load(config)
    table = Table(title="Search engines")
    table.add_column("Engine")
    table.add_column("Kind")
    table.add_column("Credentials")
    table.add_column("Status")

    with build_search_client(cfg) as client:
        for provider in build_providers(cfg, client):
            spec = PROVIDER_REGISTRY[provider.engine]
            missing = provider.missing_credentials()
            status = "[green]ready[/green]" if not missing else f"[yellow]missing {', '.join(missing)}[/yellow]"
            table.add_row(spec.name, spec.kind, ", ".join(spec.required_credentials) or "-", status)
    console.print(table)


def _render_report(report: CollectionReport) -> None:
    """Display collection statistics to the console."""
    if report.no_results:
        reason = " (cancelled)" if report.cancelled else ""
        console.print(f"[yellow]No results for '{report.topic}'{reason}[/yellow]")
    for article in report.articles:
        meta = article.metadata
        console.print(
            f"[green]✓[/green] {article.title} "
            f"[dim]({meta.source}, {meta.word_count} words, {meta.language})[/dim]"
        )
    failures = ", ".join(f"{key}={value}" for key, value in sorted(report.failures.items())) or "none"
    console.print(
        "[bold]Collection summary[/bold]: "
        f"provider={report.provider or '-'}, hits={report.hits}, "
        f"attempted={report.attempted}, accepted={report.accepted}, failures: {failures}"
    )


def _progress_bar() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeRemainingColumn(),
        console=console,
    )


@contextmanager
def _cooperative_interrupt(cancel_event: threading.Event) -> Iterator[None]:
    """Turn the first Ctrl+C into a cancellation signal instead of an exception."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum, frame):  # noqa: ANN001
        if cancel_event.is_set():
            raise KeyboardInterrupt
        cancel_event.set()
        console.print("[yellow]Stopping after in-flight pages finish (Ctrl+C again to abort)[/yellow]")

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


if __name__ == "__main__":
    app()
