"""
Run configuration for article collection.

One dataclass per YAML section; every key has a default, so an empty or
missing file yields a working configuration. Sections:
- search: engine choice, batch size, cascade order, scrape pacing
- providers: API credentials (inline or via environment) and feed list
- fetch: page client, concurrency and per-host pacing
- extract: extraction method chain and the content length gate
- dedup / validation: hit filtering rules
- logging / output: run log and export format
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any

import yaml

from .errors import ConfigurationError


# Collected titles must stay at least this many edits apart
MIN_TITLE_DISTANCE = 3

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class SearchConfig:
    """Configuration for provider selection and search requests.

    Attributes:
        engine: "auto" or an explicit engine name ("google", "serpapi",
                "duckduckgo", "bing", "rss")
        max_articles: Default number of articles to collect per topic
        candidate_multiplier: The aggregator is asked for
                              max_articles * candidate_multiplier hits so that
                              rejected pages can be replaced
        auto_order: Engine order tried by the auto cascade
        timeout_seconds: Timeout for search requests
        scrape_delay_seconds: Pacing delay before each scrape-based request
        scrape_jitter_seconds: Upper bound of random jitter added to the delay
        overlap_min_tokens: Query tokens an anchor text must share for the
                            last-resort link extraction to accept it
    """

    engine: str = "auto"
    max_articles: int = 5
    candidate_multiplier: int = 2
    auto_order: list[str] = field(
        default_factory=lambda: ["google", "serpapi", "duckduckgo", "bing", "rss"]
    )
    timeout_seconds: float = 15.0
    scrape_delay_seconds: float = 1.0
    scrape_jitter_seconds: float = 0.5
    overlap_min_tokens: int = 1


@dataclass
class ProvidersConfig:
    """Configuration for search providers.

    Inline keys override the environment variables named by the *_env fields.

    Attributes:
        google_api_key: Inline Google Custom Search API key
        google_api_key_env: Environment variable holding the Google API key
        google_cse_id: Inline Google Custom Search engine id
        google_cse_id_env: Environment variable holding the engine id
        google_sites: Optional list of sites the Google query is restricted to
        google_language: Optional "lr" restriction, e.g. "lang_ru"
        serpapi_api_key: Inline SerpAPI key
        serpapi_api_key_env: Environment variable holding the SerpAPI key
        serpapi_hl: SerpAPI interface language
        serpapi_gl: SerpAPI country
        rss_feeds: Feeds scanned by the RSS provider
        rss_items_per_feed: Maximum entries inspected per feed
    """

    google_api_key: str | None = None
    google_api_key_env: str = "GOOGLE_API_KEY"
    google_cse_id: str | None = None
    google_cse_id_env: str = "GOOGLE_CSE_ID"
    google_sites: list[str] = field(default_factory=list)
    google_language: str | None = None
    serpapi_api_key: str | None = None
    serpapi_api_key_env: str = "SERPAPI_API_KEY"
    serpapi_hl: str = "ru"
    serpapi_gl: str = "ru"
    rss_feeds: list[str] = field(
        default_factory=lambda: [
            "https://lenta.ru/rss",
            "https://ria.ru/export/rss2/archive/index.xml",
            "https://tass.ru/rss/v2.xml",
        ]
    )
    rss_items_per_feed: int = 20


@dataclass
class FetchConfig:
    """Configuration for article page fetching.

    Attributes:
        timeout_seconds: Per-request timeout
        user_agent: Browser User-Agent header string
        trust_env: Whether to respect system proxy settings
        concurrency: Number of concurrent page fetches (clamped to 1..8)
        per_host_interval_seconds: Minimum interval between requests to one host
        jitter_seconds: Upper bound of random jitter added to the interval
    """

    timeout_seconds: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    trust_env: bool = True
    concurrency: int = 4
    per_host_interval_seconds: float = 1.0
    jitter_seconds: float = 0.0


@dataclass
class ExtractConfig:
    """Configuration for HTML content extraction.

    Attributes:
        primary: Primary extraction method ("selectors", "trafilatura",
                 "readability" or "bs4")
        fallback: List of fallback methods to try if primary yields nothing
        min_content_chars: Acceptance gate; content must be strictly longer
    """

    primary: str = "selectors"
    fallback: list[str] = field(default_factory=list)
    min_content_chars: int = 200


@dataclass
class DedupConfig:
    """Configuration for hit deduplication.

    Attributes:
        enabled: Debugging switch; turning it off lets near-duplicate hits through
        title_distance_threshold: Titles closer than this edit distance are
                                  duplicates; at least MIN_TITLE_DISTANCE
    """

    enabled: bool = True
    title_distance_threshold: int = 3


@dataclass
class ValidationConfig:
    """Configuration for the hit validity predicate.

    Attributes:
        min_title_chars: Minimum title length
        max_title_chars: Maximum title length
        excluded_domains: Domains rejected in addition to the built-in table
    """

    min_title_chars: int = 5
    max_title_chars: int = 200
    excluded_domains: list[str] = field(default_factory=list)


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "harvest.jsonl"


@dataclass
class OutputConfig:
    """Configuration for article export.

    Attributes:
        format: "jsonl" (one article per line) or "json" (single array)
    """

    format: str = "jsonl"


@dataclass
class AppConfig:
    """All configuration sections of one run."""

    search: SearchConfig = field(default_factory=SearchConfig)
    providers: ProvidersConfig = field(default_factory=ProvidersConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


_SECTIONS: dict[str, type] = {
    "search": SearchConfig,
    "providers": ProvidersConfig,
    "fetch": FetchConfig,
    "extract": ExtractConfig,
    "dedup": DedupConfig,
    "validation": ValidationConfig,
    "logging": LoggingConfig,
    "output": OutputConfig,
}


def load_config(path: str | None) -> AppConfig:
    """Read a YAML file onto the defaults; no path means pure defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    cfg = _merge_config(AppConfig(), raw)
    _check_config(cfg)
    return cfg


def _check_config(cfg: AppConfig) -> None:
    if cfg.dedup.title_distance_threshold < MIN_TITLE_DISTANCE:
        raise ConfigurationError(
            f"dedup.title_distance_threshold must be at least {MIN_TITLE_DISTANCE}, "
            f"got {cfg.dedup.title_distance_threshold}"
        )


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig.

    Unknown sections and unknown keys inside a section are ignored.
    """
    data = asdict(base)
    for key, value in raw.items():
        if key not in data or not isinstance(value, dict):
            continue
        known = {k: v for k, v in value.items() if k in data[key]}
        data[key].update(known)
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Build AppConfig back from the merged per-section dictionaries."""
    return AppConfig(**{name: cls(**data[name]) for name, cls in _SECTIONS.items()})


def _resolve(inline: str | None, env_name: str) -> str | None:
    if inline:
        return inline
    return os.getenv(env_name) or None


def get_google_credentials(cfg: ProvidersConfig) -> tuple[str | None, str | None]:
    """Get Google API key and search engine id from inline config or environment."""
    return (
        _resolve(cfg.google_api_key, cfg.google_api_key_env),
        _resolve(cfg.google_cse_id, cfg.google_cse_id_env),
    )


def get_serpapi_key(cfg: ProvidersConfig) -> str | None:
    """Get SerpAPI key from inline config or environment variable."""
    return _resolve(cfg.serpapi_api_key, cfg.serpapi_api_key_env)
