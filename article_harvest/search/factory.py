"""Provider registry: engines are resolved to adapters once, at configuration time."""

from __future__ import annotations

from dataclasses import dataclass
import random
import time
from typing import Callable

import httpx

from ..config import AppConfig
from ..core.types import Engine
from ..errors import ConfigurationError
from .base import SearchProvider
from .bing import BingSearchProvider
from .duckduckgo import DuckDuckGoSearchProvider
from .google import GoogleSearchProvider
from .rss import RssSearchProvider
from .serpapi import SerpApiSearchProvider


ProviderBuilder = Callable[..., SearchProvider]


@dataclass(frozen=True)
class ProviderSpec:
    """Registry row describing one search provider.

    Attributes:
        engine: Engine the provider implements
        kind: "api" or "scrape"
        required_credentials: Config fields that must be set (empty for scrape providers)
        builder: Callable building the adapter from (cfg, client, rng, sleep)
    """
    engine: Engine
    kind: str
    required_credentials: tuple[str, ...]
    builder: ProviderBuilder

    @property
    def name(self) -> str:
        return self.engine.value


def _build_google(cfg: AppConfig, client: httpx.Client, rng, sleep) -> SearchProvider:
    return GoogleSearchProvider(client, cfg.providers, cfg.validation, cfg.search.timeout_seconds)


def _build_serpapi(cfg: AppConfig, client: httpx.Client, rng, sleep) -> SearchProvider:
    return SerpApiSearchProvider(client, cfg.providers, cfg.validation, cfg.search.timeout_seconds)


def _build_duckduckgo(cfg: AppConfig, client: httpx.Client, rng, sleep) -> SearchProvider:
    return DuckDuckGoSearchProvider(
        client,
        cfg.validation,
        cfg.search.timeout_seconds,
        delay=cfg.search.scrape_delay_seconds,
        jitter=cfg.search.scrape_jitter_seconds,
        overlap_min_tokens=cfg.search.overlap_min_tokens,
        rng=rng,
        sleep=sleep,
    )


def _build_bing(cfg: AppConfig, client: httpx.Client, rng, sleep) -> SearchProvider:
    return BingSearchProvider(
        client,
        cfg.validation,
        cfg.search.timeout_seconds,
        delay=cfg.search.scrape_delay_seconds,
        jitter=cfg.search.scrape_jitter_seconds,
        overlap_min_tokens=cfg.search.overlap_min_tokens,
        rng=rng,
        sleep=sleep,
    )


def _build_rss(cfg: AppConfig, client: httpx.Client, rng, sleep) -> SearchProvider:
    return RssSearchProvider(
        client,
        cfg.providers,
        cfg.validation,
        cfg.search.timeout_seconds,
        delay=cfg.search.scrape_delay_seconds / 2,
        jitter=cfg.search.scrape_jitter_seconds,
        rng=rng,
        sleep=sleep,
    )


PROVIDER_REGISTRY: dict[Engine, ProviderSpec] = {
    Engine.GOOGLE: ProviderSpec(Engine.GOOGLE, "api", ("google_api_key", "google_cse_id"), _build_google),
    Engine.SERPAPI: ProviderSpec(Engine.SERPAPI, "api", ("serpapi_api_key",), _build_serpapi),
    Engine.DUCKDUCKGO: ProviderSpec(Engine.DUCKDUCKGO, "scrape", (), _build_duckduckgo),
    Engine.BING: ProviderSpec(Engine.BING, "scrape", (), _build_bing),
    Engine.RSS: ProviderSpec(Engine.RSS, "scrape", (), _build_rss),
}


def available_engines() -> list[str]:
    """Return the registered engine names, "auto" first."""
    return [Engine.AUTO.value] + [engine.value for engine in PROVIDER_REGISTRY]


def parse_engine(name: str | Engine) -> Engine:
    """Resolve an engine name, raising ConfigurationError if unknown."""
    if isinstance(name, Engine):
        return name
    try:
        return Engine(name.lower().strip())
    except ValueError:
        supported = ", ".join(available_engines())
        raise ConfigurationError(f"Unsupported engine: {name}. Supported: {supported}") from None


def build_search_client(cfg: AppConfig) -> httpx.Client:
    """Build the per-run client shared by the search providers."""
    return httpx.Client(
        timeout=httpx.Timeout(cfg.search.timeout_seconds),
        headers={"User-Agent": cfg.fetch.user_agent},
        follow_redirects=True,
        trust_env=cfg.fetch.trust_env,
    )


def build_provider(
    engine: str | Engine,
    cfg: AppConfig,
    client: httpx.Client,
    rng: random.Random | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> SearchProvider:
    """Build a single provider instance from runtime config."""
    resolved = parse_engine(engine)
    spec = PROVIDER_REGISTRY.get(resolved)
    if spec is None:
        raise ConfigurationError(f"Engine '{resolved.value}' is not a concrete provider")
    return spec.builder(cfg, client, rng, sleep)


def build_providers(
    cfg: AppConfig,
    client: httpx.Client,
    rng: random.Random | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[SearchProvider]:
    """Build every registered provider, in registry order."""
    return [spec.builder(cfg, client, rng, sleep) for spec in PROVIDER_REGISTRY.values()]
