"""
Search aggregation: provider selection, cascade, validation and dedup.

The aggregator either uses one explicitly named provider or, in "auto"
mode, walks an ordered provider list and keeps the first non-empty
answer. Either way the hits are validated, near-duplicates are removed
and the list is capped at max_results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import random
import time
from typing import Callable, Sequence

import httpx

from ..config import AppConfig, DedupConfig, ValidationConfig
from ..core.dedup import dedup_hits
from ..core.types import Engine, SearchHit
from ..core.validate import filter_valid_hits
from ..errors import ConfigurationError, ProviderError
from ..logging_utils import get_logger, log_event
from .base import SearchProvider
from .factory import build_providers, parse_engine


@dataclass
class CascadeResult:
    """Outcome of an auto-mode cascade.

    Attributes:
        provider: Name of the provider whose hits were used, None if all failed
        hits: Hits returned by that provider
        attempted: Names of the providers that were called, in order
    """
    provider: str | None
    hits: list[SearchHit] = field(default_factory=list)
    attempted: list[str] = field(default_factory=list)


@dataclass
class AggregateResult:
    provider: str | None
    hits: list[SearchHit] = field(default_factory=list)


def cascade(
    providers: Sequence[SearchProvider],
    query: str,
    max_results: int,
    logger: logging.Logger | None = None,
) -> CascadeResult:
    """Try providers in order and stop at the first non-empty answer.

    Unconfigured providers are skipped without a call. A provider that
    raises or returns nothing is logged and skipped, never retried.
    If every provider fails the result is empty; nothing is raised.
    """
    result = CascadeResult(provider=None)
    for provider in providers:
        if not provider.is_configured:
            log_event(
                logger,
                f"Skipping {provider.name}: not configured",
                level=logging.DEBUG,
                event="provider_skipped",
                provider=provider.name,
                missing=provider.missing_credentials(),
            )
            continue

        result.attempted.append(provider.name)
        log_event(logger, f"Searching with {provider.name}", event="provider_try", provider=provider.name)
        try:
            hits = provider.search(query, max_results)
        except ProviderError as exc:
            log_event(
                logger,
                f"{provider.name} failed: {exc}",
                level=logging.WARNING,
                event="provider_failed",
                provider=provider.name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            continue
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                f"{provider.name} crashed: {exc}",
                level=logging.WARNING,
                event="provider_failed",
                provider=provider.name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            continue

        if not hits:
            log_event(logger, f"{provider.name} returned no hits", event="provider_empty", provider=provider.name)
            continue

        result.provider = provider.name
        result.hits = list(hits)
        return result
    return result


class SearchAggregator:
    """Selects a provider and returns validated, deduplicated hits."""

    def __init__(
        self,
        providers: Sequence[SearchProvider],
        auto_order: Sequence[str] | None = None,
        dedup_cfg: DedupConfig | None = None,
        validation_cfg: ValidationConfig | None = None,
        logger: logging.Logger | None = None,
    ):
        self.providers: dict[Engine, SearchProvider] = {p.engine: p for p in providers}
        order = [parse_engine(name) for name in auto_order] if auto_order else list(self.providers)
        self.auto_order = [engine for engine in order if engine in self.providers]
        self.dedup_cfg = dedup_cfg or DedupConfig()
        self.validation_cfg = validation_cfg or ValidationConfig()
        self.logger = logger or get_logger()

    @classmethod
    def from_config(
        cls,
        cfg: AppConfig,
        client: httpx.Client,
        logger: logging.Logger | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> SearchAggregator:
        return cls(
            build_providers(cfg, client, rng=rng, sleep=sleep),
            auto_order=cfg.search.auto_order,
            dedup_cfg=cfg.dedup,
            validation_cfg=cfg.validation,
            logger=logger,
        )

    def auto_providers(self) -> list[SearchProvider]:
        """Providers in cascade order: keyed API providers first, then scrape-based."""
        ordered = [self.providers[engine] for engine in self.auto_order]
        return [p for p in ordered if p.kind == "api"] + [p for p in ordered if p.kind != "api"]

    def provider_for(self, engine: str | Engine) -> SearchProvider:
        """Resolve an explicitly named engine to a configured provider.

        Raises:
            ConfigurationError: The engine is unknown, not registered, or
                                lacks credentials
        """
        resolved = parse_engine(engine)
        provider = self.providers.get(resolved)
        if provider is None:
            raise ConfigurationError(f"Engine '{resolved.value}' is not available")
        missing = provider.missing_credentials()
        if missing:
            raise ConfigurationError(
                f"Engine '{resolved.value}' is not configured; set {', '.join(missing)}"
            )
        return provider

    def search(self, query: str, max_results: int, engine: str | Engine = Engine.AUTO) -> AggregateResult:
        """Search for a query.

        Args:
            query: Free-text query
            max_results: Maximum number of hits to return
            engine: "auto" or an explicit engine name

        Returns:
            AggregateResult with the provider name and the final hit list

        Raises:
            ConfigurationError: Explicit engine unknown or unconfigured
            ProviderError: Explicit engine failed
        """
        resolved = parse_engine(engine)
        log_event(
            self.logger,
            f"Search start: '{query}' via {resolved.value}",
            event="search_start",
            query=query,
            engine=resolved.value,
            max_results=max_results,
        )

        if resolved is Engine.AUTO:
            outcome = cascade(self.auto_providers(), query, max_results, self.logger)
            provider_name, raw_hits = outcome.provider, outcome.hits
        else:
            provider = self.provider_for(resolved)
            provider_name, raw_hits = provider.name, provider.search(query, max_results)

        hits = self.finalize(raw_hits, max_results)
        if provider_name:
            log_event(
                self.logger,
                f"Using {len(hits)} hits from {provider_name}",
                event="provider_selected",
                provider=provider_name,
                raw=len(raw_hits),
                kept=len(hits),
            )
        return AggregateResult(provider=provider_name, hits=hits)

    def finalize(self, hits: list[SearchHit], max_results: int) -> list[SearchHit]:
        """Validate, deduplicate and cap a provider's hits, preserving order."""
        valid = filter_valid_hits(
            hits,
            excluded_domains=self.validation_cfg.excluded_domains,
            min_title=self.validation_cfg.min_title_chars,
            max_title=self.validation_cfg.max_title_chars,
        )
        if self.dedup_cfg.enabled:
            valid = dedup_hits(valid, self.dedup_cfg.title_distance_threshold)
        return valid[: max(0, max_results)]
