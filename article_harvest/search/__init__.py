"""
Search provider implementations.

This package contains the provider interface, the concrete adapters
(Google Custom Search, SerpAPI, DuckDuckGo, Bing, RSS), the provider
registry and the aggregator that selects among them.
"""

from .aggregator import AggregateResult, CascadeResult, SearchAggregator, cascade
from .base import ApiSearchProvider, ScrapeSearchProvider, SearchProvider, SelectorRule
from .bing import BingSearchProvider
from .duckduckgo import DuckDuckGoSearchProvider
from .factory import (
    PROVIDER_REGISTRY,
    ProviderSpec,
    available_engines,
    build_provider,
    build_providers,
    build_search_client,
    parse_engine,
)
from .google import GoogleSearchProvider
from .rss import RssSearchProvider
from .serpapi import SerpApiSearchProvider

__all__ = [
    "AggregateResult",
    "ApiSearchProvider",
    "BingSearchProvider",
    "CascadeResult",
    "DuckDuckGoSearchProvider",
    "GoogleSearchProvider",
    "PROVIDER_REGISTRY",
    "ProviderSpec",
    "RssSearchProvider",
    "ScrapeSearchProvider",
    "SearchAggregator",
    "SearchProvider",
    "SelectorRule",
    "SerpApiSearchProvider",
    "available_engines",
    "build_provider",
    "build_providers",
    "build_search_client",
    "cascade",
    "parse_engine",
]
