"""
Error taxonomy for the acquisition pipeline.

Errors fall into three levels:
- Request level: ConfigurationError, fatal to the whole collection request
- Provider level: ProviderError and subclasses, absorbed by the auto cascade
  or surfaced when an engine was named explicitly
- Hit level: HitError and subclasses, recovered by skipping the hit

Nothing in the pipeline retries; a failure moves on to the next provider
or the next hit.
"""

from __future__ import annotations


class HarvestError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(HarvestError):
    """Raised when a requested engine is unknown or lacks credentials."""


class ProviderError(HarvestError):
    """A search provider could not produce results.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ProviderUnavailable(ProviderError):
    """Missing credentials, transport failure or timeout."""


class ProviderBadResponse(ProviderError):
    """Non-success status or a body that could not be parsed."""


class HitError(HarvestError):
    """A single hit could not be turned into an article.

    Attributes:
        url: The hit URL
        category: Stable key used when counting failures per batch
    """

    category = "hit_error"

    def __init__(self, url: str, message: str):
        super().__init__(f"{message} ({url})")
        self.url = url


class FetchTimeout(HitError):
    category = "fetch_timeout"


class FetchFailure(HitError):
    category = "fetch_failure"


class ExtractionEmpty(HitError):
    category = "extraction_empty"


class ContentTooShort(HitError):
    category = "content_too_short"
