"""
HTTP page fetching for candidate articles.

One PageFetcher is created per collection run and owns its own
httpx.AsyncClient (timeout, browser User-Agent, redirects followed).
Requests to the same host are spaced out by a HostPacer. Failed fetches
are reported in the FetchResult and never retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from ..config import FetchConfig
from ..core.validate import extract_domain
from .pacing import HostPacer


@dataclass
class FetchResult:
    """Result of an HTTP fetch operation.

    Either text will be populated (success) or error will be populated (failure),
    but never both. status_code may be None for network-level failures.

    Attributes:
        url: The URL that was requested
        final_url: The URL after redirects, None if no response was received
        status_code: HTTP status code, or None if request failed before getting response
        text: The decoded response body, or None on error
        error: Error message if fetch failed, None on success
        error_kind: "timeout", "http_status", "network" or "cancelled" on failure
    """
    url: str
    final_url: str | None
    status_code: int | None
    text: str | None
    error: str | None = None
    error_kind: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None


def build_async_client(cfg: FetchConfig) -> httpx.AsyncClient:
    """Build the per-run async client used for page fetches."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(cfg.timeout_seconds),
        headers={
            "User-Agent": cfg.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "ru,en;q=0.8",
        },
        follow_redirects=True,
        trust_env=cfg.trust_env,
    )


class PageFetcher:
    """Fetches article pages with per-host pacing.

    Usable as an async context manager; the client is closed on exit
    only if the fetcher created it.
    """

    def __init__(
        self,
        cfg: FetchConfig,
        pacer: HostPacer | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.cfg = cfg
        self.pacer = pacer or HostPacer(cfg.per_host_interval_seconds, cfg.jitter_seconds)
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = build_async_client(self.cfg)
        return self._client

    async def __aenter__(self) -> PageFetcher:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str, cancel_event: Any = None) -> FetchResult:
        """Fetch a page, waiting for the host's pacing slot first.

        Args:
            url: The page URL
            cancel_event: Object with is_set(); checked once the slot is reached,
                          a set event skips the request

        Returns:
            FetchResult with text on success or error details on failure
        """
        await self.pacer.wait_async(extract_domain(url))
        if cancel_event is not None and cancel_event.is_set():
            return FetchResult(
                url=url,
                final_url=None,
                status_code=None,
                text=None,
                error="cancelled before request",
                error_kind="cancelled",
            )
        try:
            resp = await self.client.get(url)
        except httpx.TimeoutException as exc:
            return FetchResult(
                url=url,
                final_url=None,
                status_code=None,
                text=None,
                error=f"TimeoutError: {exc}",
                error_kind="timeout",
            )
        except httpx.HTTPError as exc:
            return FetchResult(
                url=url,
                final_url=None,
                status_code=None,
                text=None,
                error=f"{type(exc).__name__}: {exc}",
                error_kind="network",
            )

        final_url = str(resp.url)
        if not resp.is_success:
            return FetchResult(
                url=url,
                final_url=final_url,
                status_code=resp.status_code,
                text=None,
                error=f"HTTP {resp.status_code}",
                error_kind="http_status",
            )
        return FetchResult(
            url=url,
            final_url=final_url,
            status_code=resp.status_code,
            text=resp.text,
        )


def categorize_error(error: str | None, status_code: int | None) -> str:
    """Categorize fetch errors for logging.

    Args:
        error: Error message from fetch attempt
        status_code: HTTP status code if available

    Returns:
        Error category: "timeout", "blocked", "not_found", "network_failed" or "unknown"
    """
    if not error:
        return "unknown"
    error_lower = error.lower()
    if "timeout" in error_lower or "timed out" in error_lower:
        return "timeout"
    if status_code in (401, 403, 429) or "blocked" in error_lower:
        return "blocked"
    if status_code in (404, 410):
        return "not_found"
    if "connect" in error_lower or "connection" in error_lower:
        return "network_failed"
    return "unknown"
