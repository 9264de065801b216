"""
Article page fetching.

This package handles HTTP fetching and per-host request pacing.
"""

from .fetcher import FetchResult, PageFetcher, build_async_client, categorize_error
from .pacing import HostPacer

__all__ = [
    "FetchResult",
    "PageFetcher",
    "build_async_client",
    "categorize_error",
    "HostPacer",
]
