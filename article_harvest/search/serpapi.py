"""SerpAPI (Google engine) provider."""

from __future__ import annotations

import httpx

from ..config import ProvidersConfig, ValidationConfig, get_serpapi_key
from ..core.types import Engine, SearchHit
from ..core.validate import clean_text
from ..errors import ProviderBadResponse
from .base import ApiSearchProvider


SERPAPI_URL = "https://serpapi.com/search.json"


class SerpApiSearchProvider(ApiSearchProvider):
    engine = Engine.SERPAPI
    name = "serpapi"
    surface_domains = ("serpapi.com", "google.com")

    def __init__(
        self,
        client: httpx.Client,
        providers_cfg: ProvidersConfig,
        validation: ValidationConfig | None = None,
        timeout: float = 15.0,
    ):
        super().__init__(client, validation, timeout)
        self.cfg = providers_cfg
        self.api_key = get_serpapi_key(providers_cfg)

    def missing_credentials(self) -> list[str]:
        return [] if self.api_key else [self.cfg.serpapi_api_key_env]

    def search(self, query: str, max_results: int) -> list[SearchHit]:
        self._require_credentials()
        params = {
            "q": query,
            "engine": "google",
            "num": max(1, max_results),
            "hl": self.cfg.serpapi_hl,
            "gl": self.cfg.serpapi_gl,
            "api_key": self.api_key,
        }
        data = self._get_json(SERPAPI_URL, params)

        error = data.get("error")
        if error:
            # SerpAPI reports an empty result page through the error field
            if "hasn't returned any results" in str(error):
                return []
            raise ProviderBadResponse(self.name, f"API error: {error}")

        results = data.get("organic_results") or []
        if not isinstance(results, list):
            raise ProviderBadResponse(self.name, "'organic_results' is not a list")

        hits = []
        for item in results:
            if not isinstance(item, dict):
                continue
            hits.append(
                SearchHit(
                    title=clean_text(item.get("title")),
                    url=(item.get("link") or "").strip(),
                    snippet=clean_text(item.get("snippet")) or None,
                )
            )
        return self.validate(hits)
