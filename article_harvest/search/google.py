"""Google Custom Search JSON API provider."""

from __future__ import annotations

import httpx

from ..config import ProvidersConfig, ValidationConfig, get_google_credentials
from ..core.types import Engine, SearchHit
from ..core.validate import clean_text
from ..errors import ProviderBadResponse
from .base import ApiSearchProvider


GOOGLE_CSE_URL = "https://www.googleapis.com/customsearch/v1"
# The API returns at most 10 items per request
GOOGLE_MAX_NUM = 10


class GoogleSearchProvider(ApiSearchProvider):
    engine = Engine.GOOGLE
    name = "google"
    surface_domains = ("google.com", "googleapis.com")

    def __init__(
        self,
        client: httpx.Client,
        providers_cfg: ProvidersConfig,
        validation: ValidationConfig | None = None,
        timeout: float = 15.0,
    ):
        super().__init__(client, validation, timeout)
        self.cfg = providers_cfg
        self.api_key, self.cse_id = get_google_credentials(providers_cfg)

    def missing_credentials(self) -> list[str]:
        missing = []
        if not self.api_key:
            missing.append(self.cfg.google_api_key_env)
        if not self.cse_id:
            missing.append(self.cfg.google_cse_id_env)
        return missing

    def build_query(self, query: str) -> str:
        """Append the optional site restriction, e.g. "topic site:a.ru OR site:b.ru"."""
        if not self.cfg.google_sites:
            return query
        sites = " OR ".join(f"site:{site}" for site in self.cfg.google_sites)
        return f"{query} {sites}"

    def search(self, query: str, max_results: int) -> list[SearchHit]:
        self._require_credentials()
        params = {
            "key": self.api_key,
            "cx": self.cse_id,
            "q": self.build_query(query),
            "num": max(1, min(max_results, GOOGLE_MAX_NUM)),
        }
        if self.cfg.google_language:
            params["lr"] = self.cfg.google_language

        data = self._get_json(GOOGLE_CSE_URL, params)
        if "error" in data:
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ProviderBadResponse(self.name, f"API error: {message}")

        # "items" is omitted entirely when there are no results
        items = data.get("items") or []
        if not isinstance(items, list):
            raise ProviderBadResponse(self.name, "'items' is not a list")

        hits = [
            SearchHit(
                title=clean_text(item.get("title")),
                url=(item.get("link") or "").strip(),
                snippet=clean_text(item.get("snippet")) or None,
            )
            for item in items
            if isinstance(item, dict)
        ]
        return self.validate(hits)
