"""Reference discovery through a JSON web-search API."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import urlparse

import httpx

from enhancer.core.config import settings
from enhancer.integrations.base import IntegrationBase
from enhancer.models import ReferenceCandidate

logger = logging.getLogger(__name__)

# Aggregators and social platforms never count as reference articles.
EXCLUDED_DOMAINS = (
    "google.com",
    "youtube.com",
    "facebook.com",
    "twitter.com",
    "x.com",
    "linkedin.com",
    "instagram.com",
    "pinterest.com",
    "tiktok.com",
    "wikipedia.org",
    "reddit.com",
    "quora.com",
)

MIN_TITLE_LENGTH = 11
ARTICLE_TLD_PATTERN = re.compile(r"\.(com|org|net|io|co|blog|dev|info|edu|gov)\b", re.IGNORECASE)
MAX_RESULTS_PER_REQUEST = 10


class ReferenceFinder(Protocol):
    async def search(self, query: str, limit: int) -> List[ReferenceCandidate]:
        ...


def is_excluded_domain(domain: str) -> bool:
    domain = domain.lower()
    return any(domain == excluded or domain.endswith("." + excluded) for excluded in EXCLUDED_DOMAINS)


class WebSearchClient(IntegrationBase):
    """Query a Programmable Search style endpoint and keep article-like hits."""

    name = "web_search"

    def __init__(
        self,
        *,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        engine_id: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(client=client, timeout=timeout or settings.SEARCH_TIMEOUT_SECONDS)
        self.api_url = api_url or settings.SEARCH_API_URL
        self.api_key = api_key if api_key is not None else settings.SEARCH_API_KEY
        self.engine_id = engine_id if engine_id is not None else settings.SEARCH_ENGINE_ID

    async def search(self, query: str, limit: int = 5) -> List[ReferenceCandidate]:
        query = query.strip()
        if not query or limit <= 0:
            return []

        if not self.api_key or not self.engine_id:
            raise RuntimeError("Search API credentials are not configured")

        logger.info("Searching references for %r", query)
        params = {
            "key": self.api_key,
            "cx": self.engine_id,
            "q": query,
            "hl": "en",
            "gl": "us",
            # Over-fetch so filtering still leaves `limit` candidates.
            "num": MAX_RESULTS_PER_REQUEST,
        }

        async with self.http() as client:
            response = await client.get(self.api_url, params=params)
            response.raise_for_status()
            payload = response.json()

        candidates = self._filter_results(payload.get("items") or [])[:limit]
        logger.info("Found %s relevant search results", len(candidates))
        return candidates

    def _filter_results(self, items: List[Dict[str, Any]]) -> List[ReferenceCandidate]:
        candidates: List[ReferenceCandidate] = []
        for item in items:
            title = (item.get("title") or "").strip()
            url = (item.get("link") or "").strip()
            if not url.startswith(("http://", "https://")):
                continue

            domain = urlparse(url).hostname or ""
            if is_excluded_domain(domain):
                continue
            if len(title) < MIN_TITLE_LENGTH or not ARTICLE_TLD_PATTERN.search(domain):
                continue

            candidates.append(
                ReferenceCandidate(
                    title=title,
                    url=url,
                    snippet=(item.get("snippet") or "").strip(),
                    domain=domain,
                )
            )
        return candidates
