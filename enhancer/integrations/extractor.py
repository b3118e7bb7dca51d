"""Fetch a reference page and pull out its title and article text."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Protocol
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from enhancer.core.config import settings
from enhancer.integrations.base import IntegrationBase

logger = logging.getLogger(__name__)

NOISE_SELECTORS = "script, style, nav, footer, header, aside, iframe, form, .sidebar, .comments, .related"
CONTENT_SELECTORS = (
    "article",
    "main",
    ".post-content",
    ".article-content",
    ".entry-content",
    ".content",
    '[role="main"]',
    "#content",
)
MIN_CONTENT_LENGTH = 300
MIN_PARAGRAPH_LENGTH = 50


@dataclass
class ExtractedPage:
    """Readable text of a fetched page. `title` is empty when the page has none."""

    title: str
    body: str
    domain: str


class ContentExtractor(Protocol):
    async def extract(self, url: str) -> Optional[ExtractedPage]:
        ...


def clean_text(text: str) -> str:
    """Collapse runs of spaces and keep at most one blank line between paragraphs."""

    text = re.sub(r"[ \t\r\f\v]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


class PageContentExtractor(IntegrationBase):
    """Best-effort HTML article extraction; returns None instead of raising."""

    name = "page_extractor"

    def __init__(
        self,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        content_limit: Optional[int] = None,
    ) -> None:
        super().__init__(client=client, timeout=timeout or settings.REFERENCE_FETCH_TIMEOUT_SECONDS)
        self.content_limit = content_limit or settings.EXTRACTED_CONTENT_LIMIT
        self.headers = {
            "User-Agent": settings.USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }

    async def extract(self, url: str) -> Optional[ExtractedPage]:
        try:
            async with self.http() as client:
                response = await client.get(url, headers=self.headers)
                response.raise_for_status()
                html = response.text
            return self.parse(url, html)
        except Exception as exc:
            logger.warning("Failed to extract %s: %s", url, exc)
            return None

    def parse(self, url: str, html: str) -> Optional[ExtractedPage]:
        soup = BeautifulSoup(html, "html.parser")
        for element in soup.select(NOISE_SELECTORS):
            element.decompose()

        title = ""
        heading = soup.find("h1")
        if heading:
            title = heading.get_text(" ", strip=True)
        if not title and soup.title and soup.title.string:
            title = soup.title.string.split("|")[0].strip()

        content = ""
        for selector in CONTENT_SELECTORS:
            element = soup.select_one(selector)
            if element is None:
                continue
            content = element.get_text("\n", strip=True)
            if len(content) > MIN_CONTENT_LENGTH:
                break

        if len(content) < MIN_CONTENT_LENGTH:
            paragraphs = [p.get_text(" ", strip=True) for p in soup.find_all("p")]
            content = "\n\n".join(p for p in paragraphs if len(p) > MIN_PARAGRAPH_LENGTH)

        content = clean_text(content)[: self.content_limit]
        if not content:
            logger.info("No readable content at %s", url)
            return None

        return ExtractedPage(
            title=title,
            body=content,
            domain=urlparse(url).hostname or "",
        )
