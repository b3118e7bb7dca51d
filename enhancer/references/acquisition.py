"""Discover candidate references for a document and fetch a bounded subset."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from enhancer.integrations.extractor import ContentExtractor, ExtractedPage
from enhancer.integrations.search import ReferenceFinder
from enhancer.models import AcquiredReference, ReferenceCandidate

logger = logging.getLogger(__name__)


@dataclass
class AcquisitionResult:
    candidates: List[ReferenceCandidate] = field(default_factory=list)
    acquired: List[AcquiredReference] = field(default_factory=list)
    degraded: bool = False

    def summary(self) -> str:
        text = f"Found {len(self.candidates)} candidates, acquired {len(self.acquired)} references"
        if self.degraded:
            text += " (reference discovery unavailable)"
        return text


class ReferenceAcquisition:
    """Search once, then fetch the first `max_fetch` candidates concurrently.

    Every fetch is awaited to completion before returning. A failed, timed-out
    or empty fetch drops only its own reference, and acquired references keep
    the discovery order of their candidates.
    """

    def __init__(
        self,
        finder: ReferenceFinder,
        extractor: ContentExtractor,
        *,
        fetch_timeout_seconds: float = 15.0,
    ) -> None:
        self.finder = finder
        self.extractor = extractor
        self.fetch_timeout_seconds = fetch_timeout_seconds

    async def acquire(self, query: str, max_candidates: int, max_fetch: int) -> AcquisitionResult:
        try:
            candidates = list(await self.finder.search(query, max_candidates))
        except Exception as exc:
            logger.warning("Reference discovery failed for %r: %s", query, exc)
            return AcquisitionResult(degraded=True)

        candidates = candidates[:max_candidates]
        if not candidates:
            logger.info("No reference candidates for %r", query)
            return AcquisitionResult()

        selected = candidates[: max(max_fetch, 0)]
        pages = await self._fetch_all(selected, max_fetch)

        acquired = [
            self._to_reference(candidate, page)
            for candidate, page in zip(selected, pages)
            if page is not None
        ]
        logger.info("Acquired %s of %s selected references", len(acquired), len(selected))
        return AcquisitionResult(candidates=candidates, acquired=acquired)

    async def _fetch_all(self, selected: List[ReferenceCandidate], max_fetch: int) -> List[Optional[ExtractedPage]]:
        if not selected:
            return []
        semaphore = asyncio.Semaphore(max(max_fetch, 1))

        async def fetch(candidate: ReferenceCandidate) -> Optional[ExtractedPage]:
            async with semaphore:
                return await asyncio.wait_for(self.extractor.extract(candidate.url), timeout=self.fetch_timeout_seconds)

        outcomes = await asyncio.gather(*(fetch(candidate) for candidate in selected), return_exceptions=True)

        pages: List[Optional[ExtractedPage]] = []
        for candidate, outcome in zip(selected, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Fetching %s failed: %s", candidate.url, outcome.__class__.__name__)
                pages.append(None)
            else:
                pages.append(outcome)
        return pages

    @staticmethod
    def _to_reference(candidate: ReferenceCandidate, page: ExtractedPage) -> AcquiredReference:
        return AcquiredReference(
            title=page.title or candidate.title,
            url=candidate.url,
            extracted_content=page.body,
            domain=candidate.domain or page.domain,
        )
