import asyncio

import pytest

from enhancer.integrations.extractor import ExtractedPage
from enhancer.models import ReferenceCandidate
from enhancer.references import ReferenceAcquisition


def candidate(index):
    return ReferenceCandidate(
        title=f"Reference article {index}",
        url=f"https://site{index}.com/post",
        snippet="snippet",
        domain=f"site{index}.com",
    )


class StubFinder:
    def __init__(self, candidates=None, error=None):
        self.candidates = candidates or []
        self.error = error
        self.queries = []

    async def search(self, query, limit):
        self.queries.append((query, limit))
        if self.error is not None:
            raise self.error
        return self.candidates


class StubExtractor:
    """Per-URL behaviour: a delay, an exception, or a missing page."""

    def __init__(self, delays=None, errors=None, missing=()):
        self.delays = delays or {}
        self.errors = errors or {}
        self.missing = set(missing)
        self.requested = []
        self.in_flight = 0
        self.peak = 0

    async def extract(self, url):
        self.requested.append(url)
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(url, 0))
            if url in self.errors:
                raise self.errors[url]
            if url in self.missing:
                return None
            return ExtractedPage(title=f"Page at {url}", body=f"Body of {url}", domain="fetched.com")
        finally:
            self.in_flight -= 1


@pytest.mark.asyncio
async def test_acquires_first_candidates_in_discovery_order():
    candidates = [candidate(i) for i in range(4)]
    # The first candidate finishes last; order must still follow discovery.
    extractor = StubExtractor(delays={candidates[0].url: 0.05})
    acquisition = ReferenceAcquisition(StubFinder(candidates), extractor)

    result = await acquisition.acquire("chatbots", max_candidates=5, max_fetch=2)

    assert result.candidates == candidates
    assert [reference.url for reference in result.acquired] == [candidates[0].url, candidates[1].url]
    assert extractor.requested.count(candidates[2].url) == 0
    assert extractor.peak <= 2
    assert not result.degraded


@pytest.mark.asyncio
async def test_failed_and_empty_fetches_drop_only_their_reference():
    candidates = [candidate(i) for i in range(3)]
    extractor = StubExtractor(
        errors={candidates[0].url: ConnectionError("refused")},
        missing={candidates[1].url},
    )
    acquisition = ReferenceAcquisition(StubFinder(candidates), extractor)

    result = await acquisition.acquire("chatbots", max_candidates=5, max_fetch=3)

    assert [reference.url for reference in result.acquired] == [candidates[2].url]
    assert result.acquired[0].title == f"Page at {candidates[2].url}"
    assert result.acquired[0].domain == "site2.com"
    assert result.acquired[0].extracted_content == f"Body of {candidates[2].url}"


@pytest.mark.asyncio
async def test_slow_fetch_is_abandoned_after_timeout():
    candidates = [candidate(i) for i in range(2)]
    extractor = StubExtractor(delays={candidates[1].url: 1.0})
    acquisition = ReferenceAcquisition(StubFinder(candidates), extractor, fetch_timeout_seconds=0.05)

    result = await acquisition.acquire("chatbots", max_candidates=5, max_fetch=2)

    assert [reference.url for reference in result.acquired] == [candidates[0].url]
    assert result.summary() == "Found 2 candidates, acquired 1 references"


@pytest.mark.asyncio
async def test_discovery_failure_degrades_to_empty_result():
    acquisition = ReferenceAcquisition(StubFinder(error=RuntimeError("quota exceeded")), StubExtractor())

    result = await acquisition.acquire("chatbots", max_candidates=5, max_fetch=2)

    assert result.degraded
    assert result.candidates == []
    assert result.acquired == []
    assert result.summary().endswith("(reference discovery unavailable)")


@pytest.mark.asyncio
async def test_candidates_are_capped_and_empty_query_still_searches():
    finder = StubFinder([candidate(i) for i in range(8)])
    extractor = StubExtractor()
    acquisition = ReferenceAcquisition(finder, extractor)

    result = await acquisition.acquire("", max_candidates=3, max_fetch=0)

    assert finder.queries == [("", 3)]
    assert len(result.candidates) == 3
    assert result.acquired == []
    assert extractor.requested == []


class UntitledExtractor:
    async def extract(self, url):
        return ExtractedPage(title="", body="Body text", domain="untitled.com")


@pytest.mark.asyncio
async def test_untitled_page_keeps_search_result_title():
    acquisition = ReferenceAcquisition(StubFinder([candidate(0)]), UntitledExtractor())

    result = await acquisition.acquire("chatbots", max_candidates=5, max_fetch=2)

    assert result.acquired[0].title == "Reference article 0"
