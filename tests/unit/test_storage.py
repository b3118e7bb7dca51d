from datetime import datetime, timedelta, timezone

import pytest

from enhancer.core.exceptions import InvalidStateError, ServiceUnavailableError
from enhancer.models import Document, DocumentStatus, ReferenceCandidate
from enhancer.storage import (
    DocumentFilter,
    InMemoryDocumentStore,
    LocalAttemptLock,
    Page,
    RedisAttemptLock,
    SortSpec,
    hold_attempt,
)
from enhancer.storage.documents import _from_mongo, _to_mongo

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_documents():
    return [
        Document(id="a", original_title="A", original_content="one two", scraped_date=BASE, processing_time_ms=100,
                 status=DocumentStatus.UPDATED),
        Document(id="b", original_title="B", original_content="three", scraped_date=BASE + timedelta(days=1)),
        Document(id="c", original_title="C", original_content="four five six", scraped_date=BASE + timedelta(days=2),
                 processing_time_ms=300, status=DocumentStatus.FAILED),
    ]


@pytest.mark.asyncio
async def test_list_filters_sorts_and_pages():
    store = InMemoryDocumentStore(make_documents())

    newest, total = await store.list(DocumentFilter(), SortSpec(), Page(1, 2))
    assert [d.id for d in newest] == ["c", "b"]
    assert total == 3

    oldest, _ = await store.list(DocumentFilter(), SortSpec("scraped_date", descending=False), Page(2, 2))
    assert [d.id for d in oldest] == ["c"]

    original, total = await store.list(DocumentFilter(status=DocumentStatus.ORIGINAL), SortSpec(), Page())
    assert [d.id for d in original] == ["b"]
    assert total == 1


@pytest.mark.asyncio
async def test_missing_sort_values_order_like_mongo():
    documents = make_documents()
    documents[0] = documents[0].evolve(last_updated=BASE)
    store = InMemoryDocumentStore(documents)

    descending, _ = await store.list(DocumentFilter(), SortSpec("last_updated", True), Page())
    ascending, _ = await store.list(DocumentFilter(), SortSpec("last_updated", False), Page())

    assert descending[0].id == "a"
    assert ascending[-1].id == "a"


@pytest.mark.asyncio
async def test_stats_summarises_statuses():
    stats = await InMemoryDocumentStore(make_documents()).stats()

    assert stats["total"] == 3
    assert stats["updated"] == 1
    assert stats["failed"] == 1
    assert stats["original"] == 1
    assert stats["avg_processing_time_ms"] == 200
    assert stats["total_words"] == 6


@pytest.mark.asyncio
async def test_store_returns_copies():
    store = InMemoryDocumentStore()
    await store.create(Document(id="x", original_title="X"))

    loaded = await store.get("x")
    loaded.reference_candidates.append(ReferenceCandidate(title="Mutated", url="https://m.com"))

    assert (await store.get("x")).reference_candidates == []
    with pytest.raises(ValueError):
        await store.create(Document(id="x", original_title="X"))
    assert await store.get("missing") is None


def test_sort_and_page_validation():
    with pytest.raises(ValueError):
        SortSpec("password")
    with pytest.raises(ValueError):
        Page(0, 10)
    assert Page(3, 10).offset == 20


def test_mongo_mapping_uses_underscore_id():
    document = Document(id="abc", original_title="T").with_log("pipeline", "started", "go")

    record = _to_mongo(document)

    assert record["_id"] == "abc"
    assert "id" not in record
    assert record["status"] == "original"
    assert record["processing_log"][0]["phase"] == "started"
    assert _from_mongo(record).id == "abc"


@pytest.mark.asyncio
async def test_local_lock_rejects_concurrent_attempts():
    lock = LocalAttemptLock()

    async with hold_attempt(lock, "doc"):
        with pytest.raises(InvalidStateError):
            async with hold_attempt(lock, "doc"):
                pass
        async with hold_attempt(lock, "other"):
            pass

    async with hold_attempt(lock, "doc"):
        pass


class FakeRedis:
    def __init__(self):
        self.values = {}
        self.expiry = {}

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.values:
            return None
        self.values[key] = value
        self.expiry[key] = ex
        return True

    async def eval(self, script, numkeys, key, token):
        if self.values.get(key) == token:
            del self.values[key]
            return 1
        return 0


@pytest.mark.asyncio
async def test_redis_lock_uses_token_and_lease():
    client = FakeRedis()
    lock = RedisAttemptLock(client, ttl_seconds=30)

    token = await lock.acquire("doc")
    assert token is not None
    assert client.expiry["lock:document:doc"] == 30
    assert await lock.acquire("doc") is None

    # A stale token must not release somebody else's lock.
    await lock.release("doc", "stale")
    assert "lock:document:doc" in client.values

    await lock.release("doc", token)
    assert await lock.acquire("doc") is not None



class BrokenRedis(FakeRedis):
    async def set(self, key, value, nx=False, ex=None):
        raise ConnectionError("Error connecting to localhost:6379")


@pytest.mark.asyncio
async def test_unreachable_lock_backend_is_service_unavailable():
    lock = RedisAttemptLock(BrokenRedis())

    with pytest.raises(ServiceUnavailableError) as excinfo:
        async with hold_attempt(lock, "doc"):
            pass

    assert excinfo.value.status_code == 503


@pytest.mark.asyncio
async def test_search_matches_title_or_body_case_insensitively():
    store = InMemoryDocumentStore(
        [
            Document(id="t", original_title="Chatbots for Support", original_content="Body"),
            Document(id="b", original_title="Leads", original_content="Qualify leads with a CHATBOT."),
            Document(id="n", original_title="Pricing", original_content="Nothing relevant."),
            Document(id="r", original_title="Regex (a+b)", original_content=""),
        ]
    )

    found = await store.search("chatbot")

    assert sorted(document.id for document in found) == ["b", "t"]
    assert len(await store.search("chatbot", limit=1)) == 1
    assert [document.id for document in await store.search("(a+b)")] == ["r"]
