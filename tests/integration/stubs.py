from enhancer.generation import GenerationProvider, GenerationResult, TextGenerator
from enhancer.integrations.extractor import ExtractedPage
from enhancer.models import Document, ReferenceCandidate
from enhancer.orchestration import EnhancementOrchestrator
from enhancer.references import ReferenceAcquisition
from enhancer.storage import InMemoryDocumentStore


class StubFinder:
    def __init__(self, count=3, error=None):
        self.count = count
        self.error = error

    async def search(self, query, limit):
        if self.error is not None:
            raise self.error
        return [
            ReferenceCandidate(
                title=f"{query} guide {i}",
                url=f"https://ref{i}.com/article",
                snippet="",
                domain=f"ref{i}.com",
            )
            for i in range(self.count)
        ][:limit]


class StubExtractor:
    def __init__(self, fail=False):
        self.fail = fail

    async def extract(self, url):
        if self.fail:
            raise ConnectionError("unreachable")
        return ExtractedPage(title=f"Fetched {url}", body="Reference body text", domain="ignored.com")


class StubProvider(GenerationProvider):
    provider_id = "stub"

    def __init__(self, text="# Rewritten\n\nBetter article.", error=None):
        self.text = text
        self.error = error
        self.prompts = []

    async def generate(self, prompt, options):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return GenerationResult(text=self.text, provider_id=self.provider_id, model="stub-model-1")


class FlakyStore(InMemoryDocumentStore):
    """Fails the n-th save call once."""

    def __init__(self, documents, fail_on_save):
        super().__init__(documents)
        self.fail_on_save = fail_on_save
        self.saves = 0

    async def save(self, document):
        self.saves += 1
        if self.saves == self.fail_on_save:
            raise ConnectionError("store unavailable")
        return await super().save(document)


def make_document(document_id="doc-1", **fields):
    values = {
        "original_title": "Chatbots for Support",
        "original_content": "Short.\n\nChatbots help teams answer routine questions quickly.",
        "original_url": "https://blog.example.com/chatbots",
    }
    values.update(fields)
    return Document(id=document_id, **values)


def build_orchestrator(store, *, finder=None, extractor=None, providers=None, lock=None):
    acquisition = ReferenceAcquisition(finder or StubFinder(), extractor or StubExtractor())
    generator = TextGenerator(providers if providers is not None else [StubProvider()])
    return EnhancementOrchestrator(store=store, acquisition=acquisition, generator=generator, lock=lock)


class UnreachableLock:
    async def acquire(self, document_id):
        raise ConnectionError("Error connecting to redis:6379")

    async def release(self, document_id, token):
        raise AssertionError("nothing to release")
