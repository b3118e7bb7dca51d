import asyncio

import httpx
import pytest

from enhancer.core.config import Settings
from enhancer.core.exceptions import ProviderError
from enhancer.generation import (
    FALLBACK_PROVIDER_ID,
    GenerationProvider,
    GenerationResult,
    HuggingFaceProvider,
    TextGenerator,
    build_providers,
    fallback_rewrite,
)
from enhancer.generation import providers as providers_module


class StubProvider(GenerationProvider):
    def __init__(self, provider_id, text="Rewritten article", configured=True, error=None, delay=0.0):
        self.provider_id = provider_id
        self.text = text
        self.configured = configured
        self.error = error
        self.delay = delay
        self.calls = 0

    def is_configured(self):
        return self.configured

    async def generate(self, prompt, options):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return GenerationResult(text=self.text, provider_id=self.provider_id, model=f"{self.provider_id}-model")


@pytest.mark.asyncio
async def test_first_successful_provider_wins():
    first = StubProvider("alpha", text="From alpha")
    second = StubProvider("beta", text="From beta")
    generator = TextGenerator([first, second])

    outcome = await generator.rewrite("prompt", title="T", body="B", references=[])

    assert outcome.text == "From alpha"
    assert outcome.provider_id == "alpha"
    assert outcome.model == "alpha-model"
    assert second.calls == 0


@pytest.mark.asyncio
async def test_failures_and_timeouts_advance_the_chain():
    broken = StubProvider("broken", error=RuntimeError("boom"))
    slow = StubProvider("slow", delay=1.0)
    empty = StubProvider("empty", text="   ")
    working = StubProvider("working", text="Done")
    generator = TextGenerator([broken, slow, empty, working], timeout_seconds=0.05)

    outcome = await generator.rewrite("prompt", title="T", body="B", references=[])

    assert outcome.provider_id == "working"
    assert outcome.failures == ["broken: boom", "slow: timed out after 0.05s", "empty: empty rewrite"]
    assert not outcome.used_fallback


@pytest.mark.asyncio
async def test_unconfigured_providers_are_skipped():
    skipped = StubProvider("skipped", configured=False)
    generator = TextGenerator([skipped, StubProvider("ok")])

    outcome = await generator.rewrite("prompt", title="T", body="B", references=[])

    assert skipped.calls == 0
    assert outcome.provider_id == "ok"
    assert outcome.failures == ["skipped: not configured"]


@pytest.mark.asyncio
async def test_all_providers_failing_uses_fallback():
    body = "A first paragraph that is long enough.\n\nA second paragraph that is long enough."
    generator = TextGenerator(
        [
            StubProvider("a", error=ProviderError("a", "rate limited")),
            StubProvider("b", configured=False),
        ]
    )

    outcome = await generator.rewrite("prompt", title="Title", body=body, references=[])

    assert outcome.used_fallback
    assert outcome.provider_id == FALLBACK_PROVIDER_ID
    assert outcome.text == fallback_rewrite("Title", body, [])
    assert len(outcome.failures) == 2


@pytest.mark.asyncio
async def test_empty_chain_uses_fallback():
    outcome = await TextGenerator([]).rewrite("prompt", title="", body="", references=[])

    assert outcome.used_fallback
    assert outcome.failures == []


def test_build_providers_keeps_priority_order():
    config = Settings(_env_file=None, OPENAI_API_KEY="sk-test", HF_API_KEY=None)

    providers = build_providers(["openai", "huggingface"], config)

    assert [provider.provider_id for provider in providers] == ["openai", "huggingface"]
    assert providers[0].is_configured()
    assert not providers[1].is_configured()


def test_build_providers_rejects_unknown_names():
    with pytest.raises(ValueError):
        build_providers(["cohere"], Settings(_env_file=None))


def test_build_providers_passes_generation_timeout():
    config = Settings(_env_file=None, GENERATION_TIMEOUT_SECONDS=45)

    providers = build_providers(["huggingface", "openai", "anthropic"], config)

    assert [provider.timeout for provider in providers] == [45, 45, 45]


@pytest.mark.asyncio
async def test_huggingface_client_uses_generation_timeout(monkeypatch):
    created = []
    real_client = httpx.AsyncClient

    def handler(request):
        return httpx.Response(200, json=[{"generated_text": "Slow but complete rewrite"}])

    def recording_client(**kwargs):
        created.append(kwargs.get("timeout"))
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(providers_module.httpx, "AsyncClient", recording_client)
    provider = HuggingFaceProvider(api_key="hf", model="m", base_url="https://hf.test/models", timeout=60.0)

    outcome = await TextGenerator([provider], timeout_seconds=60.0).rewrite(
        "prompt", title="T", body="B", references=[]
    )

    assert outcome.provider_id == "huggingface"
    assert outcome.text == "Slow but complete rewrite"
    # httpx would otherwise cut the request off after its 5s default.
    assert httpx.Timeout(created[0]).read == 60.0
