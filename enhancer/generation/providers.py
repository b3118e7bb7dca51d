"""Text generation providers sharing one call shape."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Type

import httpx
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from enhancer.core.config import Settings, settings
from enhancer.core.exceptions import ProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationOptions:
    max_tokens: int = 1500
    temperature: float = 0.7
    top_p: float = 0.9


@dataclass
class GenerationResult:
    text: str
    provider_id: str
    model: Optional[str] = None


class GenerationProvider(ABC):
    """One external rewrite backend."""

    provider_id: str = "provider"

    @classmethod
    def from_settings(cls, config: Settings) -> "GenerationProvider":
        raise NotImplementedError(f"{cls.__name__} cannot be built from settings")

    def is_configured(self) -> bool:
        return True

    @abstractmethod
    async def generate(self, prompt: str, options: GenerationOptions) -> GenerationResult:
        ...


class HuggingFaceProvider(GenerationProvider):
    provider_id = "huggingface"

    def __init__(
        self,
        *,
        api_key: Optional[str],
        model: str,
        base_url: str,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, config: Settings) -> "HuggingFaceProvider":
        return cls(
            api_key=config.HF_API_KEY,
            model=config.HF_MODEL,
            base_url=config.HF_API_URL,
            timeout=config.GENERATION_TIMEOUT_SECONDS,
        )

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def generate(self, prompt: str, options: GenerationOptions) -> GenerationResult:
        body = {
            "inputs": prompt,
            "parameters": {
                "max_new_tokens": options.max_tokens,
                "temperature": options.temperature,
                "top_p": options.top_p,
                "repetition_penalty": 1.1,
                "do_sample": True,
                "return_full_text": False,
            },
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        url = f"{self.base_url}/{self.model}"

        if self._client is not None:
            response = await self._client.post(url, json=body, headers=headers)
        else:
            # Inference calls run far longer than the httpx default of 5s.
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=body, headers=headers)
        response.raise_for_status()

        data = response.json()
        if isinstance(data, list) and data and data[0].get("generated_text"):
            return GenerationResult(text=data[0]["generated_text"], provider_id=self.provider_id, model=self.model)
        raise ProviderError(self.provider_id, "No generated text in response")


class OpenAIProvider(GenerationProvider):
    provider_id = "openai"

    def __init__(
        self,
        *,
        api_key: Optional[str],
        model: str,
        timeout: float = 60.0,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, config: Settings) -> "OpenAIProvider":
        return cls(api_key=config.OPENAI_API_KEY, model=config.OPENAI_MODEL, timeout=config.GENERATION_TIMEOUT_SECONDS)

    def is_configured(self) -> bool:
        return bool(self.api_key) or self._client is not None

    async def generate(self, prompt: str, options: GenerationOptions) -> GenerationResult:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout)
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=options.max_tokens,
            temperature=options.temperature,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ProviderError(self.provider_id, "Empty completion")
        return GenerationResult(text=content, provider_id=self.provider_id, model=self.model)


class AnthropicProvider(GenerationProvider):
    provider_id = "anthropic"

    def __init__(
        self,
        *,
        api_key: Optional[str],
        model: str,
        timeout: float = 60.0,
        client: Optional[AsyncAnthropic] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, config: Settings) -> "AnthropicProvider":
        return cls(
            api_key=config.ANTHROPIC_API_KEY,
            model=config.ANTHROPIC_MODEL,
            timeout=config.GENERATION_TIMEOUT_SECONDS,
        )

    def is_configured(self) -> bool:
        return bool(self.api_key) or self._client is not None

    async def generate(self, prompt: str, options: GenerationOptions) -> GenerationResult:
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self.api_key, timeout=self.timeout)
        response = await self._client.messages.create(
            model=self.model,
            max_tokens=options.max_tokens,
            temperature=options.temperature,
            messages=[{"role": "user", "content": prompt}],
        )
        text = "".join(block.text for block in response.content if getattr(block, "type", "") == "text")
        if not text:
            raise ProviderError(self.provider_id, "Empty message")
        return GenerationResult(text=text, provider_id=self.provider_id, model=self.model)


PROVIDER_TYPES: Dict[str, Type[GenerationProvider]] = {
    HuggingFaceProvider.provider_id: HuggingFaceProvider,
    OpenAIProvider.provider_id: OpenAIProvider,
    AnthropicProvider.provider_id: AnthropicProvider,
}


def build_providers(names: Iterable[str], config: Settings = settings) -> List[GenerationProvider]:
    """Instantiate providers in the configured priority order."""

    providers: List[GenerationProvider] = []
    for name in names:
        provider_type = PROVIDER_TYPES.get(name)
        if provider_type is None:
            raise ValueError(f"Unknown generation provider '{name}'. Known: {sorted(PROVIDER_TYPES)}")
        providers.append(provider_type.from_settings(config))
    return providers
