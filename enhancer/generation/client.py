"""Provider chain with a guaranteed local fallback."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from enhancer.core.exceptions import ProviderError
from enhancer.generation.fallback import FALLBACK_PROVIDER_ID, fallback_rewrite
from enhancer.generation.providers import GenerationOptions, GenerationProvider, GenerationResult
from enhancer.models import AcquiredReference
from enhancer.utils.monitoring import generation_results_total, provider_failures_total

logger = logging.getLogger(__name__)


@dataclass
class RewriteOutcome:
    text: str
    provider_id: str
    model: Optional[str] = None
    failures: List[str] = field(default_factory=list)

    @property
    def used_fallback(self) -> bool:
        return self.provider_id == FALLBACK_PROVIDER_ID


class TextGenerator:
    """Try each provider in priority order; fall back to the local rewrite."""

    def __init__(
        self,
        providers: Sequence[GenerationProvider],
        *,
        timeout_seconds: float = 60.0,
        options: Optional[GenerationOptions] = None,
    ) -> None:
        self.providers = list(providers)
        self.timeout_seconds = timeout_seconds
        self.options = options or GenerationOptions()

    async def rewrite(
        self,
        prompt: str,
        *,
        title: str,
        body: str,
        references: Sequence[AcquiredReference],
    ) -> RewriteOutcome:
        failures: List[str] = []

        for provider in self.providers:
            if not provider.is_configured():
                logger.debug("Skipping unconfigured provider %s", provider.provider_id)
                failures.append(f"{provider.provider_id}: not configured")
                continue

            try:
                result = await self._call(provider, prompt)
            except ProviderError as exc:
                logger.warning("Generation provider failed: %s", exc)
                provider_failures_total.labels(provider=provider.provider_id).inc()
                failures.append(str(exc))
                continue

            logger.info("Rewrite produced by %s", provider.provider_id)
            generation_results_total.labels(provider=provider.provider_id).inc()
            return RewriteOutcome(
                text=result.text,
                provider_id=result.provider_id,
                model=result.model,
                failures=failures,
            )

        logger.info("All generation providers failed; using fallback rewrite")
        generation_results_total.labels(provider=FALLBACK_PROVIDER_ID).inc()
        return RewriteOutcome(
            text=fallback_rewrite(title, body, references),
            provider_id=FALLBACK_PROVIDER_ID,
            failures=failures,
        )

    async def _call(self, provider: GenerationProvider, prompt: str) -> GenerationResult:
        try:
            result = await asyncio.wait_for(provider.generate(prompt, self.options), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise ProviderError(provider.provider_id, f"timed out after {self.timeout_seconds}s") from exc
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(provider.provider_id, str(exc) or exc.__class__.__name__) from exc

        if not result.text or not result.text.strip():
            raise ProviderError(provider.provider_id, "empty rewrite")
        return result
