"""Enhancement pipeline: discovery, acquisition, generation, finalization."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from enhancer.core.exceptions import NotFoundError, PipelineFailureError
from enhancer.core.observability import get_tracer
from enhancer.generation.client import TextGenerator
from enhancer.models import Document, DocumentStatus, LogPhase
from enhancer.models.document import utcnow
from enhancer.orchestration.prompts import build_rewrite_prompt
from enhancer.references.acquisition import ReferenceAcquisition
from enhancer.storage.documents import DocumentStore
from enhancer.storage.locks import AttemptLock, LocalAttemptLock, hold_attempt
from enhancer.utils.audit import audit_log
from enhancer.utils.monitoring import acquired_references, pipeline_attempts_total, stage_duration_seconds

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

STAGE_PIPELINE = "pipeline"
STAGE_DISCOVERY = "discovery"
STAGE_GENERATION = "generation"
ENHANCED_TITLE_PREFIX = "Enhanced: "


@dataclass(frozen=True)
class PipelineLimits:
    max_candidates: int = 5
    max_fetch: int = 2


class EnhancementOrchestrator:
    """Drive one document from `original` (or `failed`) to `updated`.

    Every stage appends a `started` entry before doing work and a `completed`
    entry afterwards, and the document is persisted after each append so a
    crash loses at most the stage in flight. Degraded acquisition and provider
    fallback are normal outcomes; anything else marks the document `failed`
    and surfaces as `PipelineFailureError`.
    """

    def __init__(
        self,
        *,
        store: DocumentStore,
        acquisition: ReferenceAcquisition,
        generator: TextGenerator,
        lock: Optional[AttemptLock] = None,
        limits: Optional[PipelineLimits] = None,
    ) -> None:
        self.store = store
        self.acquisition = acquisition
        self.generator = generator
        self.lock = lock or LocalAttemptLock()
        self.limits = limits or PipelineLimits()

    @audit_log("document.process")
    async def process(self, document_id: str) -> Document:
        async with hold_attempt(self.lock, document_id):
            document = await self.store.get(document_id)
            if document is None:
                raise NotFoundError(f"Document {document_id} not found")
            return await self._run_attempt(document)

    async def _run_attempt(self, document: Document) -> Document:
        logger.info("Starting processing for document %s", document.id)
        open_stage: Optional[str] = None

        try:
            document = await self._checkpoint(
                document.evolve(status=DocumentStatus.PROCESSING).with_log(
                    STAGE_PIPELINE, LogPhase.STARTED, "Document processing started"
                )
            )

            open_stage = STAGE_DISCOVERY
            document = await self._discover(document)

            open_stage = STAGE_GENERATION
            document, text = await self._generate(document)
            open_stage = None

            document = await self._checkpoint(
                document.evolve(
                    updated_title=f"{ENHANCED_TITLE_PREFIX}{document.original_title}",
                    updated_content=text,
                    last_updated=utcnow(),
                    status=DocumentStatus.UPDATED,
                ).with_log(STAGE_PIPELINE, LogPhase.COMPLETED, "Document processing completed successfully")
            )
        except Exception as exc:
            logger.exception("Processing failed for document %s", document.id)
            pipeline_attempts_total.labels(outcome="failed").inc()
            await self._mark_failed(document, exc)
            raise PipelineFailureError(document.id, open_stage or STAGE_PIPELINE, str(exc)) from exc

        pipeline_attempts_total.labels(outcome="updated").inc()
        logger.info(
            "Document %s processed in %sms using %s",
            document.id,
            document.processing_time_ms,
            document.ai_model_used,
        )
        return document

    async def _discover(self, document: Document) -> Document:
        document = await self._checkpoint(
            document.with_log(STAGE_DISCOVERY, LogPhase.STARTED, "Searching for and fetching reference articles")
        )

        started = time.perf_counter()
        with tracer.start_as_current_span("enhancer.discovery") as span:
            span.set_attribute("document.id", document.id)
            result = await self.acquisition.acquire(
                document.original_title,
                max_candidates=self.limits.max_candidates,
                max_fetch=self.limits.max_fetch,
            )
            span.set_attribute("references.candidates", len(result.candidates))
            span.set_attribute("references.acquired", len(result.acquired))
        stage_duration_seconds.labels(stage=STAGE_DISCOVERY).observe(time.perf_counter() - started)
        acquired_references.observe(len(result.acquired))

        return await self._checkpoint(
            document.evolve(
                reference_candidates=result.candidates,
                acquired_references=result.acquired,
            ).with_log(STAGE_DISCOVERY, LogPhase.COMPLETED, result.summary())
        )

    async def _generate(self, document: Document) -> tuple[Document, str]:
        document = await self._checkpoint(
            document.with_log(STAGE_GENERATION, LogPhase.STARTED, "Rewriting document")
        )

        prompt = build_rewrite_prompt(document.original_title, document.original_content, document.acquired_references)
        started = time.perf_counter()
        with tracer.start_as_current_span("enhancer.generation") as span:
            span.set_attribute("document.id", document.id)
            outcome = await self.generator.rewrite(
                prompt,
                title=document.original_title,
                body=document.original_content,
                references=document.acquired_references,
            )
            span.set_attribute("generation.provider", outcome.provider_id)
        elapsed = time.perf_counter() - started
        elapsed_ms = int(elapsed * 1000)
        stage_duration_seconds.labels(stage=STAGE_GENERATION).observe(elapsed)

        message = f"Document rewritten using {outcome.provider_id} in {elapsed_ms}ms"
        if outcome.failures:
            message += f" after {len(outcome.failures)} provider failure(s)"
        document = await self._checkpoint(
            document.evolve(
                ai_model_used=outcome.model or outcome.provider_id,
                processing_time_ms=elapsed_ms,
            ).with_log(STAGE_GENERATION, LogPhase.COMPLETED, message)
        )
        return document, outcome.text

    async def _checkpoint(self, document: Document) -> Document:
        return await self.store.save(document)

    async def _mark_failed(self, document: Document, exc: Exception) -> None:
        # Stage helpers checkpoint internally, so the store may hold a longer
        # log than the caller's copy. Append to whichever is newer.
        try:
            latest = await self.store.get(document.id)
        except Exception as load_exc:
            logger.error("Could not reload document %s after failure: %s", document.id, load_exc)
            latest = None
        if latest is None or len(latest.processing_log) < len(document.processing_log):
            latest = document

        failed = latest.evolve(status=DocumentStatus.FAILED)
        open_stage = _open_stage(latest)
        if open_stage is not None:
            failed = failed.with_log(open_stage, LogPhase.FAILED, f"{open_stage} failed: {exc}")
        failed = failed.with_log(STAGE_PIPELINE, LogPhase.FAILED, f"Processing failed: {exc}")
        try:
            await self.store.save(failed)
        except Exception as save_exc:
            logger.error("Could not persist failed state for document %s: %s", document.id, save_exc)


def _open_stage(document: Document) -> Optional[str]:
    """Name of the stage whose `started` entry has no terminal entry yet."""

    if not document.processing_log:
        return None
    last = document.processing_log[-1]
    if last.phase is LogPhase.STARTED and last.stage != STAGE_PIPELINE:
        return last.stage
    return None
