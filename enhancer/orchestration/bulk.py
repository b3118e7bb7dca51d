"""Sequential batch driver over the single-document pipeline."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from enhancer.models import DocumentStatus
from enhancer.orchestration.orchestrator import EnhancementOrchestrator
from enhancer.storage.documents import DocumentFilter, DocumentStore, Page, SortSpec
from enhancer.utils.audit import audit_log

logger = logging.getLogger(__name__)


@dataclass
class BulkItemResult:
    document_id: str
    success: bool
    message: str


class BulkDriver:
    """Process documents one at a time, pausing between items for rate limits."""

    def __init__(
        self,
        orchestrator: EnhancementOrchestrator,
        *,
        store: Optional[DocumentStore] = None,
        pacing_seconds: float = 2.0,
    ) -> None:
        self.orchestrator = orchestrator
        self.store = store or orchestrator.store
        self.pacing_seconds = pacing_seconds

    @audit_log("document.bulk_process")
    async def bulk_process(self, document_ids: Sequence[str]) -> List[BulkItemResult]:
        results: List[BulkItemResult] = []

        for index, document_id in enumerate(document_ids):
            if index and self.pacing_seconds > 0:
                await asyncio.sleep(self.pacing_seconds)

            try:
                document = await self.orchestrator.process(document_id)
            except Exception as exc:
                logger.warning("Bulk item %s failed: %s", document_id, exc)
                results.append(BulkItemResult(document_id=document_id, success=False, message=str(exc)))
                continue

            results.append(
                BulkItemResult(
                    document_id=document_id,
                    success=True,
                    message=f"Document processed successfully using {document.ai_model_used}",
                )
            )

        succeeded = sum(1 for result in results if result.success)
        logger.info("Bulk processing finished: %s/%s succeeded", succeeded, len(results))
        return results

    async def bulk_process_pending(
        self,
        status: DocumentStatus = DocumentStatus.ORIGINAL,
        *,
        limit: int = 10,
    ) -> List[BulkItemResult]:
        """Process the oldest documents currently in `status`."""

        documents, total = await self.store.list(
            DocumentFilter(status=status),
            SortSpec(field="scraped_date", descending=False),
            Page(number=1, limit=limit),
        )
        logger.info("Selected %s of %s %s documents for bulk processing", len(documents), total, status.value)
        return await self.bulk_process([document.id for document in documents])
