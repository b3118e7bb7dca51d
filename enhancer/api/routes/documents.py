"""Document endpoints: listing, lookup, creation and pipeline triggers."""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator

from enhancer.api.dependencies import ServiceContainer, get_container
from enhancer.core.exceptions import NotFoundError
from enhancer.models import Document, DocumentStatus
from enhancer.models.document import TITLE_MAX_LENGTH
from enhancer.storage import DocumentFilter, Page, SortSpec
from enhancer.storage.documents import SORTABLE_FIELDS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


# Request Models


class CreateDocumentRequest(BaseModel):
    """Request body for registering a source document."""

    original_title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    original_content: str = Field(..., min_length=1)
    original_url: str = Field(..., description="Source URL of the article")
    scraped_date: Optional[datetime] = None

    @field_validator("original_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("original_url must start with http:// or https://")
        return v


class BulkProcessRequest(BaseModel):
    document_ids: List[str] = Field(..., min_length=1)


# Response Models


class DocumentListResponse(BaseModel):
    items: List[Document]
    total: int
    page: int
    limit: int
    pages: int


class ProcessResponse(BaseModel):
    document: Document
    processing_time_ms: Optional[int] = None
    ai_model: Optional[str] = None


class BulkItemResponse(BaseModel):
    document_id: str
    success: bool
    message: str


class BulkProcessResponse(BaseModel):
    results: List[BulkItemResponse]
    succeeded: int
    failed: int


class RecentDocument(BaseModel):
    id: str
    original_title: str
    status: DocumentStatus
    scraped_date: datetime


class StatsResponse(BaseModel):
    summary: Dict[str, Optional[float]]
    recent_documents: List[RecentDocument]


# Endpoints


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    status_filter: Optional[DocumentStatus] = Query(None, alias="status"),
    sort_by: str = Query("scraped_date"),
    sort_order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    container: ServiceContainer = Depends(get_container),
) -> DocumentListResponse:
    """List documents with optional status filtering, sorting and pagination."""

    if sort_by not in SORTABLE_FIELDS:
        sort_by = "scraped_date"
    items, total = await container.store.list(
        DocumentFilter(status=status_filter),
        SortSpec(field=sort_by, descending=sort_order == "desc"),
        Page(number=page, limit=limit),
    )
    return DocumentListResponse(items=items, total=total, page=page, limit=limit, pages=math.ceil(total / limit))


@router.get("/stats/summary", response_model=StatsResponse)
async def document_stats(container: ServiceContainer = Depends(get_container)) -> StatsResponse:
    summary = await container.store.stats()
    recent, _ = await container.store.list(DocumentFilter(), SortSpec("scraped_date", True), Page(1, 5))
    return StatsResponse(
        summary=summary,
        recent_documents=[
            RecentDocument(
                id=document.id,
                original_title=document.original_title,
                status=document.status,
                scraped_date=document.scraped_date,
            )
            for document in recent
        ],
    )


@router.get("/search/{query}", response_model=List[Document])
async def search_documents(
    query: str,
    limit: int = Query(10, ge=1, le=100),
    container: ServiceContainer = Depends(get_container),
) -> List[Document]:
    """Case-insensitive substring search over source titles and bodies."""

    return await container.store.search(query, limit)


@router.post("/bulk/process", response_model=BulkProcessResponse)
async def bulk_process_documents(
    body: BulkProcessRequest,
    container: ServiceContainer = Depends(get_container),
) -> BulkProcessResponse:
    """Process documents sequentially; per-item failures are reported, not raised."""

    results = await container.bulk_driver.bulk_process(body.document_ids)
    succeeded = sum(1 for result in results if result.success)
    return BulkProcessResponse(
        results=[
            BulkItemResponse(document_id=result.document_id, success=result.success, message=result.message)
            for result in results
        ],
        succeeded=succeeded,
        failed=len(results) - succeeded,
    )


@router.get("/{document_id}", response_model=Document)
async def get_document(document_id: str, container: ServiceContainer = Depends(get_container)) -> Document:
    document = await container.store.get(document_id)
    if document is None:
        raise NotFoundError(f"Document {document_id} not found")
    return document


@router.post("", response_model=Document, status_code=status.HTTP_201_CREATED)
async def create_document(
    body: CreateDocumentRequest,
    container: ServiceContainer = Depends(get_container),
) -> Document:
    fields = body.model_dump(exclude_none=True)
    document = await container.store.create(Document(**fields))
    logger.info("Registered document %s from %s", document.id, document.original_url)
    return document


@router.post("/{document_id}/process", response_model=ProcessResponse)
async def process_document(document_id: str, container: ServiceContainer = Depends(get_container)) -> ProcessResponse:
    """Run the enhancement pipeline for one document and return the final snapshot."""

    document = await container.orchestrator.process(document_id)
    return ProcessResponse(
        document=document,
        processing_time_ms=document.processing_time_ms,
        ai_model=document.ai_model_used,
    )
