"""Document persistence: the store contract plus MongoDB and in-process backends."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple

from pymongo import ASCENDING, DESCENDING

from enhancer.core.database import DatabaseManager
from enhancer.models import Document, DocumentStatus
from enhancer.models.document import utcnow

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = frozenset({"scraped_date", "last_updated", "created_at", "updated_at", "original_title", "status"})
SEARCHABLE_FIELDS = ("original_title", "original_content")


@dataclass(frozen=True)
class DocumentFilter:
    status: Optional[DocumentStatus] = None


@dataclass(frozen=True)
class SortSpec:
    field: str = "scraped_date"
    descending: bool = True

    def __post_init__(self) -> None:
        if self.field not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort documents by '{self.field}'")


@dataclass(frozen=True)
class Page:
    number: int = 1
    limit: int = 10

    def __post_init__(self) -> None:
        if self.number < 1 or self.limit < 1:
            raise ValueError("Page number and limit must be positive")

    @property
    def offset(self) -> int:
        return (self.number - 1) * self.limit


class DocumentStore(Protocol):
    async def get(self, document_id: str) -> Optional[Document]:
        ...

    async def save(self, document: Document) -> Document:
        ...

    async def create(self, document: Document) -> Document:
        ...

    async def list(self, filter: DocumentFilter, sort: SortSpec, page: Page) -> Tuple[List[Document], int]:
        ...

    async def search(self, query: str, limit: int = 10) -> List[Document]:
        ...

    async def stats(self) -> Dict[str, Any]:
        ...


def _to_mongo(document: Document) -> Dict[str, Any]:
    payload = document.model_dump(mode="python")
    payload["_id"] = payload.pop("id")
    payload["status"] = document.status.value
    for entry in payload["processing_log"]:
        entry["phase"] = entry["phase"].value
    return payload


def _from_mongo(record: Dict[str, Any]) -> Document:
    record = dict(record)
    record["id"] = str(record.pop("_id"))
    return Document.model_validate(record)


def _empty_stats() -> Dict[str, Any]:
    return {
        "total": 0,
        "original": 0,
        "processing": 0,
        "updated": 0,
        "failed": 0,
        "avg_processing_time_ms": None,
        "total_words": 0,
    }


class MongoDocumentStore:
    """Documents persisted in a MongoDB collection via motor."""

    def __init__(self, database: DatabaseManager) -> None:
        self.database = database

    async def get(self, document_id: str) -> Optional[Document]:
        record = await self.database.articles().find_one({"_id": document_id})
        return _from_mongo(record) if record else None

    async def save(self, document: Document) -> Document:
        document = document.evolve(updated_at=utcnow())
        await self.database.articles().replace_one({"_id": document.id}, _to_mongo(document), upsert=True)
        return document

    async def create(self, document: Document) -> Document:
        await self.database.articles().insert_one(_to_mongo(document))
        logger.info("Created document %s", document.id)
        return document

    async def list(self, filter: DocumentFilter, sort: SortSpec, page: Page) -> Tuple[List[Document], int]:
        query: Dict[str, Any] = {}
        if filter.status is not None:
            query["status"] = filter.status.value

        collection = self.database.articles()
        direction = DESCENDING if sort.descending else ASCENDING
        cursor = collection.find(query).sort(sort.field, direction).skip(page.offset).limit(page.limit)

        items = [_from_mongo(record) async for record in cursor]
        total = await collection.count_documents(query)
        return items, total

    async def search(self, query: str, limit: int = 10) -> List[Document]:
        """Case-insensitive substring match over the source title and body."""

        pattern = {"$regex": re.escape(query), "$options": "i"}
        query_filter = {"$or": [{field: pattern} for field in SEARCHABLE_FIELDS]}
        cursor = self.database.articles().find(query_filter).limit(limit)
        return [_from_mongo(record) async for record in cursor]

    async def stats(self) -> Dict[str, Any]:
        pipeline = [
            {
                "$group": {
                    "_id": None,
                    "total": {"$sum": 1},
                    "original": {"$sum": {"$cond": [{"$eq": ["$status", "original"]}, 1, 0]}},
                    "processing": {"$sum": {"$cond": [{"$eq": ["$status", "processing"]}, 1, 0]}},
                    "updated": {"$sum": {"$cond": [{"$eq": ["$status", "updated"]}, 1, 0]}},
                    "failed": {"$sum": {"$cond": [{"$eq": ["$status", "failed"]}, 1, 0]}},
                    "avg_processing_time_ms": {"$avg": "$processing_time_ms"},
                    "total_words": {"$sum": "$word_count.original"},
                }
            }
        ]
        results = await self.database.articles().aggregate(pipeline).to_list(length=1)
        if not results:
            return _empty_stats()
        summary = results[0]
        summary.pop("_id", None)
        return summary


class InMemoryDocumentStore:
    """Process-local store for offline runs and tests."""

    def __init__(self, documents: Optional[List[Document]] = None) -> None:
        self._documents: Dict[str, Document] = {}
        self._lock = asyncio.Lock()
        for document in documents or []:
            self._documents[document.id] = document.model_copy(deep=True)

    async def get(self, document_id: str) -> Optional[Document]:
        document = self._documents.get(document_id)
        return document.model_copy(deep=True) if document else None

    async def save(self, document: Document) -> Document:
        document = document.evolve(updated_at=utcnow())
        async with self._lock:
            self._documents[document.id] = document.model_copy(deep=True)
        return document

    async def create(self, document: Document) -> Document:
        async with self._lock:
            if document.id in self._documents:
                raise ValueError(f"Document {document.id} already exists")
            self._documents[document.id] = document.model_copy(deep=True)
        return document

    async def list(self, filter: DocumentFilter, sort: SortSpec, page: Page) -> Tuple[List[Document], int]:
        matches = [
            document
            for document in self._documents.values()
            if filter.status is None or document.status == filter.status
        ]
        present = [document for document in matches if getattr(document, sort.field) is not None]
        missing = [document for document in matches if getattr(document, sort.field) is None]
        present.sort(key=lambda document: getattr(document, sort.field), reverse=sort.descending)
        # MongoDB orders missing values first ascending, last descending
        ordered = present + missing if sort.descending else missing + present
        window = ordered[page.offset : page.offset + page.limit]
        return [document.model_copy(deep=True) for document in window], len(matches)

    async def search(self, query: str, limit: int = 10) -> List[Document]:
        needle = query.casefold()
        matches = [
            document
            for document in self._documents.values()
            if any(needle in getattr(document, field).casefold() for field in SEARCHABLE_FIELDS)
        ]
        return [document.model_copy(deep=True) for document in matches[:limit]]

    async def stats(self) -> Dict[str, Any]:
        documents = list(self._documents.values())
        if not documents:
            return _empty_stats()
        summary = _empty_stats()
        summary["total"] = len(documents)
        for document in documents:
            summary[document.status.value] += 1
        timings = [document.processing_time_ms for document in documents if document.processing_time_ms is not None]
        summary["avg_processing_time_ms"] = sum(timings) / len(timings) if timings else None
        summary["total_words"] = sum(document.word_count.original for document in documents)
        return summary
