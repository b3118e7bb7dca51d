"""Document data model definitions."""

from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

TITLE_MAX_LENGTH = 500
WORDS_PER_MINUTE = 200


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def count_words(text: Optional[str]) -> int:
    """Whitespace-delimited token count; empty or missing text counts as zero."""

    if not text:
        return 0
    return len(text.split())


def _require_http_url(value: str) -> str:
    if not value.startswith(("http://", "https://")):
        raise ValueError("URL must start with http:// or https://")
    return value


class DocumentStatus(str, Enum):
    ORIGINAL = "original"
    PROCESSING = "processing"
    UPDATED = "updated"
    FAILED = "failed"


class LogPhase(str, Enum):
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"


class ReferenceCandidate(BaseModel):
    """A search-discovered pointer to external material, not yet fetched."""

    title: str
    url: str
    snippet: str = ""
    domain: str = ""

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        return _require_http_url(value)


class AcquiredReference(BaseModel):
    """A candidate reference whose page content was fetched successfully."""

    title: str
    url: str
    extracted_content: str = ""
    domain: str = ""
    acquired_at: datetime = Field(default_factory=utcnow)

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        return _require_http_url(value)


class ProcessingLogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage: str
    phase: LogPhase
    message: str
    timestamp: datetime = Field(default_factory=utcnow)


class WordCount(BaseModel):
    original: int = 0
    updated: Optional[int] = None


class Document(BaseModel):
    """An ingested article plus the artifacts of its enhancement attempts."""

    model_config = ConfigDict(extra="ignore", use_enum_values=False)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)

    # Source fields
    original_title: str = Field("", max_length=TITLE_MAX_LENGTH)
    original_content: str = ""
    original_url: str = ""
    scraped_date: datetime = Field(default_factory=utcnow)

    # Fields owned by the orchestrator
    updated_title: Optional[str] = Field(None, max_length=TITLE_MAX_LENGTH + len("Enhanced: "))
    updated_content: Optional[str] = None
    last_updated: Optional[datetime] = None
    processing_time_ms: Optional[int] = None
    ai_model_used: Optional[str] = None
    status: DocumentStatus = DocumentStatus.ORIGINAL
    reference_candidates: List[ReferenceCandidate] = Field(default_factory=list)
    acquired_references: List[AcquiredReference] = Field(default_factory=list)
    processing_log: List[ProcessingLogEntry] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("original_title", "updated_title", mode="before")
    @classmethod
    def _strip_title(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str):
            return value.strip()
        return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def word_count(self) -> WordCount:
        updated = count_words(self.updated_content) if self.updated_content is not None else None
        return WordCount(original=count_words(self.original_content), updated=updated)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def reading_time(self) -> int:
        return math.ceil(count_words(self.original_content) / WORDS_PER_MINUTE)

    def with_log(self, stage: str, phase: LogPhase, message: str) -> "Document":
        """Return a copy of the document with one more processing log entry."""

        entry = ProcessingLogEntry(stage=stage, phase=phase, message=message)
        return self.model_copy(update={"processing_log": [*self.processing_log, entry]})

    def evolve(self, **changes) -> "Document":
        """Return a copy of the document with orchestrator-owned fields replaced."""

        return self.model_copy(update=changes)
