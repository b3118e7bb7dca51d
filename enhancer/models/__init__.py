from .document import (
    AcquiredReference,
    Document,
    DocumentStatus,
    LogPhase,
    ProcessingLogEntry,
    ReferenceCandidate,
    WordCount,
)

__all__ = [
    "AcquiredReference",
    "Document",
    "DocumentStatus",
    "LogPhase",
    "ProcessingLogEntry",
    "ReferenceCandidate",
    "WordCount",
]
