from .documents import DocumentFilter, DocumentStore, InMemoryDocumentStore, MongoDocumentStore, Page, SortSpec
from .locks import AttemptLock, LocalAttemptLock, RedisAttemptLock, hold_attempt

__all__ = [
    "AttemptLock",
    "DocumentFilter",
    "DocumentStore",
    "InMemoryDocumentStore",
    "LocalAttemptLock",
    "MongoDocumentStore",
    "Page",
    "RedisAttemptLock",
    "SortSpec",
    "hold_attempt",
]
