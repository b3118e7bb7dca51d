"""Service container wiring the pipeline's collaborators together."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from enhancer.core.config import Settings, settings
from enhancer.core.database import DatabaseManager, database_manager
from enhancer.generation import GenerationOptions, TextGenerator, build_providers
from enhancer.integrations import PageContentExtractor, WebSearchClient
from enhancer.orchestration import BulkDriver, EnhancementOrchestrator, PipelineLimits
from enhancer.references import ReferenceAcquisition
from enhancer.storage import (
    AttemptLock,
    DocumentStore,
    InMemoryDocumentStore,
    LocalAttemptLock,
    MongoDocumentStore,
    RedisAttemptLock,
)

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    store: DocumentStore
    orchestrator: EnhancementOrchestrator
    bulk_driver: BulkDriver
    database: DatabaseManager


def build_container(config: Settings = settings, database: DatabaseManager = database_manager) -> ServiceContainer:
    """Assemble the pipeline from settings. `database` must already be initialized."""

    store: DocumentStore
    if config.STORE_BACKEND == "mongo":
        store = MongoDocumentStore(database)
    else:
        logger.warning("Using in-memory document store; documents will not survive a restart")
        store = InMemoryDocumentStore()

    lock: AttemptLock
    if config.LOCK_BACKEND == "redis" and database.redis is not None:
        lock = RedisAttemptLock(database.redis, ttl_seconds=config.ATTEMPT_LOCK_TTL_SECONDS)
    else:
        lock = LocalAttemptLock()

    acquisition = ReferenceAcquisition(
        WebSearchClient(),
        PageContentExtractor(),
        fetch_timeout_seconds=config.REFERENCE_FETCH_TIMEOUT_SECONDS,
    )
    generator = TextGenerator(
        build_providers(config.GENERATION_PROVIDERS, config),
        timeout_seconds=config.GENERATION_TIMEOUT_SECONDS,
        options=GenerationOptions(max_tokens=config.MAX_TOKENS, temperature=config.TEMPERATURE),
    )
    orchestrator = EnhancementOrchestrator(
        store=store,
        acquisition=acquisition,
        generator=generator,
        lock=lock,
        limits=PipelineLimits(
            max_candidates=config.MAX_REFERENCE_CANDIDATES,
            max_fetch=config.MAX_REFERENCE_FETCH,
        ),
    )
    bulk_driver = BulkDriver(orchestrator, store=store, pacing_seconds=config.BULK_PACING_SECONDS)
    return ServiceContainer(store=store, orchestrator=orchestrator, bulk_driver=bulk_driver, database=database)


async def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container
