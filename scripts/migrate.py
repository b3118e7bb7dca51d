#!/usr/bin/env python
"""
Database migration script for the article enhancer.

Creates the MongoDB indexes behind document listing, status filtering and
the pending-document selection used by bulk processing.

Usage:
    python scripts/migrate.py [migrate|rollback|check]
"""

from __future__ import annotations

import asyncio
import logging
import sys

from pymongo import ASCENDING, DESCENDING, IndexModel

from enhancer.core.config import settings
from enhancer.core.database import database_manager

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# ============================================================================
# MongoDB Index Migrations
# ============================================================================

DOCUMENT_INDEXES = [
    IndexModel([("status", ASCENDING)], name="status"),
    IndexModel([("status", ASCENDING), ("scraped_date", DESCENDING)], name="status_scraped_date"),
    IndexModel([("last_updated", DESCENDING)], name="last_updated"),
]


async def run_migrations() -> None:
    logger.info("Starting document store migrations...")

    if settings.STORE_BACKEND != "mongo":
        logger.error("STORE_BACKEND=%s has no schema to migrate", settings.STORE_BACKEND)
        return

    await database_manager.initialize()
    try:
        created = await database_manager.articles().create_indexes(DOCUMENT_INDEXES)
        for name in created:
            logger.info("✓ index %s", name)
        logger.info("✓ Database migrations completed successfully!")
    except Exception as e:
        logger.error("Migration failed: %s", e)
        raise
    finally:
        await database_manager.close()


async def rollback_migrations() -> None:
    logger.warning("Rolling back migrations - this will drop the document indexes!")

    response = input("Are you sure? (yes/no): ")
    if response.lower() != "yes":
        logger.info("Rollback cancelled.")
        return

    await database_manager.initialize()
    try:
        collection = database_manager.articles()
        for index in DOCUMENT_INDEXES:
            name = index.document["name"]
            try:
                await collection.drop_index(name)
                logger.info("Dropped index: %s", name)
            except Exception as e:
                logger.warning("Index %s missing or could not be dropped: %s", name, e)
        logger.info("✓ Rollback completed.")
    finally:
        await database_manager.close()


async def check_schema() -> None:
    logger.info("Checking document store schema...")

    await database_manager.initialize()
    try:
        collection = database_manager.articles()
        indexes = await collection.index_information()
        logger.info("=== INDEXES ===")
        for name, spec in indexes.items():
            logger.info("  %s: %s", name, spec.get("key"))

        logger.info("=== DOCUMENT COUNTS ===")
        for status in ("original", "processing", "updated", "failed"):
            count = await collection.count_documents({"status": status})
            logger.info("  %s: %s", status, count)
    finally:
        await database_manager.close()


def main() -> None:
    command = sys.argv[1] if len(sys.argv) > 1 else "migrate"

    if command == "migrate":
        asyncio.run(run_migrations())
    elif command == "rollback":
        asyncio.run(rollback_migrations())
    elif command == "check":
        asyncio.run(check_schema())
    else:
        logger.error("Unknown command: %s", command)
        logger.info("Usage: python scripts/migrate.py [migrate|rollback|check]")
        sys.exit(1)


if __name__ == "__main__":
    main()
