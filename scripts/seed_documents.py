#!/usr/bin/env python
"""
Seed the document store with articles awaiting enhancement.

Usage:
    python scripts/seed_documents.py [path/to/articles.json]

The JSON file holds a list of objects with `title`, `content` and `url` keys.
Without a file, a small built-in sample is inserted.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List

from enhancer.core.config import settings
from enhancer.core.database import database_manager
from enhancer.models import Document
from enhancer.storage import MongoDocumentStore

logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger("enhancer.seed_documents")

SAMPLE_ARTICLES = [
    {
        "title": "Chatbots for Customer Support",
        "url": "https://beyondchats.com/blogs/chatbots-for-customer-support/",
        "content": (
            "Customer support teams handle a growing number of conversations every day.\n\n"
            "Chatbots answer routine questions instantly, which frees human agents to focus on the "
            "conversations that need judgment. They also collect context before a handoff so agents "
            "do not have to ask the same questions twice.\n\n"
            "Choosing a chatbot starts with the questions customers ask most often."
        ),
    },
    {
        "title": "How AI Improves Lead Qualification",
        "url": "https://beyondchats.com/blogs/ai-lead-qualification/",
        "content": (
            "Sales teams lose time on leads that were never a good fit.\n\n"
            "AI assistants can ask qualifying questions on the website, score answers against the ideal "
            "customer profile, and route promising leads to the right salesperson while they are still "
            "engaged."
        ),
    },
]


def load_articles(path: Path) -> List[Dict[str, str]]:
    with path.open(encoding="utf-8") as handle:
        articles = json.load(handle)
    if not isinstance(articles, list):
        raise ValueError(f"{path} must contain a JSON list of articles")
    return articles


async def seed(articles: List[Dict[str, str]]) -> None:
    if settings.STORE_BACKEND != "mongo":
        raise RuntimeError("Seeding requires STORE_BACKEND=mongo")

    await database_manager.initialize()
    store = MongoDocumentStore(database_manager)
    try:
        for article in articles:
            document = Document(
                original_title=article["title"],
                original_content=article["content"],
                original_url=article["url"],
            )
            await store.create(document)
            logger.info("Seeded %s (%s)", document.id, document.original_title)
    finally:
        await database_manager.close()

    logger.info("Seeded %s documents", len(articles))


def main() -> None:
    articles = load_articles(Path(sys.argv[1])) if len(sys.argv) > 1 else SAMPLE_ARTICLES
    asyncio.run(seed(articles))


if __name__ == "__main__":
    main()
