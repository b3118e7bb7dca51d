"""Command line entry for the article enhancer."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Awaitable, Callable, List, Optional

import uvicorn

from enhancer.api.dependencies import ServiceContainer, build_container
from enhancer.core.config import settings
from enhancer.core.database import database_manager
from enhancer.core.exceptions import ApplicationError

logger = logging.getLogger("enhancer.cli")


def run_server(host: str, port: int) -> None:
    uvicorn.run("enhancer.api.main:app", host=host, port=port)


async def _with_container(action: Callable[[ServiceContainer], Awaitable[object]]) -> object:
    await database_manager.initialize()
    try:
        return await action(build_container(settings, database_manager))
    finally:
        await database_manager.close()


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _process(document_id: str) -> int:
    async def action(container: ServiceContainer):
        return await container.orchestrator.process(document_id)

    try:
        document = asyncio.run(_with_container(action))
    except ApplicationError as exc:
        logger.error("%s", exc.message)
        return 1
    _print_json(
        {
            "id": document.id,
            "status": document.status.value,
            "ai_model_used": document.ai_model_used,
            "processing_time_ms": document.processing_time_ms,
            "acquired_references": len(document.acquired_references),
        }
    )
    return 0


def _bulk(document_ids: List[str], *, pending_limit: Optional[int] = None) -> int:
    async def action(container: ServiceContainer):
        if pending_limit is not None:
            return await container.bulk_driver.bulk_process_pending(limit=pending_limit)
        return await container.bulk_driver.bulk_process(document_ids)

    results = asyncio.run(_with_container(action))
    _print_json([result.__dict__ for result in results])
    return 0 if all(result.success for result in results) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="enhancer", description="Article enhancement pipeline")
    subcommands = parser.add_subparsers(dest="command", required=True)

    serve = subcommands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8080)

    process = subcommands.add_parser("process", help="Enhance a single document")
    process.add_argument("document_id")

    bulk = subcommands.add_parser("bulk", help="Enhance several documents sequentially")
    bulk.add_argument("document_ids", nargs="+")

    pending = subcommands.add_parser("bulk-pending", help="Enhance the oldest unprocessed documents")
    pending.add_argument("--limit", type=int, default=10)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "serve":
        run_server(args.host, args.port)
        return 0
    if args.command == "process":
        return _process(args.document_id)
    if args.command == "bulk":
        return _bulk(args.document_ids)
    return _bulk([], pending_limit=args.limit)


if __name__ == "__main__":
    raise SystemExit(main())
