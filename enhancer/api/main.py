"""FastAPI application entrypoint for the article enhancer."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from enhancer.api.dependencies import ServiceContainer, build_container
from enhancer.api.middleware.logging import LoggingMiddleware
from enhancer.api.routes import documents
from enhancer.core.config import settings
from enhancer.core.database import database_manager
from enhancer.core.exceptions import ApplicationError
from enhancer.core.observability import setup_tracing

_STARTED_AT = time.monotonic()


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """Build the API. Passing a container skips datastore initialization."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Initialize shared resources on startup and tear them down on shutdown."""

        if container is not None:
            app.state.container = container
            yield
            return

        await database_manager.initialize()
        app.state.container = build_container(settings, database_manager)
        try:
            yield
        finally:
            await database_manager.close()

    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    setup_tracing(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    app.include_router(documents.router, prefix="/api")
    app.mount("/metrics", make_asgi_app())

    @app.get("/api/health")
    async def health(request: Request):
        """Liveness plus document store connectivity."""

        database = request.app.state.container.database
        connected = await database.ping()
        return {
            "status": "OK",
            "uptime_seconds": round(time.monotonic() - _STARTED_AT, 1),
            "database": "Connected" if connected else "Disconnected",
            "version": settings.API_VERSION,
        }

    @app.exception_handler(ApplicationError)
    async def handle_application_error(_: Request, exc: ApplicationError):
        """Return standardized responses for application layer exceptions."""

        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})

    return app


app = create_app()
