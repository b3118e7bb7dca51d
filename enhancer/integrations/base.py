"""Base integration abstraction."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx


class IntegrationBase:
    """Common plumbing for clients of external HTTP services."""

    name: str = "integration"

    def __init__(self, *, client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0) -> None:
        self._client = client
        self.timeout = timeout

    @asynccontextmanager
    async def http(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the injected client, or a short-lived one owned by this call."""

        if self._client is not None:
            yield self._client
            return

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            yield client
