"""Outbound HTTP client management."""
from __future__ import annotations

from collections.abc import AsyncGenerator

import httpx
from fastapi import Depends

from .config import Settings, get_settings


async def get_http_client(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """FastAPI dependency to provide an upstream HTTP client."""

    timeout = httpx.Timeout(settings.upstream_timeout_seconds, connect=5.0)
    async with httpx.AsyncClient(timeout=timeout) as client:
        yield client
