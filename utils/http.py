"""Shared httpx client handling"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

import settings


def default_timeout(total: Optional[float] = None) -> httpx.Timeout:
    """Timeout with the configured connect limit"""
    return httpx.Timeout(total or settings.REQUEST_TIMEOUT, connect=settings.CONNECT_TIMEOUT)


@asynccontextmanager
async def open_client(
    client: Optional[httpx.AsyncClient],
    timeout: Optional[float] = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the injected client, or a short-lived one closed on exit

    Args:
        client: Long-lived client owned by the caller (left open), or None
        timeout: Total timeout for a short-lived client
    """
    if client is not None:
        yield client
        return

    async with httpx.AsyncClient(timeout=default_timeout(timeout)) as owned:
        yield owned
