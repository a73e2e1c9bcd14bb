"""
Shared HTTP client with connection pooling.

Every outbound call to other microservices goes through this singleton so
connections are reused and closed once on shutdown.
"""

import httpx
import logging
from typing import Optional

from distribution_service.core.config import settings

logger = logging.getLogger(__name__)

_client: Optional[httpx.AsyncClient] = None


async def get_http_client() -> httpx.AsyncClient:
    """
    Return the HTTP client singleton, creating it on first use.

    Returns:
        httpx.AsyncClient configured with pooling
    """
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=settings.ORGANIZATION_TIMEOUT_SECONDS,
                read=settings.ORGANIZATION_TIMEOUT_SECONDS,
                write=settings.ORGANIZATION_TIMEOUT_SECONDS,
                pool=5.0,
            ),
            limits=httpx.Limits(
                max_connections=50,
                max_keepalive_connections=10,
                keepalive_expiry=30.0,
            ),
            http2=True,
            headers={
                "User-Agent": "Distribution-Service/1.0",
            },
            follow_redirects=True,
        )
        logger.info("HTTP client singleton created")

    return _client


async def close_http_client() -> None:
    """Close the singleton (application shutdown)."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
        logger.info("HTTP client closed")
