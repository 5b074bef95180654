"""
HTTP Client Factory with Timeouts

Provides configured httpx clients with sensible defaults for timeouts and
connection pooling. The WhatsApp gateway session builds its client here.
"""
import httpx
from typing import Optional, Dict
import logging

logger = logging.getLogger(__name__)


# Default timeout configuration (in seconds)
DEFAULT_TIMEOUT = httpx.Timeout(
    connect=5.0,   # Time to establish connection
    read=30.0,     # Time to read response
    write=10.0,    # Time to send request
    pool=5.0       # Time to acquire connection from pool
)

# Media uploads (PDF contracts as base64) take longer to post
MEDIA_TIMEOUT = httpx.Timeout(
    connect=10.0,
    read=60.0,
    write=60.0,
    pool=5.0
)


def create_http_client(
    base_url: str = "",
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[httpx.Timeout] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Build an AsyncClient with pooled connections.

    Args:
        base_url: Base URL prepended to relative request paths
        headers: Default headers sent on every request
        timeout: Timeout configuration (defaults to DEFAULT_TIMEOUT)
        transport: Optional transport (tests pass ``httpx.MockTransport``)

    Returns:
        httpx.AsyncClient; the caller owns it and must ``aclose()`` it
    """
    limits = httpx.Limits(
        max_keepalive_connections=5,
        max_connections=10,
        keepalive_expiry=30.0
    )
    logger.debug(f"Creating HTTP client for {base_url or '<no base url>'}")
    return httpx.AsyncClient(
        base_url=base_url,
        headers=headers or {},
        timeout=timeout or DEFAULT_TIMEOUT,
        limits=limits,
        follow_redirects=True,
        transport=transport,
    )
