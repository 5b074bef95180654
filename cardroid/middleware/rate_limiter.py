"""
Rate limiting

Fingerprint-based keys combine IP and User-Agent, so a single browser
hammering the broadcast or restart forms is throttled on its own.
"""
import hashlib
import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from cardroid.config import settings

logger = logging.getLogger(__name__)


# Rate limits by operation type
RATE_LIMITS = {
    "default": settings.rate_limit_default,
    "form": "30/minute",        # Form submissions that write to the store
    "broadcast": "5/minute",    # Queues a batch of outbound messages
    "session": "3/minute",      # Restarts the WhatsApp session
    "webhook": "300/minute",    # Gateway events
}


def get_rate_limit_key(request: Request) -> str:
    """
    Rate limit key from the client fingerprint (IP + User-Agent)

    Args:
        request: FastAPI request object

    Returns:
        MD5 hash of the combined fingerprint
    """
    ip = get_remote_address(request)
    user_agent = request.headers.get("User-Agent", "")[:50]
    hashed_key = hashlib.md5(f"{ip}:{user_agent}".encode()).hexdigest()
    logger.debug(f"Rate limit key generated for IP {ip}: {hashed_key[:8]}...")
    return hashed_key


def get_rate_limit_key_ip_only(request: Request) -> str:
    """IP-only key, for the gateway webhook."""
    return get_remote_address(request)


def get_rate_limit(operation_type: str) -> str:
    return RATE_LIMITS.get(operation_type, RATE_LIMITS["default"])


# Shared limiter; routes decorate with limiter.limit(get_rate_limit(...))
limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=[RATE_LIMITS["default"]],
    enabled=settings.rate_limit_enabled,
)
