"""
Request middleware
"""
from .rate_limiter import limiter, get_rate_limit_key, get_rate_limit_key_ip_only, RATE_LIMITS, get_rate_limit

__all__ = [
    "limiter",
    "get_rate_limit_key",
    "get_rate_limit_key_ip_only",
    "RATE_LIMITS",
    "get_rate_limit",
]
