"""
Utility functions
"""
from .dates import (
    DATE_FORMAT,
    BusinessClock,
    FixedClock,
    parse_date,
    format_date,
    add_days,
    add_years,
)
from .secure_logging import (
    SensitiveDataFilter,
    SecureFormatter,
    JSONSecureFormatter,
    SENSITIVE_PATTERNS,
    configure_secure_logging,
)

__all__ = [
    # Dates
    "DATE_FORMAT",
    "BusinessClock",
    "FixedClock",
    "parse_date",
    "format_date",
    "add_days",
    "add_years",
    # Secure Logging
    "SensitiveDataFilter",
    "SecureFormatter",
    "JSONSecureFormatter",
    "SENSITIVE_PATTERNS",
    "configure_secure_logging",
]
