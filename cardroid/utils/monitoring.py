"""
Sentry Integration for Error Tracking

Usage:
    from cardroid.utils.monitoring import init_sentry

    # In main.py lifespan
    init_sentry(settings.sentry_dsn, settings.environment)
"""

import logging
from typing import Optional, Dict, Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.pymongo import PyMongoIntegration


logger = logging.getLogger(__name__)

_enabled = False


def init_sentry(
    dsn: Optional[str],
    environment: str = "production",
    traces_sample_rate: float = 0.2,
) -> bool:
    """
    Initialize Sentry SDK with FastAPI, logging and pymongo integrations

    Args:
        dsn: Sentry DSN; tracking stays disabled when empty
        environment: Environment name (production/staging/development)
        traces_sample_rate: APM sampling rate (0.0 - 1.0)

    Returns:
        bool: True if Sentry initialized successfully, False otherwise
    """
    global _enabled

    if not dsn:
        logger.info("SENTRY_DSN not configured. Error tracking disabled.")
        return False

    try:
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            integrations=[
                FastApiIntegration(transaction_style="url"),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
                PyMongoIntegration(),
            ],
            traces_sample_rate=traces_sample_rate,
            send_default_pii=False,
            before_send=_before_send_filter,
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")
        return False

    sentry_sdk.set_tag("application", "cardroid-bot")
    _enabled = True
    logger.info(f"Sentry initialized - Environment: {environment}")
    return True


def _before_send_filter(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Drop health check noise."""
    if event.get("request", {}).get("url", "").endswith("/api/health"):
        return None
    return event


def capture_exception(error: BaseException, **context: Any) -> None:
    """Report an exception that was handled locally (batch loops, jobs)."""
    if not _enabled:
        return
    with sentry_sdk.new_scope() as scope:
        for key, value in context.items():
            scope.set_extra(key, value)
        sentry_sdk.capture_exception(error)


def flush_events(timeout: float = 2.0) -> None:
    """Flush pending events before shutdown."""
    if _enabled:
        sentry_sdk.flush(timeout=timeout)
