"""
Health Check Routes

Reports the document store and the WhatsApp session separately, so a
missing MONGODB_URI or an unpaired phone shows up as "degraded" instead
of taking the service down.
"""

import logging
import time
from typing import Dict, Any, Optional
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from cardroid.adapters.whatsapp_session import WhatsAppSession
from cardroid.api.dependencies import get_chat_session
from cardroid.config import settings
from cardroid.database import ping
from cardroid.exceptions import StoreUnavailableError


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["health"])

# Track service start time
SERVICE_START_TIME = time.time()


class HealthStatus(BaseModel):
    """Health check response model"""
    status: str  # "healthy" | "degraded"
    timestamp: str
    uptime_seconds: float
    version: str
    environment: Optional[str] = None
    checks: Optional[Dict[str, Any]] = None


class ComponentHealth(BaseModel):
    """Individual component health"""
    status: str  # "up" | "down"
    response_time_ms: Optional[float] = None
    message: Optional[str] = None


@router.get("/health", response_model=HealthStatus)
async def health_check(session: WhatsAppSession = Depends(get_chat_session)) -> HealthStatus:
    """
    Service health with store and chat session status

    Always answers 200 while the process runs; a failing component only
    turns the overall status to "degraded".
    """
    checks = {
        "mongodb": (await _check_mongodb()).model_dump(),
        "whatsapp": _check_whatsapp(session).model_dump(),
    }
    overall_status = "healthy" if all(c["status"] == "up" for c in checks.values()) else "degraded"

    return HealthStatus(
        status=overall_status,
        timestamp=datetime.utcnow().isoformat(),
        uptime_seconds=round(time.time() - SERVICE_START_TIME, 2),
        version="1.0.0",
        environment=settings.environment,
        checks=checks,
    )


async def _check_mongodb() -> ComponentHealth:
    """Check MongoDB connectivity and response time"""
    start_time = time.time()
    try:
        reachable = await ping()
    except StoreUnavailableError as e:
        return ComponentHealth(status="down", message=e.message)

    response_time = round((time.time() - start_time) * 1000, 2)
    if not reachable:
        return ComponentHealth(status="down", response_time_ms=response_time, message="No responde")
    return ComponentHealth(status="up", response_time_ms=response_time)


def _check_whatsapp(session: WhatsAppSession) -> ComponentHealth:
    if session.is_ready:
        return ComponentHealth(status="up")
    return ComponentHealth(status="down", message=f"Sesión: {session.state}")
