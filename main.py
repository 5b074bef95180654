"""
Main FastAPI application for the Cardroid WhatsApp bot
"""
import logging
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from contextlib import asynccontextmanager
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from cardroid.config import settings
from cardroid.database import ensure_indexes, close_connection
from cardroid.adapters import WhatsAppSession, EVENT_MESSAGE
from cardroid.api import crm_router, financing_router, warranty_router, whatsapp_router, health_router
from cardroid.exceptions import ChatSessionError
from cardroid.middleware.rate_limiter import limiter
from cardroid.security.error_handler import register_exception_handlers
from cardroid.services import BroadcastDispatcher, BroadcastQueue, InboundMessageHandler, TransactionLedger, create_scheduler
from cardroid.utils.dates import BusinessClock
from cardroid.utils.monitoring import init_sentry, flush_events
from cardroid.utils.secure_logging import configure_secure_logging

# Configure secure logging (masks phone numbers, DNI and credentials)
configure_secure_logging(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format_type=settings.log_format,
    include_trace_id=True,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    # Startup
    logger.info("Starting Cardroid bot...")

    # Initialize Sentry for error tracking
    init_sentry(settings.sentry_dsn, environment=settings.environment)

    # Setup database indexes; without a store the bot keeps running degraded
    try:
        await ensure_indexes()
        logger.info("Database indexes created/verified")
    except Exception as e:
        logger.error(f"MongoDB unavailable, running in degraded mode: {e}")

    clock = BusinessClock(settings.timezone)
    session = WhatsAppSession(
        base_url=settings.whatsapp_gateway_url,
        instance_name=settings.whatsapp_instance_name,
        api_key=settings.whatsapp_gateway_api_key,
        session_dir=settings.whatsapp_session_dir,
        qr_image_path=settings.whatsapp_qr_image_path,
    )
    dispatcher = BroadcastDispatcher(session)
    queue = BroadcastQueue(dispatcher)
    session.on(EVENT_MESSAGE, InboundMessageHandler(dispatcher))

    app.state.clock = clock
    app.state.chat_session = session
    app.state.broadcast_queue = queue
    app.state.ledger = TransactionLedger(settings.ledger_path)

    queue.start()

    try:
        await session.start()
    except ChatSessionError as e:
        logger.error(f"WhatsApp session could not start: {e.message}")

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = create_scheduler(session, clock)
        scheduler.start()

    yield

    # Shutdown
    logger.info("Shutting down...")

    if scheduler is not None:
        scheduler.shutdown(wait=False)

    await queue.stop()
    await session.close()
    logger.info("WhatsApp gateway client closed")

    # Flush pending Sentry events
    flush_events(timeout=2.0)

    # Close database connection
    await close_connection()
    logger.info("Database connection closed")


# Create FastAPI app
app = FastAPI(
    title="Cardroid Bot",
    description="WhatsApp bot and back office for car-radio installation and financing",
    version="1.0.0",
    lifespan=lifespan
)

# Add rate limiter to app state
app.state.limiter = limiter

# Add exception handler for rate limit exceeded
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add SlowAPI middleware
app.add_middleware(SlowAPIMiddleware)

# Plain-text error pages; never exposes internal details
register_exception_handlers(app)

# Include routes
app.include_router(health_router)
app.include_router(crm_router)
app.include_router(financing_router)
app.include_router(warranty_router)
app.include_router(whatsapp_router)


@app.get("/", response_class=PlainTextResponse)
async def root():
    """Liveness message"""
    return "WhatsApp Bot está corriendo."


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload
    )
