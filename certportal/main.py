import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from certportal.application.services.notification_service import \
    NotificationDispatcher
from certportal.infrastructure.cache.redis_cache import CacheService
from certportal.infrastructure.config.settings import get_settings
from certportal.infrastructure.messaging.notification_sinks import (
    LoggingNotificationSink, RedisNotificationSink)
from certportal.infrastructure.persistence.database import (create_tables,
                                                            engine, get_db)
from certportal.presentation.api.dependencies import (get_cache_service,
                                                      get_notifier,
                                                      set_cache_service,
                                                      set_notifier)
from certportal.presentation.api.errors import register_exception_handlers
from certportal.presentation.api.rate_limit import limiter
from certportal.presentation.api.v1.routes import (applications, certificates,
                                                   documents, roles)
from certportal.presentation.middleware import (CorrelationIDMiddleware,
                                                RequestSizeLimitMiddleware,
                                                SecurityHeadersMiddleware,
                                                TimeoutMiddleware)
from certportal.shared.telemetry.logging import setup_logging
from certportal.shared.telemetry.telemetry import (TelemetryConfig,
                                                   get_telemetry,
                                                   set_telemetry)

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for application initialization and cleanup"""
    # Initialize logging
    setup_logging()

    # Production schemas are managed outside the app; development creates them
    if settings.environment == "development":
        await create_tables()
        logger.info("Database tables created")

    # Initialize OpenTelemetry distributed tracing
    if settings.telemetry_enabled:
        try:
            telemetry = TelemetryConfig(
                service_name=settings.app_name,
                service_version=settings.app_version,
                environment=settings.environment,
                enabled=True,
            )

            telemetry.setup_telemetry(
                exporter_type=settings.telemetry_exporter,
                otlp_endpoint=settings.telemetry_otlp_endpoint,
                sample_rate=settings.telemetry_sample_rate,
            )
            telemetry.instrument_fastapi(app)
            telemetry.instrument_sqlalchemy(engine)
            if settings.redis_enabled:
                telemetry.instrument_redis()
            telemetry.instrument_logging()

            set_telemetry(telemetry)
            logger.info(
                f"Distributed tracing initialized: exporter={settings.telemetry_exporter}"
            )
        except Exception as e:
            logger.warning(
                f"Telemetry initialization failed: {e}. Continuing without tracing."
            )
    else:
        logger.info("Distributed tracing disabled in configuration")

    # Initialize Redis cache
    if settings.redis_enabled:
        cache_service = CacheService()
        await cache_service.connect()
        set_cache_service(cache_service)
        logger.info("Redis role cache initialized")
    else:
        logger.info("Redis cache disabled in configuration")

    # Notification channel
    if settings.notification_backend == "redis":
        sink = RedisNotificationSink()
        await sink.connect()
        set_notifier(NotificationDispatcher(sink))
        logger.info("Status notifications published to Redis")
    else:
        set_notifier(NotificationDispatcher(LoggingNotificationSink()))
        logger.info("Status notifications written to the log")

    yield

    # Shutdown: flush notifications, then close connections
    notifier = get_notifier()
    await notifier.drain()
    if isinstance(notifier.sink, RedisNotificationSink):
        await notifier.sink.disconnect()

    if settings.telemetry_enabled:
        telemetry_instance = get_telemetry()
        if telemetry_instance:
            telemetry_instance.shutdown()

    if settings.redis_enabled:
        cache = await get_cache_service()
        await cache.disconnect()
        logger.info("Redis cache disconnected")

    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

# Security middleware (order matters - applied in reverse)
# 1. Request size limit (first check)
app.add_middleware(RequestSizeLimitMiddleware, max_request_size=settings.max_request_size)

# 2. Request timeout
app.add_middleware(TimeoutMiddleware, timeout=settings.request_timeout_seconds)

# 3. Correlation ID for request tracing
app.add_middleware(CorrelationIDMiddleware)

# 4. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 5. CORS middleware
# Using allow_credentials=True requires specific origins (not wildcard)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(applications.router, prefix="/applications", tags=["applications"])
app.include_router(documents.router, prefix="/documents", tags=["documents"])
app.include_router(certificates.router, prefix="/certificates", tags=["certificates"])
app.include_router(roles.router, prefix="/roles", tags=["roles"])


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "workflow_variant": settings.workflow_variant,
        "status": "running",
    }


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint for load balancers and monitoring.

    Returns:
    - 200 OK if the database answers
    - 503 Service Unavailable otherwise

    The Redis cache is reported but optional.
    """
    checks: dict[str, Any] = {
        "api": True,
        "database": False,
        "cache": None,  # None = not configured, True = healthy, False = unhealthy
    }

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True
    except (SQLAlchemyError, OSError) as e:
        checks["error"] = str(e)

    if settings.redis_enabled:
        cache = await get_cache_service()
        checks["cache"] = cache.is_available()

    if checks["api"] and checks["database"]:
        return {"status": "healthy", "checks": checks}
    return JSONResponse(status_code=503, content={"status": "unhealthy", "checks": checks})
