import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from .application.ports.audit_logger import AuditLogger
from .application.ports.rate_limiter import RateLimiter
from .application.ports.sms_sender import SmsSender
from .application.services.credentials import CredentialIssuer
from .core.config import Settings, get_settings
from .database import build_engine, check_database_connection, create_db_and_tables
from .exceptions import AppError, app_error_handler, http_exception_handler, request_validation_handler
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from .infrastructure.sms.factory import build_sms_sender
from .middleware import RateLimitMiddleware, SecurityMiddleware, LoggingMiddleware, ErrorHandlingMiddleware
from .routers import auth_router, users_router
from .schemas import HealthResponse
from .utils import utcnow

logger = logging.getLogger(__name__)


def _build_rate_limiter(settings: Settings) -> RateLimiter:
    if settings.REDIS_URL:
        from .infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter

        logger.info("Using Redis rate limiter")
        return RedisRateLimiter(settings.REDIS_URL)
    return InMemoryRateLimiter()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.APP_NAME}...")
    app.state.db_ok = False
    try:
        create_db_and_tables(app.state.engine)
        app.state.db_ok = check_database_connection(app.state.engine, attempts=settings.DB_CONNECT_ATTEMPTS)
    except Exception:
        # Do not crash the app; report via health endpoint
        logger.exception("Database initialization failed")
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    sms_sender: Optional[SmsSender] = None,
    rate_limiter: Optional[RateLimiter] = None,
    audit: Optional[AuditLogger] = None,
) -> FastAPI:
    """Assemble the application; every collaborator can be swapped in tests."""
    if settings is None:
        # Load environment variables before settings are read
        load_dotenv()
        settings = get_settings()

    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO), format=settings.LOG_FORMAT)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url=("/docs" if settings.DOCS_ENABLED else None),
        redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
        openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None),
    )

    app.state.settings = settings
    app.state.engine = engine or build_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
    app.state.issuer = CredentialIssuer(
        settings.JWT_SECRET,
        access_ttl=settings.access_token_ttl,
        refresh_ttl=settings.refresh_token_ttl,
        algorithm=settings.JWT_ALGORITHM,
    )
    app.state.sms_sender = sms_sender or build_sms_sender(settings)
    app.state.audit = audit or StdAuditLogger()
    app.state.rate_limiter = rate_limiter or _build_rate_limiter(settings)
    app.state.db_ok = False

    # Add custom exception handlers
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Add middleware
    app.add_middleware(
        RateLimitMiddleware,
        limiter=app.state.rate_limiter,
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SEC,
    )
    app.add_middleware(SecurityMiddleware, auth_prefix=f"{settings.API_PREFIX}/auth")
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlingMiddleware, debug=settings.DEBUG)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router.router, prefix=settings.API_PREFIX)
    app.include_router(users_router.router, prefix=settings.API_PREFIX)

    # Health check endpoint
    @app.get(f"{settings.API_PREFIX}/health", response_model=HealthResponse)
    def health_check(request: Request):
        db_ok = getattr(request.app.state, "db_ok", False)
        return HealthResponse(
            success=True,
            status="healthy" if db_ok else "degraded",
            message=f"{settings.APP_NAME} is running" if db_ok else "Database unavailable",
            timestamp=utcnow().isoformat(),
            version=settings.APP_VERSION,
        )

    return app


# ------------------------
# Run with correct PORT in local/production
# ------------------------
if __name__ == "__main__":
    import uvicorn

    load_dotenv()
    _settings = get_settings()
    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host=_settings.HOST,
        port=_settings.PORT,
        workers=1,
        log_level=_settings.LOG_LEVEL.lower(),
    )
