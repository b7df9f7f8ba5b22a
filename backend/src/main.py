"""
FastAPI application entry point for the FinBot backend.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from .agent.session_manager import get_session_registry
from .api.chat import router as chat_router
from .api.health import router as health_router
from .api.portfolio import router as portfolio_router
from .api.profile import router as profile_router
from .core.config import get_settings
from .core.exceptions import AppError
from .database.mongodb import (
    CHAT_MESSAGES,
    CHATS,
    HOLDINGS,
    PROFILES,
    TRANSACTIONS,
    MongoDB,
)
from .database.repositories import (
    ChatRepository,
    HoldingRepository,
    MessageRepository,
    ProfileRepository,
    TransactionRepository,
)

# Set the root logger level to INFO so we can see detailed logs
logging.basicConfig(level=logging.INFO)

logger = structlog.get_logger()


async def ensure_indexes(mongodb: MongoDB) -> None:
    """Create database indexes for every collection the app uses."""
    await ProfileRepository(mongodb.get_collection(PROFILES)).ensure_indexes()
    await ChatRepository(mongodb.get_collection(CHATS)).ensure_indexes()
    await MessageRepository(mongodb.get_collection(CHAT_MESSAGES)).ensure_indexes()
    await TransactionRepository(mongodb.get_collection(TRANSACTIONS)).ensure_indexes()
    await HoldingRepository(mongodb.get_collection(HOLDINGS)).ensure_indexes()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management for database connections and sessions."""
    settings = get_settings()

    logger.info("Starting FinBot backend", environment=settings.environment)

    mongodb = MongoDB()
    registry = get_session_registry()

    try:
        await mongodb.connect(settings.mongodb_url)
        await ensure_indexes(mongodb)
        logger.info("Database indexes ensured")

        if not settings.dashscope_api_key:
            logger.warning(
                "DASHSCOPE_API_KEY not set",
                offline_fallback=settings.llm_offline_fallback,
            )

        await registry.start()

        # Store in app state for dependency injection
        app.state.mongodb = mongodb

        logger.info("Database connections started")

        yield

    finally:
        # Let pending chat persistence finish before the connection closes
        await registry.stop()
        await mongodb.disconnect()
        logger.info("Database connections stopped")


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Handle all custom AppError exceptions with proper HTTP status codes.

    Keeps ConflictError, AuthenticationError, etc. from surfacing as
    generic 500 errors.
    """
    error_dict = exc.to_dict()

    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Application error occurred",
        path=request.url.path,
        method=request.method,
        **error_dict,
    )

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error_type": exc.error_type},
        headers=headers,
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="FinBot API",
        description="Personal finance chat assistant",
        version="0.1.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Security middleware - only in production
    if settings.is_production:
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=settings.allowed_hosts,
        )

    # CORS middleware for frontend communication
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    # Global exception handler for custom app errors
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]

    # Include routers
    app.include_router(health_router, prefix="/api", tags=["health"])
    app.include_router(profile_router)
    app.include_router(chat_router)  # Chat sessions (SSE) and stored history
    app.include_router(portfolio_router)  # Holdings, transactions, summary

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint for basic connectivity check."""
        return {
            "message": "FinBot API",
            "version": "0.1.0",
            "environment": settings.environment,
        }

    return app


# Create app instance
app = create_app()

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host="0.0.0.0",  # nosec B104 - Required for Docker container
        port=8000,
        reload=settings.is_development,
        log_config=None,  # Use structlog configuration
    )
