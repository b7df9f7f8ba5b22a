"""
Health check endpoints for monitoring and connectivity verification.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request

from ..core.config import Settings, get_settings
from ..core.utils.date_utils import utcnow
from ..database.mongodb import MongoDB

logger = structlog.get_logger()

router = APIRouter()


def get_mongodb(request: Request) -> MongoDB:
    """Dependency to get MongoDB instance from app state."""
    mongodb: MongoDB = request.app.state.mongodb
    return mongodb


@router.get("/health")
async def health_check(
    mongodb: MongoDB = Depends(get_mongodb),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """
    Health check endpoint.

    Reports MongoDB connectivity and whether the generative backend is
    configured (offline replies are used otherwise).
    """
    logger.info("Health check requested")

    mongodb_status = await mongodb.health_check()
    healthy = bool(mongodb_status.get("connected", False))

    health_response = {
        "status": "ok" if healthy else "degraded",
        "environment": settings.environment,
        "version": "0.1.0",
        "timestamp": utcnow().isoformat(),
        "dependencies": {
            "mongodb": mongodb_status,
        },
        "configuration": {
            "llm_configured": bool(settings.dashscope_api_key),
            "llm_model": settings.default_llm_model,
            "database_name": settings.database_name,
        },
    }

    if healthy:
        logger.info("Health check passed", status="healthy")
    else:
        logger.warning(
            "Health check failed",
            status="degraded",
            dependencies=health_response["dependencies"],
        )

    return health_response


@router.get("/health/mongodb")
async def mongodb_health(mongodb: MongoDB = Depends(get_mongodb)) -> dict[str, Any]:
    """Specific MongoDB health check endpoint."""
    return await mongodb.health_check()


@router.get("/health/ready")
async def readiness_check(mongodb: MongoDB = Depends(get_mongodb)) -> dict[str, Any]:
    """
    Readiness probe endpoint.

    Returns ready only when MongoDB is reachable.
    """
    mongodb_status = await mongodb.health_check()
    ready = bool(mongodb_status.get("connected", False))

    return {"ready": ready, "dependencies": {"mongodb": ready}}


@router.get("/health/live")
async def liveness_check() -> dict[str, Any]:
    """
    Liveness probe endpoint.

    Simple check that the application is running.
    """
    return {"alive": True, "status": "ok"}
