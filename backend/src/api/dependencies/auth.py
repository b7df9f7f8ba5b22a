"""
Shared authentication dependencies for all API endpoints.
"""

import structlog
from fastapi import Depends, Header, HTTPException, status

from ...core.config import Settings, get_settings
from ...database.mongodb import MongoDB
from ...models.identity import Identity
from ...services.auth_service import AuthService

logger = structlog.get_logger()


def get_mongodb() -> MongoDB:
    """Get MongoDB instance from app state."""
    from ...main import app

    mongodb: MongoDB = app.state.mongodb
    return mongodb


def get_auth_service(settings: Settings = Depends(get_settings)) -> AuthService:
    """Get auth service for token verification."""
    return AuthService(settings)


def _bearer_token(authorization: str) -> str:
    """Extract token from "Bearer <token>"."""
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Expected: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return parts[1]


async def get_optional_identity(
    authorization: str | None = Header(None),
    auth_service: AuthService = Depends(get_auth_service),
) -> Identity | None:
    """
    Identity of the caller, or None when no Authorization header is sent.

    Anonymous callers get a chat without persistence; a token that is sent
    but fails verification is still rejected with 401.
    """
    if not authorization:
        return None

    return auth_service.verify_token(_bearer_token(authorization))


async def get_current_identity(
    identity: Identity | None = Depends(get_optional_identity),
) -> Identity:
    """
    Identity of the caller; the Authorization header is required.

    Raises:
        HTTPException: If the header is missing (invalid tokens raise earlier)
    """
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
