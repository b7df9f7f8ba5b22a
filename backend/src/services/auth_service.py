"""
Bearer token verification.

Sign-in, sign-out and refresh happen in the external auth service; this
backend only verifies the access tokens it issues (HS256 with a shared
secret, audience "authenticated", subject = user ID) and turns them into an
explicit Identity.
"""

import structlog
from jose import ExpiredSignatureError, JWTError, jwt

from ..core.config import Settings
from ..core.exceptions import AuthenticationError
from ..models.identity import Identity

logger = structlog.get_logger()


class AuthService:
    """Verifies access tokens and extracts the caller identity."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def verify_token(self, token: str) -> Identity:
        """
        Verify JWT token and extract the identity.

        Args:
            token: JWT token string

        Returns:
            Identity of the token subject

        Raises:
            AuthenticationError: If the token is invalid, expired, or has no subject
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.auth_jwt_secret,
                algorithms=[self.settings.auth_jwt_algorithm],
                audience=self.settings.auth_jwt_audience,
            )
        except ExpiredSignatureError as e:
            logger.info("Token expired")
            raise AuthenticationError("Token expired") from e
        except JWTError as e:
            logger.warning("Token verification failed", error=str(e))
            raise AuthenticationError("Invalid token") from e

        user_id = payload.get("sub")
        if not user_id:
            logger.warning("Invalid token: missing user ID")
            raise AuthenticationError("Invalid token: missing subject")

        return Identity(user_id=user_id, email=payload.get("email"))
