"""
In-memory registry of chat sessions with TTL-based cleanup.

A chat session lives as long as its screen is open; persisted history is
the durable part. Sessions are keyed by ID and bound to the user that opened
them (None for anonymous sessions).
"""

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog

from ..core.config import get_settings
from ..core.utils.date_utils import utcnow
from ..models.profile import UserProfile
from .chat_session import ChatSessionManager

logger = structlog.get_logger()


@dataclass
class RegisteredSession:
    session_id: str
    owner_id: str | None
    manager: ChatSessionManager
    last_access: datetime


class ChatSessionRegistry:
    """
    In-memory session store with automatic TTL cleanup.

    Single-process only; sessions are lost on restart.
    """

    def __init__(self, ttl_minutes: int = 60, cleanup_interval_seconds: int = 60):
        """
        Initialize session registry.

        Args:
            ttl_minutes: Idle time after which a session expires
            cleanup_interval_seconds: How often to run cleanup task
        """
        self._sessions: dict[str, RegisteredSession] = {}
        self._ttl = timedelta(minutes=ttl_minutes)
        self._cleanup_interval = cleanup_interval_seconds
        self._cleanup_task: asyncio.Task | None = None

        logger.info(
            "ChatSessionRegistry initialized",
            ttl_minutes=ttl_minutes,
            cleanup_interval=cleanup_interval_seconds,
        )

    async def start(self) -> None:
        """Start background cleanup task."""
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info("Session cleanup task started")

    async def stop(self) -> None:
        """Stop cleanup and let pending persistence finish."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
            logger.info("Session cleanup task stopped")

        for entry in list(self._sessions.values()):
            await entry.manager.drain()

    def register(self, manager: ChatSessionManager) -> str:
        """
        Track a new session.

        Returns:
            Generated session ID
        """
        session_id = str(uuid.uuid4())
        self._sessions[session_id] = RegisteredSession(
            session_id=session_id,
            owner_id=manager.user_id,
            manager=manager,
            last_access=utcnow(),
        )

        logger.info("Session registered", session_id=session_id, user_id=manager.user_id)
        return session_id

    def get(self, session_id: str, user_id: str | None) -> ChatSessionManager | None:
        """
        Retrieve a session, updating its access time.

        A session opened by another user (or anonymously, when the caller is
        signed in, and vice versa) is treated as missing.
        """
        entry = self._sessions.get(session_id)
        if entry is None:
            logger.debug("Session not found", session_id=session_id)
            return None

        if self._is_expired(entry):
            logger.info("Session expired", session_id=session_id)
            self._delete(session_id)
            return None

        if entry.owner_id != user_id:
            logger.warning(
                "Session owner mismatch", session_id=session_id, user_id=user_id
            )
            return None

        entry.last_access = utcnow()
        return entry.manager

    def remove(self, session_id: str, user_id: str | None) -> bool:
        """Forget a session owned by the caller."""
        if self.get(session_id, user_id) is None:
            return False
        return self._delete(session_id)

    def sessions_for_user(self, user_id: str) -> list[ChatSessionManager]:
        return [
            entry.manager
            for entry in self._sessions.values()
            if entry.owner_id == user_id and not self._is_expired(entry)
        ]

    async def notify_profile_changed(self, user_id: str, profile: UserProfile) -> int:
        """
        Push a saved profile to the user's open sessions.

        Returns:
            Number of sessions restarted because the persona changed
        """
        restarted = 0
        for manager in self.sessions_for_user(user_id):
            if await manager.update_profile(profile):
                restarted += 1

        if restarted:
            logger.info("Sessions restarted after profile change", user_id=user_id, count=restarted)
        return restarted

    def get_session_count(self) -> int:
        """Get current number of active sessions."""
        return len(self._sessions)

    def _is_expired(self, entry: RegisteredSession) -> bool:
        return utcnow() > entry.last_access + self._ttl

    def _delete(self, session_id: str) -> bool:
        entry = self._sessions.pop(session_id, None)
        if entry is None:
            return False
        logger.debug("Session deleted", session_id=session_id)
        return True

    async def _cleanup_loop(self) -> None:
        """Background task to clean up expired sessions."""
        while True:
            try:
                await asyncio.sleep(self._cleanup_interval)
                await self._cleanup_expired_sessions()
            except asyncio.CancelledError:
                logger.info("Cleanup loop cancelled")
                break
            except Exception as e:
                logger.error("Error in cleanup loop", error=str(e))

    async def _cleanup_expired_sessions(self) -> None:
        """Remove expired sessions from memory."""
        expired = [
            session_id
            for session_id, entry in list(self._sessions.items())
            if self._is_expired(entry)
        ]

        for session_id in expired:
            entry = self._sessions.get(session_id)
            if entry is not None:
                await entry.manager.drain()
            self._delete(session_id)

        if expired:
            logger.info(
                "Cleanup completed",
                expired_count=len(expired),
                active_count=len(self._sessions),
            )


# Global singleton instance
_registry: ChatSessionRegistry | None = None


def get_session_registry() -> ChatSessionRegistry:
    """
    Get global session registry instance.

    Returns:
        ChatSessionRegistry singleton
    """
    global _registry
    if _registry is None:
        settings = get_settings()
        _registry = ChatSessionRegistry(
            ttl_minutes=settings.session_ttl_minutes,
            cleanup_interval_seconds=settings.session_cleanup_interval_seconds,
        )
    return _registry
