"""
Chat API module for the FinBot assistant.

The module is organized as:
- sessions.py: chat screen sessions (start, send with SSE, new chat,
  profile update, history navigation)
- endpoints.py: persisted chat history (list, read, rename, delete)
- streaming/: SSE handler and formatting helpers
"""

from fastapi import APIRouter

from .endpoints import router as history_router
from .sessions import router as sessions_router

# Create main router with prefix and tags
router = APIRouter(prefix="/api/chat", tags=["chat"])

router.include_router(sessions_router)
router.include_router(history_router)

__all__ = ["router"]
