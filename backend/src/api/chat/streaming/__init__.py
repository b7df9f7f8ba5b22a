"""
Streaming package for chat session replies.

- handlers.py: SSE response for ChatSessionManager.stream_reply
- helpers.py: SSE formatting utilities
"""

from .handlers import chat_stream_response, stream_session_events

__all__ = ["chat_stream_response", "stream_session_events"]
