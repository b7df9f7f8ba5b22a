"""
Shared helper functions for streaming responses.

SSE event formatting for chat session streams. Every event is a single
`data: {json}` line followed by a blank line.
"""

import json
from typing import Any

from ....agent.chat_session import ChatEvent


def format_sse_event(event_data: dict[str, Any]) -> str:
    """
    Format a dictionary as an SSE (Server-Sent Events) event.

    Args:
        event_data: Dictionary containing event data

    Returns:
        SSE-formatted string with 'data: ' prefix and double newline
    """
    return f"data: {json.dumps(event_data, ensure_ascii=False)}\n\n"


def create_chat_event(event: ChatEvent) -> str:
    """Format a chat session event."""
    return format_sse_event(event.to_dict())


def create_error_event(error_message: str, error_code: str, **extra_data: Any) -> str:
    """
    Create a formatted SSE error event.

    Args:
        error_message: Human-readable error message
        error_code: Error code identifier (e.g., 'STREAM_TIMEOUT')
        **extra_data: Additional data to include (e.g., message_id)

    Returns:
        SSE-formatted error event string
    """
    error_data = {
        "type": "error",
        "text": error_message,
        "error_code": error_code,
        **extra_data,
    }
    return format_sse_event(error_data)
