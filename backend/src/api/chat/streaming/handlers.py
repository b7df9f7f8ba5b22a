"""
Streaming handler for chat session messages.

Turns the events of ChatSessionManager.stream_reply into an SSE response
and bounds the whole reply by the configured stream timeout.
"""

import asyncio
from collections.abc import AsyncGenerator

import structlog
from fastapi.responses import StreamingResponse

from ....agent.chat_session import (
    SEND_FAILED_MESSAGE,
    ChatEvent,
    ChatSessionManager,
    PendingSend,
)
from .helpers import create_chat_event, create_error_event

logger = structlog.get_logger()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def stream_session_events(
    manager: ChatSessionManager,
    pending: PendingSend,
    timeout_seconds: float,
) -> AsyncGenerator[str, None]:
    """
    SSE lines for one send reserved with begin_send().

    On timeout the reply is cut off; the manager's cleanup leaves the
    placeholder with the generic error text and the session usable again.
    """
    events = manager.stream_reply(pending)
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_seconds

    try:
        while True:
            try:
                event: ChatEvent = await asyncio.wait_for(
                    anext(events), timeout=max(deadline - loop.time(), 0)
                )
            except StopAsyncIteration:
                return
            except TimeoutError:
                logger.error(
                    "Chat streaming timeout",
                    chat_id=manager.chat_id,
                    user_id=manager.user_id,
                    timeout_seconds=timeout_seconds,
                )
                yield create_error_event(
                    SEND_FAILED_MESSAGE, "STREAM_TIMEOUT", message_id=pending.buffer.id
                )
                return

            yield create_chat_event(event)
    finally:
        # Client disconnects close this generator; release the send as well
        await events.aclose()


def chat_stream_response(
    manager: ChatSessionManager, pending: PendingSend, timeout_seconds: float
) -> StreamingResponse:
    """Wrap a send in a text/event-stream response."""
    return StreamingResponse(
        stream_session_events(manager, pending, timeout_seconds),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
