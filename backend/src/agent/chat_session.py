"""
Chat session manager.

Owns one conversation screen: the remote generative session, the visible
transcript, follow-up suggestions and the persisted chat it maps to.

State machine:
    UNINITIALIZED -> STARTING -> READY <-> SENDING
                            \\-> ERROR (session could not be opened)

Every start() bumps a generation counter. A reply stream belongs to the
generation it started in; once the generation moves on (new chat, persona
change, active chat deleted) the stream is abandoned and its remaining
chunks are dropped.
"""

import asyncio
from collections.abc import AsyncGenerator, Coroutine
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, Field

from ..core.config import Settings
from ..core.utils.date_utils import epoch_millis
from ..core.utils.followup_utils import generate_followups
from ..core.utils.title_utils import derive_chat_title
from ..models.identity import Identity
from ..models.message import Message, Sender
from ..models.profile import Persona, UserProfile
from ..services.chat_history_service import ChatHistoryService, PersistenceOutcome
from ..services.financial_data_service import (
    FinancialDataService,
    format_financial_context,
)
from .llm_client import ChatSession, GenerativeClient
from .prompts import compose_system_instructions, suggested_topics

logger = structlog.get_logger()

START_FAILED_MESSAGE = "Failed to start chat. Please try again."
SEND_FAILED_MESSAGE = "Sorry, I encountered an error. Please try again."
API_KEY_MESSAGE = "API key missing or invalid. Please check your configuration."


class ChatState(str, Enum):
    UNINITIALIZED = "uninitialized"
    STARTING = "starting"
    READY = "ready"
    SENDING = "sending"
    ERROR = "error"


class MessageBuffer:
    """
    Bot reply that is still streaming.

    The transcript holds the buffer itself, so chunks are appended through
    this handle instead of searching the transcript for the placeholder.
    """

    def __init__(self, message_id: str):
        self.id = message_id
        self._parts: list[str] = []
        self._final: Message | None = None

    @property
    def text(self) -> str:
        if self._final is not None:
            return self._final.text
        return "".join(self._parts)

    @property
    def finalized(self) -> bool:
        return self._final is not None

    def append(self, chunk: str) -> None:
        if self._final is None:
            self._parts.append(chunk)

    def finalize(self, replacement: str | None = None) -> Message:
        """Freeze the reply; `replacement` discards any streamed text."""
        if self._final is None:
            text = replacement if replacement is not None else "".join(self._parts)
            self._final = Message(id=self.id, text=text, sender=Sender.BOT)
        return self._final

    def render(self) -> Message:
        if self._final is not None:
            return self._final
        return Message(id=self.id, text=self.text, sender=Sender.BOT, pending=True)


@dataclass
class ChatEvent:
    """One step of a send, as streamed to the client."""

    type: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, **self.data}


@dataclass
class PendingSend:
    """A send that holds the session in SENDING until its reply is streamed."""

    text: str
    generation: int
    session: ChatSession
    chat_id: str | None
    user_message: Message
    buffer: MessageBuffer


class SessionSnapshot(BaseModel):
    """What the chat screen renders."""

    state: ChatState
    chat_id: str | None = None
    title: str | None = None
    persona: Persona
    messages: list[Message] = Field(default_factory=list)
    followups: list[str] = Field(default_factory=list)
    error: str | None = None
    suggested_topics: list[str] = Field(default_factory=list)


class ChatSessionManager:
    """State machine behind one chat screen."""

    def __init__(
        self,
        client: GenerativeClient,
        history: ChatHistoryService,
        financial_service: FinancialDataService | None,
        settings: Settings,
        identity: Identity | None = None,
        profile: UserProfile | None = None,
        grounding: str | None = None,
    ):
        self.client = client
        self.history = history
        self.financial_service = financial_service
        self.settings = settings
        self.identity = identity
        self.profile = profile or UserProfile()
        self.grounding = grounding

        self.state = ChatState.UNINITIALIZED
        self.generation = 0
        self.session: ChatSession | None = None
        self.chat_id: str | None = None
        self.title: str | None = None
        self.transcript: list[Message | MessageBuffer] = []
        self.followups: list[str] = []
        self.error: str | None = None

        self._exchanges = 0
        self._tasks: set[asyncio.Task] = set()
        self._persist_lock = asyncio.Lock()

    @property
    def user_id(self) -> str | None:
        return self.identity.user_id if self.identity else None

    # ===== Lifecycle =====

    async def start(self, profile: UserProfile | None = None) -> None:
        """
        Open a fresh conversation for the current (or given) profile.

        Financial data and chat persistence are optional: their failures
        leave a working session without data or without a stored chat.
        Failing to open the remote session ends in ERROR.
        """
        if profile is not None:
            self.profile = profile

        self.generation += 1
        generation = self.generation

        self.state = ChatState.STARTING
        self.session = None
        self.chat_id = None
        self.title = None
        self.transcript = []
        self.followups = []
        self.error = None
        self._exchanges = 0

        logger.info(
            "Starting chat session",
            user_id=self.user_id,
            persona=self.profile.persona.value,
            generation=generation,
        )

        summary = None
        if self.financial_service is not None:
            try:
                summary = await self.financial_service.get_financial_summary(self.identity)
            except Exception as e:
                logger.warning("Financial context unavailable", error=str(e))

        if generation != self.generation:
            return

        instructions = compose_system_instructions(
            self.profile,
            format_financial_context(summary, self.settings.default_currency_symbol),
            self.grounding,
        )

        try:
            session = self.client.open_session(instructions, persona=self.profile.persona)
        except Exception as e:
            logger.error(
                "Failed to open chat session",
                user_id=self.user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            self.state = ChatState.ERROR
            self.error = START_FAILED_MESSAGE
            return

        outcome = await self.history.create_chat()
        if generation != self.generation:
            return

        self.session = session
        self.chat_id = outcome.value.chat_id if outcome.ok and outcome.value else None
        self.state = ChatState.READY

        logger.info(
            "Chat session ready",
            user_id=self.user_id,
            chat_id=self.chat_id,
            has_financial_data=summary is not None,
        )

    async def new_chat(self) -> None:
        """Start over with the current profile; allowed in any state."""
        await self.start()

    async def update_profile(self, profile: UserProfile) -> bool:
        """
        Replace the profile snapshot.

        Returns:
            True if the persona changed and the session was restarted
        """
        persona_changed = profile.persona != self.profile.persona
        self.profile = profile

        if persona_changed:
            logger.info("Persona changed, restarting chat", persona=profile.persona.value)
            await self.start()

        return persona_changed

    # ===== Sending =====

    def can_send(self, text: str) -> bool:
        return bool(text.strip()) and self.session is not None and self.state == ChatState.READY

    def begin_send(self, text: str) -> PendingSend | None:
        """
        Reserve the session for one send.

        Moves to SENDING and appends the user message and the reply
        placeholder right away, so a second send is refused before the
        first reply starts streaming.

        Returns:
            The reserved send, or None for blank text, a missing session
            or a send already in flight
        """
        if not self.can_send(text):
            logger.debug("Send ignored", state=self.state.value, blank=not text.strip())
            return None

        self.state = ChatState.SENDING
        self.followups = []
        self.error = None

        now = epoch_millis()
        pending = PendingSend(
            text=text,
            generation=self.generation,
            session=self.session,
            chat_id=self.chat_id,
            user_message=Message(id=str(now), text=text, sender=Sender.USER),
            buffer=MessageBuffer(str(now + 1)),
        )
        self.transcript += [pending.user_message, pending.buffer]
        return pending

    async def send_message(self, text: str) -> AsyncGenerator[ChatEvent, None]:
        """
        Send a user message and stream the reply as events.

        Yields user_message, placeholder, then chunk events carrying the full
        text so far, and finally done or error. Blank text, a missing session
        or a send already in flight yield nothing.
        """
        pending = self.begin_send(text)
        if pending is None:
            return

        replies = self.stream_reply(pending)
        try:
            async for event in replies:
                yield event
        finally:
            await replies.aclose()

    async def stream_reply(self, pending: PendingSend) -> AsyncGenerator[ChatEvent, None]:
        """Stream the reply of a send reserved with begin_send()."""
        text = pending.text
        generation = pending.generation
        session = pending.session
        chat_id = pending.chat_id
        user_message = pending.user_message
        buffer = pending.buffer

        completed = False
        try:
            yield ChatEvent("user_message", {"message": user_message.model_dump(mode="json")})
            yield ChatEvent("placeholder", {"message": buffer.render().model_dump(mode="json")})

            stream = session.send_message_stream(text)
            try:
                async for chunk in stream:
                    if generation != self.generation:
                        logger.info("Dropping late chunks of abandoned stream", chat_id=chat_id)
                        return
                    buffer.append(chunk)
                    yield ChatEvent("chunk", {"message_id": buffer.id, "text": buffer.text})
            finally:
                aclose = getattr(stream, "aclose", None)
                if aclose is not None:
                    await aclose()
            completed = True
        except Exception as e:
            if generation != self.generation:
                logger.info("Abandoned stream failed", chat_id=chat_id, error=str(e))
                return

            reason = str(e)
            error_text = API_KEY_MESSAGE if "api key" in reason.lower() else SEND_FAILED_MESSAGE
            buffer.finalize(error_text)
            self.followups = []
            self.state = ChatState.READY

            logger.error(
                "Chat send failed",
                user_id=self.user_id,
                chat_id=chat_id,
                error=reason,
                error_type=type(e).__name__,
            )
            yield ChatEvent(
                "error",
                {"message_id": buffer.id, "text": error_text, "error_code": type(e).__name__},
            )
            return
        finally:
            # Consumer went away mid-stream: leave the session usable
            if (
                not completed
                and not buffer.finalized
                and generation == self.generation
                and self.state == ChatState.SENDING
            ):
                buffer.finalize(SEND_FAILED_MESSAGE)
                self.state = ChatState.READY

        if generation != self.generation:
            return

        bot_message = buffer.finalize()
        self.followups = generate_followups(text, bot_message.text)

        if self._exchanges == 0:
            self.title = derive_chat_title(text, self.settings.chat_title_max_length)
            title_update = self.title
        else:
            title_update = None
        self._exchanges += 1
        self.state = ChatState.READY

        if chat_id:
            self._schedule(
                self._persist_exchange(chat_id, [user_message, bot_message], title_update)
            )

        yield ChatEvent(
            "done",
            {
                "chat_id": chat_id,
                "message": bot_message.model_dump(mode="json"),
                "followups": list(self.followups),
                "title": self.title,
            },
        )

    # ===== Persistence =====

    def _schedule(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _persist_exchange(
        self, chat_id: str, messages: list[Message], title: str | None
    ) -> None:
        # Exchanges are written in the order they completed
        async with self._persist_lock:
            await self._write_exchange(chat_id, messages, title)

    async def _write_exchange(
        self, chat_id: str, messages: list[Message], title: str | None
    ) -> None:
        outcome = await self.history.append_messages(chat_id, messages)
        if not outcome.ok:
            logger.warning("Failed to persist exchange", chat_id=chat_id, error=outcome.error)

        if title:
            outcome = await self.history.rename(chat_id, title)
            if not outcome.ok:
                logger.warning("Failed to persist chat title", chat_id=chat_id, error=outcome.error)

    async def drain(self) -> None:
        """Wait for all scheduled persistence to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ===== History =====

    async def select_chat(self, chat_id: str) -> bool:
        """
        Show a stored chat and make it the active one.

        Returns:
            True if the chat had messages and was loaded
        """
        outcome = await self.history.load_messages(chat_id)
        if not outcome.ok or not outcome.value:
            logger.info("Chat not loaded", chat_id=chat_id, error=outcome.error)
            return False

        # Abandon any reply still streaming into the old transcript
        self.generation += 1
        self.transcript = list(outcome.value)
        self.chat_id = chat_id
        self.title = None
        self.followups = []
        self.error = None
        self._exchanges = sum(1 for m in outcome.value if m.sender == Sender.BOT)
        if self.session is not None:
            self.state = ChatState.READY

        logger.info("Chat selected", chat_id=chat_id, messages=len(outcome.value))
        return True

    async def delete_chat(self, chat_id: str) -> PersistenceOutcome[bool]:
        """Delete a stored chat; deleting the active one starts a new chat."""
        outcome = await self.history.delete(chat_id)
        if chat_id == self.chat_id:
            await self.start()
        return outcome

    async def clear_all_chats(self) -> PersistenceOutcome[int]:
        """Delete every stored chat of the user and start a new one."""
        outcome = await self.history.delete_all()
        await self.start()
        return outcome

    # ===== View =====

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self.state,
            chat_id=self.chat_id,
            title=self.title,
            persona=self.profile.persona,
            messages=[
                entry.render() if isinstance(entry, MessageBuffer) else entry
                for entry in self.transcript
            ],
            followups=list(self.followups),
            error=self.error,
            suggested_topics=suggested_topics(self.profile.persona),
        )
