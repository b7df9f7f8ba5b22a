"""
LangChain-based client for the generative backend.

Uses ChatTongyi (langchain-community) against Alibaba Cloud DashScope. A
session keeps the system instruction plus the conversation so far and
streams each reply chunk by chunk.

Without an API key the client can fall back to an offline session that
streams canned, keyword-based replies so the chat stays usable in
development.
"""

import asyncio
import re
from collections.abc import AsyncGenerator
from typing import Protocol

import structlog
from langchain_community.chat_models import ChatTongyi
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from ..core.config import Settings
from ..core.exceptions import ConfigurationError
from ..models.profile import Persona

logger = structlog.get_logger()


class ChatSession(Protocol):
    """Stateful conversation with the generative backend."""

    def send_message_stream(self, text: str) -> AsyncGenerator[str, None]:
        """Stream the reply to `text` as text chunks."""
        ...


class DashScopeChatSession:
    """
    Multi-turn session backed by ChatTongyi.

    The exchange is added to the history only once the reply has streamed
    completely; a failed or abandoned stream leaves the history unchanged.
    """

    def __init__(self, chat: ChatTongyi, system_instruction: str, settings: Settings):
        self.chat = chat
        self.settings = settings
        self.history: list[BaseMessage] = [SystemMessage(content=system_instruction)]

    async def send_message_stream(self, text: str) -> AsyncGenerator[str, None]:
        messages = [*self.history, HumanMessage(content=text)]

        logger.info(
            "Streaming chat with LangChain",
            model=self.settings.default_llm_model,
            message_count=len(messages),
            temperature=self.settings.llm_temperature,
        )

        # Sampling parameters are passed per request via bind()
        chat_with_params = self.chat.bind(
            temperature=self.settings.llm_temperature,
            top_p=self.settings.llm_top_p,
            top_k=self.settings.llm_top_k,
        )

        reply_parts: list[str] = []
        try:
            async for chunk in chat_with_params.astream(messages):
                content = chunk.content
                if isinstance(content, str) and content:
                    reply_parts.append(content)
                    yield content
        except Exception as e:
            logger.error(
                "LangChain streaming chat failed",
                error=str(e),
                model=self.settings.default_llm_model,
                error_type=type(e).__name__,
            )
            raise

        self.history += [HumanMessage(content=text), AIMessage(content="".join(reply_parts))]
        logger.info(
            "LangChain streaming completed",
            model=self.settings.default_llm_model,
            reply_length=sum(len(part) for part in reply_parts),
        )


def offline_reply(text: str, persona: Persona = Persona.STUDENT) -> str:
    """Canned reply chosen by keywords in the user's message."""
    lowered = text.lower()

    if re.search(r"\b(hello|hi)\b", lowered):
        return (
            "Hello! I'm your personal finance assistant. I can help with budgeting, "
            "saving, investing and more. What would you like to know?"
        )
    if "budget" in lowered or "saving" in lowered:
        return (
            "Good question about budgeting! A few key steps:\n\n"
            "1. Track your income and expenses\n"
            "2. Set clear financial goals\n"
            "3. Group spending into categories\n"
            "4. Review and adjust every month\n\n"
            "Want help putting together a personal budget plan?"
        )
    if "invest" in lowered or "stock" in lowered:
        return (
            "Investing depends on your risk tolerance and goals. For a "
            f"{persona.value.lower()} profile, a sensible order is:\n\n"
            "1. Build an emergency fund first\n"
            "2. Use diversified index funds\n"
            "3. Invest a fixed amount regularly\n"
            "4. Review the portfolio periodically\n\n"
            "What is your time horizon and how much risk are you comfortable with?"
        )
    if "tax" in lowered or "deduction" in lowered:
        return (
            "Tax planning pays off! Some general tips:\n\n"
            "1. Make full use of retirement contributions\n"
            "2. Consider tax-loss harvesting\n"
            "3. Keep good records\n"
            "4. Check with a tax professional for your case\n\n"
            "Which tax question is on your mind?"
        )
    return (
        f'You asked about "{text}". I\'m running in offline mode, so I can only '
        "offer general guidance right now. Configure an API key for personalized "
        "advice. Which financial topic would you like to discuss?"
    )


class OfflineChatSession:
    """Keyword-based stand-in used when no API key is configured."""

    def __init__(self, persona: Persona = Persona.STUDENT, word_delay: float = 0.05):
        self.persona = persona
        self.word_delay = word_delay

    async def send_message_stream(self, text: str) -> AsyncGenerator[str, None]:
        for word in offline_reply(text, self.persona).split(" "):
            yield word + " "
            if self.word_delay:
                await asyncio.sleep(self.word_delay)


class GenerativeClient:
    """Opens chat sessions against DashScope (or the offline fallback)."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._chat: ChatTongyi | None = None

    @property
    def offline(self) -> bool:
        return not self.settings.dashscope_api_key

    def _get_chat(self) -> ChatTongyi:
        if self._chat is None:
            self._chat = ChatTongyi(  # type: ignore[call-arg]  # LangChain stubs incomplete
                model_name=self.settings.default_llm_model,
                dashscope_api_key=self.settings.dashscope_api_key,
                streaming=True,
            )
            logger.info("ChatTongyi client initialized", model=self.settings.default_llm_model)
        return self._chat

    def open_session(
        self, system_instruction: str, persona: Persona = Persona.STUDENT
    ) -> ChatSession:
        """
        Open a new conversation seeded with the system instruction.

        Raises:
            ConfigurationError: No API key and the offline fallback is disabled
        """
        if self.offline:
            if not self.settings.llm_offline_fallback:
                raise ConfigurationError(
                    "API key missing: set DASHSCOPE_API_KEY to enable chat"
                )
            logger.warning("DashScope API key not configured, using offline replies")
            return OfflineChatSession(persona)

        return DashScopeChatSession(self._get_chat(), system_instruction, self.settings)
