"""
Chat Session Controller

One follow-up conversation about an analysis. Replies stream into the
assistant message in place; only one reply may stream at a time.
"""

import asyncio
import logging
import re
from typing import List, Optional, Sequence, Tuple

from ai_providers import BaseAIProvider, ProviderError, ProviderErrorKind
from config.constants import CHAT_MAX_TOKENS, CHAT_TEMPERATURE

from .errors import AnalysisFailedError, ChatBusyError, describe_failure
from .history import BattleHistoryStore
from .models import AnalysisResult, ChatMessage, TROOP_TYPES
from .prompts import CHAT_SYSTEM_PROMPT, build_analysis_context

logger = logging.getLogger(__name__)

CANCELED_MARKER = "[Response canceled]"
ERROR_PREFIX = "[Error]"
OPENING_PREVIEW_CHARS = 200

MAX_KEYWORDS = 8
_WORD_RE = re.compile(r"[A-Za-z][A-Za-z'-]{5,}")


def extract_keywords(message: str, analysis: Optional[AnalysisResult] = None) -> List[str]:
    """
    History search terms for a chat message.

    Troop types named in the message come first, then the current report
    type, then longer words from the message.
    """
    lowered = message.lower()
    keywords = [t.value for t in TROOP_TYPES if t.value.lower() in lowered]
    if analysis is not None:
        keywords.append(analysis.report_type.value)

    for word in _WORD_RE.findall(message):
        if word.lower() not in (k.lower() for k in keywords):
            keywords.append(word)

    return keywords[:MAX_KEYWORDS]


class ChatSession:
    """
    Ordered chat history for one session.

    Usage:
        session = ChatSession(providers, history=store, user_id="me@example.com")
        session.set_analysis(result)
        reply = await session.send("What should I reinforce with?")

    Sending while a reply is still streaming raises ChatBusyError; call
    cancel() first to abandon it.
    """

    def __init__(
        self,
        providers: Sequence[BaseAIProvider],
        history: Optional[BattleHistoryStore] = None,
        user_id: Optional[str] = None,
        analysis: Optional[AnalysisResult] = None,
    ):
        self.providers = list(providers)
        self.history = history
        self.user_id = user_id
        self.analysis = analysis

        self._messages: List[ChatMessage] = []
        self._task: Optional[asyncio.Task] = None
        self._cancel_requested = False

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def is_streaming(self) -> bool:
        return self._task is not None and not self._task.done()

    def set_analysis(self, result: AnalysisResult) -> None:
        """Ground the session in a new analysis and post its opening message."""
        self.analysis = result
        if result.summary:
            preview = result.summary[:OPENING_PREVIEW_CHARS]
            self._messages.append(
                ChatMessage.assistant(f"Analysis complete! {preview}...", finalized=True)
            )

    async def send(self, message: str) -> ChatMessage:
        """
        Send a user message and stream the reply.

        Returns:
            The finalized assistant message (reply, error marker or canceled partial)

        Raises:
            ChatBusyError: A previous reply is still streaming
            ValueError: The message is blank
        """
        if self.is_streaming:
            raise ChatBusyError("A reply is already streaming")
        if not message or not message.strip():
            raise ValueError("Message is empty")

        prior = [m for m in self._messages if not m.content.startswith(ERROR_PREFIX)]
        reply = ChatMessage.assistant()
        self._messages.append(ChatMessage.user(message))
        self._messages.append(reply)

        self._cancel_requested = False
        self._task = asyncio.ensure_future(self._stream_reply(prior, message, reply))
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._cancel_requested:
                raise
        return reply

    def cancel(self) -> bool:
        """Cancel the streaming reply, keeping what arrived so far."""
        if not self.is_streaming:
            return False
        self._cancel_requested = True
        self._task.cancel()
        return True

    async def _stream_reply(self, prior, message: str, reply: ChatMessage) -> None:
        try:
            context = await self._build_context(message)
            errors: List[ProviderError] = []

            for provider in self.providers:
                try:
                    if await self._stream_from(provider, prior, message, context, reply):
                        return
                except ProviderError as e:
                    # Failed after partial output: no fallback, the reply is already visible
                    logger.error(f"Chat stream from {provider.name} failed mid-reply: {e}")
                    reply.replace(f"{ERROR_PREFIX} {describe_failure(e)}")
                    return
                except _StartFailed as e:
                    logger.warning(f"Chat provider {provider.name} failed ({e.error.kind.value}): {e.error}")
                    errors.append(e.error)

            reply.replace(f"{ERROR_PREFIX} {AnalysisFailedError(errors).user_message}")
        except asyncio.CancelledError:
            reply.append(("\n\n" if reply.content else "") + CANCELED_MARKER)
            logger.info("Chat reply canceled")
            raise
        finally:
            reply.finalize()

    async def _stream_from(self, provider, prior, message, context, reply) -> bool:
        try:
            stream = provider.stream_chat(
                prior,
                message,
                context=context,
                system_prompt=CHAT_SYSTEM_PROMPT,
                temperature=CHAT_TEMPERATURE,
                max_tokens=CHAT_MAX_TOKENS,
            )
        except ProviderError as e:
            raise _StartFailed(e) from e

        received = False
        try:
            async for fragment in stream:
                reply.append(fragment)
                received = True
        except ProviderError as e:
            if not received:
                raise _StartFailed(e) from e
            raise
        finally:
            await stream.aclose()

        if not received:
            raise _StartFailed(
                ProviderError(ProviderErrorKind.EMPTY, "stream produced no text", provider=provider.name)
            )
        return True

    async def _build_context(self, message: str) -> str:
        parts = []
        analysis_context = build_analysis_context(self.analysis)
        if analysis_context:
            parts.append(analysis_context)

        if self.history is not None and self.user_id:
            keywords = extract_keywords(message, self.analysis)
            try:
                history_context = await self.history.build_context(self.user_id, keywords)
            except Exception as e:
                logger.warning(f"History context unavailable: {e}")
                history_context = ""
            if history_context:
                parts.append(history_context)

        return "\n\n".join(parts)


class _StartFailed(Exception):
    """A provider failed before producing any text; the next one may be tried."""

    def __init__(self, error: ProviderError):
        self.error = error
        super().__init__(str(error))
