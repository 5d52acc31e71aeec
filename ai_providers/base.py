"""
Base AI Provider - Abstract Interface
Evony Tactician - Multi-Provider Support
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any, AsyncIterator, Sequence
from dataclasses import dataclass
from enum import Enum

from .streaming import TextStream


class AIProviderType(Enum):
    """Supported AI Providers"""
    GROQ = "groq"
    GEMINI = "gemini"
    DEEPSEEK = "deepseek"
    OPENAI = "openai"
    CLAUDE = "anthropic"


class ProviderErrorKind(Enum):
    """Why a single provider attempt failed"""
    TRANSIENT = "transient"
    AUTH_FAILURE = "auth_failure"
    QUOTA_EXCEEDED = "quota_exceeded"
    EMPTY = "empty"
    NOT_CONFIGURED = "not_configured"


class ProviderError(Exception):
    """A provider call failed. Fatal to one attempt, triggers fallback."""

    def __init__(self, kind: ProviderErrorKind, message: str, provider: str = ""):
        self.kind = kind
        self.provider = provider
        super().__init__(f"{provider}: {message}" if provider else message)


# Billing/credit error patterns
QUOTA_ERROR_PATTERNS = [
    "credit balance is too low",
    "insufficient_quota",
    "exceeded your current quota",
    "quota",
    "resource_exhausted",
    "resource has been exhausted",
    "rate_limit",
    "rate limit",
    "too many requests",
    "billing",
    "payment required",
]

AUTH_ERROR_PATTERNS = [
    "invalid api key",
    "invalid_api_key",
    "api key not valid",
    "authentication",
    "unauthorized",
    "permission denied",
    "api key not found",
    "incorrect api key",
]


def classify_provider_error(error: Exception) -> ProviderErrorKind:
    """Classify a vendor SDK exception into a ProviderErrorKind."""
    if isinstance(error, ProviderError):
        return error.kind
    if isinstance(error, asyncio.TimeoutError):
        return ProviderErrorKind.TRANSIENT

    status = getattr(error, "status_code", None)
    if status is None:
        code = getattr(error, "code", None)
        status = code if isinstance(code, int) else None

    if status in (401, 403):
        return ProviderErrorKind.AUTH_FAILURE
    if status in (402, 429):
        return ProviderErrorKind.QUOTA_EXCEEDED

    error_str = str(error).lower()
    if any(p in error_str for p in QUOTA_ERROR_PATTERNS):
        return ProviderErrorKind.QUOTA_EXCEEDED
    if any(p in error_str for p in AUTH_ERROR_PATTERNS):
        return ProviderErrorKind.AUTH_FAILURE
    return ProviderErrorKind.TRANSIENT


@dataclass
class ImagePart:
    """Encoded image handed to a vision-capable provider"""
    data: bytes
    mime_type: str = "image/png"


@dataclass
class AIMessage:
    """Unified message format across providers"""
    role: str  # "user", "assistant", "system"
    content: str
    images: Optional[List[ImagePart]] = None  # For vision models


@dataclass
class AIResponse:
    """Unified response format"""
    content: str
    model: str
    provider: AIProviderType
    usage: Optional[Dict[str, int]] = None  # tokens used
    finish_reason: Optional[str] = None
    raw_response: Optional[Any] = None


@dataclass
class AIConfig:
    """Provider configuration"""
    api_key: str
    model: str
    max_tokens: int = 2000
    temperature: float = 0.3
    base_url: Optional[str] = None  # For custom endpoints


class BaseAIProvider(ABC):
    """
    Abstract base class for AI providers.

    Subclasses implement the raw vendor calls (initialize, complete, stream).
    The base class turns those into the uniform capability the pipeline uses:
    generate() for one-shot analysis and stream_chat() for follow-up chat,
    both reporting failures as ProviderError.
    """

    def __init__(self, config: AIConfig):
        self.config = config
        self._client = None

    @property
    @abstractmethod
    def provider_type(self) -> AIProviderType:
        """Return the provider type"""
        pass

    @property
    @abstractmethod
    def supported_models(self) -> List[str]:
        """Return list of supported models"""
        pass

    @property
    @abstractmethod
    def supports_vision(self) -> bool:
        """Whether this provider supports vision/image input"""
        pass

    @property
    def name(self) -> str:
        return self.provider_type.value

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the client connection"""
        pass

    @abstractmethod
    async def complete(
        self,
        messages: List[AIMessage],
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AIResponse:
        """
        Generate a completion from the AI model.

        Args:
            messages: List of conversation messages
            system_prompt: Optional system prompt
            **kwargs: Provider-specific parameters (temperature, max_tokens)

        Returns:
            AIResponse with the generated content
        """
        pass

    @abstractmethod
    def stream(
        self,
        messages: List[AIMessage],
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AsyncIterator[str]:
        """
        Stream a completion from the AI model.

        Implemented as an async generator; closing it must release the
        underlying network stream.

        Yields:
            String chunks of the response
        """
        pass

    def _require_configured(self) -> None:
        if not self.is_configured:
            raise ProviderError(
                ProviderErrorKind.NOT_CONFIGURED,
                "API key not configured",
                provider=self.name,
            )

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        images: Optional[Sequence[ImagePart]] = None,
        timeout: Optional[float] = None,
        **kwargs
    ) -> AIResponse:
        """
        One-shot completion of a single prompt.

        Images are attached only when this provider supports vision.

        Raises:
            ProviderError: on any failure, including an empty reply
        """
        self._require_configured()

        attached = list(images) if images and self.supports_vision else None
        messages = [AIMessage(role="user", content=prompt, images=attached)]

        try:
            response = await asyncio.wait_for(
                self.complete(messages, system_prompt=system_prompt, **kwargs),
                timeout=timeout,
            )
        except ProviderError:
            raise
        except asyncio.TimeoutError as e:
            raise ProviderError(
                ProviderErrorKind.TRANSIENT,
                f"request timed out after {timeout}s",
                provider=self.name,
            ) from e
        except Exception as e:
            raise ProviderError(
                classify_provider_error(e), str(e)[:200], provider=self.name
            ) from e

        if not response.content or not response.content.strip():
            raise ProviderError(
                ProviderErrorKind.EMPTY, "AI returned empty response", provider=self.name
            )
        return response

    def stream_chat(
        self,
        history: Sequence[Any],
        message: str,
        context: str = "",
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> TextStream:
        """
        Open a streaming chat reply.

        Args:
            history: prior messages, each with .role ("user"/"assistant") and .content
            message: the new user message
            context: grounding text appended to the system prompt
        """
        self._require_configured()

        system_parts = [p for p in (system_prompt, context) if p]
        messages = [
            AIMessage(role=_role_value(m.role), content=m.content)
            for m in history
            if m.content
        ]
        messages.append(AIMessage(role="user", content=message))

        return TextStream(
            self.stream(messages, system_prompt="\n\n".join(system_parts) or None, **kwargs),
            error_mapper=lambda e: ProviderError(
                classify_provider_error(e), str(e)[:200], provider=self.name
            ),
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} model={self.config.model}>"


def _role_value(role: Any) -> str:
    return getattr(role, "value", role)
