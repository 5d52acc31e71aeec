"""
AI Providers Package
Evony Tactician - Multi-Provider Support

Supports:
- Groq (llama-3.1-8b-instant) - primary analyst
- Google Gemini (gemini-1.5-flash) - multimodal fallback
- DeepSeek (deepseek-chat) - strategy advisor
- OpenAI GPT and Anthropic Claude - optional extra fallbacks

Usage:
    from ai_providers import create_providers
    from config.settings import settings

    providers = create_providers(["groq", "gemini"], settings)

    # One-shot analysis
    response = await providers[0].generate(prompt)

    # Streaming chat
    stream = providers[0].stream_chat(history, "What should I send?", context)
    async for fragment in stream:
        print(fragment, end="")
"""

from .base import (
    BaseAIProvider,
    AIProviderType,
    AIMessage,
    AIResponse,
    AIConfig,
    ImagePart,
    ProviderError,
    ProviderErrorKind,
    classify_provider_error,
)

from .streaming import TextStream

from .groq_provider import GroqProvider
from .gemini_provider import GeminiProvider
from .deepseek_provider import DeepSeekProvider
from .openai_provider import OpenAIProvider
from .claude_provider import ClaudeProvider

from .manager import (
    ProviderInfo,
    PROVIDER_REGISTRY,
    PROVIDER_INFO,
    create_provider,
    create_providers,
    list_providers,
    resolve_provider_type,
)

__all__ = [
    # Base classes
    "BaseAIProvider",
    "AIProviderType",
    "AIMessage",
    "AIResponse",
    "AIConfig",
    "ImagePart",
    "ProviderError",
    "ProviderErrorKind",
    "classify_provider_error",
    "TextStream",

    # Providers
    "GroqProvider",
    "GeminiProvider",
    "DeepSeekProvider",
    "OpenAIProvider",
    "ClaudeProvider",

    # Manager
    "ProviderInfo",
    "PROVIDER_REGISTRY",
    "PROVIDER_INFO",
    "create_provider",
    "create_providers",
    "list_providers",
    "resolve_provider_type",
]

__version__ = "1.0.0"
