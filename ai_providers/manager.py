"""
AI Provider Manager
Evony Tactician - Multi-Provider Support

Builds the ordered provider lists the pipeline falls back through.
"""

from typing import Optional, Dict, List, Type, Sequence
from dataclasses import dataclass

from config.constants import AI_MAX_TOKENS, AI_TEMPERATURE
from config.logging_config import get_logger

from .base import BaseAIProvider, AIProviderType, AIConfig
from .claude_provider import ClaudeProvider
from .deepseek_provider import DeepSeekProvider
from .gemini_provider import GeminiProvider
from .groq_provider import GroqProvider
from .openai_provider import OpenAIProvider

logger = get_logger(__name__)


@dataclass
class ProviderInfo:
    """Information about an AI provider"""
    type: AIProviderType
    name: str
    description: str
    supports_vision: bool
    models: Dict[str, str]
    default_model: str
    env_key: str  # Environment variable name for API key


# Registry of all available providers
PROVIDER_REGISTRY: Dict[AIProviderType, Type[BaseAIProvider]] = {
    AIProviderType.GROQ: GroqProvider,
    AIProviderType.GEMINI: GeminiProvider,
    AIProviderType.DEEPSEEK: DeepSeekProvider,
    AIProviderType.OPENAI: OpenAIProvider,
    AIProviderType.CLAUDE: ClaudeProvider,
}

# Provider information
PROVIDER_INFO: Dict[AIProviderType, ProviderInfo] = {
    AIProviderType.GROQ: ProviderInfo(
        type=AIProviderType.GROQ,
        name="Groq",
        description="Llama on Groq - fast primary analyst",
        supports_vision=False,
        models=GroqProvider.MODELS,
        default_model=GroqProvider.DEFAULT_MODEL,
        env_key="GROQ_API_KEY"
    ),
    AIProviderType.GEMINI: ProviderInfo(
        type=AIProviderType.GEMINI,
        name="Google Gemini",
        description="Gemini - multimodal fallback, reads screenshots directly",
        supports_vision=True,
        models=GeminiProvider.MODELS,
        default_model=GeminiProvider.DEFAULT_MODEL,
        env_key="GEMINI_API_KEY"
    ),
    AIProviderType.DEEPSEEK: ProviderInfo(
        type=AIProviderType.DEEPSEEK,
        name="DeepSeek",
        description="DeepSeek V3 - strategy advisor",
        supports_vision=False,
        models=DeepSeekProvider.MODELS,
        default_model=DeepSeekProvider.DEFAULT_MODEL,
        env_key="DEEPSEEK_API_KEY"
    ),
    AIProviderType.OPENAI: ProviderInfo(
        type=AIProviderType.OPENAI,
        name="OpenAI GPT",
        description="GPT-4o - optional extra fallback",
        supports_vision=True,
        models=OpenAIProvider.MODELS,
        default_model=OpenAIProvider.DEFAULT_MODEL,
        env_key="OPENAI_API_KEY"
    ),
    AIProviderType.CLAUDE: ProviderInfo(
        type=AIProviderType.CLAUDE,
        name="Anthropic Claude",
        description="Claude - optional extra fallback",
        supports_vision=True,
        models=ClaudeProvider.MODELS,
        default_model=ClaudeProvider.DEFAULT_MODEL,
        env_key="ANTHROPIC_API_KEY"
    ),
}

_PROVIDER_ALIASES = {
    "groq": AIProviderType.GROQ,
    "llama": AIProviderType.GROQ,
    "gemini": AIProviderType.GEMINI,
    "google": AIProviderType.GEMINI,
    "deepseek": AIProviderType.DEEPSEEK,
    "openai": AIProviderType.OPENAI,
    "gpt": AIProviderType.OPENAI,
    "anthropic": AIProviderType.CLAUDE,
    "claude": AIProviderType.CLAUDE,
}


def resolve_provider_type(name: str) -> AIProviderType:
    """Map a provider name or alias to its AIProviderType."""
    ptype = _PROVIDER_ALIASES.get(name.strip().lower())
    if ptype is None:
        raise ValueError(f"Unknown provider: {name}")
    return ptype


def create_provider(
    provider: str,
    api_key: str,
    model: Optional[str] = None,
    max_tokens: int = AI_MAX_TOKENS,
    temperature: float = AI_TEMPERATURE,
) -> BaseAIProvider:
    """
    Create a single provider instance.

    An empty api_key is allowed: the provider is created but reports
    not_configured when called, so it still shows up in fallback errors.
    """
    ptype = resolve_provider_type(provider)
    info = PROVIDER_INFO[ptype]
    provider_class = PROVIDER_REGISTRY[ptype]

    config = AIConfig(
        api_key=api_key or "",
        model=model or info.default_model,
        max_tokens=max_tokens,
        temperature=temperature,
    )
    return provider_class(config)


def create_providers(order: Sequence[str], settings) -> List[BaseAIProvider]:
    """
    Build the ordered provider list from Settings.

    Args:
        order: provider names, first is primary, the rest are fallbacks
        settings: config.settings.Settings (api keys, model overrides)
    """
    providers = []
    for name in order:
        ptype = resolve_provider_type(name)
        provider = create_provider(
            ptype.value,
            api_key=settings.get_api_key(ptype.value),
            model=settings.get_model(ptype.value),
        )
        if not provider.is_configured:
            logger.warning(f"Provider {ptype.value} has no API key; it will be skipped at call time")
        providers.append(provider)
    return providers


def list_providers() -> List[ProviderInfo]:
    """List all available providers"""
    return list(PROVIDER_INFO.values())
