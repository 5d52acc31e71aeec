"""
Groq Provider - Llama models on Groq's OpenAI-compatible endpoint
Evony Tactician - Multi-Provider Support
"""

from .base import AIProviderType
from .openai_provider import OpenAIProvider


class GroqProvider(OpenAIProvider):
    """
    Groq AI Provider (primary analysis provider)

    Fast, free-tier friendly text models. Text only: battle reports reach
    it as OCR text, never as images.
    """

    MODELS = {
        "llama-3.1-8b-instant": "Llama 3.1 8B Instant",
        "llama-3.3-70b-versatile": "Llama 3.3 70B Versatile",
    }

    DEFAULT_MODEL = "llama-3.1-8b-instant"
    BASE_URL = "https://api.groq.com/openai/v1"
    VISION_MODELS = set()

    @property
    def provider_type(self) -> AIProviderType:
        return AIProviderType.GROQ
