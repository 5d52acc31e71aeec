"""
DeepSeek AI Provider
Evony Tactician - Multi-Provider Support

DeepSeek uses OpenAI-compatible API format.
"""

from typing import List

from .base import AIProviderType
from .openai_provider import OpenAIProvider


class DeepSeekProvider(OpenAIProvider):
    """
    DeepSeek AI Provider

    Used as the strategy advisor. Note: DeepSeek does NOT support vision,
    images are dropped before the request.
    """

    MODELS = {
        "deepseek-chat": "DeepSeek Chat (V3)",
        "deepseek-reasoner": "DeepSeek Reasoner (R1)",
    }

    DEFAULT_MODEL = "deepseek-chat"
    BASE_URL = "https://api.deepseek.com/v1"
    VISION_MODELS = set()

    @property
    def provider_type(self) -> AIProviderType:
        return AIProviderType.DEEPSEEK

    @property
    def supported_models(self) -> List[str]:
        return list(self.MODELS.keys())
