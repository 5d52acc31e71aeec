"""
OpenAI Provider - GPT-4o and OpenAI-compatible endpoints
Evony Tactician - Multi-Provider Support
"""

import base64
from typing import Optional, List, Dict, Any, AsyncIterator

from openai import AsyncOpenAI

from .base import (
    BaseAIProvider,
    AIProviderType,
    AIMessage,
    AIResponse,
)


class OpenAIProvider(BaseAIProvider):
    """
    OpenAI GPT Provider

    Also the base for OpenAI-compatible APIs (Groq, DeepSeek), which only
    change BASE_URL, MODELS and vision support.
    """

    MODELS = {
        "gpt-4o": "GPT-4o (Latest, Multimodal)",
        "gpt-4o-mini": "GPT-4o Mini (Fast)",
    }

    DEFAULT_MODEL = "gpt-4o-mini"
    BASE_URL: Optional[str] = None

    # Models that support vision
    VISION_MODELS = {"gpt-4o", "gpt-4o-mini"}

    @property
    def provider_type(self) -> AIProviderType:
        return AIProviderType.OPENAI

    @property
    def supported_models(self) -> List[str]:
        return list(self.MODELS.keys())

    @property
    def supports_vision(self) -> bool:
        return self.config.model in self.VISION_MODELS

    async def initialize(self) -> None:
        """Initialize OpenAI-compatible client"""
        self._client = AsyncOpenAI(
            api_key=self.config.api_key,
            base_url=self.config.base_url or self.BASE_URL
        )

    def _convert_messages(
        self,
        messages: List[AIMessage],
        system_prompt: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Convert AIMessage to OpenAI format"""
        converted = []

        if system_prompt:
            converted.append({"role": "system", "content": system_prompt})

        for msg in messages:
            if msg.images and self.supports_vision:
                content = [{"type": "text", "text": msg.content}]
                for img in msg.images:
                    encoded = base64.b64encode(img.data).decode()
                    content.append({
                        "type": "image_url",
                        "image_url": {"url": f"data:{img.mime_type};base64,{encoded}"}
                    })
                converted.append({"role": msg.role, "content": content})
            else:
                converted.append({"role": msg.role, "content": msg.content})

        return converted

    async def complete(
        self,
        messages: List[AIMessage],
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AIResponse:
        """Generate completion"""
        if not self._client:
            await self.initialize()

        api_messages = self._convert_messages(messages, system_prompt)

        response = await self._client.chat.completions.create(
            model=kwargs.get("model", self.config.model),
            max_tokens=kwargs.get("max_tokens", self.config.max_tokens),
            temperature=kwargs.get("temperature", self.config.temperature),
            messages=api_messages
        )

        if not response.choices:
            return AIResponse(content="", model=response.model, provider=self.provider_type)

        choice = response.choices[0]

        return AIResponse(
            content=choice.message.content or "",
            model=response.model,
            provider=self.provider_type,
            usage={
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens
            } if response.usage else None,
            finish_reason=choice.finish_reason,
            raw_response=response
        )

    async def stream(
        self,
        messages: List[AIMessage],
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AsyncIterator[str]:
        """Stream completion, closing the HTTP stream on exit"""
        if not self._client:
            await self.initialize()

        api_messages = self._convert_messages(messages, system_prompt)

        stream = await self._client.chat.completions.create(
            model=kwargs.get("model", self.config.model),
            max_tokens=kwargs.get("max_tokens", self.config.max_tokens),
            temperature=kwargs.get("temperature", self.config.temperature),
            messages=api_messages,
            stream=True
        )

        try:
            async for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        finally:
            await stream.close()
