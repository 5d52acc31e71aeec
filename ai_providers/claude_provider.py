"""
Claude AI Provider - Anthropic
Evony Tactician - Multi-Provider Support
"""

import base64
from typing import Optional, List, Dict, Any, AsyncIterator

try:
    import anthropic
    HAS_ANTHROPIC = True
except ImportError:
    HAS_ANTHROPIC = False

from .base import (
    BaseAIProvider,
    AIProviderType,
    AIMessage,
    AIResponse,
)


class ClaudeProvider(BaseAIProvider):
    """
    Anthropic Claude AI Provider

    Optional extra link in the fallback chain (add "anthropic" to
    PROVIDER_ORDER). Vision capable.
    """

    MODELS = {
        "claude-sonnet-4-20250514": "Claude Sonnet 4",
        "claude-3-5-haiku-20241022": "Claude 3.5 Haiku",
    }

    DEFAULT_MODEL = "claude-3-5-haiku-20241022"

    @property
    def provider_type(self) -> AIProviderType:
        return AIProviderType.CLAUDE

    @property
    def supported_models(self) -> List[str]:
        return list(self.MODELS.keys())

    @property
    def supports_vision(self) -> bool:
        return True

    async def initialize(self) -> None:
        """Initialize Anthropic client"""
        if not HAS_ANTHROPIC:
            raise ImportError("anthropic package not installed. Run: pip install anthropic")

        self._client = anthropic.AsyncAnthropic(
            api_key=self.config.api_key,
            base_url=self.config.base_url
        )

    def _convert_messages(
        self,
        messages: List[AIMessage]
    ) -> List[Dict[str, Any]]:
        """Convert AIMessage to Anthropic format"""
        converted = []

        for msg in messages:
            if msg.images:
                content = []
                for img in msg.images:
                    content.append({
                        "type": "image",
                        "source": {
                            "type": "base64",
                            "media_type": img.mime_type,
                            "data": base64.b64encode(img.data).decode()
                        }
                    })
                content.append({
                    "type": "text",
                    "text": msg.content
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
        """Generate completion using Claude"""
        if not self._client:
            await self.initialize()

        api_messages = self._convert_messages(messages)

        response = await self._client.messages.create(
            model=kwargs.get("model", self.config.model),
            max_tokens=kwargs.get("max_tokens", self.config.max_tokens),
            temperature=kwargs.get("temperature", self.config.temperature),
            system=system_prompt or "",
            messages=api_messages
        )

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )

        return AIResponse(
            content=text,
            model=response.model,
            provider=self.provider_type,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens
            },
            finish_reason=response.stop_reason,
            raw_response=response
        )

    async def stream(
        self,
        messages: List[AIMessage],
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AsyncIterator[str]:
        """Stream completion using Claude"""
        if not self._client:
            await self.initialize()

        api_messages = self._convert_messages(messages)

        async with self._client.messages.stream(
            model=kwargs.get("model", self.config.model),
            max_tokens=kwargs.get("max_tokens", self.config.max_tokens),
            temperature=kwargs.get("temperature", self.config.temperature),
            system=system_prompt or "",
            messages=api_messages
        ) as stream:
            async for text in stream.text_stream:
                yield text
