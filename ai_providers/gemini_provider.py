"""
Google Gemini Provider
Evony Tactician - Multi-Provider Support
"""

from typing import Optional, List, Dict, Any, AsyncIterator

try:
    import google.generativeai as genai
    HAS_GEMINI = True
except ImportError:
    HAS_GEMINI = False

from .base import (
    BaseAIProvider,
    AIProviderType,
    AIMessage,
    AIResponse,
)


class GeminiProvider(BaseAIProvider):
    """
    Google Gemini AI Provider (fallback analysis provider)

    Multimodal: when the orchestrator falls back here it also receives the
    original screenshots, so a failed OCR pass can still be analyzed.
    """

    MODELS = {
        "gemini-1.5-flash": "Gemini 1.5 Flash",
        "gemini-1.5-pro": "Gemini 1.5 Pro",
        "gemini-2.0-flash": "Gemini 2.0 Flash",
    }

    DEFAULT_MODEL = "gemini-1.5-flash"

    @property
    def provider_type(self) -> AIProviderType:
        return AIProviderType.GEMINI

    @property
    def supported_models(self) -> List[str]:
        return list(self.MODELS.keys())

    @property
    def supports_vision(self) -> bool:
        return True  # All Gemini models support vision

    async def initialize(self) -> None:
        """Initialize Gemini client"""
        if not HAS_GEMINI:
            raise ImportError(
                "google-generativeai package not installed. "
                "Run: pip install google-generativeai"
            )

        genai.configure(api_key=self.config.api_key)

        self._client = genai.GenerativeModel(
            model_name=self.config.model,
            generation_config={
                "temperature": self.config.temperature,
                "max_output_tokens": self.config.max_tokens,
            }
        )

    def _convert_messages(
        self,
        messages: List[AIMessage],
        system_prompt: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Convert AIMessage to Gemini format"""
        contents = []

        # Gemini handles system prompt differently - prepend to first message
        system_text = system_prompt + "\n\n" if system_prompt else ""

        # Conversation must open with a user turn
        while messages and messages[0].role != "user":
            messages = messages[1:]

        for i, msg in enumerate(messages):
            role = "user" if msg.role == "user" else "model"

            text_content = msg.content
            if i == 0 and system_text:
                text_content = system_text + text_content

            parts: List[Any] = [text_content]
            for img in msg.images or []:
                parts.append({
                    "mime_type": img.mime_type,
                    "data": img.data
                })

            contents.append({"role": role, "parts": parts})

        return contents

    def _generation_config(self, **kwargs) -> Dict[str, Any]:
        return {
            "temperature": kwargs.get("temperature", self.config.temperature),
            "max_output_tokens": kwargs.get("max_tokens", self.config.max_tokens),
        }

    async def complete(
        self,
        messages: List[AIMessage],
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AIResponse:
        """Generate completion using Gemini"""
        if not self._client:
            await self.initialize()

        contents = self._convert_messages(messages, system_prompt)

        response = await self._client.generate_content_async(
            contents,
            generation_config=self._generation_config(**kwargs),
        )

        usage = None
        if getattr(response, "usage_metadata", None):
            usage = {
                "input_tokens": response.usage_metadata.prompt_token_count,
                "output_tokens": response.usage_metadata.candidates_token_count
            }

        # response.text raises when the reply was blocked or has no parts
        try:
            text = response.text
        except ValueError:
            text = ""

        return AIResponse(
            content=text,
            model=self.config.model,
            provider=self.provider_type,
            usage=usage,
            finish_reason=response.candidates[0].finish_reason.name if response.candidates else None,
            raw_response=response
        )

    async def stream(
        self,
        messages: List[AIMessage],
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AsyncIterator[str]:
        """Stream completion using Gemini"""
        if not self._client:
            await self.initialize()

        contents = self._convert_messages(messages, system_prompt)

        response = await self._client.generate_content_async(
            contents,
            generation_config=self._generation_config(**kwargs),
            stream=True
        )

        async for chunk in response:
            if chunk.text:
                yield chunk.text
