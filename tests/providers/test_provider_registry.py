"""
Tests for provider construction, message conversion and settings lookup.
"""

import pytest

from ai_providers import (
    AIConfig,
    AIMessage,
    AIProviderType,
    DeepSeekProvider,
    GeminiProvider,
    GroqProvider,
    ImagePart,
    OpenAIProvider,
    create_provider,
    create_providers,
    list_providers,
    resolve_provider_type,
)


class TestRegistry:

    def test_create_providers_keeps_order(self, test_settings):
        providers = create_providers(["groq", "gemini", "deepseek"], test_settings)

        assert [p.name for p in providers] == ["groq", "gemini", "deepseek"]
        assert isinstance(providers[0], GroqProvider)
        assert isinstance(providers[1], GeminiProvider)

    def test_missing_key_is_listed_but_not_configured(self, test_settings):
        providers = create_providers(["deepseek"], test_settings)

        assert len(providers) == 1
        assert not providers[0].is_configured

    def test_default_models(self, test_settings):
        groq, gemini = create_providers(["groq", "gemini"], test_settings)

        assert groq.config.model == "llama-3.1-8b-instant"
        assert gemini.config.model == "gemini-1.5-flash"
        assert groq.config.model in groq.supported_models
        assert gemini.config.model in gemini.supported_models

    def test_model_override(self):
        provider = create_provider("groq", api_key="k", model="llama-3.3-70b-versatile")
        assert provider.config.model == "llama-3.3-70b-versatile"

    @pytest.mark.parametrize("alias,expected", [
        ("Groq", AIProviderType.GROQ),
        ("google", AIProviderType.GEMINI),
        ("claude", AIProviderType.CLAUDE),
        (" gpt ", AIProviderType.OPENAI),
    ])
    def test_aliases(self, alias, expected):
        assert resolve_provider_type(alias) == expected

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            resolve_provider_type("mistral")

    def test_list_providers(self):
        names = {info.type for info in list_providers()}
        assert AIProviderType.GROQ in names
        assert AIProviderType.DEEPSEEK in names

    def test_vision_support(self):
        assert not GroqProvider(AIConfig(api_key="k", model="llama-3.1-8b-instant")).supports_vision
        assert not DeepSeekProvider(AIConfig(api_key="k", model="deepseek-chat")).supports_vision
        assert GeminiProvider(AIConfig(api_key="k", model="gemini-1.5-flash")).supports_vision


class TestOpenAICompatibleConversion:

    def test_system_prompt_first(self):
        provider = GroqProvider(AIConfig(api_key="k", model="llama-3.1-8b-instant"))

        converted = provider._convert_messages([AIMessage(role="user", content="hi")], "sys")

        assert converted == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "hi"},
        ]

    def test_images_become_data_urls_on_vision_models(self):
        provider = OpenAIProvider(AIConfig(api_key="k", model="gpt-4o"))
        message = AIMessage(role="user", content="look", images=[ImagePart(b"abc", "image/jpeg")])

        content = provider._convert_messages([message])[0]["content"]

        assert content[0] == {"type": "text", "text": "look"}
        assert content[1]["image_url"]["url"] == "data:image/jpeg;base64,YWJj"

    def test_text_only_models_ignore_images(self):
        provider = GroqProvider(AIConfig(api_key="k", model="llama-3.1-8b-instant"))
        message = AIMessage(role="user", content="look", images=[ImagePart(b"abc")])

        assert provider._convert_messages([message]) == [{"role": "user", "content": "look"}]

    def test_endpoints(self):
        assert GroqProvider.BASE_URL == "https://api.groq.com/openai/v1"
        assert DeepSeekProvider.BASE_URL == "https://api.deepseek.com/v1"


class TestGeminiConversion:

    def test_leading_assistant_turns_dropped_and_system_prepended(self):
        provider = GeminiProvider(AIConfig(api_key="k", model="gemini-1.5-flash"))
        messages = [
            AIMessage(role="assistant", content="Analysis complete!"),
            AIMessage(role="user", content="why?"),
            AIMessage(role="assistant", content="because"),
            AIMessage(role="user", content="ok"),
        ]

        contents = provider._convert_messages(messages, "sys")

        assert [c["role"] for c in contents] == ["user", "model", "user"]
        assert contents[0]["parts"][0] == "sys\n\nwhy?"

    def test_inline_images(self):
        provider = GeminiProvider(AIConfig(api_key="k", model="gemini-1.5-flash"))
        message = AIMessage(role="user", content="read", images=[ImagePart(b"png", "image/png")])

        parts = provider._convert_messages([message])[0]["parts"]

        assert parts[1] == {"mime_type": "image/png", "data": b"png"}


class TestSettings:

    def test_get_api_key(self, test_settings):
        assert test_settings.get_api_key("groq") == "test_groq_key"
        assert test_settings.get_api_key("deepseek") == ""

    def test_unknown_provider_key(self, test_settings):
        with pytest.raises(ValueError):
            test_settings.get_api_key("mistral")

    def test_describe_never_contains_keys(self, test_settings):
        summary = str(test_settings.describe())

        assert "test_groq_key" not in summary
        assert "test_gemini_key" not in summary
        assert test_settings.describe()["configured_providers"] == ["groq", "gemini"]
