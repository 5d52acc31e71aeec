"""
Pytest configuration and shared fixtures for Evony Tactician tests.
"""
import asyncio
import sys
import time
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from ai_providers.base import (
    AIConfig,
    AIProviderType,
    AIResponse,
    BaseAIProvider,
)
from config.settings import Settings
from tactician.models import RawImage, TroopType, UserProfile


# ============================================================================
# Fakes
# ============================================================================

class FakeEngine:
    """
    Blocking OCR engine driven by a bytes -> result table.

    A result is (text, confidence), or an Exception to raise.
    """

    thread_safe = True

    def __init__(
        self,
        results: Optional[Dict[bytes, Union[tuple, Exception]]] = None,
        load_error: Optional[Exception] = None,
        load_delay: float = 0.0,
        recognize_delay: float = 0.0,
    ):
        self.results = results or {}
        self.load_error = load_error
        self.load_delay = load_delay
        self.recognize_delay = recognize_delay
        self.load_calls = 0
        self.closed = False

    def load(self):
        self.load_calls += 1
        if self.load_delay:
            time.sleep(self.load_delay)
        if self.load_error is not None:
            raise self.load_error

    def recognize(self, image_bytes: bytes):
        if self.recognize_delay:
            time.sleep(self.recognize_delay)
        result = self.results.get(image_bytes, ("", 0.0))
        if isinstance(result, Exception):
            raise result
        return result

    def close(self):
        self.closed = True


class ScriptedProvider(BaseAIProvider):
    """
    Provider whose replies are scripted per test.

    fragments may contain asyncio.Event objects: the stream waits on them,
    which lets a test observe or cancel a reply mid-stream.
    """

    def __init__(
        self,
        name: str = "groq",
        reply: str = "",
        error: Optional[Exception] = None,
        fragments: Sequence = (),
        stream_error: Optional[Exception] = None,
        vision: bool = False,
        api_key: str = "test-key",
    ):
        super().__init__(AIConfig(api_key=api_key, model="test-model"))
        self._type = AIProviderType(name)
        self._vision = vision
        self.reply = reply
        self.error = error
        self.fragments = list(fragments)
        self.stream_error = stream_error
        self.calls = []
        self.stream_calls = []
        self.stream_closed = False

    @property
    def provider_type(self) -> AIProviderType:
        return self._type

    @property
    def supported_models(self):
        return ["test-model"]

    @property
    def supports_vision(self) -> bool:
        return self._vision

    async def initialize(self) -> None:
        pass

    async def complete(self, messages, system_prompt=None, **kwargs) -> AIResponse:
        self.calls.append({"messages": messages, "system_prompt": system_prompt, **kwargs})
        if self.error is not None:
            raise self.error
        return AIResponse(content=self.reply, model="test-model", provider=self._type)

    async def stream(self, messages, system_prompt=None, **kwargs):
        self.stream_calls.append({"messages": messages, "system_prompt": system_prompt, **kwargs})
        try:
            for item in self.fragments:
                if isinstance(item, asyncio.Event):
                    await item.wait()
                    continue
                await asyncio.sleep(0)
                yield item
            if self.stream_error is not None:
                raise self.stream_error
        finally:
            self.stream_closed = True


# ============================================================================
# Fixtures: Configuration & Settings
# ============================================================================

@pytest.fixture
def test_settings(tmp_path):
    """Settings with test keys, isolated from any local .env."""
    return Settings(
        _env_file=None,
        groq_api_key="test_groq_key",
        gemini_api_key="test_gemini_key",
        deepseek_api_key="",
        openai_api_key="",
        anthropic_api_key="",
        history_db_path=tmp_path / "history.db",
    )


# ============================================================================
# Fixtures: Sample Data
# ============================================================================

@pytest.fixture
def profile():
    return UserProfile(
        highest_tiers={
            TroopType.GROUND: 14,
            TroopType.RANGED: 13,
            TroopType.MOUNTED: 12,
            TroopType.SIEGE: 11,
        },
        march_size=350000,
        embassy_capacity=1200000,
    )


@pytest.fixture
def sample_images():
    return [RawImage.from_bytes(f"image-{i}".encode(), index=i) for i in range(3)]


@pytest.fixture
def sample_reply():
    """AI reply containing all four sections."""
    return (
        "### ENEMY_INTEL\n"
        "Enemy led with T12 Mounted, about 200k troops.\n\n"
        "### RECOMMENDED_MARCH\n"
        "Send 150k T14 Ground and 100k T13 Ranged.\n\n"
        "### TACTICAL_SUMMARY\n"
        "Estimated Losses: Attacker [20-30%], Defender [Wiped]\n\n"
        "### DATA_EXTRACTION\n"
        "Mounted T12 x 200000; Ground T10 x 50000\n"
    )


# ============================================================================
# Fixtures: Fakes
# ============================================================================

@pytest.fixture
def engine_factory():
    """FakeEngine class, so tests can build engines with their own tables."""
    return FakeEngine


@pytest.fixture
def provider_factory():
    """ScriptedProvider class, so tests can script each provider."""
    return ScriptedProvider


# ============================================================================
# Session-level Setup
# ============================================================================

def pytest_configure(config):
    """Register markers added below."""
    config.addinivalue_line("markers", "unit: fast isolated tests")


def pytest_collection_modifyitems(config, items):
    """Auto-add 'unit' marker to test files in tests/unit/."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
