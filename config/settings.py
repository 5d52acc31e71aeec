#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Settings - Centralized configuration management
"""

from pathlib import Path
from typing import Dict, List, Optional
from pydantic_settings import BaseSettings

from .constants import (
    AI_TIMEOUT_SECONDS,
    BASE_DIR,
    CACHE_MAX_ENTRIES,
    CACHE_TTL_SECONDS,
    HISTORY_DB_PATH,
    OCR_LANGUAGE,
    OCR_TIMEOUT_SECONDS,
    SCRAPE_MIN_INTERVAL_SECONDS,
    TRUSTED_SOURCES,
)


class Settings(BaseSettings):
    """Application settings"""

    # ========== API Keys ==========
    # Opaque credentials, never logged
    groq_api_key: str = ""
    gemini_api_key: str = ""
    deepseek_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # ========== Providers ==========
    # Analysis tries these in order: primary first, then fallbacks
    provider_order: List[str] = ["groq", "gemini"]
    # Strategy advisor (web-assisted Q&A)
    advisor_provider_order: List[str] = ["deepseek", "groq", "gemini"]

    # Optional model overrides, keyed by provider name
    groq_model: Optional[str] = None
    gemini_model: Optional[str] = None
    deepseek_model: Optional[str] = None
    openai_model: Optional[str] = None
    anthropic_model: Optional[str] = None

    ai_timeout_seconds: float = AI_TIMEOUT_SECONDS
    send_images_to_vision: bool = True  # vision providers also get the screenshots

    # ========== OCR ==========
    ocr_backend: str = "tesseract"  # tesseract | paddle
    ocr_lang: str = OCR_LANGUAGE
    ocr_timeout_seconds: float = OCR_TIMEOUT_SECONDS
    tesseract_cmd: Optional[str] = None  # custom tesseract binary path

    # ========== Cache & Scraper ==========
    cache_max_entries: int = CACHE_MAX_ENTRIES
    cache_ttl_seconds: int = CACHE_TTL_SECONDS
    scrape_min_interval: float = SCRAPE_MIN_INTERVAL_SECONDS
    trusted_sources: List[str] = list(TRUSTED_SOURCES)

    # ========== History ==========
    history_enabled: bool = True
    history_db_path: Path = BASE_DIR / HISTORY_DB_PATH

    class Config:
        env_file = str(BASE_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Allow extra fields from .env that aren't defined in model

    def get_api_key(self, provider: str) -> str:
        """Get API key for a provider, empty string when not configured"""
        key_map = {
            "groq": self.groq_api_key,
            "gemini": self.gemini_api_key,
            "deepseek": self.deepseek_api_key,
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
        }
        if provider not in key_map:
            raise ValueError(f"Unsupported provider: {provider}")
        return key_map[provider]

    def get_model(self, provider: str) -> Optional[str]:
        """Model override for a provider (None means provider default)"""
        return getattr(self, f"{provider}_model", None)

    def describe(self) -> Dict:
        """Configuration summary safe to log (no key material)"""
        return {
            "provider_order": list(self.provider_order),
            "advisor_provider_order": list(self.advisor_provider_order),
            "configured_providers": [
                name for name in ("groq", "gemini", "deepseek", "openai", "anthropic")
                if self.get_api_key(name)
            ],
            "ai_timeout_seconds": self.ai_timeout_seconds,
            "ocr_backend": self.ocr_backend,
            "ocr_timeout_seconds": self.ocr_timeout_seconds,
            "cache_max_entries": self.cache_max_entries,
            "history_enabled": self.history_enabled,
        }


# Global settings instance
settings = Settings()
