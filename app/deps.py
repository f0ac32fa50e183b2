"""
Dependency injection for FastAPI.

Provides shared resources and configuration across routes.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from core.models import DisplayMode, TranslationService, TranslatorConfig
from core.pipeline import HtmlTranslator
from core.translation_cache import TranslationCache, get_translation_cache


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Translation settings
    translate_enabled: bool = True
    translate_priority: TranslationService = TranslationService.GOOGLE
    target_language: str = "zh"
    translate_display_mode: DisplayMode = DisplayMode.BILINGUAL
    translate_concurrency: int = 20
    translate_timeout_ms: int = 0

    # AI provider (OpenAI 兼容接口)
    ai_endpoint: str = "https://api.openai.com/v1/chat/completions"
    ai_api_key: Optional[str] = None
    ai_model: str = "gpt-4o-mini"
    ai_translate_model: Optional[str] = None

    # Auto translate
    auto_translate_english: bool = False
    english_ratio_threshold: float = 0.7

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def get_translator_config(settings: Optional[Settings] = None) -> TranslatorConfig:
    """Build the provider config from settings plus runtime overrides."""
    from app.routes.settings import get_effective_translation_settings

    settings = settings or get_settings()
    effective = get_effective_translation_settings(settings)
    return TranslatorConfig(
        enabled=settings.translate_enabled,
        default_service=effective["service"],
        ai_endpoint=settings.ai_endpoint,
        ai_api_key=settings.ai_api_key,
        ai_model=effective["ai_model"],
        ai_translate_model=settings.ai_translate_model,
        request_timeout_ms=settings.translate_timeout_ms,
    )


def get_html_translator() -> HtmlTranslator:
    """Translator bound to the current effective settings."""
    from app.routes.settings import get_effective_translation_settings

    settings = get_settings()
    effective = get_effective_translation_settings(settings)
    return HtmlTranslator(
        config=get_translator_config(settings),
        target_lang=effective["target_language"],
        mode=effective["display_mode"],
        concurrency=effective["concurrency"],
    )


def get_cache() -> TranslationCache:
    return get_translation_cache()
