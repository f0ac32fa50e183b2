"""
Settings API Routes.

Provides endpoints for translation settings management.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from core.models import DisplayMode, TranslationService

from ..deps import get_settings

router = APIRouter(prefix="/settings", tags=["settings"])
logger = logging.getLogger(__name__)


# In-memory settings overrides (will be lost on restart)
_service_override: Optional[TranslationService] = None
_display_mode_override: Optional[DisplayMode] = None
_concurrency_override: Optional[int] = None
_target_language_override: Optional[str] = None
_model_override: Optional[str] = None


class TranslationSettingsUpdate(BaseModel):
    service: Optional[TranslationService] = None
    display_mode: Optional[DisplayMode] = None
    concurrency: Optional[int] = Field(default=None, ge=1, le=100)
    target_language: Optional[str] = Field(default=None, min_length=2)
    ai_model: Optional[str] = None


class SettingsResponse(BaseModel):
    translate_enabled: bool
    service: TranslationService
    ai_configured: bool
    ai_model: str
    target_language: str
    display_mode: DisplayMode
    concurrency: int
    auto_translate_english: bool
    english_ratio_threshold: float


def reset_overrides() -> None:
    global _service_override, _display_mode_override, _concurrency_override
    global _target_language_override, _model_override
    _service_override = None
    _display_mode_override = None
    _concurrency_override = None
    _target_language_override = None
    _model_override = None


def get_effective_translation_settings(settings) -> dict:
    """Settings values with runtime overrides applied."""
    return {
        "service": _service_override or settings.translate_priority,
        "display_mode": _display_mode_override or settings.translate_display_mode,
        "concurrency": _concurrency_override or settings.translate_concurrency,
        "target_language": _target_language_override or settings.target_language,
        "ai_model": _model_override or settings.ai_model,
    }


@router.get("", response_model=SettingsResponse)
async def get_current_settings(settings=Depends(get_settings)):
    """Get current translation settings."""
    effective = get_effective_translation_settings(settings)
    return SettingsResponse(
        translate_enabled=settings.translate_enabled,
        service=effective["service"],
        ai_configured=bool(settings.ai_api_key and settings.ai_endpoint),
        ai_model=effective["ai_model"],
        target_language=effective["target_language"],
        display_mode=effective["display_mode"],
        concurrency=effective["concurrency"],
        auto_translate_english=settings.auto_translate_english,
        english_ratio_threshold=settings.english_ratio_threshold,
    )


@router.post("/translation")
async def update_translation_settings(request: TranslationSettingsUpdate, settings=Depends(get_settings)):
    """
    Update translation settings at runtime.

    This is a runtime override that will be lost on restart.
    For persistent changes, update the .env file.
    """
    global _service_override, _display_mode_override, _concurrency_override
    global _target_language_override, _model_override

    if request.service is not None:
        _service_override = request.service
    if request.display_mode is not None:
        _display_mode_override = request.display_mode
    if request.concurrency is not None:
        _concurrency_override = request.concurrency
    if request.target_language is not None:
        _target_language_override = request.target_language
    if request.ai_model is not None:
        _model_override = request.ai_model

    effective = _jsonable(get_effective_translation_settings(settings))
    logger.info("Translation settings updated: %s", effective)
    return {"message": "Translation settings updated", **effective}


def _jsonable(effective: dict) -> dict:
    return {key: getattr(value, "value", value) for key, value in effective.items()}
