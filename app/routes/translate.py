"""
Translation API Routes.

Provides endpoints for article body, title and preview translation.
"""

import logging

from fastapi import APIRouter, Depends

from core.lang_detect import detect_language, is_english_text
from core.models import (
    DetectLanguageRequest,
    DetectLanguageResponse,
    TranslateHtmlRequest,
    TranslateHtmlResponse,
    TranslateTextRequest,
    TranslateTextResponse,
)
from core.pipeline import HtmlTranslator
from core.translation_cache import TranslationCache

from ..deps import get_cache, get_html_translator, get_settings

router = APIRouter(prefix="/translate", tags=["translation"])
logger = logging.getLogger(__name__)


@router.post("/html", response_model=TranslateHtmlResponse)
async def translate_html(
    request: TranslateHtmlRequest,
    translator: HtmlTranslator = Depends(get_html_translator),
    settings=Depends(get_settings),
):
    """
    Translate an article body.

    With ``auto`` set, non-English content is returned untouched.
    Translation failures are reported in the payload, not as HTTP errors.
    """
    if request.auto and not is_english_text(
        request.content, threshold=settings.english_ratio_threshold
    ):
        logger.info("auto translate skipped: content is not English")
        return TranslateHtmlResponse(translated_html=request.content, skipped=True)

    result = await translator.translate_html(
        request.content,
        request.target_language,
        request.display_mode,
        request.concurrency,
        service=request.service,
        images=request.images,
    )
    if result.error:
        logger.warning("translate html failed: [%s] %s", result.error_code, result.error)
    return TranslateHtmlResponse(**result.model_dump())


@router.post("/text", response_model=TranslateTextResponse)
async def translate_text(
    request: TranslateTextRequest,
    translator: HtmlTranslator = Depends(get_html_translator),
    cache: TranslationCache = Depends(get_cache),
):
    """Translate a title or preview, using the per-article cache when possible."""
    article_id = request.article_id
    target_lang = request.target_language or translator.target_lang
    if article_id:
        cached = cache.get_field(article_id, request.field, target_lang)
        if cached:
            return TranslateTextResponse(translated_text=cached, cached=True)
        cache.add_to_queue(article_id, target_lang)

    try:
        result = await translator.translate_text(request.text, target_lang, service=request.service)
    finally:
        if article_id:
            cache.remove_from_queue(article_id, target_lang)

    if article_id and not result.error:
        cache.set(article_id, target_lang, **{request.field: result.translated_text})
    return TranslateTextResponse(translated_text=result.translated_text, error=result.error)


@router.post("/detect", response_model=DetectLanguageResponse)
async def detect(request: DetectLanguageRequest, settings=Depends(get_settings)):
    return DetectLanguageResponse(
        language=detect_language(request.text),
        is_english=is_english_text(request.text, threshold=settings.english_ratio_threshold),
    )


@router.delete("/cache")
async def clear_cache(cache: TranslationCache = Depends(get_cache)):
    """Drop all cached title/preview translations."""
    cache.clear()
    return {"status": "ok"}
