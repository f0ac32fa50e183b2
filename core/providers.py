"""
Translation provider abstraction and selection policy.

The pipeline only depends on ``TranslationProvider.translate(text, lang)``;
endpoint shapes, auth and SDK details stay inside the concrete adapters
(``core.ai_translator.AITranslator``, ``core.google_translator.GoogleTranslator``).
"""

import asyncio
import logging
import os
import time
from abc import ABC, abstractmethod
from typing import Optional, Union

from .errors import ConfigurationError, ProviderError
from .models import TranslationService, TranslatorConfig

logger = logging.getLogger(__name__)

LANG_NAMES = {
    "zh": "中文",
    "zh-CN": "简体中文",
    "zh-TW": "繁體中文",
    "en": "English",
    "ja": "日本語",
    "ko": "한국어",
    "fr": "Français",
    "de": "Deutsch",
    "es": "Español",
}


def _read_env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


_GLOBAL_API_SEMAPHORE: Optional[asyncio.Semaphore] = None
_GLOBAL_API_SEMAPHORE_LIMIT: Optional[int] = None
_GLOBAL_API_SEMAPHORE_LOOP: Optional[asyncio.AbstractEventLoop] = None


def _get_global_api_semaphore() -> Optional[asyncio.Semaphore]:
    """
    Optional cross-call backpressure for provider calls.

    Disabled by default. When TRANSLATE_MAX_INFLIGHT_CALLS is set, it caps
    concurrent provider calls across every pipeline invocation in the
    process, on top of each invocation's own window size.
    """
    global _GLOBAL_API_SEMAPHORE, _GLOBAL_API_SEMAPHORE_LIMIT, _GLOBAL_API_SEMAPHORE_LOOP

    limit = _read_env_int("TRANSLATE_MAX_INFLIGHT_CALLS", 0)
    if limit <= 0:
        _GLOBAL_API_SEMAPHORE = None
        _GLOBAL_API_SEMAPHORE_LIMIT = None
        return None

    # 信号量绑定事件循环，循环变化时重建
    loop = asyncio.get_running_loop()
    if (
        _GLOBAL_API_SEMAPHORE is None
        or _GLOBAL_API_SEMAPHORE_LIMIT != limit
        or _GLOBAL_API_SEMAPHORE_LOOP is not loop
    ):
        _GLOBAL_API_SEMAPHORE = asyncio.Semaphore(limit)
        _GLOBAL_API_SEMAPHORE_LIMIT = limit
        _GLOBAL_API_SEMAPHORE_LOOP = loop
    return _GLOBAL_API_SEMAPHORE


class TranslationProvider(ABC):
    """Async translate(text, target_lang) capability shared by all providers."""

    name: str = "provider"

    def __init__(self, timeout_ms: int = 0):
        self.timeout_ms = timeout_ms

    @abstractmethod
    async def _call_api(self, text: str, target_lang: str) -> str:
        """Perform one provider request and return the translated text."""

    async def translate(self, text: str, target_lang: str) -> str:
        """
        Translate ``text`` into ``target_lang``.

        Raises:
            ProviderError: on any transport, response or timeout failure
        """
        if not text or not text.strip():
            return text

        start = time.perf_counter()

        async def _do_call() -> str:
            if self.timeout_ms <= 0:
                return await self._call_api(text, target_lang)
            try:
                return await asyncio.wait_for(
                    self._call_api(text, target_lang),
                    timeout=self.timeout_ms / 1000.0,
                )
            except asyncio.TimeoutError as exc:
                raise ProviderError(f"{self.name} timeout after {self.timeout_ms}ms") from exc

        try:
            sem = _get_global_api_semaphore()
            if sem is None:
                result = await _do_call()
            else:
                async with sem:
                    result = await _do_call()
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"{self.name}: {type(exc).__name__}: {exc}") from exc

        logger.debug(
            "translate: ok provider=%s ms=%.0f in_len=%d out_len=%d",
            self.name,
            (time.perf_counter() - start) * 1000,
            len(text),
            len(result or ""),
        )
        return result

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


def _ensure_enabled(config: TranslatorConfig) -> None:
    if not config.enabled:
        raise ConfigurationError("翻译功能未启用 (translation is disabled)")


def build_provider(
    service: Union[TranslationService, str],
    config: TranslatorConfig,
) -> TranslationProvider:
    """
    Create the provider for an explicitly chosen service.

    Raises:
        ConfigurationError: translation disabled, unknown service, or the AI
            service chosen without an API key and endpoint
    """
    _ensure_enabled(config)
    try:
        service = TranslationService(str(getattr(service, "value", service)).strip().lower())
    except ValueError as exc:
        raise ConfigurationError(f"Unknown translation service '{service}'") from exc

    if service is TranslationService.AI:
        if not config.ai_configured:
            raise ConfigurationError("AI API Key 或 Endpoint 未配置 (AI provider not configured)")
        from .ai_translator import AITranslator

        return AITranslator(
            endpoint=config.ai_endpoint,
            api_key=config.ai_api_key,
            model=config.ai_translate_model or config.ai_model,
            timeout_ms=config.request_timeout_ms,
        )

    from .google_translator import GoogleTranslator

    return GoogleTranslator(timeout_ms=config.request_timeout_ms)


def select_provider(
    config: TranslatorConfig,
    preference: Optional[Union[TranslationService, str]] = None,
) -> TranslationProvider:
    """
    Pick a provider by priority: the preferred service if it is usable,
    otherwise the other one.
    """
    _ensure_enabled(config)
    preferred = preference or config.default_service
    try:
        preferred = TranslationService(str(getattr(preferred, "value", preferred)).strip().lower())
    except ValueError:
        logger.warning("unknown translation service %r, using google", preferred)
        preferred = TranslationService.GOOGLE

    if preferred is TranslationService.AI and not config.ai_configured:
        logger.info("AI provider preferred but not configured, falling back to google")
        preferred = TranslationService.GOOGLE
    return build_provider(preferred, config)
