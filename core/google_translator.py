"""
Google Translator - public Google Translate via deep-translator.

Needs no credentials. deep-translator is synchronous, so each call runs in
the default executor.
"""

import asyncio
import logging

from deep_translator import GoogleTranslator as _DeepGoogleTranslator

from .errors import ProviderError
from .providers import TranslationProvider

logger = logging.getLogger(__name__)

# deep-translator 不接受 "zh"
_LANG_ALIASES = {
    "zh": "zh-CN",
    "zh-cn": "zh-CN",
    "zh-hans": "zh-CN",
    "zh-tw": "zh-TW",
    "zh-hant": "zh-TW",
}


def normalize_target_lang(lang: str) -> str:
    key = (lang or "").strip()
    return _LANG_ALIASES.get(key.lower(), key)


class GoogleTranslator(TranslationProvider):
    """Google Translate provider."""

    name = "google"

    def __init__(self, timeout_ms: int = 0, source_lang: str = "auto"):
        super().__init__(timeout_ms=timeout_ms)
        self.source_lang = source_lang
        self._translator_class = _DeepGoogleTranslator

    async def _call_api(self, text: str, target_lang: str) -> str:
        target = normalize_target_lang(target_lang)
        translator = self._translator_class(source=self.source_lang, target=target)
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, translator.translate, text)
        if result is None or not str(result).strip():
            logger.warning("google translate returned empty result (target=%s)", target)
            raise ProviderError("google: empty response")
        return str(result)
