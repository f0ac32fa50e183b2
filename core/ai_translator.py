"""
AI Translator - OpenAI-compatible chat completions provider.

Works with any endpoint that speaks the OpenAI chat API (OpenAI, Azure
proxies, DeepSeek, local gateways). HTML tags in the input are preserved.
"""

import asyncio
import hashlib
import logging
import os
import re
import time
from typing import Optional

from dotenv import load_dotenv
from openai import OpenAI

from .errors import ConfigurationError, ProviderError
from .logging_config import get_log_level, setup_module_logger
from .providers import LANG_NAMES, TranslationProvider

load_dotenv()

logger = setup_module_logger(
    __name__,
    "ai/ai_translator.log",
    level=get_log_level("AI_TRANSLATOR_LOG_LEVEL", logging.INFO),
    console_env="AI_TRANSLATOR_LOG_TO_STDOUT",
)

# 启用 OpenAI SDK 详细日志（显示重试原因）
if os.getenv("DEBUG_OPENAI") == "1":
    logging.getLogger("openai").setLevel(logging.DEBUG)
    logging.getLogger("httpx").setLevel(logging.DEBUG)

DEFAULT_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_MAX_TOKENS = 4000
DEFAULT_TEMPERATURE = 0.3

_COMPLETIONS_SUFFIX_RE = re.compile(r"/chat/completions/?$")


def endpoint_to_base_url(endpoint: str) -> str:
    """Turn a full chat-completions URL into the SDK base_url."""
    endpoint = (endpoint or DEFAULT_ENDPOINT).strip()
    return _COMPLETIONS_SUFFIX_RE.sub("", endpoint).rstrip("/")


def _format_log_text(text: str, mode: str, limit: int) -> Optional[str]:
    if text is None:
        return ""
    mode = (mode or "off").strip().lower()
    if mode == "off":
        return None
    raw = str(text)
    if mode == "full":
        return raw
    if mode == "hash":
        digest = hashlib.sha256(raw.encode("utf-8")).hexdigest()
        return f"sha256:{digest} len={len(raw)}"
    if mode == "snippet":
        if limit <= 0:
            return ""
        if len(raw) <= limit * 2:
            return raw
        return f"{raw[:limit]}...{raw[-limit:]}"
    return None


def _get_log_config() -> tuple[str, int]:
    mode = (os.getenv("AI_TRANSLATOR_LOG_MODE") or "off").strip().lower()
    raw_limit = os.getenv("AI_TRANSLATOR_LOG_SNIPPET_CHARS", "120")
    try:
        limit = int(raw_limit)
    except ValueError:
        limit = 120
    return mode, limit


def _sanitize_log_text(text: str) -> str:
    return (text or "").replace("\n", "\\n")


def _strip_code_fence(text: str) -> str:
    t = (text or "").strip()
    if t.startswith("```"):
        lines = t.splitlines()
        if lines and lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].startswith("```"):
            lines = lines[:-1]
        return "\n".join(lines).strip()
    return t


def build_system_prompt(target_lang: str) -> str:
    lang_name = LANG_NAMES.get(target_lang, target_lang)
    return (
        f"You are a professional translator. Translate the following text to {lang_name}.\n"
        "Rules:\n"
        "1. Maintain the original formatting (paragraphs, line breaks, HTML tags)\n"
        "2. Only translate the text content, keep HTML tags unchanged\n"
        "3. Output ONLY the translated content, nothing else"
    )


class AITranslator(TranslationProvider):
    """OpenAI-compatible chat translator."""

    name = "ai"

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout_ms: int = 0,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ):
        super().__init__(timeout_ms=timeout_ms)
        self.endpoint = endpoint or DEFAULT_ENDPOINT
        self.api_key = api_key
        self.model = model or "gpt-4o-mini"
        self.max_tokens = max_tokens
        self.temperature = temperature

        if not self.api_key:
            raise ConfigurationError("AI API Key 未配置")

        logger.info(f"初始化翻译器: model={self.model}, endpoint={self.endpoint}")
        self._init_client()

    def _init_client(self):
        """初始化 OpenAI 兼容客户端。"""
        # 禁用 SDK 内部重试，超时与失败由调用方处理
        self.client = OpenAI(
            base_url=endpoint_to_base_url(self.endpoint),
            api_key=self.api_key,
            max_retries=0,
        )

    async def translate(self, text: str, target_lang: str) -> str:
        log_mode, log_limit = _get_log_config()
        log_input = _format_log_text(text, log_mode, log_limit)
        if log_input is not None:
            logger.info(f'translate: in="{_sanitize_log_text(log_input)}"')

        start = time.perf_counter()
        try:
            result = await super().translate(text, target_lang)
        except ProviderError as e:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error(f"translate: error model={self.model} ms={duration_ms:.0f} err={e}")
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(f"translate: ok model={self.model} ms={duration_ms:.0f} out_len={len(result or '')}")
        log_output = _format_log_text(result, log_mode, log_limit)
        if log_output is not None:
            logger.info(f'translate: out="{_sanitize_log_text(log_output)}"')
        return result

    async def _call_api(self, text: str, target_lang: str) -> str:
        """Run one chat completion in the default executor."""
        loop = asyncio.get_running_loop()
        system_prompt = build_system_prompt(target_lang)

        def call_openai():
            try:
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": text},
                    ],
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                    stream=False,
                )
            except Exception as e:
                error_msg = f"{type(e).__name__}: {e}"
                status_code = getattr(e, "status_code", None)
                if status_code:
                    error_msg = f"HTTP {status_code}: {error_msg}"
                logger.error(f"OpenAI API error: {error_msg}")
                raise ProviderError(error_msg) from e

            choices = getattr(response, "choices", None) or []
            if not choices:
                raise ProviderError("empty response")
            content = choices[0].message.content
            if content is None:
                raise ProviderError("empty response")
            content = _strip_code_fence(str(content))
            if not content:
                raise ProviderError("empty response")
            return content

        return await loop.run_in_executor(None, call_openai)
