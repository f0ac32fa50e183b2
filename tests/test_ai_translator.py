import asyncio
from types import SimpleNamespace

import pytest

from core.errors import ConfigurationError, ProviderError


def _response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class _FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return _response(self.content)


def _make_translator(monkeypatch, completions, **kwargs):
    from core.ai_translator import AITranslator

    monkeypatch.setattr(AITranslator, "_init_client", lambda self: None)
    translator = AITranslator(api_key="sk-test", **kwargs)
    translator.client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return translator


def test_format_log_text_full():
    from core.ai_translator import _format_log_text

    assert _format_log_text("hello", "full", 3) == "hello"


def test_format_log_text_snippet():
    from core.ai_translator import _format_log_text

    assert _format_log_text("abcdefghij", "snippet", 3) == "abc...hij"
    assert _format_log_text("short", "snippet", 10) == "short"


def test_format_log_text_hash():
    from core.ai_translator import _format_log_text

    result = _format_log_text("hello", "hash", 3)
    assert result.startswith("sha256:")
    assert "len=5" in result


def test_format_log_text_off():
    from core.ai_translator import _format_log_text

    assert _format_log_text("hello", "off", 3) is None


def test_endpoint_to_base_url():
    from core.ai_translator import endpoint_to_base_url

    assert endpoint_to_base_url("https://api.openai.com/v1/chat/completions") == "https://api.openai.com/v1"
    assert endpoint_to_base_url("https://proxy.local/v1/") == "https://proxy.local/v1"
    assert endpoint_to_base_url("") == "https://api.openai.com/v1"


def test_missing_api_key_is_configuration_error():
    from core.ai_translator import AITranslator

    with pytest.raises(ConfigurationError):
        AITranslator(api_key=None)


def test_translate_sends_prompt_and_settings(monkeypatch):
    completions = _FakeCompletions(content="<p>你好</p>")
    translator = _make_translator(monkeypatch, completions, model="gpt-test")

    result = asyncio.run(translator.translate("<p>Hello</p>", "zh"))

    assert result == "<p>你好</p>"
    call = completions.calls[0]
    assert call["model"] == "gpt-test"
    assert call["temperature"] == 0.3
    assert call["max_tokens"] == 4000
    system_prompt = call["messages"][0]["content"]
    assert "中文" in system_prompt
    assert "HTML tags" in system_prompt
    assert call["messages"][1] == {"role": "user", "content": "<p>Hello</p>"}


def test_code_fences_are_stripped(monkeypatch):
    completions = _FakeCompletions(content="```html\n<p>你好</p>\n```")
    translator = _make_translator(monkeypatch, completions)

    assert asyncio.run(translator.translate("<p>Hello</p>", "zh")) == "<p>你好</p>"


def test_empty_answer_is_provider_error(monkeypatch):
    translator = _make_translator(monkeypatch, _FakeCompletions(content="   "))

    with pytest.raises(ProviderError):
        asyncio.run(translator.translate("Hello", "zh"))


def test_sdk_error_is_provider_error(monkeypatch):
    class _ApiError(Exception):
        status_code = 429

    translator = _make_translator(monkeypatch, _FakeCompletions(error=_ApiError("rate limited")))

    with pytest.raises(ProviderError) as exc_info:
        asyncio.run(translator.translate("Hello", "zh"))
    assert "HTTP 429" in str(exc_info.value)


def test_client_uses_derived_base_url(monkeypatch):
    import core.ai_translator as ai_translator

    captured = {}

    class _FakeOpenAI:
        def __init__(self, **kwargs):
            captured.update(kwargs)

    monkeypatch.setattr(ai_translator, "OpenAI", _FakeOpenAI)
    ai_translator.AITranslator(endpoint="https://llm.example.com/v1/chat/completions", api_key="k")

    assert captured == {"base_url": "https://llm.example.com/v1", "api_key": "k", "max_retries": 0}
