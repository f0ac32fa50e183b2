import asyncio

import pytest

from core.errors import ProviderError
from core.models import PlanKind, TranslationService, TranslatorConfig
from core.pipeline import HtmlTranslator, translate_html, translate_text
from core.providers import TranslationProvider


class _BracketProvider(TranslationProvider):
    """translate(x) -> "[x]" with optional per-text failures."""

    name = "fake"

    def __init__(self, fail_on=(), delays=None):
        super().__init__()
        self.fail_on = set(fail_on)
        self.delays = delays or {}
        self.calls = []

    async def _call_api(self, text, target_lang):
        self.calls.append(text)
        await asyncio.sleep(self.delays.get(text, 0))
        if text in self.fail_on:
            raise ConnectionError("simulated network error")
        return f"[{text}]"


def test_translated_mode_replaces_units():
    result = asyncio.run(
        translate_html("<p>Hello</p><p>World</p>", "zh", "translated", provider=_BracketProvider())
    )

    assert result.error is None
    assert result.translated_html == "<p>[Hello]</p><p>[World]</p>"
    assert result.plan is PlanKind.BLOCKS
    assert result.units_total == 2
    assert result.provider == "fake"


def test_bilingual_mode_interleaves_translations():
    result = asyncio.run(
        translate_html("<p>Hello</p><p>World</p>", "zh", "bilingual", provider=_BracketProvider())
    )

    assert result.translated_html == (
        '<p>Hello</p><div class="translated-text">[Hello]</div>'
        '<p>World</p><div class="translated-text">[World]</div>'
    )


def test_failed_unit_keeps_original_without_top_level_error():
    provider = _BracketProvider(fail_on={"Two"})
    result = asyncio.run(
        translate_html("<p>One</p><p>Two</p><p>Three</p>", mode="translated", provider=provider)
    )

    assert result.error is None
    assert result.translated_html == "<p>[One]</p><p>Two</p><p>[Three]</p>"
    assert result.units_failed == 1


def test_all_units_failed_returns_original_with_error():
    content = "<p>One</p><p>Two</p>"
    provider = _BracketProvider(fail_on={"One", "Two"})
    result = asyncio.run(translate_html(content, mode="translated", provider=provider))

    assert result.translated_html == content
    assert result.error_code == "provider_failed"
    assert result.units_failed == 2


def test_oversized_unit_is_chunked_in_order():
    sentences = [f"Sentence {i} " + "y" * 185 + "." for i in range(25)]
    paragraph = " ".join(sentences)
    provider = _BracketProvider()

    result = asyncio.run(
        translate_html(f"<p>{paragraph}</p>", mode="translated", provider=provider)
    )

    assert len(provider.calls) >= 2
    assert all(len(call) <= 2500 for call in provider.calls)
    body = result.translated_html[len("<p>"):-len("</p>")]
    assert body == " ".join(f"[{call}]" for call in provider.calls)
    positions = [body.index(f"Sentence {i} ") for i in range(25)]
    assert positions == sorted(positions)


def test_chunk_failure_falls_back_to_source_chunk():
    sentences = [f"Part {i} " + "z" * 190 + "." for i in range(20)]
    paragraph = " ".join(sentences)

    class _FirstChunkFails(_BracketProvider):
        async def _call_api(self, text, target_lang):
            if text.startswith("Part 0 "):
                self.calls.append(text)
                raise ConnectionError("boom")
            return await super()._call_api(text, target_lang)

    provider = _FirstChunkFails()
    result = asyncio.run(translate_html(f"<p>{paragraph}</p>", mode="translated", provider=provider))

    body = result.translated_html[len("<p>"):-len("</p>")]
    assert body.startswith(provider.calls[0] + " [Part ")
    assert result.units_failed == 0


def test_results_follow_document_order_despite_timing():
    content = "".join(f"<p>u{i}</p>" for i in range(5))
    provider = _BracketProvider(delays={"u2": 0.05})

    result = asyncio.run(translate_html(content, mode="translated", concurrency=2, provider=provider))

    assert result.translated_html == "".join(f"<p>[u{i}]</p>" for i in range(5))
    assert [s["name"] for s in result.metrics["stages"]] == ["extract", "translate", "reassemble"]


def test_rerun_over_bilingual_output_is_idempotent():
    provider = _BracketProvider()
    first = asyncio.run(translate_html("<p>Hello</p><p>World</p>", provider=provider))
    calls_after_first = len(provider.calls)

    second = asyncio.run(translate_html(first.translated_html, provider=provider))

    assert len(provider.calls) == calls_after_first
    assert second.translated_html == first.translated_html
    assert second.plan is PlanKind.EMPTY


@pytest.mark.parametrize(
    "content",
    [
        "<div>This div has a long direct text node here</div>",
        "<span>Only one sentence here.</span>",
    ],
    ids=["divs", "whole"],
)
def test_rerun_over_fallback_bilingual_output_is_idempotent(content):
    provider = _BracketProvider()
    first = asyncio.run(translate_html(content, provider=provider))
    assert first.plan in (PlanKind.DIVS, PlanKind.WHOLE)
    assert len(provider.calls) == 1

    second = asyncio.run(translate_html(first.translated_html, provider=provider))

    assert len(provider.calls) == 1
    assert second.translated_html == first.translated_html
    assert second.plan is PlanKind.EMPTY


def test_whole_fallback_keeps_decoded_entities_as_text():
    provider = _BracketProvider()
    result = asyncio.run(
        translate_html("<span>Use &lt;b&gt; for bold text</span>", mode="translated", provider=provider)
    )

    assert provider.calls == ["Use <b> for bold text"]
    assert result.translated_html == (
        '<div class="translated-content translated-text">[Use &lt;b&gt; for bold text]</div>'
    )


def test_blank_and_tiny_plain_text_are_returned_unchanged():
    provider = _BracketProvider()
    assert asyncio.run(translate_html("   ", provider=provider)).translated_html == "   "
    tiny = asyncio.run(translate_html("Hi there", provider=provider))
    assert tiny.translated_html == "Hi there"
    assert tiny.error is None
    assert provider.calls == []


def test_plain_markdown_goes_through_formatter():
    provider = _BracketProvider()
    result = asyncio.run(
        translate_html("First paragraph of text\n\nSecond paragraph", mode="translated", provider=provider)
    )
    assert result.translated_html == "<p>[First paragraph of text]</p>\n<p>[Second paragraph]</p>"


def test_line_fallback_renders_paragraphs():
    content = "<span>The first line of text\nThe second line of text</span>"
    result = asyncio.run(translate_html(content, provider=_BracketProvider()))

    assert result.plan is PlanKind.LINES
    assert result.translated_html == (
        '<p>The first line of text</p><p class="translated-text">[The first line of text]</p>'
        '<p>The second line of text</p><p class="translated-text">[The second line of text]</p>'
    )


def test_whole_fallback_failure_returns_original():
    content = "<span>Only one sentence here.</span>"
    provider = _BracketProvider(fail_on={"Only one sentence here."})
    result = asyncio.run(translate_html(content, provider=provider))

    assert result.translated_html == content
    assert result.error_code == "provider_failed"


def test_slices_are_translated_in_sequence():
    text = "abcd " * 700
    provider = _BracketProvider()
    result = asyncio.run(translate_html(f"<span>{text}</span>", mode="translated", provider=provider))

    assert result.plan is PlanKind.SLICES
    assert provider.calls == [text[:2500], text[2500:]]
    assert f"[{text[:2500]}][{text[2500:]}]" in result.translated_html


def test_configuration_error_makes_no_call(monkeypatch):
    import core.providers as providers

    def _no_build(*args, **kwargs):
        raise AssertionError("provider must not be built")

    monkeypatch.setattr(providers, "build_provider", _no_build)
    content = "<p>Hello</p>"
    result = asyncio.run(translate_html(content, config=TranslatorConfig(enabled=False)))

    assert result.translated_html == content
    assert result.error_code == "config_missing"


def test_forced_ai_service_without_key_is_configuration_error():
    result = asyncio.run(
        translate_html("<p>Hello</p>", service=TranslationService.AI, config=TranslatorConfig())
    )
    assert result.error_code == "config_missing"
    assert result.translated_html == "<p>Hello</p>"


def test_priority_falls_back_to_google(monkeypatch):
    import core.google_translator as google_translator

    class _MockGoogle:
        def __init__(self, source=None, target=None):
            self.target = target

        def translate(self, text):
            return f"{self.target}: {text}"

    monkeypatch.setattr(google_translator, "_DeepGoogleTranslator", _MockGoogle)
    config = TranslatorConfig(default_service=TranslationService.AI)

    result = asyncio.run(translate_html("<p>Hello</p>", mode="translated", config=config))

    assert result.provider == "google"
    assert result.error is None


def test_output_filter_is_applied_last():
    result = asyncio.run(
        translate_html(
            "<p>Hello</p>",
            mode="translated",
            provider=_BracketProvider(),
            output_filter=lambda html: html.replace("[", "«").replace("]", "»"),
        )
    )
    assert result.translated_html == "<p>«Hello»</p>"
    assert result.metrics["stages"][-1]["name"] == "output_filter"


def test_output_filter_failure_returns_original():
    def _boom(html):
        raise RuntimeError("converter crashed")

    content = "<p>Hello</p>"
    result = asyncio.run(translate_html(content, provider=_BracketProvider(), output_filter=_boom))

    assert result.translated_html == content
    assert result.error_code == "parse_failed"
    assert "converter crashed" in result.error


def test_unknown_mode_is_reported():
    result = asyncio.run(translate_html("<p>Hello</p>", mode="sideways", provider=_BracketProvider()))
    assert result.error_code == "config_missing"


def test_translator_keeps_last_metrics():
    translator = HtmlTranslator(provider=_BracketProvider(), mode="translated")
    asyncio.run(translator.translate_html("<p>Hello</p>"))
    assert translator.last_metrics["total_duration_ms"] >= 0
    assert translator.last_metrics["stages"][0]["sub_metrics"] == {"plan": "blocks"}


def test_translate_text_success_and_failure():
    ok = asyncio.run(translate_text("Title", "zh", provider=_BracketProvider()))
    assert ok.translated_text == "[Title]"
    assert ok.error is None

    failed = asyncio.run(translate_text("Title", "zh", provider=_BracketProvider(fail_on={"Title"})))
    assert failed.translated_text == "Title"
    assert "simulated network error" in failed.error


def test_translate_text_configuration_error():
    result = asyncio.run(translate_text("Title", config=TranslatorConfig(enabled=False)))
    assert result.translated_text == "Title"
    assert result.error


@pytest.mark.asyncio
async def test_translate_html_never_raises_on_provider_error():
    class _Raising(TranslationProvider):
        name = "raising"

        async def translate(self, text, target_lang):
            raise ProviderError("down")

        async def _call_api(self, text, target_lang):
            return text

    result = await translate_html("<p>Hello</p>", provider=_Raising())
    assert result.translated_html == "<p>Hello</p>"
    assert result.units_failed == 1
