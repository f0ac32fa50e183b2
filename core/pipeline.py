"""
Pipeline Manager - Orchestrates the HTML translation pipeline.

Chains the stages together:
Boundary → (Markdown formatter) → Extractor → Chunker/Scheduler → Reassembler → output filter

Includes performance metrics collection for each stage. Public entry points
never raise: on fatal failure the caller gets the original content back with
an error message attached.
"""

import logging
import time
from typing import Callable, Optional, Sequence, Union

from .errors import ConfigurationError, ParseError, ProviderError, TranslationPipelineError
from .html import (
    MAX_CHUNK_SIZE,
    TRANSLATED_CLASS,
    apply_translations,
    extract_units,
    format_content_as_html,
    is_html,
    parse_document,
    render_lines,
    render_whole,
)
from .html.chunker import chunk_unit
from .logging_config import get_log_level, setup_module_logger
from .metrics import PipelineMetrics, StageMetrics, Timer
from .models import (
    DisplayMode,
    ExtractionPlan,
    HtmlTranslationResult,
    PlanKind,
    TextTranslationResult,
    TranslatableUnit,
    TranslationResult,
    TranslationService,
    TranslatorConfig,
)
from .providers import TranslationProvider, build_provider, select_provider
from .scheduler import DEFAULT_WINDOW_SIZE, run_batched

logger = setup_module_logger(
    __name__,
    "translator/pipeline.log",
    level=get_log_level("PIPELINE_LOG_LEVEL", logging.INFO),
    console_env="PIPELINE_LOG_TO_STDOUT",
)

# 纯文本少于该长度视为无可翻译内容
MIN_TEXT_CHARS = 10

OutputFilter = Callable[[str], str]


def _failure(original: str, exc: Exception, **extra) -> HtmlTranslationResult:
    return HtmlTranslationResult(
        translated_html=original,
        error=str(exc) or type(exc).__name__,
        error_code=getattr(exc, "error_code", "parse_failed"),
        **extra,
    )


class HtmlTranslator:
    """
    HTML translation pipeline.

    Holds the provider (or the config used to pick one) and the call
    defaults. Each translate_html call owns its parsed document; nothing is
    shared between concurrent calls except the provider object.
    """

    def __init__(
        self,
        provider: Optional[TranslationProvider] = None,
        config: Optional[TranslatorConfig] = None,
        *,
        target_lang: str = "zh",
        mode: Union[DisplayMode, str] = DisplayMode.BILINGUAL,
        concurrency: int = DEFAULT_WINDOW_SIZE,
        max_chunk_size: int = MAX_CHUNK_SIZE,
        marker_class: str = TRANSLATED_CLASS,
        output_filter: Optional[OutputFilter] = None,
    ):
        """
        Initialize the translator.

        Args:
            provider: Explicit provider; skips config based selection
            config: Provider settings (default: TranslatorConfig())
            target_lang: Default target language code
            mode: Default display mode (bilingual / translated)
            concurrency: Scheduler window size
            max_chunk_size: Provider input limit per call
            marker_class: CSS class tagging inserted translation nodes
            output_filter: Optional post filter applied to the final HTML
                (e.g. a simplified/traditional script converter)
        """
        self.provider = provider
        self.config = config or TranslatorConfig()
        self.target_lang = target_lang
        self.mode = mode
        self.concurrency = concurrency
        self.max_chunk_size = max_chunk_size
        self.marker_class = marker_class
        self.output_filter = output_filter
        self.last_metrics: Optional[dict] = None

    def resolve_provider(
        self, service: Optional[Union[TranslationService, str]] = None
    ) -> TranslationProvider:
        """
        Raises:
            ConfigurationError: no usable provider for the request
        """
        if self.provider is not None:
            return self.provider
        if service:
            return build_provider(service, self.config)
        return select_provider(self.config)

    async def _translate_unit(
        self,
        provider: TranslationProvider,
        unit: TranslatableUnit,
        target_lang: str,
    ) -> str:
        if len(unit.source_markup) <= self.max_chunk_size:
            return await provider.translate(unit.source_markup, target_lang)

        chunks = chunk_unit(unit, self.max_chunk_size)
        logger.info(
            "unit %d: %d 字超出限制，切分为 %d 块",
            unit.sequence_index,
            len(unit.source_markup),
            len(chunks),
        )
        pieces = []
        succeeded = 0
        # 同一单元的分块顺序翻译
        for i, chunk in enumerate(chunks):
            try:
                translated = await provider.translate(chunk.chunk_text, target_lang)
            except Exception as e:
                logger.warning("unit %d chunk %d failed: %s", unit.sequence_index, i, e)
                translated = None
            if translated and translated.strip():
                succeeded += 1
                pieces.append(translated)
            else:
                pieces.append(chunk.chunk_text)
        if chunks and succeeded == 0:
            raise ProviderError(f"all {len(chunks)} chunks failed")
        return " ".join(pieces)

    async def _translate_slices(
        self,
        provider: TranslationProvider,
        units: Sequence[TranslatableUnit],
        target_lang: str,
    ) -> tuple[str, list[TranslationResult]]:
        pieces = []
        results = []
        for unit in units:
            try:
                translated = await provider.translate(unit.source_markup, target_lang)
            except Exception as e:
                logger.warning("slice %d failed: %s", unit.sequence_index, e)
                translated = None
            if translated and translated.strip():
                results.append(TranslationResult(unit_index=unit.sequence_index, translated_text=translated))
                pieces.append(translated)
            else:
                results.append(TranslationResult(unit_index=unit.sequence_index, error="slice failed"))
                pieces.append(unit.source_markup)
        return "".join(pieces), results

    async def _run_plan(
        self,
        plan: ExtractionPlan,
        soup,
        markup: str,
        provider: TranslationProvider,
        target_lang: str,
        mode: DisplayMode,
        concurrency: int,
        metrics: PipelineMetrics,
    ) -> tuple[str, list[TranslationResult]]:
        async def translate_fn(unit: TranslatableUnit) -> str:
            return await self._translate_unit(provider, unit, target_lang)

        if plan.kind is PlanKind.SLICES:
            with Timer() as t:
                translated, results = await self._translate_slices(provider, plan.units, target_lang)
            metrics.add_stage(StageMetrics("translate", t.duration_ms, len(plan.units)))
            return render_whole(markup, translated, mode, self.marker_class), results

        windows: list[StageMetrics] = []
        with Timer() as t:
            results = await run_batched(plan.units, concurrency, translate_fn, metrics=windows)
        metrics.add_stage(
            StageMetrics(
                "translate",
                t.duration_ms,
                len(plan.units),
                sub_metrics={"windows": len(windows), "failed": sum(1 for r in results if not r.ok)},
            )
        )

        with Timer() as t:
            if plan.is_structural:
                html = apply_translations(soup, plan.units, results, mode, self.marker_class)
            elif plan.kind is PlanKind.LINES:
                html = render_lines(plan.units, results, mode, self.marker_class)
            else:
                whole = results[0]
                if not whole.ok:
                    raise ProviderError(whole.error)
                html = render_whole(markup, whole.translated_text, mode, self.marker_class)
        metrics.add_stage(StageMetrics("reassemble", t.duration_ms, len(plan.units)))
        return html, results

    async def translate_html(
        self,
        content: str,
        target_lang: Optional[str] = None,
        mode: Optional[Union[DisplayMode, str]] = None,
        concurrency: Optional[int] = None,
        *,
        service: Optional[Union[TranslationService, str]] = None,
        images: Optional[list[str]] = None,
    ) -> HtmlTranslationResult:
        """
        Translate an HTML (or plain/Markdown) document.

        Args:
            content: HTML or Markdown text
            target_lang: Target language code (default: self.target_lang)
            mode: bilingual or translated (default: self.mode)
            concurrency: Scheduler window size (default: self.concurrency)
            service: Force a provider variant instead of the priority policy
            images: Image URLs to append to a plain-text shell

        Returns:
            HtmlTranslationResult; ``translated_html`` is the original content
            whenever ``error`` is set by a fatal failure.
        """
        original = content or ""
        if not original.strip():
            return HtmlTranslationResult(translated_html=original)

        target_lang = target_lang or self.target_lang
        concurrency = concurrency or self.concurrency
        try:
            mode = DisplayMode(mode or self.mode)
        except ValueError:
            return _failure(original, ConfigurationError(f"Unknown display mode '{mode}'"))

        try:
            provider = self.resolve_provider(service)
        except ConfigurationError as e:
            logger.warning(f"翻译未执行: {e}")
            return _failure(original, e)

        metrics = PipelineMetrics()
        start_time = time.perf_counter()
        logger.info(
            f"Pipeline 开始: provider={provider.name} lang={target_lang} mode={mode.value} len={len(original)}"
        )

        try:
            with Timer() as t:
                if is_html(original):
                    markup = original
                elif len(original.strip()) < MIN_TEXT_CHARS:
                    return HtmlTranslationResult(
                        translated_html=original, provider=provider.name, plan=PlanKind.EMPTY
                    )
                else:
                    markup = format_content_as_html(original, images)
                soup = parse_document(markup)
                plan = extract_units(soup, marker_class=self.marker_class)
            metrics.add_stage(
                StageMetrics("extract", t.duration_ms, len(plan.units), sub_metrics={"plan": plan.kind.value})
            )

            if plan.kind is PlanKind.EMPTY or not plan.units:
                logger.info("Pipeline 跳过: 无可翻译单元")
                return HtmlTranslationResult(
                    translated_html=original, provider=provider.name, plan=PlanKind.EMPTY
                )

            html, results = await self._run_plan(
                plan, soup, markup, provider, target_lang, mode, concurrency, metrics
            )

            if self.output_filter is not None:
                with Timer() as t:
                    html = self.output_filter(html)
                metrics.add_stage(StageMetrics("output_filter", t.duration_ms, 1))
        except TranslationPipelineError as e:
            logger.error(f"Pipeline 失败: [{e.error_code}] {e}")
            return _failure(original, e, provider=provider.name)
        except Exception as e:
            logger.exception("Pipeline 失败")
            return _failure(original, ParseError(f"{type(e).__name__}: {e}"), provider=provider.name)

        metrics.total_duration_ms = (time.perf_counter() - start_time) * 1000
        self.last_metrics = metrics.to_dict()
        failed = sum(1 for r in results if not r.ok)
        logger.info(
            f"Pipeline 完成: plan={plan.kind.value} units={len(results)} failed={failed} "
            f"耗时 {metrics.total_duration_ms:.0f}ms"
        )
        logger.debug(metrics.summary())

        if results and failed == len(results):
            return HtmlTranslationResult(
                translated_html=original,
                error=f"all {failed} units failed to translate",
                error_code=ProviderError().error_code,
                provider=provider.name,
                plan=plan.kind,
                units_total=len(results),
                units_failed=failed,
                metrics=self.last_metrics,
            )
        return HtmlTranslationResult(
            translated_html=html,
            provider=provider.name,
            plan=plan.kind,
            units_total=len(results),
            units_failed=failed,
            metrics=self.last_metrics,
        )

    async def translate_text(
        self,
        text: str,
        target_lang: Optional[str] = None,
        *,
        service: Optional[Union[TranslationService, str]] = None,
    ) -> TextTranslationResult:
        """Translate a single short string (title, preview)."""
        original = text or ""
        if not original.strip():
            return TextTranslationResult(translated_text=original)
        try:
            provider = self.resolve_provider(service)
            translated = await provider.translate(original, target_lang or self.target_lang)
            if not translated or not translated.strip():
                raise ProviderError("empty translation")
            if self.output_filter is not None:
                translated = self.output_filter(translated)
        except Exception as e:
            logger.warning(f"文本翻译失败: {e}")
            return TextTranslationResult(translated_text=original, error=str(e) or type(e).__name__)
        return TextTranslationResult(translated_text=translated)


async def translate_html(
    content: str,
    target_lang: str = "zh",
    mode: Union[DisplayMode, str] = DisplayMode.BILINGUAL,
    concurrency: int = DEFAULT_WINDOW_SIZE,
    *,
    provider: Optional[TranslationProvider] = None,
    config: Optional[TranslatorConfig] = None,
    service: Optional[Union[TranslationService, str]] = None,
    output_filter: Optional[OutputFilter] = None,
    images: Optional[list[str]] = None,
) -> HtmlTranslationResult:
    """
    Convenience function to translate one document.

    Example:
        result = await translate_html("<p>Hello</p>", "zh", provider=my_provider)
        print(result.translated_html)
    """
    translator = HtmlTranslator(provider=provider, config=config, output_filter=output_filter)
    return await translator.translate_html(
        content, target_lang, mode, concurrency, service=service, images=images
    )


async def translate_text(
    text: str,
    target_lang: str = "zh",
    *,
    provider: Optional[TranslationProvider] = None,
    config: Optional[TranslatorConfig] = None,
    service: Optional[Union[TranslationService, str]] = None,
    output_filter: Optional[OutputFilter] = None,
) -> TextTranslationResult:
    """Convenience function for titles and previews."""
    translator = HtmlTranslator(provider=provider, config=config, output_filter=output_filter)
    return await translator.translate_text(text, target_lang, service=service)
