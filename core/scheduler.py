"""
Batch Scheduler - windowed concurrent translation.

Items are cut into consecutive windows of ``window_size``. All calls of a
window run concurrently and the whole window settles before the next one
starts, which caps in-flight requests at ``window_size``. Results land in a
pre-sized list at the item's own index, so output order never depends on
network completion order.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from .metrics import StageMetrics, Timer
from .models import TranslationResult

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 20

T = TypeVar("T")


async def _settle(
    index: int,
    item: T,
    translate_fn: Callable[[T], Awaitable[str]],
) -> TranslationResult:
    try:
        translated = await translate_fn(item)
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        logger.warning("unit %d translate failed: %s: %s", index, type(exc).__name__, exc)
        return TranslationResult(unit_index=index, error=str(exc) or type(exc).__name__)
    if translated is None or not str(translated).strip():
        logger.warning("unit %d translate returned empty result", index)
        return TranslationResult(unit_index=index, error="empty translation")
    return TranslationResult(unit_index=index, translated_text=str(translated))


async def run_batched(
    items: Sequence[T],
    window_size: int,
    translate_fn: Callable[[T], Awaitable[str]],
    metrics: Optional[list[StageMetrics]] = None,
) -> list[TranslationResult]:
    """
    Translate ``items`` window by window, preserving input order.

    Args:
        items: Units (or any payload) to translate; index i maps to result i
        window_size: Max concurrent calls per window (clamped to >= 1)
        translate_fn: Async callable returning translated text or raising
        metrics: Optional list that receives one StageMetrics per window

    Returns:
        One TranslationResult per item. Failed or empty calls carry an error
        and a null translated_text; they never abort sibling calls.
    """
    window_size = DEFAULT_WINDOW_SIZE if window_size is None else max(1, int(window_size))
    results: list[Optional[TranslationResult]] = [None] * len(items)

    for start in range(0, len(items), window_size):
        window = items[start:start + window_size]
        with Timer() as timer:
            settled = await asyncio.gather(
                *(_settle(start + offset, item, translate_fn) for offset, item in enumerate(window))
            )
        for result in settled:
            results[result.unit_index] = result

        failed = sum(1 for r in settled if not r.ok)
        logger.debug(
            "window %d: items=%d failed=%d ms=%.0f",
            start // window_size,
            len(window),
            failed,
            timer.duration_ms,
        )
        if metrics is not None:
            metrics.append(
                StageMetrics(
                    name=f"window_{start // window_size}",
                    duration_ms=timer.duration_ms,
                    items_processed=len(window),
                    sub_metrics={"failed": failed},
                )
            )

    return [r for r in results if r is not None]
