"""
Reassembler - merge translated fragments back into the document.

Bilingual mode inserts a marked sibling after each unit element; translated
mode overwrites the element's content in place. Units whose result is null
keep (or repeat) their original markup so no visible content is ever lost.
"""

import logging
from typing import Optional, Sequence

from bs4 import BeautifulSoup, NavigableString, Tag

from ..errors import ParseError
from ..models import DisplayMode, TranslatableUnit, TranslationResult
from .extractor import TRANSLATED_CLASS, document_root

logger = logging.getLogger(__name__)

ORIGINAL_CONTENT_CLASS = "original-content"
TRANSLATED_CONTENT_CLASS = "translated-content"


def _set_inner_markup(tag: Tag, markup: str) -> None:
    fragment = BeautifulSoup(markup or "", "html.parser")
    tag.clear()
    for node in list(fragment.contents):
        tag.append(node.extract())


def _resolved_markup(unit: TranslatableUnit, result: Optional[TranslationResult]) -> str:
    if result is not None and result.translated_text is not None:
        return result.translated_text
    return unit.source_markup


def _index_results(results: Sequence[TranslationResult]) -> dict[int, TranslationResult]:
    return {r.unit_index: r for r in results}


def serialize_body(soup: BeautifulSoup) -> str:
    try:
        return document_root(soup).decode_contents()
    except Exception as exc:
        raise ParseError(f"HTML serialize failed: {exc}") from exc


def apply_translations(
    soup: BeautifulSoup,
    units: Sequence[TranslatableUnit],
    results: Sequence[TranslationResult],
    mode: DisplayMode = DisplayMode.BILINGUAL,
    marker_class: str = TRANSLATED_CLASS,
) -> str:
    """
    Apply ``results`` onto the unit elements of ``soup`` and serialize the body.

    Units are processed from the last sequence_index to the first. Inserting a
    sibling after unit k never moves units 0..k-1, so every insertion point
    stays valid for the rest of the pass.
    """
    mode = DisplayMode(mode)
    by_index = _index_results(results)
    try:
        for unit in sorted(units, key=lambda u: u.sequence_index, reverse=True):
            if unit.element is None:
                raise ParseError(f"unit {unit.sequence_index} has no element handle")
            markup = _resolved_markup(unit, by_index.get(unit.sequence_index))
            if mode is DisplayMode.BILINGUAL:
                translated_el = soup.new_tag("div", attrs={"class": marker_class})
                _set_inner_markup(translated_el, markup)
                unit.element.insert_after(translated_el)
            else:
                _set_inner_markup(unit.element, markup)
    except ParseError:
        raise
    except Exception as exc:
        raise ParseError(f"HTML reassembly failed: {exc}") from exc
    return serialize_body(soup)


def render_lines(
    units: Sequence[TranslatableUnit],
    results: Sequence[TranslationResult],
    mode: DisplayMode = DisplayMode.BILINGUAL,
    marker_class: str = TRANSLATED_CLASS,
) -> str:
    """Build a paragraph per line for the line-splitting fallback."""
    mode = DisplayMode(mode)
    by_index = _index_results(results)
    out = BeautifulSoup("", "html.parser")
    for unit in sorted(units, key=lambda u: u.sequence_index):
        result = by_index.get(unit.sequence_index)
        translated = result.translated_text if result is not None else None
        if mode is DisplayMode.TRANSLATED and translated:
            para = out.new_tag("p")
            _set_inner_markup(para, translated)
            out.append(para)
            continue
        para = out.new_tag("p")
        para.string = unit.source_markup
        out.append(para)
        if mode is DisplayMode.BILINGUAL and translated:
            translated_para = out.new_tag("p", attrs={"class": marker_class})
            _set_inner_markup(translated_para, translated)
            out.append(translated_para)
    return out.decode_contents()


def render_whole(
    original_html: str,
    translated: str,
    mode: DisplayMode = DisplayMode.BILINGUAL,
    marker_class: str = TRANSLATED_CLASS,
) -> str:
    """
    Wrap a whole-document translation (no usable structure in the source).

    ``translated`` is plain text taken from the body text, so it is set as a
    text node and never parsed back into markup.
    """
    mode = DisplayMode(mode)
    out = BeautifulSoup("", "html.parser")
    if mode is DisplayMode.BILINGUAL:
        original = out.new_tag("div", attrs={"class": ORIGINAL_CONTENT_CLASS})
        _set_inner_markup(original, original_html)
        out.append(original)
    wrapper = out.new_tag(
        "div", attrs={"class": f"{TRANSLATED_CONTENT_CLASS} {marker_class}"}
    )
    wrapper.append(NavigableString(translated or ""))
    out.append(wrapper)
    return out.decode_contents()
