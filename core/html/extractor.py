"""
Unit Extractor - find the translatable blocks of a parsed document.

Real-world feed HTML is frequently malformed or paragraph-free, so extraction
falls through a ladder and always produces *some* units when there is text:

    block tags -> divs with direct text -> non-trivial lines
               -> fixed slices (long single block) -> whole body text
"""

import logging
import re
from typing import Iterable, Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from ..errors import ParseError
from ..models import ExtractionPlan, PlanKind, TranslatableUnit
from .chunker import fixed_slices

logger = logging.getLogger(__name__)

BLOCK_TAGS = (
    "p", "h1", "h2", "h3", "h4", "h5", "h6",
    "li", "blockquote", "td", "th",
    "figcaption", "dt", "dd", "summary", "caption",
)

# Inserted translation nodes carry this class and are never re-translated.
TRANSLATED_CLASS = "translated-text"

DIV_DIRECT_TEXT_MIN = 20
LINE_MIN_CHARS = 10
LONG_TEXT_THRESHOLD = 3000
SLICE_SIZE = 2500

_NON_CONTENT_TAGS = {"script", "style", "noscript", "template"}
_LINE_SPLIT_RE = re.compile(r"\n+")


def parse_document(markup: str) -> BeautifulSoup:
    """Parse markup into a fresh document owned by the caller."""
    try:
        return BeautifulSoup(markup or "", "html.parser")
    except Exception as exc:
        raise ParseError(f"HTML parse failed: {exc}") from exc


def document_root(soup: BeautifulSoup) -> Tag:
    """The body element when present, otherwise the fragment itself."""
    return soup.body or soup


def _classes(tag: Tag) -> list[str]:
    value = tag.get("class") or []
    if isinstance(value, str):
        return value.split()
    return list(value)


def _is_marked(tag: Tag, marker: str) -> bool:
    node: Optional[Tag] = tag
    while isinstance(node, Tag):
        if marker in _classes(node):
            return True
        node = node.parent
    return False


def _inside_any(tag: Tag, names: Iterable[str]) -> bool:
    names = set(names)
    return any(parent.name in names for parent in tag.parents)


def _already_translated(tag: Tag, marker: str) -> bool:
    """True when a previous bilingual pass already inserted a translation after tag."""
    sibling = tag.next_sibling
    while isinstance(sibling, NavigableString) and not sibling.strip():
        sibling = sibling.next_sibling
    return isinstance(sibling, Tag) and marker in _classes(sibling)


def _has_direct_text(div: Tag, min_chars: int) -> bool:
    for child in div.children:
        if isinstance(child, NavigableString) and not isinstance(child, Comment):
            if len(child.strip()) > min_chars:
                return True
    return False


def body_text(root: Tag, marker: str = TRANSLATED_CLASS) -> str:
    """Visible text of the document, skipping scripts, styles, comments and inserted translations."""
    pieces = []
    for node in root.find_all(string=True):
        if isinstance(node, Comment):
            continue
        if node.parent is not None and node.parent.name in _NON_CONTENT_TAGS:
            continue
        if _is_marked(node.parent, marker):
            continue
        pieces.append(str(node))
    return "".join(pieces)


def _units_from_elements(elements: list[Tag]) -> list[TranslatableUnit]:
    return [
        TranslatableUnit(sequence_index=i, source_markup=el.decode_contents().strip(), element=el)
        for i, el in enumerate(elements)
    ]


def _block_elements(root: Tag, marker: str) -> list[Tag]:
    selected = []
    for el in root.find_all(BLOCK_TAGS):
        if not el.decode_contents().strip():
            continue
        if _is_marked(el, marker) or _already_translated(el, marker):
            continue
        # 外层块已包含该元素，重复翻译会产生两份译文
        if _inside_any(el, BLOCK_TAGS):
            continue
        selected.append(el)
    return selected


def _text_divs(root: Tag, marker: str, min_chars: int) -> list[Tag]:
    selected: list[Tag] = []
    promoted: set[int] = set()
    for div in root.find_all("div"):
        if _is_marked(div, marker) or _already_translated(div, marker):
            continue
        if any(id(parent) in promoted for parent in div.parents):
            continue
        if _has_direct_text(div, min_chars):
            selected.append(div)
            promoted.add(id(div))
    return selected


def extract_units(
    soup: BeautifulSoup,
    *,
    marker_class: str = TRANSLATED_CLASS,
    div_text_min: int = DIV_DIRECT_TEXT_MIN,
    line_min_chars: int = LINE_MIN_CHARS,
    long_text_threshold: int = LONG_TEXT_THRESHOLD,
    slice_size: int = SLICE_SIZE,
) -> ExtractionPlan:
    """
    Return the ordered translatable units of ``soup``.

    Structural plans (blocks, divs) hold live element handles for the
    reassembler; text plans (lines, slices, whole) hold synthetic units built
    from the body text.
    """
    root = document_root(soup)

    elements = _block_elements(root, marker_class)
    if elements:
        return ExtractionPlan(kind=PlanKind.BLOCKS, units=_units_from_elements(elements))

    if root.find(BLOCK_TAGS) is not None:
        # Only empty or already-translated blocks remain
        logger.debug("extract: all block elements empty or translated")
        return ExtractionPlan(kind=PlanKind.EMPTY)

    divs = _text_divs(root, marker_class, div_text_min)
    if divs:
        logger.info("extract: no block tags, promoted %d text divs", len(divs))
        return ExtractionPlan(kind=PlanKind.DIVS, units=_units_from_elements(divs))

    if root.find(class_=marker_class) is not None:
        # 已有译文节点，不再整体回退
        logger.debug("extract: remaining text already translated")
        return ExtractionPlan(kind=PlanKind.EMPTY)

    text = body_text(root, marker_class)
    if not text.strip():
        return ExtractionPlan(kind=PlanKind.EMPTY)

    lines = [line.strip() for line in _LINE_SPLIT_RE.split(text) if len(line.strip()) > line_min_chars]
    if len(lines) > 1:
        logger.info("extract: 无标准段落，按换行分段 %d 行", len(lines))
        units = [TranslatableUnit(sequence_index=i, source_markup=line) for i, line in enumerate(lines)]
        return ExtractionPlan(kind=PlanKind.LINES, units=units, body_text=text)

    if len(text) > long_text_threshold:
        slices = fixed_slices(text, slice_size)
        logger.info("extract: 长单段内容 %d 字，切分为 %d 块", len(text), len(slices))
        units = [
            TranslatableUnit(sequence_index=i, source_markup=piece, is_chunked=True)
            for i, piece in enumerate(slices)
        ]
        return ExtractionPlan(kind=PlanKind.SLICES, units=units, body_text=text)

    stripped = text.strip()
    if len(stripped) < line_min_chars:
        return ExtractionPlan(kind=PlanKind.EMPTY, body_text=text)
    return ExtractionPlan(
        kind=PlanKind.WHOLE,
        units=[TranslatableUnit(sequence_index=0, source_markup=stripped)],
        body_text=text,
    )
