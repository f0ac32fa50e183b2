"""
Chunker - split oversized unit content on safe boundaries.

Providers reject (or silently truncate) long inputs, so any unit longer than
MAX_CHUNK_SIZE is re-cut before translation:

1. on line-break markers (``<br>`` variants, raw or entity-escaped);
2. otherwise on sentence terminators, after stripping all tags;
3. parts are then packed greedily into chunks no longer than the limit.
"""

import re

from ..models import Chunk, TranslatableUnit

# Google Translate 安全限制
MAX_CHUNK_SIZE = 2500

# <br>, <br/>, <br />, &lt;br&gt;, &lt;br/&gt;, &lt;br /&gt;
_BR_RE = re.compile(r"(?:<br\s*/?>|&lt;br\s*/?&gt;)+", re.IGNORECASE)
_ESCAPED_TAG_RE = re.compile(r"&lt;[^&]*&gt;")
_TAG_RE = re.compile(r"<[^>]*>")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[。！？.!?])\s*")


def strip_tags(markup: str) -> str:
    """Remove real and entity-escaped tags, keeping only text."""
    text = _ESCAPED_TAG_RE.sub("", markup or "")
    return _TAG_RE.sub("", text)


def _non_empty(parts: list[str]) -> list[str]:
    return [p.strip() for p in parts if p and p.strip()]


def _split_parts(text: str, max_size: int) -> list[str]:
    parts = _non_empty(_BR_RE.split(text))
    if len(parts) >= 2 and all(len(p) <= max_size for p in parts):
        return parts
    return _non_empty(_SENTENCE_SPLIT_RE.split(strip_tags(text)))


def _pack(parts: list[str], max_size: int) -> list[str]:
    chunks: list[str] = []
    current = ""
    for part in parts:
        needed = len(current) + (1 if current else 0) + len(part)
        if current and needed > max_size:
            chunks.append(current)
            current = part
        else:
            current = f"{current} {part}" if current else part
    if current:
        chunks.append(current)
    return chunks


def chunk_text(text: str, max_size: int = MAX_CHUNK_SIZE) -> list[str]:
    """
    Split ``text`` into ordered chunks of at most ``max_size`` characters.

    A single unsplittable part longer than ``max_size`` is emitted as its own
    oversized chunk. Joining the result with single spaces reproduces the
    (whitespace-normalised) input; tags are dropped when the sentence split
    is used.
    """
    if max_size <= 0:
        raise ValueError("max_size must be positive")
    if len(text or "") <= max_size:
        return [text] if text else []
    return _pack(_split_parts(text, max_size), max_size)


def chunk_unit(unit: TranslatableUnit, max_size: int = MAX_CHUNK_SIZE) -> list[Chunk]:
    """Chunk a unit's source markup, flagging the unit when it was split."""
    pieces = chunk_text(unit.source_markup, max_size)
    unit.is_chunked = len(unit.source_markup) > max_size
    return [Chunk(parent_unit_index=unit.sequence_index, chunk_text=p) for p in pieces]


def fixed_slices(text: str, size: int = MAX_CHUNK_SIZE) -> list[str]:
    """Coarse fixed-width slicing used when a document has no structure at all."""
    if size <= 0:
        raise ValueError("size must be positive")
    return [text[i:i + size] for i in range(0, len(text), size)]
