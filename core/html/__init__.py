"""HTML segmentation, chunking and reassembly for the translation pipeline."""

from .boundary import classify, is_html
from .chunker import MAX_CHUNK_SIZE, chunk_text, fixed_slices
from .extractor import BLOCK_TAGS, TRANSLATED_CLASS, extract_units, parse_document
from .markdown_formatter import format_content_as_html
from .reassembler import apply_translations, render_lines, render_whole

__all__ = [
    "BLOCK_TAGS",
    "MAX_CHUNK_SIZE",
    "TRANSLATED_CLASS",
    "apply_translations",
    "chunk_text",
    "classify",
    "extract_units",
    "fixed_slices",
    "format_content_as_html",
    "is_html",
    "parse_document",
    "render_lines",
    "render_whole",
]
