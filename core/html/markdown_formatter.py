"""
Markdown formatter - turn plain/Markdown article text into an HTML shell.

Full-text fetchers often return Markdown or bare text; the pipeline only
understands HTML, so this produces paragraph-level markup the extractor can
segment. Supports headings, emphasis, links, images and paragraphs only;
it is not a CommonMark renderer.
"""

import html
import re
from typing import Iterable, Optional

from .boundary import is_html

PLACEHOLDER_KEYWORDS = (
    "placeholder", "grey-placeholder", "gray-placeholder",
    "lazy", "blank", "spacer", "pixel", "1x1",
    "loading", "skeleton", "dummy",
)

_HEADING_RE = re.compile(r"^(#{1,3}) (.+)$", re.MULTILINE)
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_ITALIC_RE = re.compile(r"\*(.+?)\*")
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)\s]+)\)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n+")


def is_placeholder_image(url: Optional[str]) -> bool:
    if not url:
        return True
    lowered = url.lower()
    return any(keyword in lowered for keyword in PLACEHOLDER_KEYWORDS)


def _heading(match: re.Match) -> str:
    level = len(match.group(1))
    return f"<h{level}>{match.group(2).strip()}</h{level}>"


def _attr(value: str) -> str:
    # 正文已做过不含引号的转义
    return html.escape(html.unescape(value), quote=True)


def _image(match: re.Match) -> str:
    alt, src = match.group(1), match.group(2)
    if is_placeholder_image(src):
        return ""
    return f'<img src="{_attr(src)}" alt="{_attr(alt)}">'


def _link(match: re.Match) -> str:
    return f'<a href="{_attr(match.group(2))}" target="_blank" rel="noopener">{match.group(1)}</a>'


def _inline(text: str) -> str:
    text = _BOLD_RE.sub(r"<strong>\1</strong>", text)
    text = _ITALIC_RE.sub(r"<em>\1</em>", text)
    text = _IMAGE_RE.sub(_image, text)
    return _LINK_RE.sub(_link, text)


def format_content_as_html(content: str, images: Optional[Iterable[str]] = None) -> str:
    """
    Convert plain/Markdown ``content`` (plus optional image URLs) to HTML.

    Content that already contains markup is returned unchanged. Images that
    look like lazy-load placeholders, or that the text already references,
    are skipped.
    """
    if not content:
        return ""
    if is_html(content):
        return content

    # 先转义，再引入标签
    escaped = html.escape(content.replace("\r\n", "\n"), quote=False)
    escaped = _HEADING_RE.sub(_heading, escaped)

    blocks = []
    for para in _PARAGRAPH_SPLIT_RE.split(escaped):
        para = para.strip()
        if not para:
            continue
        para = _inline(para)
        if re.fullmatch(r"<h[1-3]>.*</h[1-3]>", para):
            blocks.append(para)
            continue
        # 标题后紧跟正文（无空行）时拆开
        lines = para.split("\n")
        head = []
        while lines and re.fullmatch(r"<h[1-3]>.*</h[1-3]>", lines[0]):
            head.append(lines.pop(0))
        blocks.extend(head)
        if lines:
            blocks.append("<p>" + "<br>".join(line.strip() for line in lines) + "</p>")

    for url in images or ():
        if is_placeholder_image(url) or url in content:
            continue
        blocks.append(f'<p><img src="{html.escape(url)}" alt=""></p>')

    return "\n".join(blocks)
