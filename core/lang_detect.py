"""
Language detection helpers.

Character-ratio heuristics used to decide whether an article should be
auto-translated. Thresholds are parameters; the defaults are policy values,
not derived constants.
"""

import re

ENGLISH_RATIO_THRESHOLD = 0.7
MIN_TEXT_CHARS = 10

_CLEANUP_PATTERNS = (
    re.compile(r"!\[.*?\]\(.*?\)"),      # Markdown 图片
    re.compile(r"\[.*?\]\(.*?\)"),       # Markdown 链接，整个移除避免统计 url
    re.compile(r"<[^>]*>"),              # HTML 标签
    re.compile(r"https?://\S+"),         # 纯文本 URL
    re.compile(r"```[\s\S]*?```"),       # 代码块
    re.compile(r"`[^`]*`"),              # 行内代码
)
_TAG_RE = re.compile(r"<[^>]*>")

_LATIN_RE = re.compile(r"[a-zA-Z]")
_CJK_RE = re.compile(r"[\u4e00-\u9fff]")
_KANA_RE = re.compile(r"[\u3040-\u30ff]")
_HANGUL_RE = re.compile(r"[\uac00-\ud7af]")


def _clean_text(text: str) -> str:
    for pattern in _CLEANUP_PATTERNS:
        text = pattern.sub("", text)
    return text.strip()


def _count_scripts(text: str) -> dict[str, int]:
    counts = {"en": 0, "zh": 0, "ja": 0, "ko": 0}
    for char in text:
        if _LATIN_RE.match(char):
            counts["en"] += 1
        elif _CJK_RE.match(char):
            counts["zh"] += 1
        elif _KANA_RE.match(char):
            counts["ja"] += 1
        elif _HANGUL_RE.match(char):
            counts["ko"] += 1
    return counts


def is_english_text(
    text: str,
    threshold: float = ENGLISH_RATIO_THRESHOLD,
    min_chars: int = MIN_TEXT_CHARS,
) -> bool:
    """
    True when Latin letters make up more than ``threshold`` of the letters.

    Markdown images/links, tags, URLs and code are removed first so markup
    and links do not count as English.
    """
    if not text or not isinstance(text, str):
        return False
    plain = _clean_text(text)
    if len(plain) < min_chars:
        return False

    counts = _count_scripts(plain)
    total = sum(counts.values())
    if total == 0:
        return False
    return counts["en"] / total > threshold


def detect_language(text: str, min_chars: int = 5) -> str:
    """Return 'en', 'zh', 'ja', 'ko' or 'unknown'."""
    if not text or not isinstance(text, str):
        return "unknown"
    plain = _TAG_RE.sub("", text).strip()
    if len(plain) < min_chars:
        return "unknown"

    counts = _count_scripts(plain)
    total = sum(counts.values())
    if total == 0:
        return "unknown"

    if counts["en"] / total > 0.6:
        return "en"
    if counts["zh"] / total > 0.3:
        return "zh"
    if counts["ja"] / total > 0.1:
        return "ja"
    if counts["ko"] / total > 0.3:
        return "ko"
    return "unknown"
