"""Decide whether a content string is already HTML or plain/Markdown text."""

import re
from dataclasses import dataclass

# Generic "<word ...>" tag; angle brackets in prose that resemble a tag are
# classified as HTML too (accepted false positive).
_TAG_RE = re.compile(r"</?[A-Za-z][\w:-]*(?:\s[^<>]*)?/?>")


@dataclass(frozen=True)
class ContentKind:
    is_html: bool


def classify(content: str) -> ContentKind:
    return ContentKind(is_html=bool(content) and _TAG_RE.search(content) is not None)


def is_html(content: str) -> bool:
    return classify(content).is_html
