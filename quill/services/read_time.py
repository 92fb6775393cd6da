"""Word-count based read time for post content."""

import html
import math
import re

from quill.services.rich_text import render_content

WORDS_PER_MINUTE = 200

_TAG_RE = re.compile(r"<[^>]*>")
_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)


def strip_html(content: str) -> str:
    """Return the visible text of *content*.

    Block-editor JSON is rendered to HTML first. Each tag is replaced by a
    space so adjacent elements never glue their words together, then
    entities are decoded.
    """
    markup = render_content(content or "")
    markup = _SCRIPT_STYLE_RE.sub(" ", markup)
    text = _TAG_RE.sub(" ", markup)
    return html.unescape(text)


def count_words(content: str) -> int:
    return len(strip_html(content).split())


def calculate_read_time(content: str) -> int:
    """Minutes to read *content* at 200 words per minute, at least 1."""
    words = count_words(content)
    return max(1, math.ceil(words / WORDS_PER_MINUTE))
