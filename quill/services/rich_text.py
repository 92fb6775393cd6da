"""Render block-editor JSON content to HTML.

Post content is either HTML or a JSON array of editor blocks. A block looks
like::

    {"type": "heading", "props": {"level": 2},
     "content": [{"type": "text", "text": "Intro", "styles": {"bold": true}}],
     "children": []}

Rendering is lossy: props the page template cannot use are dropped.
"""

import html
import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_LIST_TAGS = {
    "bulletListItem": "ul",
    "numberedListItem": "ol",
    "checkListItem": "ul",
}

# Inline style name -> wrapping tag
_STYLE_TAGS = [
    ("code", "code"),
    ("bold", "strong"),
    ("italic", "em"),
    ("underline", "u"),
    ("strike", "s"),
]

_IMG_SRC_RE = re.compile(r"""<img[^>]+src=["']([^"'>]+)["'][^>]*>""", re.IGNORECASE)


def parse_blocks(content: str) -> list[dict[str, Any]] | None:
    """Return the block list if *content* is block JSON, else None."""
    stripped = (content or "").strip()
    if not (stripped.startswith("[") and stripped.endswith("]")):
        return None
    try:
        blocks = json.loads(stripped)
    except ValueError:
        return None
    if not isinstance(blocks, list) or not all(isinstance(b, dict) for b in blocks):
        return None
    return blocks


def _render_inline(content: Any) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return html.escape(content)
    if not isinstance(content, list):
        return ""

    parts = []
    for item in content:
        if isinstance(item, str):
            parts.append(html.escape(item))
            continue
        if not isinstance(item, dict):
            continue
        if item.get("type") == "link":
            href = html.escape(str(item.get("href", "")), quote=True)
            parts.append(f'<a href="{href}">{_render_inline(item.get("content"))}</a>')
            continue
        text = html.escape(str(item.get("text", "")))
        styles = item.get("styles") or {}
        for style, tag in _STYLE_TAGS:
            if styles.get(style):
                text = f"<{tag}>{text}</{tag}>"
        parts.append(text)
    return "".join(parts)


def _render_block(block: dict[str, Any]) -> str:
    block_type = block.get("type", "paragraph")
    props = block.get("props") or {}
    inner = _render_inline(block.get("content"))
    children = render_blocks(block.get("children") or [])

    if block_type == "heading":
        try:
            level = min(max(int(props.get("level", 1)), 1), 6)
        except (TypeError, ValueError):
            level = 1
        return f"<h{level}>{inner}</h{level}>{children}"

    if block_type in _LIST_TAGS:
        if block_type == "checkListItem":
            checked = " checked" if props.get("checked") else ""
            inner = f'<input type="checkbox" disabled{checked}> {inner}'
        return f"<li>{inner}{children}</li>"

    if block_type == "quote":
        return f"<blockquote>{inner}</blockquote>{children}"

    if block_type == "codeBlock":
        language = props.get("language")
        attr = f' class="language-{html.escape(str(language), quote=True)}"' if language else ""
        return f"<pre><code{attr}>{inner}</code></pre>{children}"

    if block_type == "image":
        url = props.get("url") or props.get("src")
        if not url:
            return children
        src = html.escape(str(url), quote=True)
        caption = props.get("caption") or ""
        alt = html.escape(str(caption or props.get("name") or ""), quote=True)
        figcaption = f"<figcaption>{html.escape(str(caption))}</figcaption>" if caption else ""
        return f'<figure><img src="{src}" alt="{alt}">{figcaption}</figure>{children}'

    # paragraph and anything unrecognised
    return f"<p>{inner}</p>{children}"


def render_blocks(blocks: list[dict[str, Any]]) -> str:
    """Render a block list, grouping consecutive list items of one kind."""
    out: list[str] = []
    open_type: str | None = None

    for block in blocks:
        if not isinstance(block, dict):
            continue
        block_type = block.get("type", "paragraph")
        list_type = block_type if block_type in _LIST_TAGS else None
        if list_type != open_type:
            if open_type:
                out.append(f"</{_LIST_TAGS[open_type]}>")
            if list_type:
                out.append(f"<{_LIST_TAGS[list_type]}>")
            open_type = list_type
        out.append(_render_block(block))

    if open_type:
        out.append(f"</{_LIST_TAGS[open_type]}>")
    return "".join(out)


def render_content(content: str) -> str:
    """Return HTML for *content*; non-block content passes through unchanged."""
    blocks = parse_blocks(content)
    if blocks is None:
        return content or ""
    return render_blocks(blocks)


def extract_featured_image(content: str) -> str | None:
    """First image URL in *content* (block JSON or HTML), if any."""
    blocks = parse_blocks(content)
    if blocks is not None:
        for block in blocks:
            if block.get("type") != "image":
                continue
            props = block.get("props") or {}
            url = props.get("url") or props.get("src") or block.get("url") or block.get("src")
            if url:
                return str(url)
        return None

    match = _IMG_SRC_RE.search(content or "")
    return match.group(1) if match else None
