"""
HTML rendering of record cells with search-term highlighting.
"""

from __future__ import annotations

import html
import re
from typing import Any

NOT_AVAILABLE = '<span class="na">N/A</span>'
MARK_OPEN = "<mark>"
MARK_CLOSE = "</mark>"


def is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def render_cell(value: Any, query: str | None = None) -> str:
    """
    Render a cell value as escaped HTML, wrapping query matches in ``<mark>``.

    Matches are located on the raw text and each segment is escaped on its own,
    so markup in record content is never interpreted and entity text produced
    by escaping is never matched.
    """

    if is_blank(value):
        return NOT_AVAILABLE
    text = str(value)
    needle = (query or "").strip()
    if not needle:
        return html.escape(text)

    parts: list[str] = []
    cursor = 0
    for match in re.finditer(re.escape(needle), text, flags=re.IGNORECASE):
        parts.append(html.escape(text[cursor : match.start()]))
        parts.append(f"{MARK_OPEN}{html.escape(match.group(0))}{MARK_CLOSE}")
        cursor = match.end()
    parts.append(html.escape(text[cursor:]))
    return "".join(parts)
