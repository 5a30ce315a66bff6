"""
Hyperlink detection for template bodies.

Two forms are recognised: Markdown links `[label](target)` and bare
`http(s)://` URLs. Markdown targets are collected first, so a URL that shows
up both ways is only counted once.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

MARKDOWN_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
BARE_URL_RE = re.compile(r"https?://[^\s)]+")


def count_hyperlinks(text: Optional[str]) -> int:
    """
    Return the number of distinct link targets referenced in `text`.
    """
    if not text:
        return 0

    links = {match.group(2) for match in MARKDOWN_LINK_RE.finditer(text)}
    links.update(BARE_URL_RE.findall(text))
    return len(links)


def extract_hyperlinks(text: Optional[str]) -> List[Tuple[str, str]]:
    """
    Return `(label, url)` pairs for every Markdown link, in document order.

    Bare URLs have no label and are not included.
    """
    if not text:
        return []
    return [(m.group(1), m.group(2)) for m in MARKDOWN_LINK_RE.finditer(text)]
