"""
Template Parser

Converts a plain-text document of quoted template entries into an ordered
list of ParsedTemplate records.

Document shape
--------------
    1. "Welcome email"
    Template:
    Hi {name}, thanks for signing up.

    "Follow-up"
    Template:
    Just checking in ...

A title line is a quoted phrase (straight, curly double or curly single
quotes) optionally preceded by an ordinal such as `1.`. A curly closing quote
may also appear inside the title, since it doubles as the typographic
apostrophe (‘Don’t forget’). Body lines are only
collected after a `Template:` marker, so notes between a title and its marker
never end up in the body. Titles without a marker or without a non-blank body
are dropped silently.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from .formatter import render_template_content
from .models import ParsedTemplate

logger = logging.getLogger("templates.parser")

BOM = "\ufeff"

TITLE_RE = re.compile(
    r"""^(?:\d+\.\s*)?
        (?:
            "(?P<straight>[^"]+)"
          | “(?P<curly_double>[^“]+)”
          | ‘(?P<curly_single>[^‘]+)’
        )$""",
    re.VERBOSE,
)

MARKER = "template:"


def normalize_text(text: str) -> str:
    """
    Strip a leading byte-order mark and convert CRLF / CR line endings to LF.
    """
    if text.startswith(BOM):
        text = text[len(BOM):]
    return text.replace("\r\n", "\n").replace("\r", "\n")


def match_title(line: str) -> Optional[str]:
    """
    Return the quoted text of a title line, or None if `line` is not one.

    `line` is expected to be stripped already. The returned title is trimmed
    and may be empty when the quotes only contain whitespace.
    """
    match = TITLE_RE.match(line)
    if match is None:
        return None

    quoted = next(group for group in match.groups() if group is not None)
    return quoted.strip()


def _build_template(title: str, lines: List[str]) -> Optional[ParsedTemplate]:
    body = "\n".join(lines).strip()
    if not body:
        return None

    return ParsedTemplate(
        title=title,
        content=render_template_content(title, body),
        raw_content=body,
    )


def parse_templates(text: str) -> List[ParsedTemplate]:
    """
    Parse a document into templates, preserving document order.

    Parameters
    ----------
    text : str
        Full document text.

    Returns
    -------
    List[ParsedTemplate]
        One record per title that has a `Template:` marker followed by at
        least one non-blank line. Duplicate titles yield separate records.
    """
    templates: List[ParsedTemplate] = []

    title: Optional[str] = None
    content: List[str] = []
    collecting = False

    def close_current() -> None:
        if not title:
            return
        template = _build_template(title, content) if content else None
        if template is None:
            logger.debug("Dropping template without body: %r", title)
            return
        templates.append(template)

    for raw_line in normalize_text(text).split("\n"):
        line = raw_line.strip()
        if not line:
            continue

        quoted = match_title(line)
        if quoted is not None:
            close_current()
            title = quoted or None
            content = []
            collecting = False
            continue

        if line.lower() == MARKER:
            collecting = True
            continue

        if collecting and title:
            content.append(line)

    close_current()

    logger.debug("Parsed %d templates", len(templates))
    return templates
