"""
Canonical rendering of parsed templates.

The rendered form is stored in the vector index metadata and is what gets
embedded, so its layout has to stay byte-for-byte stable.
"""

from __future__ import annotations

TEMPLATE_LABEL = "**Template:**"


def render_template_content(title: str, raw_content: str) -> str:
    """
    Render a template as:

        **"<title>"**

        **Template:**

        <raw_content>
    """
    return f'**"{title}"**\n\n{TEMPLATE_LABEL}\n\n{raw_content}'


def character_count(content: str) -> int:
    return len(content)
