"""
Template parsing package.

Turns raw documents into ParsedTemplate records and derives the per-record
values (rendered content, link counts) stored in the vector index.
"""

from .formatter import render_template_content, character_count
from .links import count_hyperlinks, extract_hyperlinks
from .models import ParsedTemplate, TemplateMetadata, UploadRecord, UploadResult
from .parser import parse_templates

__all__ = [
    "render_template_content",
    "character_count",
    "count_hyperlinks",
    "extract_hyperlinks",
    "ParsedTemplate",
    "TemplateMetadata",
    "UploadRecord",
    "UploadResult",
    "parse_templates",
]
