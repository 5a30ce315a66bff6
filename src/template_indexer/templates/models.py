"""
Template Data Models

This module defines the canonical records that flow from the template parser
into the upload pipeline:

- ParsedTemplate: one titled template extracted from a source document
- TemplateMetadata: the metadata stored alongside each vector
- UploadRecord: one (id, vector, metadata) entry sent to the vector index

None of these outlive a single upload call; the vector index is the only
durable store.
"""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field, ConfigDict


class ParsedTemplate(BaseModel):
    """
    A single template extracted from a document.

    `content` is always the canonical rendering of `title` and `raw_content`
    (see templates.formatter.render_template_content).
    """

    title: str = Field(
        ...,
        min_length=1,
        description="Trimmed quoted title of the template.",
    )

    content: str = Field(
        ...,
        min_length=1,
        description="Canonical markdown rendering used for embedding.",
    )

    raw_content: str = Field(
        ...,
        min_length=1,
        description="Trimmed template body as authored.",
    )

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )


class TemplateMetadata(BaseModel):
    """
    Metadata persisted next to each template vector.

    The field set is part of the index contract and must not change without
    migrating existing entries.
    """

    title: str
    content: str
    raw_content: str
    chunk_id: str = Field(..., pattern=r"^chunk_\d{3,}$")
    character_count: int = Field(..., ge=0)
    hyperlink_count: int = Field(..., ge=0)
    template_type: Literal["n8n_upload"] = "n8n_upload"
    source_file: str = "unknown"
    format: Literal["markdown"] = "markdown"
    created_at: str

    model_config = ConfigDict(extra="forbid", frozen=True)


class UploadRecord(BaseModel):
    """
    One entry of an upsert batch.
    """

    id: str = Field(..., min_length=1)
    values: List[float] = Field(..., min_length=1)
    metadata: TemplateMetadata

    model_config = ConfigDict(extra="forbid", frozen=True)


class UploadResult(BaseModel):
    """
    Per-record summary returned to the caller after an upload.
    """

    index: int = Field(..., ge=1)
    title: str
    id: str
    hyperlink_count: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid")
