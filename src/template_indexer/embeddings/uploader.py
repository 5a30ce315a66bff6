"""
Template Uploader

Turns parsed templates into vector index entries:

1. Embed each template's rendered content, one request at a time, with a
   fixed pause between requests to stay under provider rate limits.
2. Assign a fresh id and build the metadata record.
3. Upsert the whole batch in a single call once every record is embedded.

A failure at any step aborts the upload before anything is written, so the
index never sees a partial batch. Uploads are not idempotent: re-running
produces new ids and new entries.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from ..templates.formatter import character_count
from ..templates.links import count_hyperlinks
from ..templates.models import (
    ParsedTemplate,
    TemplateMetadata,
    UploadRecord,
    UploadResult,
)
from ..index.base import VectorIndex
from .embedder import Embedder

logger = logging.getLogger("templates.uploader")

UNKNOWN_SOURCE = "unknown"
DEFAULT_PACING_SECONDS = 0.15


def generate_template_id() -> str:
    """Return a new collision-resistant id: template_<epoch ms>_<8 hex>."""
    return f"template_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def chunk_id(position: int) -> str:
    return f"chunk_{position:03d}"


def build_metadata(
    template: ParsedTemplate,
    position: int,
    source_file: Optional[str] = None,
) -> TemplateMetadata:
    """
    Assemble the metadata stored with a template vector.

    Parameters
    ----------
    template : ParsedTemplate
        Parsed template.
    position : int
        1-based position of the template within the upload.
    source_file : Optional[str]
        Display name of the uploaded file.
    """
    return TemplateMetadata(
        title=template.title,
        content=template.content,
        raw_content=template.raw_content,
        chunk_id=chunk_id(position),
        character_count=character_count(template.content),
        hyperlink_count=count_hyperlinks(template.raw_content),
        source_file=source_file or UNKNOWN_SOURCE,
        created_at=utc_timestamp(),
    )


@dataclass
class UploadSummary:
    """Outcome of one upload call."""

    uploaded: int = 0
    total_vectors: Optional[int] = None
    results: List[UploadResult] = field(default_factory=list)


class TemplateUploader:
    """
    Sequential embed-then-upsert pipeline.

    Collaborators are injected so tests can substitute fakes for the
    embedding provider and the vector index.
    """

    def __init__(
        self,
        embedder: Embedder,
        vector_index: VectorIndex,
        pacing_seconds: float = DEFAULT_PACING_SECONDS,
        report_stats: bool = True,
    ) -> None:
        self._embedder = embedder
        self._index = vector_index
        self._pacing_seconds = pacing_seconds
        self._report_stats = report_stats

    async def upload(
        self,
        templates: Sequence[ParsedTemplate],
        source_file: Optional[str] = None,
    ) -> UploadSummary:
        """
        Embed and upsert templates in input order.

        Raises
        ------
        ProviderError
            If any embedding request, the upsert or the stats query fails.
            Nothing is upserted when an embedding request fails.
        """
        if not templates:
            logger.info("Nothing to upload")
            return UploadSummary()

        records: List[UploadRecord] = []
        results: List[UploadResult] = []

        for position, template in enumerate(templates, start=1):
            vector = await self._embedder.embed_text(template.content)

            record_id = generate_template_id()
            metadata = build_metadata(template, position, source_file)

            records.append(
                UploadRecord(id=record_id, values=vector, metadata=metadata)
            )
            results.append(
                UploadResult(
                    index=position,
                    title=template.title,
                    id=record_id,
                    hyperlink_count=metadata.hyperlink_count,
                )
            )
            logger.info(
                "Embedded template %d/%d: %r (%s)",
                position,
                len(templates),
                template.title,
                record_id,
            )

            if position < len(templates) and self._pacing_seconds > 0:
                await asyncio.sleep(self._pacing_seconds)

        await self._index.upsert(records)

        total_vectors: Optional[int] = None
        if self._report_stats:
            stats = await self._index.describe_stats()
            total_vectors = stats.total_record_count

        logger.info(
            "Uploaded %d templates to index '%s' (total=%s)",
            len(records),
            getattr(self._index, "name", "?"),
            total_vectors,
        )

        return UploadSummary(
            uploaded=len(records),
            total_vectors=total_vectors,
            results=results,
        )
