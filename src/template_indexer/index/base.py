"""
Vector Index Capability

The upload pipeline only needs two operations from a vector index: a batch
upsert and a record count. Backends implement the VectorIndex protocol.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel, Field

from ..core.errors import ProviderError
from ..templates.models import UploadRecord


class VectorIndexError(ProviderError):
    """Raised when a vector index call fails."""


class IndexStats(BaseModel):
    """Subset of index statistics reported back to callers."""

    total_record_count: int = Field(default=0, ge=0)
    dimension: Optional[int] = None


@runtime_checkable
class VectorIndex(Protocol):
    """Insert-or-update store of (id, vector, metadata) records."""

    name: str

    async def upsert(self, records: Sequence[UploadRecord]) -> int:
        """Write all records in one call. Returns the number upserted."""
        ...

    async def describe_stats(self) -> IndexStats:
        ...
