"""
FAISS Vector Index

This module implements a local, persistent FAISS-backed vector index that
satisfies the same VectorIndex capability as the Pinecone client. It is used
for development and offline indexing.

Key Properties
--------------
- String record ids mapped onto FAISS int64 ids via IndexIDMap2
- Upsert semantics: an existing id has its vector and metadata replaced
- Persistence of index + metadata after every upsert
- Thread-safe (internal RLock)
"""

from __future__ import annotations

import json
from pathlib import Path
from threading import RLock
from typing import Dict, List, Optional, Sequence

import faiss
import numpy as np

from ..config import settings
from ..templates.models import TemplateMetadata, UploadRecord
from .base import IndexStats, VectorIndexError


class FaissPersistenceError(VectorIndexError):
    """Raised when index persistence fails."""


class FaissIndex:
    """
    Persistent FAISS index keyed by record id.
    """

    def __init__(
        self,
        index_path: Optional[str] = None,
        meta_path: Optional[str] = None,
        name: str = "local",
    ) -> None:
        """
        Initialize a FAISS index wrapper.

        Parameters
        ----------
        index_path : Optional[str]
            Filesystem path to persist the FAISS index.
            Defaults to settings.vector_index_path.

        meta_path : Optional[str]
            Filesystem path to persist metadata (id map + next_id).
            Defaults to settings.vector_meta_path.
        """
        self.name = name
        self._index_path = index_path or settings.vector_index_path
        self._meta_path = meta_path or settings.vector_meta_path

        self._index: Optional[faiss.IndexIDMap2] = None
        self._ids: Dict[str, int] = {}
        self._metadata: Dict[str, TemplateMetadata] = {}
        self._next_id: int = 0

        self._lock = RLock()

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _new_index(dim: int) -> faiss.IndexIDMap2:
        """
        Initialize a new cosine-similarity FAISS index.
        """
        base = faiss.IndexFlatIP(dim)
        return faiss.IndexIDMap2(base)

    def _validate_records(self, records: Sequence[UploadRecord]) -> int:
        dim = len(records[0].values)
        if self._index is not None and self._index.d != dim:
            raise VectorIndexError(
                f"Vector dimension {dim} does not match index dimension {self._index.d}."
            )

        for i, record in enumerate(records):
            if len(record.values) != dim:
                raise VectorIndexError(
                    f"Inconsistent embedding dimensionality at index {i}."
                )
        return dim

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def upsert(self, records: Sequence[UploadRecord]) -> int:
        """
        Insert or replace records, then persist the index.

        Records are keyed by id; when a batch repeats an id the last record
        wins. Changes are staged on a copy of the index and only replace the
        live state once the copy has been written to disk.
        """
        if not records:
            return 0

        batch: Dict[str, UploadRecord] = {}
        for record in records:
            batch[record.id] = record
        unique = list(batch.values())

        with self._lock:
            dim = self._validate_records(unique)

            if self._index is None:
                staged = self._new_index(dim)
            else:
                staged = faiss.clone_index(self._index)

            ids = dict(self._ids)
            metadata = dict(self._metadata)
            next_id = self._next_id

            replaced = [ids[record_id] for record_id in batch if record_id in ids]
            if replaced:
                try:
                    staged.remove_ids(np.asarray(replaced, dtype="int64"))
                except Exception as exc:
                    raise VectorIndexError(
                        f"Failed to remove IDs from FAISS: {type(exc).__name__}"
                    ) from exc

            new_ids: List[int] = []
            for record in unique:
                new_ids.append(next_id)
                ids[record.id] = next_id
                metadata[record.id] = record.metadata
                next_id += 1

            vectors = np.asarray([r.values for r in unique], dtype="float32")
            faiss.normalize_L2(vectors)

            try:
                staged.add_with_ids(vectors, np.asarray(new_ids, dtype="int64"))
            except Exception as exc:
                raise VectorIndexError(
                    f"Failed to add vectors to FAISS: {type(exc).__name__}"
                ) from exc

            self._write(staged, ids, metadata, next_id)

            self._index = staged
            self._ids = ids
            self._metadata = metadata
            self._next_id = next_id
            return len(unique)

    async def describe_stats(self) -> IndexStats:
        with self._lock:
            if self._index is None:
                return IndexStats(total_record_count=0)
            return IndexStats(
                total_record_count=int(self._index.ntotal),
                dimension=int(self._index.d),
            )

    def get_metadata(self, record_id: str) -> Optional[TemplateMetadata]:
        with self._lock:
            return self._metadata.get(record_id)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        """
        Persist both FAISS index and metadata to disk.
        """
        with self._lock:
            if self._index is None:
                return
            self._write(self._index, self._ids, self._metadata, self._next_id)

    def _write(
        self,
        index: faiss.IndexIDMap2,
        ids: Dict[str, int],
        metadata: Dict[str, TemplateMetadata],
        next_id: int,
    ) -> None:
        index_path = Path(self._index_path)
        meta_path = Path(self._meta_path)

        index_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            faiss.write_index(index, str(index_path))
        except Exception as exc:
            raise FaissPersistenceError(
                f"Failed to write FAISS index: {type(exc).__name__}"
            ) from exc

        meta = {
            "next_id": next_id,
            "records": {
                record_id: {
                    "faiss_id": faiss_id,
                    "metadata": metadata[record_id].model_dump(),
                }
                for record_id, faiss_id in ids.items()
            },
        }

        try:
            meta_path.parent.mkdir(parents=True, exist_ok=True)
            with meta_path.open("w", encoding="utf-8") as f:
                json.dump(meta, f)
        except OSError as exc:
            raise FaissPersistenceError(
                f"Failed to write FAISS metadata: {type(exc).__name__}"
            ) from exc

    def load(self) -> None:
        """
        Load index and metadata from disk if available.
        """
        with self._lock:
            index_path = Path(self._index_path)
            meta_path = Path(self._meta_path)

            if not index_path.exists():
                return

            try:
                self._index = faiss.read_index(str(index_path))
            except Exception as exc:
                raise FaissPersistenceError(
                    f"Failed to read FAISS index: {type(exc).__name__}"
                ) from exc

            self._ids.clear()
            self._metadata.clear()
            self._next_id = 0

            if not meta_path.exists():
                return

            try:
                with meta_path.open("r", encoding="utf-8") as f:
                    data = json.load(f)

                self._next_id = int(data.get("next_id", 0))
                for record_id, entry in data.get("records", {}).items():
                    self._ids[record_id] = int(entry["faiss_id"])
                    self._metadata[record_id] = TemplateMetadata(**entry["metadata"])
            except Exception as exc:
                raise FaissPersistenceError(
                    f"Failed to load FAISS metadata: {type(exc).__name__}"
                ) from exc
