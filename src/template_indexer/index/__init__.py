"""
Vector Index Package

Backends implementing the VectorIndex capability used by the uploader.
"""

from .base import IndexStats, VectorIndex, VectorIndexError
from .pinecone_index import PineconeIndex

__all__ = [
    "IndexStats",
    "VectorIndex",
    "VectorIndexError",
    "PineconeIndex",
]
