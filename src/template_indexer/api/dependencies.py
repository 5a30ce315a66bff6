from functools import lru_cache

from ..config import settings
from ..embeddings.embedder import Embedder
from ..embeddings.uploader import TemplateUploader
from ..index.base import VectorIndex
from ..index.pinecone_index import PineconeIndex


@lru_cache
def get_embedder() -> Embedder:
    return Embedder()


@lru_cache
def get_vector_index() -> VectorIndex:
    if settings.vector_backend == "faiss":
        # Imported lazily so the Pinecone deployment never loads faiss
        from ..index.faiss_index import FaissIndex

        index = FaissIndex(name=settings.index_name)
        index.load()
        return index

    return PineconeIndex()


def get_uploader() -> TemplateUploader:
    return TemplateUploader(
        embedder=get_embedder(),
        vector_index=get_vector_index(),
        pacing_seconds=settings.upload_pacing_ms / 1000,
    )
