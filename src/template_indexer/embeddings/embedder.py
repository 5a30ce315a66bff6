"""
Embedding Client

This module implements a test-friendly embedding client for the OpenAI
embeddings API (or any compatible provider). It is responsible for:

- Issuing embedding requests with a fixed model and output dimensionality
- Network and transport error isolation
- Strict response validation
- Surfacing the provider's own error message on failure

The class is stateless and safe to reuse across requests.
"""

from __future__ import annotations

from typing import List, Sequence, Optional
import logging
import httpx

from ..config import settings
from ..core.errors import ProviderError, ConfigurationError, provider_error_message

logger = logging.getLogger("templates.embedder")


class EmbeddingError(ProviderError):
    """Raised when embedding generation fails."""


class Embedder:
    """
    Asynchronous embedding generator.

    This class performs no caching and no retries; pacing between requests
    is the caller's concern (see embeddings.uploader).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        dimensions: Optional[int] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize an Embedder.

        Parameters
        ----------
        api_key : Optional[str]
            Optional override for the API key. Defaults to settings.openai_api_key.

        model : Optional[str]
            Embedding model identifier. Defaults to settings.embedding_model.

        dimensions : Optional[int]
            Output vector size. Defaults to settings.embedding_dimensions.

        base_url : Optional[str]
            Embeddings endpoint URL. Defaults to settings.openai_base_url.

        timeout : Optional[float]
            HTTP timeout for each request.

        transport : Optional[httpx.AsyncBaseTransport]
            Custom transport, mainly for tests (httpx.MockTransport).
        """
        if api_key is None:
            if settings.openai_api_key is None:
                raise ConfigurationError("OPENAI_API_KEY is not configured")
            api_key = settings.openai_api_key.get_secret_value()

        self.api_key = api_key
        self.model = model or settings.embedding_model
        self.dimensions = dimensions or settings.embedding_dimensions
        self.base_url = base_url or settings.openai_base_url
        self.timeout = timeout or settings.request_timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed_text(self, text: str) -> List[float]:
        """
        Generate the embedding vector for a single text.

        Raises
        ------
        EmbeddingError
            If the request fails or the response is malformed.
        """
        embeddings = await self.embed([text])
        if len(embeddings) != 1:
            raise EmbeddingError(
                f"Expected 1 embedding, provider returned {len(embeddings)}."
            )
        return embeddings[0]

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Generate embeddings for a sequence of input texts in one request.

        Returns
        -------
        List[List[float]]
            One vector per input text, in input order.
        """
        if not texts:
            return []

        headers = {"Authorization": f"Bearer {self.api_key}"}
        payload = {
            "model": self.model,
            "input": list(texts),
            "dimensions": self.dimensions,
        }

        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(
                    self.base_url,
                    json=payload,
                    headers=headers,
                )
            except httpx.HTTPError as exc:
                logger.error(
                    "Embedding request failed (%s): inputs=%d, error=%s",
                    type(exc).__name__,
                    len(texts),
                    str(exc),
                )
                raise EmbeddingError(
                    f"Embedding request failed: {type(exc).__name__}: {exc}"
                ) from exc

        if response.is_error:
            message = provider_error_message(response)
            logger.error(
                "Embedding provider returned %d: %s",
                response.status_code,
                message,
            )
            raise EmbeddingError(message)

        try:
            data = response.json()
        except ValueError as exc:
            raise EmbeddingError("Embedding response is not valid JSON.") from exc

        return self._extract_embeddings(data)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_embeddings(data: dict) -> List[List[float]]:
        """
        Parse and validate embedding output format.

        OpenAI returns:
            { "data": [ {"index": 0, "embedding": [...]}, ... ] }

        Records are ordered by their "index" field when present.
        """
        if not isinstance(data, dict) or "data" not in data:
            raise EmbeddingError("Embedding response missing 'data' field.")

        records = data["data"]
        if not isinstance(records, list):
            raise EmbeddingError("'data' field must be a list.")

        if all(isinstance(r, dict) and "index" in r for r in records):
            records = sorted(records, key=lambda r: r["index"])

        embeddings: List[List[float]] = []

        for index, record in enumerate(records):
            if not isinstance(record, dict) or "embedding" not in record:
                raise EmbeddingError(
                    f"Malformed embedding record at index {index}: {record!r}"
                )

            emb = record["embedding"]
            if not isinstance(emb, list) or not emb or not all(
                isinstance(x, (float, int)) for x in emb
            ):
                raise EmbeddingError(
                    f"Invalid embedding vector at index {index}: must be float list."
                )

            embeddings.append([float(x) for x in emb])

        return embeddings
