"""
Pinecone Vector Index

Thin async client for the Pinecone REST data plane, built on httpx in the
same way as the embedding client. Only the operations used by the upload
pipeline are implemented:

- POST https://{host}/vectors/upsert
- POST https://{host}/describe_index_stats

The data-plane host is either configured explicitly or looked up once from
the control plane (`GET {controller}/indexes/{name}`) and cached.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import httpx

from ..config import settings
from ..core.errors import ConfigurationError, provider_error_message
from ..templates.models import UploadRecord
from .base import IndexStats, VectorIndexError

logger = logging.getLogger("templates.index")

API_VERSION = "2024-07"


class PineconeIndex:
    """
    A named Pinecone index.

    Instances hold no connection state apart from the cached host and are
    safe to reuse across requests.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        index_name: Optional[str] = None,
        host: Optional[str] = None,
        controller_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if api_key is None:
            if settings.pinecone_api_key is None:
                raise ConfigurationError("PINECONE_API_KEY is not configured")
            api_key = settings.pinecone_api_key.get_secret_value()

        self._api_key = api_key
        self.name = index_name or settings.index_name
        self._host = _normalize_host(host or settings.pinecone_index_host)
        self._controller_url = (
            controller_url or settings.pinecone_controller_url
        ).rstrip("/")
        self._timeout = timeout or settings.request_timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Api-Key": self._api_key,
            "X-Pinecone-API-Version": API_VERSION,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            headers=self._headers,
        )

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            response = await client.request(method, url, json=payload)
        except httpx.HTTPError as exc:
            logger.error(
                "Pinecone request failed (%s): %s %s, error=%s",
                type(exc).__name__,
                method,
                url,
                str(exc),
            )
            raise VectorIndexError(
                f"Vector index request failed: {type(exc).__name__}: {exc}"
            ) from exc

        if response.is_error:
            message = provider_error_message(response)
            logger.error(
                "Pinecone returned %d for %s %s: %s",
                response.status_code,
                method,
                url,
                message,
            )
            raise VectorIndexError(message)

        if not response.content:
            return {}

        try:
            data = response.json()
        except ValueError as exc:
            raise VectorIndexError("Vector index response is not valid JSON.") from exc

        if not isinstance(data, dict):
            raise VectorIndexError("Vector index response must be a JSON object.")
        return data

    async def _resolve_host(self, client: httpx.AsyncClient) -> str:
        if self._host:
            return self._host

        data = await self._request(
            client, "GET", f"{self._controller_url}/indexes/{self.name}"
        )
        host = data.get("host")
        if not host:
            raise VectorIndexError(
                f"Index '{self.name}' description does not contain a host."
            )

        self._host = _normalize_host(host)
        logger.info("Resolved Pinecone index '%s' to %s", self.name, self._host)
        return self._host

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def upsert(self, records: Sequence[UploadRecord]) -> int:
        if not records:
            return 0

        payload = {
            "vectors": [
                {
                    "id": record.id,
                    "values": record.values,
                    "metadata": record.metadata.model_dump(),
                }
                for record in records
            ]
        }

        async with self._client() as client:
            host = await self._resolve_host(client)
            data = await self._request(client, "POST", f"{host}/vectors/upsert", payload)

        upserted = int(data.get("upsertedCount", len(records)))
        logger.info("Upserted %d vectors into '%s'", upserted, self.name)
        return upserted

    async def describe_stats(self) -> IndexStats:
        async with self._client() as client:
            host = await self._resolve_host(client)
            data = await self._request(client, "POST", f"{host}/describe_index_stats", {})

        return IndexStats(
            total_record_count=int(data.get("totalVectorCount", 0)),
            dimension=data.get("dimension"),
        )


def _normalize_host(host: Optional[str]) -> Optional[str]:
    if not host:
        return None
    host = host.rstrip("/")
    if not host.startswith(("http://", "https://")):
        host = f"https://{host}"
    return host
