"""
API Models

Pydantic models for the upload service's request and response bodies.

Field names on the wire are camelCase (`fileContent`, `totalVectors`) to
stay compatible with existing callers; Python attributes are snake_case.
"""

from __future__ import annotations

import base64
import binascii
from typing import List, Optional, Literal

from pydantic import BaseModel, Field, ConfigDict

from ..core.errors import UploadValidationError
from ..templates.models import UploadResult


# ---------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------

class UploadRequest(BaseModel):
    """
    Upload payload. Exactly one of `fileContent` / `fileBase64` must be set;
    empty strings count as absent.
    """
    file_content: Optional[str] = Field(default=None, alias="fileContent")
    file_base64: Optional[str] = Field(default=None, alias="fileBase64")
    file_name: Optional[str] = Field(default=None, alias="fileName")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def resolve_text(self) -> str:
        """
        Return the document text carried by the request.

        Raises
        ------
        UploadValidationError
            If no content, both forms, or undecodable base64 was supplied.
        """
        if self.file_content and self.file_base64:
            raise UploadValidationError(
                "Provide either fileContent or fileBase64, not both"
            )

        if self.file_base64:
            try:
                encoded = "".join(self.file_base64.split())
                # Unpadded input is accepted; restore the trailing "="
                encoded += "=" * (-len(encoded) % 4)
                raw = base64.b64decode(encoded, validate=True)
                return raw.decode("utf-8")
            except (binascii.Error, ValueError) as exc:
                raise UploadValidationError(
                    "fileBase64 is not valid base64-encoded UTF-8 text"
                ) from exc

        if self.file_content:
            return self.file_content

        raise UploadValidationError("No content provided")


class UploadResponse(BaseModel):
    """
    Successful upload summary.
    """
    success: Literal[True] = True
    message: str
    uploaded: int = Field(..., ge=0)
    total_vectors: Optional[int] = Field(default=None, alias="totalVectors")
    format: Literal["markdown"] = "markdown"
    results: List[UploadResult] = Field(default_factory=list)
    timestamp: str

    model_config = ConfigDict(populate_by_name=True)


class StatsResponse(BaseModel):
    success: Literal[True] = True
    index: str
    total_vectors: int = Field(..., ge=0, alias="totalVectors")

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """
    Envelope returned for every failure.
    """
    success: Literal[False] = False
    error: str
