"""
Upload Routes

This module exposes the template upload endpoint:

- POST    /api/upload  parse a document and index its templates
- OPTIONS /api/upload  CORS preflight acknowledgement
- GET     /api/stats   report the vector index's total record count

Any other method on /api/upload is answered with 405 by the router and
mapped onto the standard error envelope by core.errors.
"""

from fastapi import APIRouter, Depends, Response, status
from typing import Annotated

from .models import UploadRequest, UploadResponse, StatsResponse, ErrorResponse
from .dependencies import get_uploader, get_vector_index
from ..core.errors import UploadValidationError
from ..embeddings.uploader import TemplateUploader, utc_timestamp
from ..index.base import VectorIndex
from ..templates.parser import parse_templates

router = APIRouter(prefix="/api", tags=["upload"])


@router.options(
    "/upload",
    summary="CORS preflight",
    include_in_schema=False,
)
async def upload_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK)


@router.post(
    "/upload",
    response_model=UploadResponse,
    summary="Parse a template document and upload it to the vector index",
    responses={
        400: {"model": ErrorResponse},
        405: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def upload_templates(
    req: UploadRequest,
    uploader: Annotated[TemplateUploader, Depends(get_uploader)],
) -> UploadResponse:
    """
    Parse and upload templates.

    Workflow
    --------
    1. Resolve the document text (raw or base64).
    2. Parse it into templates; an empty result is a validation failure.
    3. Embed every template and upsert the batch.
    """
    text = req.resolve_text()

    templates = parse_templates(text)
    if not templates:
        raise UploadValidationError("No templates found")

    # Provider failures propagate to the ProviderError handler (500)
    summary = await uploader.upload(templates, source_file=req.file_name)

    return UploadResponse(
        message=f"Uploaded {summary.uploaded} templates in markdown format",
        uploaded=summary.uploaded,
        total_vectors=summary.total_vectors,
        results=summary.results,
        timestamp=utc_timestamp(),
    )


@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Get vector index statistics",
)
async def index_stats(
    vector_index: Annotated[VectorIndex, Depends(get_vector_index)],
) -> StatsResponse:
    stats = await vector_index.describe_stats()
    return StatsResponse(
        index=vector_index.name,
        total_vectors=stats.total_record_count,
    )
