"""
Archive endpoints: single messages and batches.
"""

from fastapi import APIRouter, Depends
from starlette.requests import Request

from smaraa.api.auth import verify_api_key
from smaraa.api.dependencies import get_archive_store
from smaraa.api.models import (
    ArchiveBatchRequest,
    ArchiveBatchResponse,
    ArchiveRequest,
    ArchiveResponse,
    ErrorResponse,
)
from smaraa.api.rate_limit import limiter
from smaraa.archive.service import ArchiveStore
from smaraa.config.settings import get_settings

router = APIRouter()

_ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Invalid API key"},
    403: {"model": ErrorResponse, "description": "Actor may not archive"},
    422: {"model": ErrorResponse, "description": "Validation error"},
    503: {"model": ErrorResponse, "description": "Embedding provider unavailable (retryable)"},
}


@router.post(
    "/archive",
    response_model=ArchiveResponse,
    responses=_ERROR_RESPONSES,
    summary="Archive a message",
    description="""
    Embed and store one chat message.

    Idempotent: re-sending the same (tenantId, messageId) returns
    `created: false` and leaves the stored row untouched.
    """,
)
@limiter.limit(lambda: get_settings().rate_limit_default)
async def archive_message(
    request: Request,
    body: ArchiveRequest,
    api_key: str = Depends(verify_api_key),
    store: ArchiveStore = Depends(get_archive_store),
) -> ArchiveResponse:
    result = await store.archive(body.to_record(), body.actor())
    return ArchiveResponse(created=result.created, message_id=result.message_id)


@router.post(
    "/archive/batch",
    response_model=ArchiveBatchResponse,
    responses=_ERROR_RESPONSES,
    summary="Archive several messages",
    description="Archive a thread or backfill with a single batched embedding pass.",
)
@limiter.limit(lambda: get_settings().rate_limit_default)
async def archive_batch(
    request: Request,
    body: ArchiveBatchRequest,
    api_key: str = Depends(verify_api_key),
    store: ArchiveStore = Depends(get_archive_store),
) -> ArchiveBatchResponse:
    results = await store.archive_many(
        [record.to_record() for record in body.records],
        body.actor(),
    )
    return ArchiveBatchResponse(
        results=[ArchiveResponse(created=r.created, message_id=r.message_id) for r in results],
        created=sum(1 for r in results if r.created),
    )
