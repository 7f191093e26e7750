"""
Summarization endpoint.
"""

from fastapi import APIRouter, Depends
from starlette.requests import Request

from smaraa.api.auth import verify_api_key
from smaraa.api.dependencies import get_summarization_engine
from smaraa.api.models import ErrorResponse, SummarizeRequest, SummarizeResponse
from smaraa.api.rate_limit import limiter
from smaraa.config.settings import get_settings
from smaraa.summarize.service import SummarizationEngine

router = APIRouter()


@router.post(
    "/summarize",
    response_model=SummarizeResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        403: {"model": ErrorResponse, "description": "Actor may not search"},
        422: {"model": ErrorResponse, "description": "Validation error"},
        503: {"model": ErrorResponse, "description": "Embedding provider unavailable (retryable)"},
    },
    summary="Summarize archived messages",
    description="""
    Retrieve the top documents for a query and summarize them with citations.

    When generation is unavailable the response is a snippet listing with
    `degraded: true` instead of an error. `confidence` reflects retrieval
    quality, not the model's own assessment.
    """,
)
@limiter.limit(lambda: get_settings().rate_limit_summarize)
async def summarize_messages(
    request: Request,
    body: SummarizeRequest,
    api_key: str = Depends(verify_api_key),
    engine: SummarizationEngine = Depends(get_summarization_engine),
) -> SummarizeResponse:
    result = await engine.summarize(
        body.tenant_id,
        body.query,
        max_documents=body.max_documents,
        actor=body.actor(),
    )
    return SummarizeResponse(
        summary=result.summary,
        references=result.references,
        confidence=result.confidence,
        degraded=result.degraded,
    )
