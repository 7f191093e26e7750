"""
Semantic search endpoint.
"""

from fastapi import APIRouter, Depends
from starlette.requests import Request

from smaraa.api.auth import verify_api_key
from smaraa.api.dependencies import get_search_engine
from smaraa.api.models import ErrorResponse, SearchRequest, SearchResponse, SearchResultItem
from smaraa.api.rate_limit import limiter
from smaraa.config.settings import get_settings
from smaraa.search.service import SearchEngine

router = APIRouter()


@router.post(
    "/search",
    response_model=SearchResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        403: {"model": ErrorResponse, "description": "Actor may not search"},
        422: {"model": ErrorResponse, "description": "Validation error"},
        503: {"model": ErrorResponse, "description": "Embedding provider unavailable (retryable)"},
    },
    summary="Search archived messages",
    description="""
    Find archived messages semantically similar to a query within one tenant.

    **Filters** (all optional, combined with AND):
    - `fromUserId`: Only messages by this author
    - `channelId`: Only messages from this channel
    - `before` / `after`: Inclusive bounds on the original message time

    Results are ranked by cosine similarity (`score = 1 - distance`), ties
    broken by message id. Pass `nextCursor` back as `cursor` for the next page.
    """,
)
@limiter.limit(lambda: get_settings().rate_limit_search)
async def search_messages(
    request: Request,
    body: SearchRequest,
    api_key: str = Depends(verify_api_key),
    engine: SearchEngine = Depends(get_search_engine),
) -> SearchResponse:
    page = await engine.search(
        body.tenant_id,
        body.query,
        filters=body.filter.to_filter() if body.filter else None,
        limit=body.limit,
        cursor=body.cursor,
        actor=body.actor(),
    )
    return SearchResponse(
        results=[SearchResultItem.from_result(r) for r in page.results],
        next_cursor=page.next_cursor,
    )
