"""
Health check endpoint with store and provider checks.
"""

import time

import structlog
from fastapi import APIRouter, Depends, Response

from smaraa.api.dependencies import get_gateway, get_health_database
from smaraa.api.models import ComponentHealth, HealthResponse
from smaraa.embedding.gateway import EmbeddingGateway
from smaraa.resilience.circuit_breaker import CircuitState
from smaraa.storage.database import Database

router = APIRouter()
logger = structlog.get_logger(__name__)


async def _check_database(db: Database | None) -> ComponentHealth:
    """Check database connectivity, the pgvector extension and measure latency."""
    if db is None:
        return ComponentHealth(status="unhealthy", details={"pgvector": False, "connected": False})

    start = time.perf_counter()
    healthy = await db.health_check()
    pgvector = await db.check_pgvector_extension() if healthy else False
    latency_ms = (time.perf_counter() - start) * 1000

    if not healthy:
        status = "unhealthy"
    elif not pgvector:
        status = "degraded"
    else:
        status = "healthy"
    return ComponentHealth(
        status=status,
        latency_ms=round(latency_ms, 2),
        details={"pgvector": pgvector, "pool": db.get_pool_stats()},
    )


@router.get(
    "/healthz",
    response_model=HealthResponse,
    summary="Service health check",
    description="Readiness of the store and the embedding/generation provider paths.",
)
async def health_check(
    response: Response,
    db: Database | None = Depends(get_health_database),
    gateway: EmbeddingGateway = Depends(get_gateway),
) -> HealthResponse:
    """
    Check service health.

    Status logic:
    - unhealthy: database is down, or the embedding breaker is open
    - degraded: pgvector missing, cache down, or the generation breaker is open
    - healthy: all components operational
    """
    components: dict[str, ComponentHealth] = {"database": await _check_database(db)}

    cache_available = await gateway.is_cache_available()
    components["cache"] = ComponentHealth(status="healthy" if cache_available else "degraded")

    breakers = {name: snap.state.value for name, snap in gateway.breaker_states().items()}

    if (
        components["database"].status == "unhealthy"
        or breakers.get("embedding") == CircuitState.OPEN.value
    ):
        status = "unhealthy"
    elif any(c.status != "healthy" for c in components.values()) or any(
        state != CircuitState.CLOSED.value for state in breakers.values()
    ):
        status = "degraded"
    else:
        status = "healthy"

    if status == "unhealthy":
        response.status_code = 503
        logger.warning("Health check unhealthy", breakers=breakers)

    return HealthResponse(
        status=status,
        components=components,
        breakers=breakers,
        cache_available=cache_available,
    )
