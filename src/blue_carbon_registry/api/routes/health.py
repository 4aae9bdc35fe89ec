"""Health check endpoint.

Verifies connectivity to the database, Redis and the chain client, and
returns structured status. Used by Docker healthchecks and load balancers.
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from blue_carbon_registry.infrastructure.redis_client import get_redis, redis_available
from blue_carbon_registry.logging_config import get_logger
from blue_carbon_registry.schemas.registry import HealthResponse

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the health status of the application and its dependencies.",
)
async def health_check(request: Request) -> HealthResponse:
    """Check connectivity to the database, Redis and the chain."""
    db_status = "unknown"
    redis_status = "disabled"
    chain_status = "unknown"

    try:
        await request.app.state.db.ping()
        db_status = "healthy"
    except Exception as exc:
        db_status = f"unhealthy: {exc}"
        logger.error("health.db_check_failed", error=str(exc))

    if redis_available():
        try:
            await get_redis().ping()
            redis_status = "healthy"
        except Exception as exc:
            redis_status = f"unhealthy: {exc}"
            logger.error("health.redis_check_failed", error=str(exc))

    try:
        network = await request.app.state.chain_client.network_status()
        chain_status = "healthy" if network.get("connected") else "disconnected"
    except Exception as exc:
        chain_status = f"unhealthy: {exc}"
        logger.error("health.chain_check_failed", error=str(exc))

    healthy = db_status == "healthy" and chain_status == "healthy"
    overall = "ok" if healthy and redis_status in ("healthy", "disabled") else "degraded"

    return HealthResponse(
        status=overall,
        version="0.1.0",
        database=db_status,
        redis=redis_status,
        chain=chain_status,
    )
