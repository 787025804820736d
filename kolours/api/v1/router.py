"""API v1 router module."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from redis import RedisError

from kolours.api.v1.kolours import router as kolours_router
from kolours.core.config import settings
from kolours.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(default_response_class=JSONResponse)


@router.get("/health")
def health_check(request: Request) -> JSONResponse:
    """Report service health, including the Redis backend."""
    redis_client = getattr(request.app.state, "redis", None)
    redis_status = "unconfigured"
    if redis_client is not None:
        try:
            redis_status = "healthy" if redis_client.ping() else "unhealthy"
        except RedisError as e:
            logger.warning("health_redis_unreachable", error=str(e))
            redis_status = "unhealthy"

    healthy = redis_status == "healthy"
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "version": settings.version,
            "redis": redis_status,
        },
    )


router.include_router(kolours_router)
