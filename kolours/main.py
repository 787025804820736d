"""Main FastAPI application module."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette import status

from kolours.api.v1.router import router as v1_router
from kolours.core.config import settings
from kolours.core.logging import configure_logging, get_logger
from kolours.image_cid.config import (
    create_image_cid_service,
    create_ipfs_http_client,
    create_redis_client,
)
from kolours.middleware.correlation import CorrelationMiddleware
from kolours.middleware.errors import ErrorHandlingMiddleware, register_error_handlers

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build backend clients on startup and close them on shutdown."""
    configure_logging(level=settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)

    redis_client = create_redis_client(settings)
    http_client = create_ipfs_http_client(settings)
    app.state.redis = redis_client
    app.state.image_cid_service = create_image_cid_service(
        settings, redis_client, http_client
    )
    logger.info(
        "startup_complete",
        ipfs_api_url=settings.IPFS_API_URL,
        cache_ttl=settings.KOLOUR_IMAGE_CACHE_TTL,
        lock_ttl=settings.KOLOUR_IMAGE_LOCK_TTL,
        lock_wait_ms=settings.KOLOUR_IMAGE_LOCK_WAIT_MS,
    )
    try:
        yield
    finally:
        http_client.close()
        redis_client.close()
        logger.info("shutdown_complete")


app = FastAPI(
    title=settings.app_name,
    description="Deterministic kolour images published to IPFS",
    version=settings.version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    default_response_class=JSONResponse,
    lifespan=lifespan,
)

# Middleware added last runs outermost:
# 1. CORS (outermost)
# 2. Correlation (adds request ID)
# 3. Error handling (innermost - handles all errors)
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(CorrelationMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
    max_age=600,
)
register_error_handlers(app)


@app.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/", include_in_schema=False)
async def root_redirect() -> Response:
    """Redirect root path to docs."""
    return RedirectResponse(url="/docs", status_code=status.HTTP_307_TEMPORARY_REDIRECT)


app.include_router(v1_router, prefix=settings.api_prefix)
