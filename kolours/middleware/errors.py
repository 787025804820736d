"""Error handling middleware."""

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.status import (
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from kolours.core.logging import get_logger
from kolours.image_cid.exceptions import (
    CacheError,
    CacheReadFailure,
    GenerationFailure,
    InvalidKolourError,
    KolourImageError,
    LockError,
    LockTimeout,
    UploadFailure,
)

logger = get_logger(__name__)

# Map exception types to status codes; the closest class in the MRO wins
ErrorMapping = dict[type[Exception], int]

ERROR_MAPPING: ErrorMapping = {
    InvalidKolourError: HTTP_422_UNPROCESSABLE_ENTITY,
    LockTimeout: HTTP_503_SERVICE_UNAVAILABLE,
    LockError: HTTP_503_SERVICE_UNAVAILABLE,
    UploadFailure: HTTP_502_BAD_GATEWAY,
    CacheReadFailure: HTTP_503_SERVICE_UNAVAILABLE,
    CacheError: HTTP_500_INTERNAL_SERVER_ERROR,
    GenerationFailure: HTTP_500_INTERNAL_SERVER_ERROR,
    RequestValidationError: HTTP_422_UNPROCESSABLE_ENTITY,
}

# Seconds a client should wait before retrying a busy kolour
LOCK_TIMEOUT_RETRY_AFTER = "1"


def get_status_code(exc: Exception) -> int:
    """Resolve the HTTP status for an exception."""
    if isinstance(exc, StarletteHTTPException):
        return exc.status_code
    for klass in type(exc).__mro__:
        if klass in ERROR_MAPPING:
            return ERROR_MAPPING[klass]
    return HTTP_500_INTERNAL_SERVER_ERROR


def get_error_detail(exc: Exception) -> str:
    """Resolve the client-facing message for an exception."""
    if isinstance(exc, StarletteHTTPException):
        return str(exc.detail)
    return str(exc.args[0] if exc.args else exc)


def build_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Log an exception and render the shared error body.

    Every failure has the same shape so clients can tell an error apart from a
    pending result without knowing the failure kind.
    """
    error_type = exc.__class__.__name__
    status_code = get_status_code(exc)
    detail = get_error_detail(exc)
    correlation_id = getattr(request.state, "correlation_id", None)

    logger.error(
        "request_error",
        error_type=error_type,
        error_message=detail,
        status_code=status_code,
        path=request.url.path,
        method=request.method,
        correlation_id=correlation_id,
    )

    response = JSONResponse(
        status_code=status_code,
        content={
            "error": error_type,
            "message": detail,
            "status_code": status_code,
            "correlation_id": correlation_id if correlation_id else "unknown",
        },
        media_type="application/json",
    )
    if correlation_id:
        response.headers["X-Request-ID"] = correlation_id
    if isinstance(exc, LockTimeout):
        response.headers["Retry-After"] = LOCK_TIMEOUT_RETRY_AFTER
    return response


async def handle_exception(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler rendering the shared error body."""
    return build_error_response(request, exc)


def register_error_handlers(app: FastAPI) -> None:
    """Route handled exception types through the shared error body."""
    app.add_exception_handler(StarletteHTTPException, handle_exception)
    app.add_exception_handler(RequestValidationError, handle_exception)
    app.add_exception_handler(KolourImageError, handle_exception)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware turning unhandled exceptions into error responses."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """
        Process the request/response cycle and handle errors.

        Args:
        ----
            request: The incoming request
            call_next: The next handler in the middleware chain

        Returns:
        -------
            The response from downstream handlers or error response
        """
        try:
            return await call_next(request)
        except Exception as exc:
            return build_error_response(request, exc)
