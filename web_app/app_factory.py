"""FastAPI application factory."""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tinyurl import __version__
from tinyurl.common.logging_config import get_logger
from tinyurl.exceptions import (
    TinyURLError,
    CodeCollision,
    DuplicateOwner,
    GenerationExhausted,
    InvalidCode,
    MalformedRecord,
    OwnerNotFound,
    ShortCodeNotFound,
    StoreUnavailable,
)

from .api import api_router
from .web import web_router
from .middleware.logging import LoggingMiddleware

STATUS_BY_ERROR = {
    InvalidCode: status.HTTP_400_BAD_REQUEST,
    MalformedRecord: status.HTTP_400_BAD_REQUEST,
    ShortCodeNotFound: status.HTTP_404_NOT_FOUND,
    OwnerNotFound: status.HTTP_404_NOT_FOUND,
    DuplicateOwner: status.HTTP_409_CONFLICT,
    CodeCollision: status.HTTP_503_SERVICE_UNAVAILABLE,
    GenerationExhausted: status.HTTP_503_SERVICE_UNAVAILABLE,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}

USER_MESSAGES = {
    CodeCollision: "Short code collision detected. Please try again.",
    GenerationExhausted: "Unable to generate unique short code. Please try again.",
    StoreUnavailable: "Storage is temporarily unavailable. Please try again later.",
}


def _status_for(exc: TinyURLError) -> int:
    for error_type, code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def tinyurl_error_handler(request: Request, exc: TinyURLError) -> JSONResponse:
    """Map core errors to status codes with a "try again" body where retrying helps."""
    status_code = _status_for(exc)
    message = USER_MESSAGES.get(type(exc), str(exc))

    logger = get_logger("web")
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")

    headers = {"Retry-After": "1"} if isinstance(exc, CodeCollision) else None
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "error_code": exc.error_code, "retryable": exc.retryable},
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request validation failures are plain 400s."""
    messages = "; ".join(str(err.get("msg", "")) for err in exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": f"Validation failed: {messages}", "error_code": "request:validation_failed", "retryable": False},
    )


def create_app(
    service_instance,
    resolver_instance,
    config,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        service_instance: ShorteningService instance
        resolver_instance: Resolver instance
        config: Configuration instance

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="TinyURL",
        description="URL shortening service with primary/fallback storage",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Store instances in app state for access in routes
    app.state.service = service_instance
    app.state.resolver = resolver_instance
    app.state.config = config

    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(TinyURLError, tinyurl_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(api_router, prefix="/api", tags=["API"])

    # Short URLs are composed as base_url/path_prefix/code
    redirect_prefix = config.path_prefix.strip("/") if config else ""
    app.include_router(
        web_router,
        prefix=f"/{redirect_prefix}" if redirect_prefix else "",
        tags=["Redirect"],
    )

    return app
