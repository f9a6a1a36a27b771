"""FastAPI application entry point.

Run locally:
    uvicorn busycal.main:app --reload
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from busycal.api.router import api_router
from busycal.core.config import settings
from busycal.core.logging_config import (
    generate_request_id,
    request_id_var,
    setup_logging,
)
from busycal.core.rate_limit import limiter

logger = logging.getLogger(__name__)

ALLOWED_METHODS = "GET, POST, OPTIONS"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": ALLOWED_METHODS,
    "Access-Control-Allow-Headers": "Content-Type",
}


def is_preflight(request: Request) -> bool:
    """A CORS preflight names the origin, method and headers it wants."""
    headers = request.headers
    return (
        "origin" in headers
        and "access-control-request-method" in headers
        and "access-control-request-headers" in headers
    )


def with_cors(response: Response) -> Response:
    """Stamp the fixed CORS headers onto a response."""
    response.headers.update(CORS_HEADERS)
    return response


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging(debug=settings.debug, json_logs=settings.json_logs)
    logger.info("Starting %s v%s", settings.project_name, settings.version)
    logger.info("Environment: %s", settings.environment)
    if not settings.encryption_key:
        logger.error("ENCRYPTION_KEY is not set; link creation and calendar serving will fail")
    yield
    logger.info("Shutting down...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    # Sentry/GlitchTip init (before middleware)
    if settings.sentry_dsn:
        import sentry_sdk

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,
            send_default_pii=False,
        )

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # CORS: every response is readable from any origin, errors included.
    # Preflights are answered here, before routing.
    @app.middleware("http")
    async def cors_middleware(request: Request, call_next: Any) -> Response:
        if request.method == "OPTIONS":
            if is_preflight(request):
                return with_cors(Response(status_code=status.HTTP_200_OK))
            return with_cors(Response(headers={"Allow": ALLOWED_METHODS}))
        response: Response = await call_next(request)
        return with_cors(response)

    # Request ID middleware
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Response:
        rid = request.headers.get("X-Request-ID") or generate_request_id()
        request_id_var.set(rid)
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response

    app.include_router(api_router)

    # Unknown paths and disallowed methods both read as 404
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return PlainTextResponse("Not Found", status_code=status.HTTP_404_NOT_FOUND)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info("Rejected malformed request body (%d errors)", len(exc.errors()))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request body."},
        )

    # Runs outside the middleware stack, so CORS headers are added here too
    @app.exception_handler(Exception)
    async def global_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
        """Handle unhandled exceptions with proper JSON response."""
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
            headers=CORS_HEADERS,
        )

    return app


app = create_app()
