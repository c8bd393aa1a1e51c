"""
FastAPI application entry point with health endpoints and service routing.

This module provides the application instance with CORS configuration,
request correlation logging, the mapping of domain errors to the response
envelope, and health/readiness/liveness probes. The shared HTTP client used
for the product and user services is opened and closed by the lifespan.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from order_management.api.v1 import cart_router, orders_router
from order_management.core.config import get_settings
from order_management.core.exceptions import OrderManagementError
from order_management.core.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    log_performance,
    set_request_id,
)
from order_management.database.connection import (
    check_database_health,
    close_database_connections,
)
from order_management.schemas.common import ApiResponse

configure_logging()
logger = get_logger(__name__)


def envelope(status_code: int, error_message: str, message: str) -> JSONResponse:
    """Build an error response in the standard envelope."""
    body = ApiResponse.failure(error_message, message=message)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan context manager for startup and shutdown events.

    Opens the pooled HTTP client for remote services on startup; closes it
    and disposes of the database engine on shutdown.
    """
    settings = get_settings()

    logger.info(
        "Application starting",
        environment=settings.environment,
        debug=settings.debug,
        version=settings.app_version,
    )

    with log_performance(logger, "application_startup"):
        app.state.http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout_seconds),
            headers={"Accept": "application/json"},
        )

    yield

    logger.info("Application shutting down")
    with log_performance(logger, "application_shutdown"):
        await app.state.http_client.aclose()
        await close_database_connections()


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Order management API for retailer and manufacturer orders",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """
    Middleware for request logging and correlation ID management.

    Uses the caller's X-Request-ID when present, echoes it on the response
    and measures processing time.
    """
    request_id = set_request_id(request.headers.get("X-Request-ID"))

    logger.info(
        "Request received",
        method=request.method,
        path=request.url.path,
        client_host=request.client.host if request.client else None,
    )

    try:
        with log_performance(
            logger,
            "request_processing",
            method=request.method,
            path=request.url.path,
        ):
            response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )
        return response
    finally:
        clear_context()


@app.exception_handler(OrderManagementError)
async def order_management_exception_handler(
    request: Request, exc: OrderManagementError
) -> JSONResponse:
    """
    Map domain errors to the response envelope.

    Client errors are logged as warnings and server-side failures as errors;
    the caller only sees the error message.
    """
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request failed",
        method=request.method,
        path=request.url.path,
        error=exc.message,
        error_code=exc.code,
        **exc.context,
    )
    return envelope(exc.status_code, exc.message, message=exc.code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed requests as 400 with the first problem spelled out."""
    errors = exc.errors()
    logger.warning(
        "Request validation failed",
        method=request.method,
        path=request.url.path,
        errors=[error.get("msg") for error in errors],
    )

    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        detail = f"{location}: {errors[0].get('msg')}" if location else errors[0].get("msg")
    else:
        detail = "Request validation failed"

    return envelope(status.HTTP_400_BAD_REQUEST, detail, message="VALIDATION_ERROR")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without exposing internal details."""
    logger.error(
        "Unhandled exception",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    return envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        f"An unexpected error occurred (request {get_request_id()})",
        message="ERROR",
    )


@app.get(
    "/health",
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Health check endpoint",
)
async def health_check() -> dict[str, str]:
    """Always 200 while the process is serving requests."""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }


@app.get(
    "/ready",
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Readiness check endpoint",
)
async def readiness_check():
    """
    Readiness check endpoint.

    Returns 503 while the database cannot be reached.
    """
    database_ready = await check_database_health(max_retries=1)

    if not database_ready:
        logger.warning("Readiness check failed", database="unhealthy")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "service": settings.app_name,
                "database": "unhealthy",
            },
        )

    return {
        "status": "ready",
        "service": settings.app_name,
        "version": settings.app_version,
        "database": "healthy",
    }


@app.get(
    "/live",
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Liveness check endpoint",
)
async def liveness_check() -> dict[str, str]:
    return {
        "status": "alive",
        "service": settings.app_name,
        "version": settings.app_version,
    }


app.include_router(orders_router, prefix=settings.api_v1_prefix, tags=["Orders"])
app.include_router(cart_router, prefix=settings.api_v1_prefix, tags=["Cart"])
