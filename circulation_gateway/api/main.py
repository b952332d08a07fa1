"""FastAPI application factory"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from circulation_gateway.api.dependencies import get_request_id
from circulation_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from circulation_gateway.api.v1 import loans, policies, rules
from circulation_gateway.config import settings
from circulation_gateway.domain.exceptions import (
    DomainException,
    ForwardedFailure,
    ServerError,
    ValidationError,
)
from circulation_gateway.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logging.warning(
        f"Validation failed: {exc.message}",
        extra={"request_id": get_request_id(request), "parameters": exc.parameters},
    )
    return JSONResponse(status_code=422, content={"message": exc.message, "parameters": exc.parameters})


async def forwarded_failure_handler(request: Request, exc: ForwardedFailure) -> Response:
    logging.error(
        f"Forwarding failure from storage: {exc.status_code}",
        extra={"request_id": get_request_id(request)},
    )
    return Response(content=exc.body, status_code=exc.status_code, media_type="text/plain")


async def server_error_handler(request: Request, exc: DomainException) -> JSONResponse:
    logging.error(f"Server error: {exc}", extra={"request_id": get_request_id(request)})
    return JSONResponse(status_code=500, content={"message": str(exc), "parameters": {}})


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Circulation Policy Gateway",
        description="Circulation rule matching, loan policy and overdue period service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Domain failures map onto status codes in one place
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ForwardedFailure, forwarded_failure_handler)
    app.add_exception_handler(ServerError, server_error_handler)
    app.add_exception_handler(DomainException, server_error_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(rules.router, prefix="/v1", tags=["circulation-rules"])
    app.include_router(policies.router, prefix="/v1", tags=["policies"])
    app.include_router(loans.router, prefix="/v1", tags=["loans"])

    return app


app = create_app()
