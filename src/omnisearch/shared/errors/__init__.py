"""Global exception handlers — map domain errors to HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse
import structlog

from omnisearch.domain.exceptions import (
    ConfigurationError,
    DomainError,
    ProviderCallError,
    RoutingExhaustedError,
    StorageError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all domain→HTTP exception mappings."""

    @app.exception_handler(ValidationError)
    async def handle_validation(request: Request, exc: ValidationError) -> ORJSONResponse:
        return ORJSONResponse(
            status_code=422,
            content={"code": exc.code, "message": exc.message},
        )

    @app.exception_handler(ConfigurationError)
    async def handle_configuration(request: Request, exc: ConfigurationError) -> ORJSONResponse:
        logger.warning("configuration_error_http", message=exc.message)
        return ORJSONResponse(
            status_code=503,
            content={"code": exc.code, "message": exc.message},
        )

    @app.exception_handler(RoutingExhaustedError)
    async def handle_exhausted(request: Request, exc: RoutingExhaustedError) -> ORJSONResponse:
        logger.error("routing_exhausted_http", message=exc.message, errors=exc.errors)
        return ORJSONResponse(
            status_code=503,
            content={"code": exc.code, "message": exc.message, "errors": exc.errors},
        )

    @app.exception_handler(StorageError)
    async def handle_storage(request: Request, exc: StorageError) -> ORJSONResponse:
        logger.error("storage_error_http", message=exc.message)
        return ORJSONResponse(
            status_code=503,
            content={"code": exc.code, "message": exc.message},
        )

    @app.exception_handler(ProviderCallError)
    async def handle_provider(request: Request, exc: ProviderCallError) -> ORJSONResponse:
        logger.error("provider_error_http", provider=exc.provider, message=exc.message)
        return ORJSONResponse(
            status_code=502,
            content={"code": exc.code, "message": exc.message},
        )

    @app.exception_handler(DomainError)
    async def handle_domain(request: Request, exc: DomainError) -> ORJSONResponse:
        return ORJSONResponse(
            status_code=400,
            content={"code": exc.code, "message": exc.message},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("unhandled_exception", error=str(exc))
        return ORJSONResponse(
            status_code=500,
            content={
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            },
        )
