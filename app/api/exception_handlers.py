"""Global exception handlers that map domain exceptions to HTTP responses."""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from app.core.config import settings
from app.errors import (
    INTERNAL_ERROR,
    STORE_UNAVAILABLE,
    VALIDATION_ERROR,
    DomainError,
    DomainValidationError,
    DuplicateResourceError,
    InternalError,
    NotFoundError,
    PaymentGatewayError,
    ResetTokenError,
    UnauthorizedError,
)
from app.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)

GENERIC_INTERNAL_DETAIL = "Internal server error"


def _error_response(
    status_code: int, detail: str, code: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    """Return a standardized error response with detail and machine-readable code."""
    body = ErrorResponse(detail=detail, code=code)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


def _internal_detail(exc: Exception) -> str:
    # Only non-production deployments see what actually went wrong.
    if settings.is_production:
        return GENERIC_INTERNAL_DETAIL
    return f"{GENERIC_INTERNAL_DETAIL}: {exc}"


def domain_validation_error_handler(
    _request: Request, exc: DomainValidationError | ResetTokenError
) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc), VALIDATION_ERROR)


def request_validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = f"{field}: {first.get('msg')}" if field else "Invalid request body"
    return _error_response(status.HTTP_400_BAD_REQUEST, detail, VALIDATION_ERROR)


def duplicate_resource_error_handler(
    _request: Request, exc: DuplicateResourceError
) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, str(exc), exc.code)


def not_found_error_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, str(exc), exc.code)


def unauthorized_error_handler(_request: Request, exc: UnauthorizedError) -> JSONResponse:
    return _error_response(
        status.HTTP_401_UNAUTHORIZED,
        str(exc),
        exc.code,
        headers={"WWW-Authenticate": "Bearer"},
    )


def payment_gateway_error_handler(_request: Request, exc: PaymentGatewayError) -> JSONResponse:
    return _error_response(status.HTTP_502_BAD_GATEWAY, str(exc), exc.code)


def internal_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, _internal_detail(exc), exc.code)


def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Pool exhaustion and statement timeouts are retryable; anything else is a plain 500."""
    if isinstance(exc, (PoolTimeoutError, OperationalError)):
        logger.warning(
            "Credential store unavailable on %s %s: %s", request.method, request.url.path, exc
        )
        return _error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Service temporarily unavailable, please retry",
            STORE_UNAVAILABLE,
            headers={"Retry-After": "1"},
        )

    logger.exception(
        "Unexpected store error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, _internal_detail(exc), INTERNAL_ERROR
    )


def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, _internal_detail(exc), INTERNAL_ERROR
    )


def register_exception_handlers(app):
    """Register domain exception handlers on the FastAPI app."""
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(DomainValidationError, domain_validation_error_handler)
    app.add_exception_handler(ResetTokenError, domain_validation_error_handler)
    app.add_exception_handler(DuplicateResourceError, duplicate_resource_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(UnauthorizedError, unauthorized_error_handler)
    app.add_exception_handler(PaymentGatewayError, payment_gateway_error_handler)
    app.add_exception_handler(InternalError, internal_error_handler)
    app.add_exception_handler(DomainError, internal_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
