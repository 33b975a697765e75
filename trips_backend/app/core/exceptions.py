"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict

logger = logging.getLogger("trips.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InvalidInputError(AppException):
    """Raised when a path parameter or form field is missing or malformed."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_INPUT_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class AuthenticationError(AppException):
    """Raised for authentication failures (missing session, bad identity token)."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class PrivilegeTokenMissingError(AppException):
    """Raised when no privilege token is cached for the session and vehicle."""

    def __init__(self, token_id: int):
        super().__init__(
            message="privilege token not found in cache",
            error_code="ERR_AUTH_002",
            status_code=status.HTTP_401_UNAUTHORIZED,
            details={"token_id": token_id}
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details=details
        )


class NoVehiclesFoundError(ResourceNotFoundError):
    """Raised when the wallet owns no vehicles."""

    def __init__(self):
        super().__init__(message="No vehicles found")


class TripNotFoundError(ResourceNotFoundError):
    """Raised when a trip id cannot be mapped to an owning vehicle."""

    def __init__(self, trip_id: str):
        super().__init__(message="Trip not found", details={"trip_id": trip_id})


class UpstreamTransportError(AppException):
    """Raised when an upstream service cannot be reached (network, DNS, timeout)."""

    def __init__(self, service: str, message: str):
        super().__init__(
            message=message,
            error_code="ERR_UPSTREAM_001",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"service": service}
        )


class UpstreamProtocolError(AppException):
    """Raised on non-2xx upstream statuses or unexpected response bodies."""

    def __init__(self, service: str, message: str, upstream_status: int = None):
        details: Dict[str, Any] = {"service": service}
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        super().__init__(
            message=message,
            error_code="ERR_UPSTREAM_002",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    if exc.status_code >= 500:
        logger.error(
            "Request failed on %s (%d): %s", request.url.path, exc.status_code, exc.message,
            extra={"path": request.url.path, "status_code": exc.status_code, "error_code": exc.error_code}
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for request validation errors (missing form fields and the like)."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                    for err in exc.errors()
                ]
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.error(
        "Unhandled exception on %s (%d): %s: %s",
        request.url.path, status.HTTP_500_INTERNAL_SERVER_ERROR, type(exc).__name__, exc,
        exc_info=exc,
        extra={"path": request.url.path, "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR}
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
