# =============================================================================
# app/exceptions.py - Custom Exceptions and Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every failure maps to a distinct code and a descriptive message. Internal
# context (underlying errors, operation names) goes to the logs, not to the
# caller.
# =============================================================================

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PropertyWeatherException(Exception):
    """
    Base exception for the Property Weather API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "PROPERTY_WEATHER_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Input Exceptions
# =============================================================================

class ValidationFailedError(PropertyWeatherException):
    """
    Raised when one or more input fields violate their format rules.

    `violations` holds every (field, rule, message) triple found, not just
    the first one.
    """

    def __init__(self, violations: list):
        self.violations = list(violations)
        messages = "; ".join(v.message for v in self.violations)
        super().__init__(
            message=f"Validation failed: {messages}",
            code="VALIDATION_FAILED",
            status_code=422,
            suggestion="Fix the listed fields and resubmit the request",
            details={
                "errors": [
                    {"field": v.field, "rule": v.rule, "message": v.message}
                    for v in self.violations
                ]
            },
        )


# =============================================================================
# Weather Provider Exceptions
# =============================================================================

class WeatherRejectedError(PropertyWeatherException):
    """
    Raised when the weather provider answered with a client-class error
    or a structurally invalid payload. Never retried.
    """

    def __init__(self, reason: str, status_code: int | None = None):
        self.reason = reason
        self.provider_status = status_code
        details: dict[str, Any] = {}
        if status_code is not None:
            details["provider_status"] = status_code
        super().__init__(
            message=f"Weather provider rejected the lookup: {reason}",
            code="WEATHER_REJECTED",
            status_code=502,
            suggestion="Check the address and the weather provider credentials",
            details=details,
        )


class WeatherUnavailableError(PropertyWeatherException):
    """
    Raised when the weather provider kept failing with transient errors
    until every attempt was used.
    """

    def __init__(self, attempts: int, last_error: str):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            message=f"Weather provider unavailable after {attempts} attempts",
            code="WEATHER_UNAVAILABLE",
            status_code=503,
            suggestion="Try again later; no property was created",
            details={"attempts": attempts},
        )


# =============================================================================
# Property Exceptions
# =============================================================================

class PropertyNotFoundError(PropertyWeatherException):
    """Raised when a property ID doesn't exist."""

    def __init__(self, property_id: str):
        super().__init__(
            message=f"Property not found: {property_id}",
            code="PROPERTY_NOT_FOUND",
            status_code=404,
            suggestion="Check that the property id is correct and the property hasn't been deleted",
            details={"property_id": property_id}
        )


class PersistenceFaultError(PropertyWeatherException):
    """
    Raised when a store operation fails.

    The underlying error is kept on the exception for logging and is not
    part of the response body.
    """

    def __init__(self, operation: str, error: str):
        self.operation = operation
        self.error = error
        super().__init__(
            message="The property store could not complete the request",
            code="PERSISTENCE_FAULT",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
        )

    def __str__(self) -> str:
        return f"{self.message} ({self.operation}: {self.error})"


# =============================================================================
# Exception Handlers
# =============================================================================

async def property_weather_exception_handler(
    request: Request,
    exc: PropertyWeatherException
) -> JSONResponse:
    """
    Convert PropertyWeatherException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    context = f"{request.method} {request.url.path} -> {exc.code}"
    if exc.status_code >= 500:
        logger.error(f"{context}: {exc}")
    else:
        logger.warning(f"{context}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request bodies FastAPI could not parse.

    Uses the same VALIDATION_FAILED shape as field rule violations.
    """
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append({
            "field": ".".join(location) or "body",
            "rule": error.get("type", "invalid"),
            "message": error.get("msg", "Invalid value"),
        })

    logger.warning(f"{request.method} {request.url.path} -> VALIDATION_FAILED: {errors}")

    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation failed",
            "code": "VALIDATION_FAILED",
            "details": {"errors": errors},
        }
    )
