"""
ParkShare Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for every error outcome of a request.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching status code.
Who:   Raised by services and dependencies; caught by the global handlers.

Exception Hierarchy:
    ParkShareError (base)
    ├── ValidationError      → 400 Bad Request (every failing field listed)
    ├── AuthenticationError  → 401 Unauthorized (missing/invalid token)
    ├── AuthorizationError   → 403 Forbidden (wrong role, not the owner)
    ├── NotFoundError        → 404 Not Found
    └── DatabaseError        → 500 Internal Server Error (generic message)

    Anything else that escapes a handler becomes a 500 through the
    catch-all handler in main.py.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

_REQUEST_SECTIONS = {"body", "query", "path", "header", "cookie"}
_VALUE_ERROR_PREFIX = "Value error, "


class ParkShareError(Exception):
    """
    Base exception for all ParkShare application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ParkShareError):
    """
    Raised when client input fails validation.

    HTTP: 400 Bad Request

    Errors are collected, not fail-fast: `errors` holds one
    {"field": ..., "message": ...} entry per failing field so the client
    can fix everything in one round trip.

    Example response:
        {
            "success": false,
            "error": "validation_error",
            "message": "Validation failed",
            "errors": [
                {"field": "vehicleType", "message": "Input should be 'car', ..."},
                {"field": "limit", "message": "Input should be less than or equal to 50"}
            ]
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[Dict[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field
        if errors is None:
            errors = [{"field": field, "message": message}] if field else []
        self.errors = errors

    @classmethod
    def from_pydantic_errors(
        cls,
        raw_errors: Sequence[Mapping[str, Any]],
        message: str = "Validation failed",
    ) -> "ValidationError":
        """
        Build one ValidationError from a list of pydantic error dicts.

        Works for both `pydantic.ValidationError.errors()` and FastAPI's
        `RequestValidationError.errors()`. The request section prefix
        ("body", "query", "path") is dropped from the location, so a bad
        `?vehicleType=` is reported as field "vehicleType".
        """
        errors = []
        for err in raw_errors:
            loc = [str(part) for part in err.get("loc", ())]
            if len(loc) > 1 and loc[0] in _REQUEST_SECTIONS:
                loc = loc[1:]
            text = str(err.get("msg", "Invalid value"))
            if text.startswith(_VALUE_ERROR_PREFIX):
                text = text[len(_VALUE_ERROR_PREFIX):]
            errors.append({"field": ".".join(loc) or "request", "message": text})
        return cls(message=message, errors=errors)


class AuthenticationError(ParkShareError):
    """
    Raised when the caller cannot be identified.

    When:  No bearer token, malformed/expired token, unknown user,
           or wrong credentials at login.
    HTTP:  401 Unauthorized (with `WWW-Authenticate: Bearer`)
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(ParkShareError):
    """
    Raised when an identified caller may not perform the operation.

    When:  Role outside the allowed set, or a write on a record the caller
           neither owns nor moderates.
    HTTP:  403 Forbidden
    """

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(ParkShareError):
    """
    Raised when a requested resource does not exist.

    HTTP: 404 Not Found

    SQLAlchemy returns None for missing rows; services convert that into
    this exception so handlers never return a half-built response.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(ParkShareError):
    """
    Raised when a store operation fails.

    When:  Connection lost mid-query, constraint violation, pool exhausted.
    HTTP:  500 Internal Server Error

    The message returned to the client is always generic; the original
    exception type is kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
