"""
FinEase Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for every failure the API can report.
Why:   Services raise these; the global handlers in main.py translate them
       into a status code and a JSON `{error, message, request_id}` body in
       exactly one place. Driver and SDK exceptions never reach the client.
How:   Each class carries a client-safe message plus an optional context dict
       (logged server-side only), and declares its HTTP status and error code.

Exception Hierarchy:
    FinEaseError (base)
    ├── InvalidArgument             → 400 Bad Request
    ├── Unauthenticated             → 401 Unauthorized (no credential)
    ├── InvalidCredential           → 401 Unauthorized (credential rejected)
    ├── Forbidden                   → 403 Forbidden
    ├── StoreUnavailable            → 500 (MongoDB unreachable or timed out)
    ├── DatabaseError               → 500 (any other driver failure)
    └── IdentityServiceUnavailable  → 500 (Firebase unreachable or misconfigured)

Missing records are not an error: reads return null and deletes report a
zero count.
"""

from typing import Any, Dict, Optional


class FinEaseError(Exception):
    """
    Base exception for all FinEase application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class InvalidArgument(FinEaseError):
    """
    Raised when a required parameter is missing or an identifier is malformed.

    HTTP: 400 Bad Request. Raised before any store call is made.
    """

    status_code = 400
    error_code = "invalid_argument"

    def __init__(
        self,
        message: str = "Invalid request",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class Unauthenticated(FinEaseError):
    """No Authorization header was presented."""

    status_code = 401
    error_code = "unauthenticated"

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredential(FinEaseError):
    """
    A credential was presented but failed verification.

    The client always sees the same message whether the token was expired,
    malformed, revoked or issued for another project. The precise reason is
    kept in `context` for the server log.
    """

    status_code = 401
    error_code = "invalid_credential"

    def __init__(
        self,
        message: str = "Invalid token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class Forbidden(FinEaseError):
    """The caller is authenticated but does not own the requested records."""

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "Forbidden",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreUnavailable(FinEaseError):
    """
    The document store could not be reached, or an operation timed out.

    Fatal to the current request only. The gateway does not cache a failed
    connection, so the next request attempts a fresh one.
    """

    error_code = "store_unavailable"

    def __init__(
        self,
        message: str = "Database connection failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(FinEaseError):
    """
    A store operation failed for a reason other than connectivity.

    The client message is always generic; the driver error is logged.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IdentityServiceUnavailable(FinEaseError):
    """Firebase could not be reached in time, or the Admin SDK is not configured."""

    error_code = "identity_unavailable"

    def __init__(
        self,
        message: str = "Authentication service is temporarily unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
