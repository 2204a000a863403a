"""
Gallery Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for every error the API can report.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) map each class to
       an HTTP status code and a structured JSON body.
Who:   Raised by stores, services and the auth gate; caught by global handlers.

Exception Hierarchy:
    GalleryError (base)
    ├── ValidationError              → 400 Bad Request
    ├── AuthenticationError          → 401 Unauthorized (no credential supplied)
    │   └── InvalidCredentialsError  → 401 Unauthorized (login rejected)
    ├── InvalidTokenError            → 403 Forbidden (bad/expired credential)
    ├── InsufficientPrivilegeError   → 403 Forbidden (not an admin)
    ├── NotFoundError                → 404 Not Found
    ├── MediaServiceError            → 500 Internal Server Error
    ├── FileStorageError             → 500 Internal Server Error
    └── DatabaseError                → 500 Internal Server Error

Note the two distinct outcomes for protected routes: a missing credential
is 401, while a credential that fails verification is 403.
"""

from typing import Any, Dict, Optional


class GalleryError(Exception):
    """
    Base exception for all gallery application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info; logged, and returned as diagnostic
                  details only for server-side (5xx) failures
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(GalleryError):
    """
    Raised when client input fails validation.

    When:    Missing file, disallowed file type, oversize file, bad body fields.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(GalleryError):
    """No bearer credential was supplied with a protected request (401)."""

    def __init__(
        self,
        message: str = "Access denied",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialsError(AuthenticationError):
    """
    Login rejected.

    Raised for both an unknown email and a wrong password, with the same
    message, so the response never reveals which accounts exist.
    """

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid credentials", context=context)


class InvalidTokenError(GalleryError):
    """A bearer credential was supplied but failed verification or has expired (403)."""

    def __init__(
        self,
        message: str = "Invalid token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InsufficientPrivilegeError(GalleryError):
    """The authenticated identity is not an admin (403)."""

    def __init__(
        self,
        message: str = "Admin access required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(GalleryError):
    """
    Raised when a requested resource does not exist.

    Stores return None for missing records; services convert that into
    NotFoundError so the 404 mapping stays out of the store layer.
    """

    def __init__(
        self,
        resource: str = "Image",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)


class MediaServiceError(GalleryError):
    """
    Raised when the remote media host rejects or fails an upload/delete.

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Remote media operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(GalleryError):
    """Raised when the local upload staging directory cannot be written (500)."""

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(GalleryError):
    """
    Raised when the persistent store fails mid-request.

    The storage mode is never switched because of this error; the request
    fails with 500 and the next request tries the same backend again.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
